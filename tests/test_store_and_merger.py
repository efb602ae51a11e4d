#!/usr/bin/env python3
"""Bucket store persistence, monotone merge and record notification"""

import asyncio
import sys
import unittest
from pathlib import Path
from unittest.mock import Mock

sys.path.insert(0, str(Path(__file__).parent.parent))

from bucketscout.bucket_core.database import BucketStore
from bucketscout.bucket_core.exceptions import StoreError
from bucketscout.bucket_core.models import BucketRecord, BucketPermissions
from bucketscout.bucket_engine.merger import ResultMerger, merge_records
from bucketscout.bucket_engine.notifications import RecordNotifier


def make_record(hostname="b.example.com", date=1000, **flags):
    return BucketRecord(
        hostname=hostname,
        owned=True,
        public=any(flags.values()),
        permissions=BucketPermissions(**flags),
        date=date
    )


class TestRecordShape(unittest.TestCase):

    def test_to_dict_uses_persisted_shape(self):
        record = make_record(list_bucket=True)
        data = record.to_dict()

        self.assertEqual(data, {
            'hostname': "b.example.com",
            'public': True,
            'permissions': {'listBucket': True, 'aclRead': False, 'aclWrite': False},
            'date': 1000,
            'owned': True
        })

    def test_optional_fields_roundtrip(self):
        record = make_record(acl_write=True)
        record.region = "eu-central-1"
        record.owner = "someone"

        restored = BucketRecord.from_dict(record.to_dict())
        self.assertEqual(restored, record)

    def test_badges(self):
        self.assertEqual(make_record().badges, ["Private"])
        self.assertEqual(make_record(list_bucket=True, acl_write=True).badges, ["ListBucket", "ACL Write"])


class TestBucketStore(unittest.TestCase):

    def setUp(self):
        self.store = BucketStore(database_url="sqlite:///:memory:")

    def tearDown(self):
        self.store.close()

    def test_save_and_get(self):
        record = make_record(list_bucket=True)
        record.region = "us-east-1"
        self.store.save_bucket(record)

        self.assertEqual(self.store.get_bucket("b.example.com"), record)
        self.assertIsNone(self.store.get_bucket("missing.example.com"))

    def test_save_replaces_by_hostname(self):
        self.store.save_bucket(make_record(list_bucket=True, date=1))
        self.store.save_bucket(make_record(acl_read=True, date=2))

        stored = self.store.get_bucket("b.example.com")
        self.assertEqual(stored.date, 2)
        self.assertFalse(stored.permissions.list_bucket)
        self.assertEqual(len(self.store.get_buckets()), 1)

    def test_snapshot_newest_first(self):
        self.store.save_bucket(make_record("old.example.com", date=1))
        self.store.save_bucket(make_record("new.example.com", date=3))
        self.store.save_bucket(make_record("mid.example.com", date=2))

        self.assertEqual(list(self.store.get_buckets()),
                         ["new.example.com", "mid.example.com", "old.example.com"])
        self.assertEqual(sorted(self.store.hostnames()),
                         ["mid.example.com", "new.example.com", "old.example.com"])

    def test_delete_and_clear(self):
        self.store.save_bucket(make_record("a.example.com"))
        self.store.save_bucket(make_record("b.example.com"))

        self.assertTrue(self.store.delete_bucket("a.example.com"))
        self.assertFalse(self.store.delete_bucket("a.example.com"))
        self.assertEqual(self.store.clear_buckets(), 1)
        self.assertEqual(self.store.get_buckets(), {})

    def test_settings(self):
        self.assertIsNone(self.store.get_setting("recording"))
        self.assertEqual(self.store.get_setting("recording", "0"), "0")
        self.store.set_setting("recording", "1")
        self.store.set_setting("recording", "0")
        self.assertEqual(self.store.get_setting("recording"), "0")

    def test_statistics(self):
        self.store.save_bucket(make_record("a.example.com", list_bucket=True))
        self.store.save_bucket(make_record("b.example.com", acl_read=True, acl_write=True))
        self.store.save_bucket(make_record("c.example.com"))

        self.assertEqual(self.store.get_statistics(), {
            'total_buckets': 3,
            'public_buckets': 2,
            'listable_buckets': 1,
            'acl_readable_buckets': 1,
            'acl_writable_buckets': 1
        })

    def test_bad_url_raises_store_error(self):
        with self.assertRaises(StoreError):
            BucketStore(database_url="sqlite:////nonexistent-dir/deeper/buckets.db")


class TestMergeRecords(unittest.TestCase):

    def test_flags_never_regress(self):
        existing = make_record(list_bucket=True, date=1)
        new = make_record(acl_read=True, date=2)

        merged = merge_records(new, existing)
        self.assertTrue(merged.permissions.list_bucket)
        self.assertTrue(merged.permissions.acl_read)
        self.assertFalse(merged.permissions.acl_write)
        self.assertEqual(merged.date, 2)

    def test_other_fields_take_newest(self):
        existing = make_record(list_bucket=True)
        existing.region = "us-east-1"
        new = make_record()
        new.public = False

        merged = merge_records(new, existing)
        self.assertFalse(merged.public)
        self.assertIsNone(merged.region)
        self.assertTrue(merged.permissions.list_bucket)

    def test_inputs_not_mutated(self):
        existing = make_record(list_bucket=True)
        new = make_record()
        merge_records(new, existing)
        self.assertFalse(new.permissions.list_bucket)

    def test_without_existing_record(self):
        new = make_record(acl_write=True)
        merged = merge_records(new)
        self.assertEqual(merged, new)
        self.assertIsNot(merged.permissions, new.permissions)


class TestResultMerger(unittest.TestCase):

    def setUp(self):
        self.store = BucketStore(database_url="sqlite:///:memory:")
        self.notifier = RecordNotifier()
        self.merger = ResultMerger(self.store, self.notifier)

    def tearDown(self):
        self.store.close()

    def test_merge_across_probes(self):
        self.merger.merge_and_save(make_record(list_bucket=True, date=1))
        self.merger.merge_and_save(make_record(acl_write=True, date=2))

        stored = self.store.get_bucket("b.example.com")
        self.assertTrue(stored.permissions.list_bucket)
        self.assertTrue(stored.permissions.acl_write)
        self.assertEqual(stored.date, 2)

    def test_unowned_records_are_not_persisted(self):
        record = BucketRecord(hostname="site.example.com")
        self.assertIsNone(self.merger.merge_and_save(record))
        self.assertEqual(self.store.get_buckets(), {})

    def test_listeners_receive_merged_record(self):
        received = []
        self.notifier.add_listener(received.append)

        merged = self.merger.merge_and_save(make_record(acl_read=True))
        self.assertEqual(received, [merged])

    def test_failing_listener_is_ignored(self):
        received = []
        self.notifier.add_listener(Mock(side_effect=RuntimeError("listener down")))
        self.notifier.add_listener(received.append)

        merged = self.merger.merge_and_save(make_record(acl_read=True))
        self.assertIsNotNone(merged)
        self.assertEqual(len(received), 1)

    def test_async_listener(self):
        received = []

        async def listener(record):
            received.append(record.hostname)

        async def failing_listener(record):
            raise RuntimeError("async listener down")

        self.notifier.add_listener(listener)
        self.notifier.add_listener(failing_listener)

        async def run():
            self.merger.merge_and_save(make_record())
            await asyncio.sleep(0)
            await asyncio.sleep(0)

        asyncio.run(run())
        self.assertEqual(received, ["b.example.com"])

    def test_async_listener_without_loop(self):
        async def listener(record):
            raise AssertionError("should not run")

        self.notifier.add_listener(listener)
        self.assertIsNotNone(self.merger.merge_and_save(make_record()))

    def test_store_failure_is_contained(self):
        store = Mock()
        store.get_bucket.return_value = None
        store.save_bucket.side_effect = StoreError("disk full")
        listener = Mock()
        notifier = RecordNotifier()
        notifier.add_listener(listener)

        merger = ResultMerger(store, notifier)
        self.assertIsNone(merger.merge_and_save(make_record()))
        listener.assert_not_called()

    def test_remove_listener(self):
        listener = Mock()
        self.notifier.add_listener(listener)
        self.notifier.add_listener(listener)
        self.assertEqual(len(self.notifier.listeners), 1)

        self.notifier.remove_listener(listener)
        self.merger.merge_and_save(make_record())
        listener.assert_not_called()


if __name__ == "__main__":
    unittest.main()
