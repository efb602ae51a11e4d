"""Result Merger - Monotone merge of probe outcomes into the store"""

import logging
from dataclasses import replace
from typing import Optional

from ..bucket_core.database import BucketStore
from ..bucket_core.exceptions import StoreError
from ..bucket_core.models import BucketRecord
from .notifications import RecordNotifier


def merge_records(new: BucketRecord, existing: Optional[BucketRecord] = None) -> BucketRecord:
    """Combine a fresh probe outcome with the stored record.

    Permission flags are OR-ed so they never regress; every other field
    comes from the newest probe.
    """
    if existing is None:
        return replace(new, permissions=replace(new.permissions))
    return replace(new, permissions=new.permissions.union(existing.permissions))


class ResultMerger:
    """Read-modify-write of bucket records plus change notification"""

    def __init__(self, store: BucketStore, notifier: Optional[RecordNotifier] = None):
        self.store = store
        self.notifier = notifier or RecordNotifier()
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def merge_and_save(self, record: BucketRecord) -> Optional[BucketRecord]:
        """Persist the merged record; returns None when the write failed.

        Store failures are logged and swallowed so one bad write never stops
        the scheduler; the hostname stays probed-but-unsaved with no retry.
        """
        if not record.owned:
            return None

        try:
            merged = merge_records(record, self.store.get_bucket(record.hostname))
            self.store.save_bucket(merged)
        except StoreError as e:
            self.logger.error(f"Probed {record.hostname} but could not save it: {e}")
            return None

        self.notifier.notify(merged)
        return merged
