#!/usr/bin/env python3
"""S3 response classification"""

import sys
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from bucketscout.bucket_engine.classifiers import (
    parse_list_bucket_xml, parse_acl_xml, detect_vendor, extract_region
)
from probe_fixtures import (
    LIST_BUCKET_XML, EMPTY_LIST_BUCKET_XML, HTML_PAGE, ACCESS_DENIED_XML,
    ALL_USERS, AUTH_USERS, acl_xml, grant
)


class TestListBucketClassifier(unittest.TestCase):

    def test_namespaced_listing(self):
        result = parse_list_bucket_xml(LIST_BUCKET_XML)
        self.assertTrue(result.is_s3)
        self.assertTrue(result.public)
        self.assertEqual(result.bucket_name, "example-bucket")
        self.assertEqual(result.owner, "listing-owner")

    def test_minimal_listing(self):
        result = parse_list_bucket_xml(EMPTY_LIST_BUCKET_XML)
        self.assertTrue(result.is_s3)
        self.assertEqual(result.bucket_name, "empty")
        self.assertIsNone(result.owner)

    def test_prefixed_namespace(self):
        xml = ('<s3:ListBucketResult xmlns:s3="http://s3.amazonaws.com/doc/2006-03-01/">'
               '<s3:Name>prefixed</s3:Name></s3:ListBucketResult>')
        result = parse_list_bucket_xml(xml)
        self.assertTrue(result.is_s3)
        self.assertEqual(result.bucket_name, "prefixed")

    def test_html_is_not_recognized(self):
        self.assertFalse(parse_list_bucket_xml(HTML_PAGE).is_s3)

    def test_other_xml_roots(self):
        self.assertFalse(parse_list_bucket_xml(ACCESS_DENIED_XML).is_s3)
        self.assertFalse(parse_list_bucket_xml("<ListAllMyBucketsResult/>").is_s3)

    def test_garbage_input(self):
        for body in [None, "", "   ", "<ListBucketResult>", "{\"json\": true}", "\x00\x01"]:
            with self.subTest(body=body):
                self.assertFalse(parse_list_bucket_xml(body).is_s3)

    def test_external_entities_not_expanded(self):
        xml = ('<?xml version="1.0"?>'
               '<!DOCTYPE r [<!ENTITY xxe SYSTEM "file:///etc/passwd">]>'
               '<ListBucketResult><Name>&xxe;</Name></ListBucketResult>')
        result = parse_list_bucket_xml(xml)
        self.assertNotIn("root:", result.bucket_name or "")


class TestAclClassifier(unittest.TestCase):

    def test_all_users_read(self):
        result = parse_acl_xml(acl_xml(grant(ALL_USERS, "READ")))
        self.assertTrue(result.is_s3)
        self.assertTrue(result.public_read)
        self.assertFalse(result.public_write)
        self.assertEqual(result.owner, "acl-owner")

    def test_all_users_write(self):
        result = parse_acl_xml(acl_xml(grant(ALL_USERS, "WRITE")))
        self.assertFalse(result.public_read)
        self.assertTrue(result.public_write)

    def test_full_control_sets_both(self):
        result = parse_acl_xml(acl_xml(grant(ALL_USERS, "FULL_CONTROL")))
        self.assertTrue(result.public_read)
        self.assertTrue(result.public_write)

    def test_non_all_users_grantees_ignored(self):
        result = parse_acl_xml(acl_xml(
            grant(None, "FULL_CONTROL"),
            grant(AUTH_USERS, "READ"),
            grant(ALL_USERS, "READ_ACP")
        ))
        self.assertTrue(result.is_s3)
        self.assertFalse(result.public_read)
        self.assertFalse(result.public_write)
        self.assertEqual(len(result.grants), 3)

    def test_flags_are_union_over_grants(self):
        result = parse_acl_xml(acl_xml(grant(ALL_USERS, "READ"), grant(ALL_USERS, "WRITE")))
        self.assertTrue(result.public_read)
        self.assertTrue(result.public_write)

    def test_no_namespace_and_no_grants(self):
        result = parse_acl_xml(acl_xml(namespace=None))
        self.assertTrue(result.is_s3)
        self.assertEqual(result.grants, [])
        self.assertFalse(result.public_read)

    def test_grant_without_permission(self):
        xml = acl_xml(f'<Grant><Grantee><URI>{ALL_USERS}</URI></Grantee></Grant>')
        result = parse_acl_xml(xml)
        self.assertTrue(result.is_s3)
        self.assertEqual(result.grants, [(ALL_USERS, None)])
        self.assertFalse(result.public_read)

    def test_non_acl_documents(self):
        self.assertFalse(parse_acl_xml(LIST_BUCKET_XML).is_s3)
        self.assertFalse(parse_acl_xml(HTML_PAGE).is_s3)
        self.assertFalse(parse_acl_xml(ACCESS_DENIED_XML).is_s3)
        self.assertFalse(parse_acl_xml(None).is_s3)


class TestHeaderSignals(unittest.TestCase):

    def test_vendor_signatures(self):
        self.assertEqual(detect_vendor({"Server": "AmazonS3"}), "AmazonS3")
        self.assertEqual(detect_vendor({"server": "MinIO/RELEASE.2024-01-01"}), "MinIO")
        self.assertIsNone(detect_vendor({"Server": "nginx/1.25"}))
        self.assertIsNone(detect_vendor({}))
        self.assertIsNone(detect_vendor(None))

    def test_custom_signatures(self):
        self.assertEqual(detect_vendor({"Server": "Ceph RGW"}, ["RGW"]), "RGW")
        self.assertIsNone(detect_vendor({"Server": "AmazonS3"}, ["RGW"]))

    def test_region_header(self):
        self.assertEqual(extract_region({"x-amz-bucket-region": "eu-west-1"}), "eu-west-1")
        self.assertEqual(extract_region({"X-Amz-Bucket-Region": " us-east-2 "}), "us-east-2")
        self.assertIsNone(extract_region({"x-amz-bucket-region": ""}))
        self.assertIsNone(extract_region({}))


if __name__ == "__main__":
    unittest.main()
