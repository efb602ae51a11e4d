"""Shared XML bodies and fake network objects for the test suite"""

import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from bucketscout.bucket_core.models import BucketRecord


S3_NS = "http://s3.amazonaws.com/doc/2006-03-01/"
ALL_USERS = "http://acs.amazonaws.com/groups/global/AllUsers"
AUTH_USERS = "http://acs.amazonaws.com/groups/global/AuthenticatedUsers"

LIST_BUCKET_XML = f"""<?xml version="1.0" encoding="UTF-8"?>
<ListBucketResult xmlns="{S3_NS}">
    <Name>example-bucket</Name>
    <Prefix></Prefix>
    <Marker></Marker>
    <MaxKeys>1000</MaxKeys>
    <IsTruncated>false</IsTruncated>
    <Contents>
        <Key>index.html</Key>
        <LastModified>2021-01-01T00:00:00.000Z</LastModified>
        <ETag>&quot;hash&quot;</ETag>
        <Size>123</Size>
        <Owner>
            <ID>abc123</ID>
            <DisplayName>listing-owner</DisplayName>
        </Owner>
        <StorageClass>STANDARD</StorageClass>
    </Contents>
</ListBucketResult>
"""

EMPTY_LIST_BUCKET_XML = "<ListBucketResult><Name>empty</Name></ListBucketResult>"

HTML_PAGE = """<!DOCTYPE html>
<html><head><title>Welcome</title></head><body><h1>Hello</h1></body></html>
"""

ACCESS_DENIED_XML = """<?xml version="1.0" encoding="UTF-8"?>
<Error><Code>AccessDenied</Code><Message>Access Denied</Message></Error>
"""


def grant(uri, permission):
    """One Grant element for a group grantee (uri may be None for a canonical user)"""
    if uri is None:
        grantee = ('<Grantee xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance" '
                   'xsi:type="CanonicalUser"><ID>owner_id</ID></Grantee>')
    else:
        grantee = ('<Grantee xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance" '
                   f'xsi:type="Group"><URI>{uri}</URI></Grantee>')
    return f"<Grant>{grantee}<Permission>{permission}</Permission></Grant>"


def acl_xml(*grants, namespace=S3_NS):
    xmlns = f' xmlns="{namespace}"' if namespace else ""
    return (
        f'<AccessControlPolicy{xmlns}>'
        '<Owner><ID>owner_id</ID><DisplayName>acl-owner</DisplayName></Owner>'
        f'<AccessControlList>{"".join(grants)}</AccessControlList>'
        '</AccessControlPolicy>'
    )


# ===============================================================================
# FAKE AIOHTTP OBJECTS
# ===============================================================================

class FakeContent:
    """Stands in for aiohttp's StreamReader"""

    def __init__(self, body: bytes):
        self._body = body

    async def iter_chunked(self, size):
        for start in range(0, len(self._body), size):
            yield self._body[start:start + size]


class FakeResponse:
    def __init__(self, status=200, body="", headers=None):
        self.status = status
        self.headers = headers or {}
        self._raw = body.encode('utf-8') if isinstance(body, str) else body

    @property
    def content(self):
        return FakeContent(self._raw)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """Maps URLs to FakeResponse objects or exceptions; unknown URLs get 404"""

    def __init__(self, routes=None):
        self.routes = routes or {}
        self.requests = []
        self.timeouts = []
        self.closed = False

    def get(self, url, allow_redirects=True, timeout=None):
        self.requests.append((url, allow_redirects))
        self.timeouts.append(timeout)
        outcome = self.routes.get(url, FakeResponse(404, ""))
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def close(self):
        self.closed = True


class FakeExecutor:
    """Executor double that records concurrency and can fail on demand"""

    def __init__(self, delay=0.01, owned=(), failing=()):
        self.delay = delay
        self.owned = set(owned)
        self.failing = set(failing)
        self.active = 0
        self.peak = 0
        self.probed = []

    async def start(self):
        pass

    async def close(self):
        pass

    async def probe(self, hostname):
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            await asyncio.sleep(self.delay)
        finally:
            self.active -= 1

        self.probed.append(hostname)
        if hostname in self.failing:
            raise RuntimeError(f"boom: {hostname}")

        record = BucketRecord(hostname=hostname, owned=hostname in self.owned)
        if record.owned:
            record.public = True
            record.permissions.list_bucket = True
        return record

    def get_stats(self):
        return {'total_requests': len(self.probed) * 2, 'failed_requests': 0}
