"""Probe Executor - Two-request S3 misconfiguration probe for one hostname"""

import asyncio
import logging
import ssl
import time
from dataclasses import dataclass, field
from typing import Dict, Optional

import aiohttp
from aiohttp import ClientSession, ClientTimeout, ClientError

from ..bucket_core.config import ScoutConfig
from ..bucket_core.models import BucketRecord
from .classifiers import parse_list_bucket_xml, parse_acl_xml, detect_vendor, extract_region


@dataclass
class ProbeResponse:
    """The parts of an HTTP response the classifiers look at"""
    url: str
    status: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: str = ""
    elapsed: float = 0.0  # milliseconds


class BucketProbeExecutor:
    """Runs the root-listing and ACL probes against a hostname"""

    def __init__(self, config: Optional[ScoutConfig] = None,
                 session: Optional[ClientSession] = None):
        self.config = config or ScoutConfig()
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

        self._session = session
        self._owns_session = session is None
        self._timeout = ClientTimeout(total=self.config.probe_timeout_seconds)

        # Performance tracking
        self.total_requests = 0
        self.failed_requests = 0

    # --- Session lifecycle ---

    async def start(self) -> None:
        if self._session is None:
            self._session = self._create_session()
            self._owns_session = True

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> 'BucketProbeExecutor':
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _create_session(self) -> ClientSession:
        """Create the shared aiohttp session used for every probe"""
        headers = {
            'User-Agent': self.config.user_agent,
            'Accept': 'application/xml,text/xml;q=0.9,*/*;q=0.8',
            'Cache-Control': 'no-store',
            'Pragma': 'no-cache'
        }

        ssl_context = None
        if not self.config.verify_ssl:
            ssl_context = ssl.create_default_context()
            ssl_context.check_hostname = False
            ssl_context.verify_mode = ssl.CERT_NONE

        connector = aiohttp.TCPConnector(
            ssl=ssl_context if ssl_context is not None else True,
            limit=max(self.config.concurrency_limit * 2, 2),  # two sub-requests per probe
            ttl_dns_cache=300,
            use_dns_cache=True
        )

        return ClientSession(
            connector=connector,
            timeout=self._timeout,
            headers=headers,
            cookie_jar=aiohttp.DummyCookieJar(),
            skip_auto_headers={'User-Agent'}
        )

    # --- Probing ---

    async def probe(self, hostname: str) -> BucketRecord:
        """Probe a hostname; the record has owned=False when nothing matched.

        Never raises for network or parse problems: each sub-request failure
        only removes that request's signal.
        """
        await self.start()
        record = BucketRecord(hostname=hostname)

        base_url = self._base_url(hostname)
        root_response, acl_response = await asyncio.gather(
            self._fetch(f"{base_url}/"),
            self._fetch(f"{base_url}/?acl")
        )

        if root_response is not None:
            self._apply_root_probe(record, root_response)
        if acl_response is not None:
            self._apply_acl_probe(record, acl_response)

        self.logger.debug(
            f"Probed {hostname}: owned={record.owned} public={record.public} "
            f"permissions={record.permissions.to_dict()}"
        )
        return record

    @staticmethod
    def _base_url(hostname: str) -> str:
        # IPv6 literals need brackets in the authority
        if ':' in hostname:
            return f"https://[{hostname}]"
        return f"https://{hostname}"

    async def _fetch(self, url: str) -> Optional[ProbeResponse]:
        """GET one URL; None means "no signal" (timeout, network or HTTP error)"""
        self.total_requests += 1
        start_time = time.time()

        try:
            async with self._session.get(
                url,
                allow_redirects=self.config.follow_redirects,
                timeout=self._timeout
            ) as response:
                raw = await self._read_body(response)
                return ProbeResponse(
                    url=url,
                    status=response.status,
                    headers={key: value for key, value in response.headers.items()},
                    body=raw.decode('utf-8', errors='replace'),
                    elapsed=(time.time() - start_time) * 1000
                )

        except asyncio.TimeoutError:
            self.failed_requests += 1
            self.logger.debug(f"Timeout after {self.config.probe_timeout_ms}ms: {url}")
        except (ClientError, ssl.SSLError, OSError, ValueError) as e:
            self.failed_requests += 1
            self.logger.debug(f"Request failed for {url}: {type(e).__name__}: {e}")

        return None

    async def _read_body(self, response) -> bytes:
        """Read at most max_body_bytes of the body"""
        limit = self.config.max_body_bytes
        chunks = []
        total = 0
        async for chunk in response.content.iter_chunked(8192):
            chunks.append(chunk)
            total += len(chunk)
            if total >= limit:
                break
        return b"".join(chunks)[:limit]

    def _apply_root_probe(self, record: BucketRecord, response: ProbeResponse) -> None:
        """Fold the ``GET /`` response into the record"""
        vendor = detect_vendor(response.headers, self.config.vendor_signatures)

        region = extract_region(response.headers)
        if region:
            record.region = region

        if response.status == 200:
            listing = parse_list_bucket_xml(response.body)
            if listing.is_s3:
                record.owned = True
                record.public = True
                record.permissions.list_bucket = True
                if listing.owner:
                    record.owner = listing.owner
            elif vendor:
                # Website-configured buckets serve HTML with the vendor header
                record.owned = True
        elif vendor:
            record.owned = True

    def _apply_acl_probe(self, record: BucketRecord, response: ProbeResponse) -> None:
        """Fold the ``GET /?acl`` response into the record"""
        if response.status != 200:
            return

        acl = parse_acl_xml(response.body)
        if not acl.is_s3:
            return

        record.owned = True
        if acl.public_read:
            record.public = True
            record.permissions.acl_read = True
        if acl.public_write:
            record.public = True
            record.permissions.acl_write = True
        if acl.owner and not record.owner:
            record.owner = acl.owner

    def get_stats(self) -> Dict[str, int]:
        return {
            'total_requests': self.total_requests,
            'failed_requests': self.failed_requests
        }
