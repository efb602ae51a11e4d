"""Scout Session - Wires the probing pipeline together behind one object

The session owns the store, executor, scheduler and notifier for one run and
exposes the inbound candidate stream plus the control surface (recording
toggle, snapshot, delete, clear).
"""

import logging
from typing import AsyncIterable, Dict, Optional

from ..bucket_core.config import ScoutConfig
from ..bucket_core.constants import RECORDING_SETTING_KEY
from ..bucket_core.database import BucketStore
from ..bucket_core.exceptions import StoreError
from ..bucket_core.models import BucketRecord
from .host_filter import HostFilter, normalize_hostname
from .merger import ResultMerger
from .notifications import RecordNotifier, RecordListener
from .probe_executor import BucketProbeExecutor
from .probe_queue import ProbeQueue
from .scheduler import ProbeScheduler


class ScoutSession:
    """One passive-discovery session"""

    def __init__(self, config: Optional[ScoutConfig] = None,
                 store: Optional[BucketStore] = None,
                 executor: Optional[BucketProbeExecutor] = None,
                 notifier: Optional[RecordNotifier] = None):
        self.config = config or ScoutConfig()
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

        self.store = store or BucketStore(self.config)
        self.notifier = notifier or RecordNotifier()
        self.executor = executor or BucketProbeExecutor(self.config)
        self.merger = ResultMerger(self.store, self.notifier)

        self.host_filter = HostFilter(self.config)
        self.queue = ProbeQueue(self.config.queue_max_size, self.config.policy)
        self.scheduler = ProbeScheduler(
            self.executor, self.merger, self.config,
            queue=self.queue, host_filter=self.host_filter
        )

        self.recording = self._load_recording()

    def _load_recording(self) -> bool:
        try:
            value = self.store.get_setting(RECORDING_SETTING_KEY)
        except StoreError as e:
            self.logger.warning(f"Could not restore recording flag: {e}")
            return False
        return value == "1"

    # --- Lifecycle ---

    async def start(self) -> None:
        await self.executor.start()

        if self.config.skip_stored_hosts:
            try:
                known = self.store.hostnames()
                self.host_filter.excluded.update(known)
                self.logger.info(f"Excluding {len(known)} stored hostnames")
            except StoreError as e:
                self.logger.warning(f"Could not load stored hostnames: {e}")

        await self.scheduler.start()
        self.logger.info(f"Session started (recording={'on' if self.recording else 'off'})")

    async def stop(self) -> None:
        await self.scheduler.stop()
        await self.executor.close()

    async def __aenter__(self) -> 'ScoutSession':
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    async def wait_idle(self) -> None:
        await self.scheduler.wait_idle()

    # --- Inbound candidates ---

    def observe(self, candidate: str) -> bool:
        """Feed one observed URL or hostname; True if it was queued"""
        if not self.recording:
            return False

        hostname = normalize_hostname(candidate)
        if hostname is None:
            self.logger.debug(f"Ignoring candidate without a hostname: {candidate!r}")
            return False

        return self.scheduler.submit(hostname)

    async def consume(self, candidates: AsyncIterable[str]) -> int:
        """Observe every candidate from an async stream; returns how many were queued"""
        queued = 0
        async for candidate in candidates:
            if self.observe(candidate):
                queued += 1
        return queued

    def add_listener(self, listener: RecordListener) -> None:
        self.notifier.add_listener(listener)

    # --- Control surface ---

    def set_recording(self, enabled: bool) -> None:
        """Toggle recording; the flag survives restarts"""
        self.recording = bool(enabled)
        self.store.set_setting(RECORDING_SETTING_KEY, "1" if self.recording else "0")
        self.logger.info(f"Recording {'enabled' if self.recording else 'disabled'}")

    def snapshot(self) -> Dict[str, BucketRecord]:
        return self.store.get_buckets()

    def delete(self, hostname: str) -> bool:
        return self.store.delete_bucket(hostname)

    def clear(self) -> int:
        return self.store.clear_buckets()

    def get_stats(self) -> Dict[str, int]:
        stats = self.scheduler.get_stats()
        stats.update(self.executor.get_stats())
        return stats
