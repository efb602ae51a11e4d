"""Probe Scheduler - Fixed-size asyncio worker pool draining the probe queue

The pool holds exactly ``concurrency_limit`` long-lived workers, and each
worker runs at most one probe at a time, so the number of in-flight probes
can never exceed the limit. Queue and counter bookkeeping happens between
awaits only, so no lock is needed on the event loop.
"""

import asyncio
import logging
from typing import List, Optional

from ..bucket_core.config import ScoutConfig
from ..bucket_core.exceptions import QueueFullError
from ..bucket_core.models import ScanStats
from .host_filter import HostFilter
from .merger import ResultMerger
from .probe_executor import BucketProbeExecutor
from .probe_queue import ProbeQueue

logger = logging.getLogger(__name__)


class ProbeScheduler:
    """Bounded worker pool: filter -> dedup/queue -> probe -> merge"""

    def __init__(self, executor: BucketProbeExecutor, merger: ResultMerger,
                 config: Optional[ScoutConfig] = None,
                 queue: Optional[ProbeQueue] = None,
                 host_filter: Optional[HostFilter] = None):
        self.config = config or ScoutConfig()
        self.executor = executor
        self.merger = merger
        self.queue = queue or ProbeQueue(self.config.queue_max_size, self.config.policy)
        self.host_filter = host_filter or HostFilter(self.config)

        self.concurrency_limit = self.config.concurrency_limit
        self.liveness_interval = self.config.liveness_interval
        self.active_count = 0
        self.stats = ScanStats()

        self._wakeup = asyncio.Event()
        self._idle = asyncio.Event()
        self._idle.set()
        self._workers: List[asyncio.Task] = []
        self._liveness_task: Optional[asyncio.Task] = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    # --- Control plane (synchronous, never suspends) ---

    def submit(self, hostname: str) -> bool:
        """Filter and enqueue a normalized hostname; True if it was queued"""
        self.stats.submitted += 1

        if not self.host_filter.should_probe(hostname, self.queue.seen):
            self.stats.filtered += 1
            return False

        try:
            added = self.queue.enqueue(hostname)
        except QueueFullError as e:
            logger.warning(str(e))
            return False

        if added:
            self._idle.clear()
            self.signal()
        return added

    def signal(self) -> None:
        """Wake idle workers"""
        self._wakeup.set()

    def tick(self) -> None:
        """Liveness safeguard: nudge the pool if work is waiting"""
        if not self.queue.empty and self.active_count < self.concurrency_limit:
            logger.debug(f"Liveness tick: {len(self.queue)} queued, {self.active_count} active")
            self.signal()

    def _update_idle(self) -> None:
        if self.queue.empty and self.active_count == 0:
            self._idle.set()

    # --- Lifecycle ---

    async def start(self) -> None:
        if self._running:
            return

        self._running = True
        self._workers = [
            asyncio.create_task(self._worker(worker_id), name=f"probe-worker-{worker_id}")
            for worker_id in range(self.concurrency_limit)
        ]
        self._liveness_task = asyncio.create_task(self._liveness_loop(), name="probe-liveness")
        logger.info(f"Probe scheduler started with {self.concurrency_limit} workers")

        if not self.queue.empty:
            self._idle.clear()
            self.signal()

    async def stop(self) -> None:
        """Cancel workers and the liveness loop; queued hostnames stay queued"""
        if not self._running:
            return

        self._running = False
        tasks = list(self._workers)
        if self._liveness_task is not None:
            tasks.append(self._liveness_task)

        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        self._workers = []
        self._liveness_task = None
        # Release wait_idle callers; nothing drains the queue until the next start
        self._idle.set()
        logger.info(f"Probe scheduler stopped ({len(self.queue)} hostnames left queued)")

    async def wait_idle(self) -> None:
        """Wait until the queue is empty and no probe is in flight.

        Returns at once when the pool is not running, since no worker could
        drain the queue.
        """
        if not self._running:
            return
        await self._idle.wait()

    # --- Workers ---

    async def _worker(self, worker_id: int) -> None:
        while self._running:
            hostname = self.queue.pop()
            if hostname is None:
                self._update_idle()
                self._wakeup.clear()
                await self._wakeup.wait()
                continue

            self.active_count += 1
            self.stats.max_active = max(self.stats.max_active, self.active_count)
            try:
                await self._run_probe(hostname)
            except Exception as e:
                self.stats.failed += 1
                logger.error(f"Worker {worker_id} failed probing {hostname}: {e}", exc_info=True)
            finally:
                self.active_count -= 1
                self._update_idle()

    async def _run_probe(self, hostname: str) -> None:
        record = await self.executor.probe(hostname)
        self.stats.probed += 1

        if not record.owned:
            return

        self.stats.owned += 1
        if self.merger.merge_and_save(record) is not None:
            self.stats.saved += 1
            logger.info(f"Bucket found: {hostname} ({', '.join(record.badges)})")

    async def _liveness_loop(self) -> None:
        while self._running:
            await asyncio.sleep(self.liveness_interval)
            self.tick()

    def get_stats(self):
        stats = self.stats.to_dict()
        stats.update(self.queue.get_stats())
        stats['active'] = self.active_count
        return stats
