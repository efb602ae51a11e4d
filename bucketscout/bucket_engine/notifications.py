"""Record Notifier - Fire-and-forget "record updated" events"""

import asyncio
import inspect
import logging
from typing import Callable, List, Set

from ..bucket_core.models import BucketRecord

logger = logging.getLogger(__name__)

RecordListener = Callable[[BucketRecord], object]


class RecordNotifier:
    """Delivers merged records to zero or more listeners.

    Delivery is best effort: a failing listener is logged and skipped, and
    never affects the caller or the other listeners.
    """

    def __init__(self):
        self.listeners: List[RecordListener] = []
        self._pending: Set[asyncio.Task] = set()

    def add_listener(self, listener: RecordListener):
        """Register a callback (plain function or coroutine function)"""
        if listener not in self.listeners:
            self.listeners.append(listener)

    def remove_listener(self, listener: RecordListener):
        if listener in self.listeners:
            self.listeners.remove(listener)

    def notify(self, record: BucketRecord) -> None:
        """Send the record to every listener without waiting on any of them"""
        for listener in list(self.listeners):
            try:
                outcome = listener(record)
                if inspect.isawaitable(outcome):
                    self._schedule(outcome, listener)
            except Exception as e:
                logger.debug(f"Listener {listener!r} failed for {record.hostname}: {e}")

    def _schedule(self, awaitable, listener: RecordListener) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug(f"No running loop for async listener {listener!r}")
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            return

        task = asyncio.ensure_future(awaitable, loop=loop)
        self._pending.add(task)
        task.add_done_callback(self._finish)

    def _finish(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.debug(f"Async listener failed: {task.exception()}")
