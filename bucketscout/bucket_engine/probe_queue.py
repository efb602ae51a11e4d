"""Probe Queue - FIFO of pending hostnames plus the session dedup set"""

import logging
from collections import deque
from typing import Deque, Dict, Optional, Set

from ..bucket_core.exceptions import QueueFullError
from ..bucket_core.models import BackpressurePolicy

logger = logging.getLogger(__name__)


class ProbeQueue:
    """Dedup set and FIFO queue of hostnames awaiting a probe.

    Every method is synchronous and never suspends, so callers on the event
    loop can treat each call as a critical section.

    A hostname enters ``seen`` the first time it is enqueued and never
    leaves it, even when backpressure later drops it. A hostname refused
    under REJECT_NEW was never enqueued, so it stays out of ``seen`` and may
    be offered again once there is room.
    """

    def __init__(self, max_size: int = 0,
                 policy: BackpressurePolicy = BackpressurePolicy.REJECT_NEW):
        self.max_size = max_size
        self.policy = policy
        self.seen: Set[str] = set()
        self._pending: Deque[str] = deque()

        self.dropped = 0
        self.rejected = 0

    def enqueue(self, hostname: str) -> bool:
        """Add a hostname once per session.

        Returns False when the hostname was already seen. Raises
        QueueFullError when a bounded queue refuses it under REJECT_NEW.
        """
        if hostname in self.seen:
            return False

        if self.max_size and len(self._pending) >= self.max_size:
            if self.policy == BackpressurePolicy.DROP_OLDEST:
                evicted = self._pending.popleft()
                self.dropped += 1
                logger.debug(f"Queue full, dropped oldest {evicted}")
            else:
                self.rejected += 1
                raise QueueFullError(
                    f"Probe queue full ({self.max_size}), rejected {hostname}",
                    hostname=hostname, max_size=self.max_size
                )

        self.seen.add(hostname)
        self._pending.append(hostname)
        return True

    def pop(self) -> Optional[str]:
        """Remove and return the head, or None when empty"""
        if not self._pending:
            return None
        return self._pending.popleft()

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, hostname: str) -> bool:
        return hostname in self._pending

    @property
    def empty(self) -> bool:
        return not self._pending

    def get_stats(self) -> Dict[str, int]:
        return {
            'pending': len(self._pending),
            'seen': len(self.seen),
            'dropped': self.dropped,
            'rejected': self.rejected
        }
