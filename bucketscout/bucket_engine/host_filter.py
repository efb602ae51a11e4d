"""Host Filter - Decides which observed hostnames are worth probing"""

import ipaddress
import logging
from typing import Iterable, Optional, Set, AbstractSet
from urllib.parse import urlsplit

from ..bucket_core.config import ScoutConfig
from ..bucket_core.constants import LOOPBACK_HOSTNAMES

logger = logging.getLogger(__name__)


def normalize_hostname(candidate: Optional[str]) -> Optional[str]:
    """Extract a lowercase hostname from a URL or bare host.

    Returns None for anything that does not yield a usable hostname; callers
    treat that as "filtered" rather than an error.
    """
    if not candidate or not isinstance(candidate, str):
        return None

    candidate = candidate.strip()
    if not candidate:
        return None

    # Bare hosts ("bucket.s3.amazonaws.com", "host:8080/path") get a scheme so
    # urlsplit puts them in netloc
    if '://' not in candidate:
        candidate = f"//{candidate}"

    try:
        hostname = urlsplit(candidate).hostname
    except ValueError:
        logger.debug(f"Ignoring malformed candidate: {candidate!r}")
        return None

    if not hostname:
        return None

    hostname = hostname.rstrip('.').lower()
    if not hostname or any(ch.isspace() for ch in hostname):
        return None

    return hostname


def is_loopback(hostname: str) -> bool:
    """True for localhost names and loopback IP literals"""
    if hostname in LOOPBACK_HOSTNAMES or hostname.endswith('.localhost'):
        return True
    try:
        return ipaddress.ip_address(hostname).is_loopback
    except ValueError:
        return False


class HostFilter:
    """Pure predicate over candidate hostnames"""

    def __init__(self, config: Optional[ScoutConfig] = None,
                 excluded: Optional[Iterable[str]] = None):
        self.config = config or ScoutConfig()
        self.deny_suffixes = [s.lower() for s in self.config.deny_suffixes]
        self.deny_substrings = [s.lower() for s in self.config.deny_substrings]
        # Hosts known from a previous run; kept apart from the session SeenSet
        self.excluded: Set[str] = set(excluded or ())

    def should_probe(self, hostname: str, seen: AbstractSet[str] = frozenset()) -> bool:
        """Decide whether a normalized hostname should be enqueued"""
        if hostname in seen or hostname in self.excluded:
            return False

        if is_loopback(hostname):
            return False

        for suffix in self.deny_suffixes:
            if hostname.endswith(suffix) or hostname == suffix.lstrip('.'):
                return False

        for substring in self.deny_substrings:
            if substring in hostname:
                return False

        return True
