"""TTL cache for upstream API responses."""

import logging
import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple

from pewstats_match_reports.metrics import CACHE_LOOKUPS


logger = logging.getLogger(__name__)


class ResponseCache:
    """In-memory key/value cache with a fixed time-to-live.

    Expired entries are evicted when they are read, and every write purges
    all expired entries so keys that are never read again do not accumulate. Access is guarded by a
    lock because command handlers for different users may share one cache.

    Example:
        >>> cache = ResponseCache(expiry_seconds=300)
        >>> cache.set("match_abc", {"data": {}})
        >>> cache.get("match_abc")
        {'data': {}}
    """

    def __init__(
        self,
        expiry_seconds: float = 300,
        enabled: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize cache.

        Args:
            expiry_seconds: Entry lifetime in seconds
            enabled: When False every lookup misses and nothing is stored
            clock: Monotonic time source (injectable for tests)
        """
        if expiry_seconds <= 0:
            raise ValueError(f"expiry_seconds must be positive, got {expiry_seconds}")

        self.expiry_seconds = expiry_seconds
        self.enabled = enabled
        self._clock = clock
        self._lock = threading.Lock()
        # {key: (stored_at, value)}
        self._entries: Dict[str, Tuple[float, Any]] = {}

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None if absent or expired."""
        if not self.enabled:
            return None

        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                CACHE_LOOKUPS.labels(result="miss").inc()
                return None

            stored_at, value = entry
            if self._clock() - stored_at >= self.expiry_seconds:
                del self._entries[key]
                CACHE_LOOKUPS.labels(result="expired").inc()
                logger.debug(f"Cache entry expired: {key}")
                return None

            CACHE_LOOKUPS.labels(result="hit").inc()
            return value

    def set(self, key: str, value: Any) -> None:
        if not self.enabled:
            return
        with self._lock:
            now = self._clock()
            self._purge_expired(now)
            self._entries[key] = (now, value)

    def _purge_expired(self, now: float) -> None:
        expired = [key for key, (stored_at, _) in self._entries.items() if now - stored_at >= self.expiry_seconds]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"Purged {len(expired)} expired cache entries")

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
        logger.debug("Cache cleared")

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
