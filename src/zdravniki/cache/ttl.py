"""In-process TTL cache with a FIFO size bound.

Entries expire ``ttl_seconds`` after insertion. When the cache grows past
``max_size`` the oldest-inserted entry is evicted (FIFO, not LRU): keys
are derived from upstream timestamps that only move forward, so insertion
order already tracks relevance.

All methods are synchronous. Under a single event loop a whole
check-evict-insert sequence therefore runs without interleaving with
another request's sequence, and no lock is needed.

Usage:
    cache = TTLCache(ttl_seconds=600, max_size=100)
    cache.set("1700000000-1700000100", merged)
    hit = cache.get("1700000000-1700000100")
"""

import logging
import time
from collections import OrderedDict
from collections.abc import Callable, Mapping
from typing import Any

logger = logging.getLogger(__name__)


def is_cached_payload(value: Any) -> bool:
    """Check that a cached value has at least ``data`` and ``meta``.

    Accepts result objects exposing the two attributes and mappings
    holding the two keys (values decoded from an external store).
    """
    if value is None:
        return False
    if isinstance(value, Mapping):
        return "data" in value and "meta" in value
    return hasattr(value, "data") and hasattr(value, "meta")


class TTLCache:
    """Key/value store with per-entry expiry and a maximum entry count.

    Args:
        ttl_seconds: Lifetime of an entry from its insertion
        max_size: Maximum number of entries kept
        clock: Monotonic time source in seconds (default: time.monotonic)
        name: Label used in log messages
    """

    def __init__(
        self,
        ttl_seconds: float = 600.0,
        max_size: int = 100,
        clock: Callable[[], float] = time.monotonic,
        name: str = "cache",
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self.name = name
        self._clock = clock
        # key -> (expires_at, value), ordered by insertion
        self._entries: OrderedDict[str, tuple[float, Any]] = OrderedDict()

    def get(
        self,
        key: str,
        guard: Callable[[Any], bool] | None = is_cached_payload,
    ) -> Any | None:
        """Return the live value for key, or None.

        Expired entries are removed. A value failing ``guard`` is treated
        as a miss and dropped; pass ``guard=None`` to skip the check.
        """
        entry = self._entries.get(key)
        if entry is None:
            logger.debug("%s: miss for %s", self.name, key)
            return None

        expires_at, value = entry
        if expires_at <= self._clock():
            del self._entries[key]
            logger.info("%s: evicted expired entry %s", self.name, key)
            return None

        if guard is not None and not guard(value):
            del self._entries[key]
            logger.warning("%s: invalid cached data for %s, dropping entry", self.name, key)
            return None

        logger.debug("%s: hit for %s", self.name, key)
        return value

    def set(self, key: str, value: Any) -> None:
        """Insert or replace a value, evicting the oldest entry when full.

        Replacing a key refreshes its expiry and moves it to the newest
        insertion position.
        """
        self._entries.pop(key, None)
        self._entries[key] = (self._clock() + self.ttl_seconds, value)

        while len(self._entries) > self.max_size:
            oldest_key, _ = self._entries.popitem(last=False)
            logger.info(
                "%s: evicted oldest entry %s due to size limit (%d)",
                self.name, oldest_key, self.max_size,
            )

    def delete(self, key: str) -> bool:
        """Remove a key. Returns True if it was present."""
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def keys(self) -> list[str]:
        """Keys in insertion order, expired ones included."""
        return list(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
