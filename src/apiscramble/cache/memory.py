"""In-memory cache driver.

Example:
    >>> cache = MemoryCache(default_ttl=3600)
    >>> cache.set("openapi", {"paths": {}}, ttl=60)
    True
    >>> cache.get("openapi")
    {'paths': {}}
"""

from __future__ import annotations

import copy
from typing import Any

from apiscramble.cache.base import CacheEntry, CachePort, CacheStats, expiry_for


class MemoryCache(CachePort):
    """Process-local cache with TTL support.

    Values are copied on the way in and out, so callers may mutate what
    they get back without affecting the cached entry.

    Args:
        default_ttl: TTL used when ``set`` is called without one. 0 means
            entries never expire.
        max_size: Maximum number of entries (0 = unlimited). When full,
            expired entries are evicted first, then the oldest entry.

    Raises:
        ValueError: If default_ttl or max_size is negative.
    """

    def __init__(self, default_ttl: int = 3600, max_size: int = 0) -> None:
        if default_ttl < 0:
            raise ValueError("default_ttl must be non-negative")
        if max_size < 0:
            raise ValueError("max_size must be non-negative")

        self.default_ttl = default_ttl
        self.max_size = max_size
        self._cache: dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Any | None:
        entry = self._cache.get(key)
        if entry is None:
            self._misses += 1
            return None

        if entry.is_expired():
            del self._cache[key]
            self._misses += 1
            return None

        self._hits += 1
        return copy.deepcopy(entry.value)

    def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        if key not in self._cache:
            self._evict_if_needed()
        ttl = self.default_ttl if ttl is None else ttl
        self._cache[key] = CacheEntry(value=copy.deepcopy(value), expiry=expiry_for(ttl))
        return True

    def has(self, key: str) -> bool:
        entry = self._cache.get(key)
        if entry is None:
            return False
        if entry.is_expired():
            del self._cache[key]
            return False
        return True

    def delete(self, key: str) -> bool:
        return self._cache.pop(key, None) is not None

    def clear(self) -> bool:
        """Clear all values. This also resets hit/miss statistics."""
        self._cache.clear()
        self._hits = 0
        self._misses = 0
        return True

    def get_stats(self) -> CacheStats:
        total = self._hits + self._misses
        return CacheStats(
            hits=self._hits,
            misses=self._misses,
            hit_rate=(self._hits / total) if total > 0 else 0.0,
            size=len(self._cache),
        )

    def _evict_if_needed(self) -> None:
        if self.max_size == 0 or len(self._cache) < self.max_size:
            return

        for key in [k for k, v in self._cache.items() if v.is_expired()]:
            del self._cache[key]

        while len(self._cache) >= self.max_size:
            oldest = min(self._cache, key=lambda k: self._cache[k].created_at)
            del self._cache[oldest]
