"""CacheManager - failure-tolerant front for a cache driver."""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Callable
from typing import Any, TypeVar

from apiscramble.cache.base import CachePort, CacheStats
from apiscramble.cache.file import FileCache
from apiscramble.cache.memory import MemoryCache
from apiscramble.config import ScrambleConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

CACHE_FORMAT_VERSION = "1"


class CacheManager:
    """Prefixed, versioned access to a cache driver that never raises.

    Keys are hashed together with the format version, so entries written
    by an incompatible version are never read back. Any driver error is
    logged and reported as a miss (``get``/``has``) or ``False``
    (``set``/``delete``/``clear``).

    Args:
        driver: The backing cache driver.
        prefix: Prepended to every hashed key.
        ttl: Default TTL for entries set through the manager.
        version: Format version mixed into every key.
    """

    def __init__(
        self,
        driver: CachePort,
        prefix: str = "scramble_",
        ttl: int = 3600,
        version: str = CACHE_FORMAT_VERSION,
    ) -> None:
        self.driver = driver
        self.prefix = prefix
        self.ttl = ttl
        self.version = version
        self._hits = 0
        self._misses = 0
        self._errors = 0

    @classmethod
    def from_config(cls, config: ScrambleConfig) -> CacheManager | None:
        """Build the manager described by ``config``; None when caching is off."""
        if not config.cache_enabled:
            return None
        driver: CachePort
        if config.cache_driver == "file":
            driver = FileCache(config.cache_dir, default_ttl=config.cache_ttl)
        else:
            driver = MemoryCache(default_ttl=config.cache_ttl)
        return cls(driver, prefix=config.cache_prefix, ttl=config.cache_ttl)

    def make_key(self, key: str) -> str:
        digest = hashlib.md5(f"{self.version}:{key}".encode()).hexdigest()
        return f"{self.prefix}{digest}"

    def get(self, key: str, default: Any = None) -> Any:
        try:
            value = self.driver.get(self.make_key(key))
        except Exception as e:
            self._record_error("get", key, e)
            self._misses += 1
            return default

        if value is None:
            self._misses += 1
            return default
        self._hits += 1
        return value

    def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        try:
            return self.driver.set(self.make_key(key), value, self.ttl if ttl is None else ttl)
        except Exception as e:
            self._record_error("set", key, e)
            return False

    def has(self, key: str) -> bool:
        try:
            return self.driver.has(self.make_key(key))
        except Exception as e:
            self._record_error("has", key, e)
            return False

    def delete(self, key: str) -> bool:
        try:
            return self.driver.delete(self.make_key(key))
        except Exception as e:
            self._record_error("delete", key, e)
            return False

    def clear(self) -> bool:
        try:
            return self.driver.clear()
        except Exception as e:
            self._record_error("clear", "*", e)
            return False

    def remember(self, key: str, callback: Callable[[], T], ttl: int | None = None) -> T:
        """Return the cached value for ``key`` or compute, store and return it."""
        cached = self.get(key)
        if cached is not None:
            return cached
        value = callback()
        self.set(key, value, ttl)
        return value

    def get_stats(self) -> CacheStats:
        total = self._hits + self._misses
        try:
            size = self.driver.get_stats().size
        except Exception as e:
            self._record_error("stats", "*", e)
            size = 0
        return CacheStats(
            hits=self._hits,
            misses=self._misses,
            hit_rate=(self._hits / total) if total > 0 else 0.0,
            size=size,
            errors=self._errors,
        )

    def _record_error(self, operation: str, key: str, error: Exception) -> None:
        self._errors += 1
        logger.warning("Cache %s failed for %r, treating as miss: %s", operation, key, error)
