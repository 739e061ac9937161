"""Cache port shared by the cache drivers."""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass
class CacheEntry:
    """A cached value with its expiry.

    Attributes:
        value: The cached value.
        expiry: Unix timestamp when the entry expires (None = no expiry).
        created_at: Unix timestamp when the entry was created.
    """

    value: Any
    expiry: float | None = None
    created_at: float = field(default_factory=time.time)

    def is_expired(self, now: float | None = None) -> bool:
        if self.expiry is None:
            return False
        return (now if now is not None else time.time()) > self.expiry


@dataclass
class CacheStats:
    """Statistics for cache operations."""

    hits: int = 0
    misses: int = 0
    hit_rate: float = 0.0
    size: int = 0
    errors: int = 0


def expiry_for(ttl: int | None) -> float | None:
    """Expiry timestamp for ``ttl`` seconds; None or 0 means no expiry."""
    if ttl is None or ttl == 0:
        return None
    if ttl < 0:
        return time.time() - 1
    return time.time() + ttl


class CachePort(ABC):
    """Abstract port for cache drivers.

    Drivers raise ``CacheError`` when their backing store fails. Callers
    that must not fail on cache problems go through ``CacheManager``.
    """

    @abstractmethod
    def get(self, key: str) -> Any | None:
        """Get a value from the cache.

        Args:
            key: Cache key.

        Returns:
            Cached value or None if not found or expired.
        """
        ...

    @abstractmethod
    def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """Set a value in the cache.

        Args:
            key: Cache key.
            value: Value to cache.
            ttl: Time to live in seconds. None or 0 means no expiry.

        Returns:
            True if successful.
        """
        ...

    @abstractmethod
    def has(self, key: str) -> bool:
        """Check if a non-expired entry exists for ``key``."""
        ...

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Delete a value from the cache.

        Returns:
            True if deleted, False if not found.
        """
        ...

    @abstractmethod
    def clear(self) -> bool:
        """Remove every entry."""
        ...

    @abstractmethod
    def get_stats(self) -> CacheStats:
        ...
