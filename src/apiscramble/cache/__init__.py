"""Optional memoization of generated documents."""

from apiscramble.cache.base import CacheEntry, CachePort, CacheStats
from apiscramble.cache.file import FileCache
from apiscramble.cache.manager import CacheManager
from apiscramble.cache.memory import MemoryCache

__all__ = [
    "CachePort",
    "CacheEntry",
    "CacheStats",
    "MemoryCache",
    "FileCache",
    "CacheManager",
]
