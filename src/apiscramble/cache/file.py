"""File-backed cache driver storing one JSON file per key."""

from __future__ import annotations

import hashlib
import json
import logging
import time
from pathlib import Path
from typing import Any

from apiscramble.cache.base import CachePort, CacheStats, expiry_for
from apiscramble.errors import CacheError, ErrorContext

logger = logging.getLogger(__name__)


class FileCache(CachePort):
    """Cache persisted under a directory.

    Each entry is a ``<md5(key)>.cache`` file holding the key, the value,
    its creation time and expiry. Values must be JSON-serializable.

    Args:
        directory: Directory holding the cache files; created on first write.
        default_ttl: TTL used when ``set`` is called without one.

    Raises:
        CacheError: From any operation whose file access fails.
    """

    SUFFIX = ".cache"

    def __init__(self, directory: str | Path, default_ttl: int = 3600) -> None:
        self.directory = Path(directory)
        self.default_ttl = default_ttl
        self._hits = 0
        self._misses = 0

    def path_for(self, key: str) -> Path:
        digest = hashlib.md5(key.encode("utf-8")).hexdigest()
        return self.directory / f"{digest}{self.SUFFIX}"

    def get(self, key: str) -> Any | None:
        payload = self._read(key)
        if payload is None:
            self._misses += 1
            return None
        self._hits += 1
        return payload["value"]

    def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        ttl = self.default_ttl if ttl is None else ttl
        payload = {
            "key": key,
            "value": value,
            "created_at": time.time(),
            "expiry": expiry_for(ttl),
        }
        path = self.path_for(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            tmp_path = path.with_suffix(".tmp")
            tmp_path.write_text(json.dumps(payload), encoding="utf-8")
            tmp_path.replace(path)
        except (OSError, TypeError, ValueError) as e:
            raise CacheError(
                f"Failed to write cache entry '{key}': {e}",
                context=ErrorContext(extra={"path": str(path)}),
                cause=e,
            ) from e
        return True

    def has(self, key: str) -> bool:
        return self._read(key) is not None

    def delete(self, key: str) -> bool:
        path = self.path_for(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise CacheError(f"Failed to delete cache entry '{key}': {e}", cause=e) from e
        return True

    def clear(self) -> bool:
        if not self.directory.exists():
            return True
        try:
            for path in self.directory.glob(f"*{self.SUFFIX}"):
                path.unlink()
        except OSError as e:
            raise CacheError(f"Failed to clear cache directory {self.directory}: {e}", cause=e) from e
        self._hits = 0
        self._misses = 0
        return True

    def get_stats(self) -> CacheStats:
        total = self._hits + self._misses
        size = len(list(self.directory.glob(f"*{self.SUFFIX}"))) if self.directory.exists() else 0
        return CacheStats(
            hits=self._hits,
            misses=self._misses,
            hit_rate=(self._hits / total) if total > 0 else 0.0,
            size=size,
        )

    def _read(self, key: str) -> dict[str, Any] | None:
        path = self.path_for(key)
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            raise CacheError(
                f"Failed to read cache entry '{key}': {e}",
                context=ErrorContext(extra={"path": str(path)}),
                cause=e,
            ) from e

        expiry = payload.get("expiry")
        if payload.get("key") != key or (expiry is not None and time.time() > expiry):
            logger.debug("Dropping stale cache file %s", path)
            path.unlink(missing_ok=True)
            return None
        return payload
