# core/cache.py

"""
In-memory TTL cache.

Each UserSession owns its own SimpleCache, so cached role sets never
leak between principals.
"""

from typing import Optional, Any
from datetime import datetime, timedelta
from threading import Lock


class CacheEntry:
    """Represents a cached value with expiration time."""

    def __init__(self, value: Any, ttl_seconds: int):
        self.value = value
        self.expires_at = datetime.now() + timedelta(seconds=ttl_seconds)

    def is_expired(self) -> bool:
        return datetime.now() >= self.expires_at


class SimpleCache:
    """
    Simple in-memory cache with TTL support.

    Thread-safe for concurrent access.
    """

    def __init__(self, default_ttl: int = 300):
        self._cache: dict[str, CacheEntry] = {}
        self._lock = Lock()
        self.default_ttl = default_ttl

    def get(self, key: str) -> Optional[Any]:
        """
        Returns the cached value, or None if missing or expired.
        """
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None

            if entry.is_expired():
                del self._cache[key]
                return None

            return entry.value

    def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None):
        with self._lock:
            ttl = self.default_ttl if ttl_seconds is None else ttl_seconds
            self._cache[key] = CacheEntry(value, ttl)

    def delete(self, key: str):
        with self._lock:
            self._cache.pop(key, None)

    def clear(self):
        """Clear all cache entries."""
        with self._lock:
            self._cache.clear()

    def size(self) -> int:
        with self._lock:
            return len(self._cache)
