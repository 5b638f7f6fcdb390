"""Base cache interface and in-memory TTL implementation."""

import asyncio
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any


@dataclass
class CacheEntry[V]:
    """Cache entry with value and its absolute expiry (clock seconds)."""

    value: V
    expires_at: float

    def is_expired(self, now: float) -> bool:
        """Check if the entry expired at `now`."""
        return now >= self.expires_at


class BaseCache[K, V](ABC):
    """Base cache interface for all cache implementations."""

    @abstractmethod
    async def get(self, key: K) -> V | None:
        """Get value from cache.

        Returns:
            Cached value if found and not expired, None otherwise
        """
        pass

    @abstractmethod
    async def set(self, key: K, value: V, ttl_seconds: float) -> None:
        """Store value for ttl_seconds. A ttl <= 0 stores nothing."""
        pass

    @abstractmethod
    async def delete(self, key: K) -> bool:
        """Delete value from cache.

        Returns:
            True if deleted, False if not found
        """
        pass

    @abstractmethod
    async def clear(self) -> None:
        """Clear all entries from cache."""
        pass


class InMemoryCache[K, V](BaseCache[K, V]):
    """Process-local TTL cache.

    Used as the response cache in front of the Spotify Web API, keyed by the
    full request URL. Lost on restart and not shared between workers.
    """

    # Hey future me - `clock` is injectable so tests can move time forward without sleeping.
    # It defaults to time.monotonic (NOT time.time) so NTP jumps can't resurrect or kill entries.
    # max_entries bounds memory: when full we drop expired entries first, then the entry that
    # expires soonest. Good enough for a few thousand URLs - this is not an LRU.
    def __init__(
        self,
        max_entries: int = 2048,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize in-memory cache."""
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")
        self._cache: dict[K, CacheEntry[V]] = {}
        self._lock = asyncio.Lock()
        self._clock = clock
        self._max_entries = max_entries
        self._hits = 0
        self._misses = 0

    async def get(self, key: K) -> V | None:
        """Get value from cache, evicting it if expired."""
        async with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                self._misses += 1
                return None

            if entry.is_expired(self._clock()):
                del self._cache[key]
                self._misses += 1
                return None

            self._hits += 1
            return entry.value

    async def set(self, key: K, value: V, ttl_seconds: float) -> None:
        """Set value in cache, overwriting any existing entry."""
        if ttl_seconds <= 0:
            return

        async with self._lock:
            now = self._clock()
            if key not in self._cache and len(self._cache) >= self._max_entries:
                self._evict(now)
            self._cache[key] = CacheEntry(value=value, expires_at=now + ttl_seconds)

    async def delete(self, key: K) -> bool:
        """Delete value from cache."""
        async with self._lock:
            return self._cache.pop(key, None) is not None

    async def clear(self) -> None:
        """Clear all entries from cache."""
        async with self._lock:
            self._cache.clear()

    def _evict(self, now: float) -> None:
        """Make room for one entry. Caller holds the lock."""
        expired = [key for key, entry in self._cache.items() if entry.is_expired(now)]
        for key in expired:
            del self._cache[key]

        if len(self._cache) >= self._max_entries:
            soonest = min(self._cache, key=lambda k: self._cache[k].expires_at)
            del self._cache[soonest]

    def get_stats(self) -> dict[str, Any]:
        """Get cache statistics (unlocked, for monitoring only)."""
        now = self._clock()
        total_entries = len(self._cache)
        expired_entries = sum(
            1 for entry in self._cache.values() if entry.is_expired(now)
        )

        return {
            "total_entries": total_entries,
            "active_entries": total_entries - expired_entries,
            "expired_entries": expired_entries,
            "hits": self._hits,
            "misses": self._misses,
        }
