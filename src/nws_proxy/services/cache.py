"""Time-bounded key/value cache shared by the forecast services."""

from __future__ import annotations

import asyncio
import threading
import time
from collections.abc import Awaitable, Callable
from typing import Any, NamedTuple, Protocol, TypeVar

from cachetools import TLRUCache
from prometheus_client import Counter, Gauge

V = TypeVar("V")

# Metrics
cache_hits = Counter("nws_cache_hits_total", "Total cache hits")
cache_misses = Counter("nws_cache_misses_total", "Total cache misses")
cache_size_gauge = Gauge("nws_cache_size", "Current number of cache entries")


class CacheStore(Protocol):
    """Key/value cache with per-entry time-to-live."""

    async def get_or_populate(
        self, key: str, ttl: float, producer: Callable[[], Awaitable[V]]
    ) -> V: ...

    def try_get(self, key: str) -> Any | None: ...

    def peek(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any, ttl: float) -> None: ...

    def contains(self, key: str) -> bool: ...


class _Entry(NamedTuple):
    value: Any
    ttl: float


def _entry_expiry(_key: str, entry: _Entry, now: float) -> float:
    return now + entry.ttl


class MemoryCacheStore:
    """In-process cache backed by a cachetools TLRU cache.

    Expired entries are dropped lazily on access. ``get_or_populate`` is
    single-flight per key: concurrent callers for a missing key wait on one
    producer call and share its result.
    """

    def __init__(
        self,
        max_size: int = 10000,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._cache: TLRUCache[str, _Entry] = TLRUCache(
            maxsize=max_size,
            ttu=_entry_expiry,
            timer=timer,
        )
        self._lock = threading.RLock()
        self._populate_locks: dict[str, asyncio.Lock] = {}

    async def get_or_populate(
        self, key: str, ttl: float, producer: Callable[[], Awaitable[V]]
    ) -> V:
        """Return the live value for key, producing and storing it if absent."""
        value = self.try_get(key)
        if value is not None:
            return value

        lock = self._populate_locks.setdefault(key, asyncio.Lock())
        async with lock:
            # Another caller may have populated while we waited
            value = self.peek(key)
            if value is not None:
                return value

            value = await producer()
            self.set(key, value, ttl)
            return value

    def try_get(self, key: str) -> Any | None:
        """Get the live value for key, or None, counting the hit or miss."""
        value = self.peek(key)
        if value is not None:
            cache_hits.inc()
        else:
            cache_misses.inc()
        return value

    def peek(self, key: str) -> Any | None:
        """Get the live value for key without touching hit/miss metrics."""
        with self._lock:
            entry = self._cache.get(key)
        return entry.value if entry is not None else None

    def set(self, key: str, value: Any, ttl: float) -> None:
        """Store value under key, replacing any existing entry and expiry."""
        with self._lock:
            self._cache[key] = _Entry(value, ttl)
            cache_size_gauge.set(len(self._cache))

    def contains(self, key: str) -> bool:
        """Check whether key has a live entry."""
        with self._lock:
            return key in self._cache

    def clear(self) -> None:
        """Clear all cache entries."""
        with self._lock:
            self._cache.clear()
        cache_size_gauge.set(0)

    @property
    def size(self) -> int:
        """Return current cache size, expired entries included until evicted."""
        with self._lock:
            return len(self._cache)
