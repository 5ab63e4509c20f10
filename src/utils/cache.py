"""
In-process TTL cache for derived feature snapshots.

Snapshots are cheap to recompute, so the cache only deduplicates store reads
within a short window (a slate of predictions touching the same teams).
There is no file layer and no staleness guarantee beyond the TTL.

Usage:
    cache = TTLCache(ttl_seconds=300)
    form = await cache.get_or_fetch(("form", team_id, as_of), lambda: compute())
"""
from __future__ import annotations

import time
from dataclasses import dataclass
from threading import Lock
from typing import Any, Awaitable, Callable, Hashable, Optional, TypeVar

from src.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class CacheEntry:
    """A cached value and when it was stored."""
    data: Any
    created_at: float  # time.monotonic()
    ttl_seconds: float


class TTLCache:
    """Memory cache with per-entry expiry."""

    def __init__(self, ttl_seconds: float = 300.0, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[Hashable, CacheEntry] = {}
        self._lock = Lock()
        self.hits = 0
        self.misses = 0

    @property
    def enabled(self) -> bool:
        return self.ttl_seconds > 0

    def _is_valid(self, entry: CacheEntry) -> bool:
        return (self._clock() - entry.created_at) < entry.ttl_seconds

    def get(self, key: Hashable) -> Optional[Any]:
        """Return the cached value, or None when absent or expired."""
        if not self.enabled:
            return None
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._is_valid(entry):
                self.hits += 1
                return entry.data
            del self._entries[key]
            return None

    def set(self, key: Hashable, data: Any) -> None:
        if not self.enabled:
            return
        with self._lock:
            self._entries[key] = CacheEntry(
                data=data,
                created_at=self._clock(),
                ttl_seconds=self.ttl_seconds,
            )

    async def get_or_fetch(self, key: Hashable, fetch_fn: Callable[[], Awaitable[T]]) -> T:
        """Get from cache or await fetch_fn and cache its result."""
        cached = self.get(key)
        if cached is not None:
            logger.debug(f"Cache HIT: {key}")
            return cached

        self.misses += 1
        data = await fetch_fn()
        self.set(key, data)
        return data

    def invalidate(self, key: Hashable) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> int:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        return count

    def get_stats(self) -> dict[str, Any]:
        with self._lock:
            size = len(self._entries)
        return {
            "ttl_seconds": self.ttl_seconds,
            "entries": size,
            "hits": self.hits,
            "misses": self.misses,
        }
