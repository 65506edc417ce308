"""Hit/miss counters for the response and query caches.

One CacheStats instance is created by the wiring module at import time
and handed to every component that records into it.  Everything runs on
a single event loop, so plain integer increments are safe without a lock.
"""

from __future__ import annotations

import datetime
import time
from collections.abc import Callable
from typing import Any

from shortnews.core.metrics import CACHE_OPERATIONS
from shortnews.services.cache_store import CacheStore


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


class CacheStats:
    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._started = clock()
        self.hits = 0
        self.misses = 0
        self.errors = 0
        self.last_reset = _utcnow()

    def record_hit(self) -> None:
        self.hits += 1
        CACHE_OPERATIONS.labels(operation="hit").inc()

    def record_miss(self) -> None:
        self.misses += 1
        CACHE_OPERATIONS.labels(operation="miss").inc()

    def record_error(self, _exc: Exception | None = None) -> None:
        self.errors += 1

    @property
    def uptime(self) -> int:
        """Whole seconds since this process started counting."""
        return int(self._clock() - self._started)

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return round(self.hits / total, 4)

    def reset(self) -> None:
        """Zero the counters.  Cached entries are left alone."""
        self.hits = 0
        self.misses = 0
        self.errors = 0
        self.last_reset = _utcnow()

    async def snapshot(self, store: CacheStore) -> dict[str, Any]:
        """Current counters plus a live key count from the store.

        The key count and memory summary are read from the backend on
        every call because entries expire and get evicted without this
        object knowing.  `uptime` is not affected by reset().
        """
        return {
            "available": store.is_available(),
            "hits": self.hits,
            "misses": self.misses,
            "hitRate": self.hit_rate,
            "totalKeys": await store.count_keys("*"),
            "errors": self.errors,
            "lastReset": self.last_reset.isoformat(),
            "uptime": self.uptime,
            "memory": await store.memory_info(),
        }
