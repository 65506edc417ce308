"""Cache-aside read-through engine.

    read_through(key, ttl, loader)
      ├─ bypass requested ─────────────▶ loader()            (no store, no stats)
      ├─ store not available ──────────▶ loader()            (no store, no stats)
      ├─ GET key ── hit ───────────────▶ decode, return      (loader never runs)
      └─ miss ─▶ loader() ─▶ SETEX key ─▶ return loader result

One store round trip decides hit or miss; a miss costs exactly one more
to populate.  A loader exception propagates untouched and nothing is
stored.  A populate the store refuses is reported through
`on_write_failure` and otherwise ignored; the next request simply takes
the miss path again.

KNOWN GAPS
----------
- Stale repopulation: nothing orders an invalidation against a loader
  that is already running.  If a read misses, starts its loader, and a
  write invalidates before that loader finishes, the read stores the
  pre-write result afterwards.  That entry lives until its TTL runs out
  or the next write to the same resource.
- Stampedes: N concurrent misses for one key run the loader N times and
  write N times (last write wins).  There is no request coalescing.
- Nothing is evicted early.  Entries leave only by TTL expiry or by an
  explicit invalidation.
- None and empty results are cached like any other value.
"""

from __future__ import annotations

import inspect
import json
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Any

from shortnews.core.metrics import CACHE_WRITE_FAILURES
from shortnews.services.cache_stats import CacheStats
from shortnews.services.cache_store import CacheStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class WarmEntry:
    key: str
    value: Any
    ttl: int


def log_write_failure(key: str, ttl: int) -> None:
    CACHE_WRITE_FAILURES.inc()
    logger.warning("Cache write not stored for %s (ttl=%ds)", key, ttl)


async def _call(loader: Callable[[], Any]) -> Any:
    result = loader()
    if inspect.isawaitable(result):
        result = await result
    return result


class CacheAside:
    def __init__(
        self,
        store: CacheStore,
        stats: CacheStats,
        *,
        on_write_failure: Callable[[str, int], None] = log_write_failure,
    ) -> None:
        self.store = store
        self.stats = stats
        self._on_write_failure = on_write_failure

    def is_available(self) -> bool:
        return self.store.is_available()

    async def lookup(self, key: str) -> str | None:
        """One store read; records the hit or miss.  Returns the raw payload."""
        raw = await self.store.get(key)
        if raw is None:
            self.stats.record_miss()
            logger.debug("Cache MISS %s", key)
        else:
            self.stats.record_hit()
            logger.debug("Cache HIT %s", key)
        return raw

    async def populate(self, key: str, value: Any, ttl: int) -> bool:
        """One store write.  CacheSerializationError propagates."""
        stored = await self.store.set_with_ttl(key, value, ttl)
        if not stored:
            self._on_write_failure(key, ttl)
        return stored

    async def read_through(
        self,
        key: str,
        ttl: int,
        loader: Callable[[], Any],
        *,
        bypass: bool = False,
    ) -> Any:
        if bypass or not self.store.is_available():
            return await _call(loader)

        raw = await self.lookup(key)
        if raw is not None:
            return json.loads(raw)

        value = await _call(loader)
        await self.populate(key, value, ttl)
        return value

    async def warm(
        self, loader: Callable[[], Iterable[WarmEntry] | Awaitable[Iterable[WarmEntry]]]
    ) -> int:
        """Pre-populate well-known keys from a caller-supplied loader.

        Returns the number of entries stored; 0 without calling the loader
        when the store is not available.
        """
        if not self.store.is_available():
            logger.warning("Cache warm skipped: store not available")
            return 0

        entries = await _call(loader)
        stored = 0
        for entry in entries:
            if await self.populate(entry.key, entry.value, entry.ttl):
                stored += 1
        logger.info("Cache warmed with %d entries", stored)
        return stored
