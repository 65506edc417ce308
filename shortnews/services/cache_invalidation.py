"""Pattern-based invalidation for write paths.

Admin writes call `invalidate_resource()` after the repo write succeeds
and before returning their response, so the client's next read misses
and reloads.  The patterns per resource live in
cache_policy.INVALIDATION_PATTERNS; callers never spell patterns out.

Invalidation is best-effort: when the store is down nothing is cleared,
the write still succeeds, and the TTL bounds how long stale entries
survive.
"""

from __future__ import annotations

import logging

from shortnews.core.metrics import CACHE_INVALIDATED_KEYS
from shortnews.services.cache_policy import INVALIDATION_PATTERNS, Resource
from shortnews.services.cache_store import CacheStore

logger = logging.getLogger(__name__)


class CacheInvalidator:
    def __init__(self, store: CacheStore) -> None:
        self._store = store

    async def clear_by_pattern(self, pattern: str, *, resource: str = "pattern") -> int:
        if not self._store.is_available():
            logger.warning("Cache invalidation skipped for %s: store not available", pattern)
            return 0

        deleted = await self._store.delete_by_pattern(pattern)
        if deleted:
            CACHE_INVALIDATED_KEYS.labels(resource=resource).inc(deleted)
            logger.info("Cleared %d cache entries matching %s", deleted, pattern)
        else:
            logger.debug("No cache entries matching %s", pattern)
        return deleted

    async def clear_all(self) -> bool:
        flushed = await self._store.flush_all()
        if flushed:
            logger.info("Cleared all cache entries")
        else:
            logger.warning("Cache flush skipped: store not available")
        return flushed

    async def invalidate_resource(self, resource: Resource) -> int:
        total = 0
        for pattern in INVALIDATION_PATTERNS[resource]:
            total += await self.clear_by_pattern(pattern, resource=resource.value)
        return total
