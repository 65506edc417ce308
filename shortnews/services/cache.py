"""Process-wide cache wiring.

Builds the cache components once, at import time, and exposes them as
module-level singletons in the same way every other Redis-backed feature
in this service is selected:

  REDIS_URL set      → RedisCacheStore over the shared client
  REDIS_URL not set  → InMemoryCacheStore (dev, tests)

    cache_stats ──┐
    cache_store ──┼──▶ cache_engine ──▶ ResponseCacheMiddleware
                  │                └──▶ query_cache ──▶ /graphql resolvers
                  └──▶ cache_invalidator ──▶ admin write routes, /cache/*
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from shortnews.core.config import SETTINGS
from shortnews.db.redis import redacted_url, redis_client
from shortnews.services.cache_engine import CacheAside
from shortnews.services.cache_invalidation import CacheInvalidator
from shortnews.services.cache_stats import CacheStats
from shortnews.services.cache_store import CacheStore, InMemoryCacheStore, RedisCacheStore
from shortnews.services.query_cache import QueryCache

logger = logging.getLogger(__name__)

cache_stats = CacheStats()

if redis_client is not None:
    cache_store: CacheStore = RedisCacheStore(redis_client, on_error=cache_stats.record_error)
else:
    cache_store = InMemoryCacheStore()

cache_engine = CacheAside(cache_store, cache_stats)
cache_invalidator = CacheInvalidator(cache_store)
query_cache = QueryCache(cache_engine, cache_invalidator)


@asynccontextmanager
async def lifespan_cache() -> AsyncGenerator[None, None]:
    """Connect the cache store on startup and close it on shutdown.

    A failed connect does not stop the app: the store sits in ERROR and
    reconnects in the background while requests are served uncached.
    """
    if redis_client is None:
        logger.info("No REDIS_URL configured; response cache is in-memory")
    else:
        logger.info("Connecting response cache to %s", redacted_url(SETTINGS.redis_url or ""))

    await cache_store.connect()
    if not cache_store.is_available():
        logger.warning("Response cache unavailable at startup; serving uncached")

    try:
        yield
    finally:
        await cache_store.close()
