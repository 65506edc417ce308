"""Redis client construction.

When REDIS_URL is configured a single shared client (with its own
connection pool) is created at import time; when it is not (local dev,
tests) `redis_client` is None and the cache falls back to the
in-memory store.

Creating the client does not open a connection.  The first command, or
the explicit ping in RedisCacheStore.connect() during app startup, does.
Socket timeouts bound how long a slow or dead Redis can delay a request;
the response cache adds no timeout of its own.
"""

from __future__ import annotations

import redis.asyncio as aioredis

from shortnews.core.config import SETTINGS


def create_redis_client(url: str, *, socket_timeout: float) -> aioredis.Redis:  # type: ignore[type-arg]
    return aioredis.from_url(
        url,
        decode_responses=True,  # cached payloads are UTF-8 JSON text
        max_connections=20,
        socket_timeout=socket_timeout,
        socket_connect_timeout=socket_timeout,
        health_check_interval=30,
    )


if SETTINGS.redis_url:
    redis_client: aioredis.Redis | None = create_redis_client(  # type: ignore[type-arg]
        SETTINGS.redis_url,
        socket_timeout=SETTINGS.cache_socket_timeout,
    )
else:
    redis_client = None


def redacted_url(url: str) -> str:
    """Drop credentials from a redis:// URL before it is logged."""
    scheme, sep, rest = url.partition("://")
    if not sep:
        return url
    return f"{scheme}://{rest.rsplit('@', 1)[-1]}"
