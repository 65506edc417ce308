"""Cache store adapters.

Everything above this module talks to a `CacheStore`; nothing else in
the codebase touches a Redis client for caching.  The contract every
implementation keeps:

  - reads never raise.  A miss and an unavailable backend both come back
    as None.
  - writes never raise for backend trouble.  They return False instead,
    so "not cached" is visible to the caller without being an error.
  - values that cannot be JSON-encoded DO raise (CacheSerializationError).
    That is a bug in the data being cached, not a transient condition.
  - only `keys_with_ttl` is strict: it raises CacheUnavailableError so the
    operator endpoint can answer 503 instead of an empty list.

CONNECTION STATES
-----------------
    DISCONNECTED ──connect()──▶ CONNECTING ──ping ok──▶ READY
         ▲                          │                     │
         │                      ping fails           any Redis error
       close()                      ▼                     │
         └──────────────────────  ERROR ◀─────────────────┘
                                    │
                   is_available() after backoff ──▶ CONNECTING

Every operation checks READY first.  In any other state reads behave as
a miss and writes as a silent False, without waiting on the network.
Reconnects are started in the background by `is_available()` once the
backoff delay has passed, so request handlers never drive retries.
"""

from __future__ import annotations

import asyncio
import enum
import fnmatch
import json
import logging
import time
from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

from redis.exceptions import RedisError

from shortnews.core.metrics import CACHE_BACKEND_ERRORS

logger = logging.getLogger(__name__)

_SCAN_COUNT = 100
_DELETE_BATCH = 500
_BACKOFF_BASE = 0.05
_BACKOFF_MAX = 3.0


class ConnectionState(str, enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    READY = "ready"
    ERROR = "error"


class CacheSerializationError(ValueError):
    """A value handed to the cache could not be JSON-encoded."""


class CacheUnavailableError(RuntimeError):
    """Raised by strict store operations when the backend is not READY."""


def encode_value(value: Any) -> str:
    """Encode a value for storage.

    bytes are treated as an already-encoded JSON payload (HTTP response
    bodies) and stored verbatim; everything else goes through json.dumps.
    """
    if isinstance(value, bytes):
        return value.decode("utf-8")
    try:
        return json.dumps(value)
    except (TypeError, ValueError) as exc:
        raise CacheSerializationError(
            f"value of type {type(value).__name__} is not JSON serializable"
        ) from exc


def reconnect_delay(attempt: int) -> float:
    """Exponential backoff: 50ms, 100ms, 200ms ... capped at 3s."""
    return min(_BACKOFF_BASE * (2**attempt), _BACKOFF_MAX)


@runtime_checkable
class CacheStore(Protocol):
    state: ConnectionState

    def is_available(self) -> bool:
        """True only when the backend is connected and confirmed ready."""
        ...

    async def connect(self) -> None: ...

    async def close(self) -> None: ...

    async def get(self, key: str) -> str | None:
        """Raw stored payload, or None on miss / unavailability."""
        ...

    async def set_with_ttl(self, key: str, value: Any, ttl_seconds: int) -> bool:
        """Store a whole value with a TTL.  False when not stored."""
        ...

    async def delete_by_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob pattern; returns the count."""
        ...

    async def flush_all(self) -> bool:
        """Wipe every entry.  Operator action only."""
        ...

    async def count_keys(self, pattern: str = "*") -> int: ...

    async def memory_info(self) -> dict[str, Any] | None:
        """Backend memory summary for the stats endpoint; None when unavailable."""
        ...

    async def keys_with_ttl(self, pattern: str) -> list[tuple[str, int]]:
        """Matching keys with remaining TTL in seconds (-1: no expiry)."""
        ...


class InMemoryCacheStore:
    """Process-local store used when REDIS_URL is not configured.

    TTLs are enforced lazily: an expired entry is dropped the next time
    anything looks at it.  Patterns use fnmatch, which agrees with Redis
    glob matching for `*`, `?` and `[...]`.  Tests set `state` directly
    to simulate an unreachable backend.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._store: dict[str, tuple[str, float]] = {}
        self.state = ConnectionState.READY

    def is_available(self) -> bool:
        return self.state is ConnectionState.READY

    async def connect(self) -> None:
        self.state = ConnectionState.READY

    async def close(self) -> None:
        self.state = ConnectionState.DISCONNECTED

    def _live_items(self) -> list[tuple[str, str, float]]:
        now = self._clock()
        expired = [k for k, (_, exp) in self._store.items() if exp <= now]
        for k in expired:
            del self._store[k]
        return [(k, v, exp) for k, (v, exp) in self._store.items()]

    def _matching(self, pattern: str) -> list[tuple[str, float]]:
        return [
            (k, exp)
            for k, _, exp in self._live_items()
            if fnmatch.fnmatchcase(k, pattern)
        ]

    async def get(self, key: str) -> str | None:
        if not self.is_available():
            return None
        entry = self._store.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at <= self._clock():
            del self._store[key]
            return None
        return value

    async def set_with_ttl(self, key: str, value: Any, ttl_seconds: int) -> bool:
        payload = encode_value(value)
        if not self.is_available():
            return False
        self._store[key] = (payload, self._clock() + ttl_seconds)
        return True

    async def delete_by_pattern(self, pattern: str) -> int:
        if not self.is_available():
            return 0
        keys = [k for k, _ in self._matching(pattern)]
        for k in keys:
            del self._store[k]
        return len(keys)

    async def flush_all(self) -> bool:
        if not self.is_available():
            return False
        self._store.clear()
        return True

    async def count_keys(self, pattern: str = "*") -> int:
        if not self.is_available():
            return 0
        return len(self._matching(pattern))

    async def memory_info(self) -> dict[str, Any] | None:
        if not self.is_available():
            return None
        return {"backend": "memory", "entries": len(self._live_items())}

    async def keys_with_ttl(self, pattern: str) -> list[tuple[str, int]]:
        if not self.is_available():
            raise CacheUnavailableError("cache store is not available")
        now = self._clock()
        return sorted((k, max(int(exp - now), 0)) for k, exp in self._matching(pattern))

    def expire(self, key: str) -> None:
        """Force a key past its TTL (test helper)."""
        entry = self._store.get(key)
        if entry is not None:
            self._store[key] = (entry[0], self._clock())


class RedisCacheStore:
    """Redis-backed store shared by every API process.

    Holds the connection state machine described in the module docstring.
    `on_error` is called with every backend exception (the wiring module
    points it at CacheStats.record_error).
    """

    def __init__(
        self,
        redis_client,
        *,
        on_error: Callable[[Exception], None] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._redis = redis_client
        self._on_error = on_error
        self._clock = clock
        self.state = ConnectionState.DISCONNECTED
        self._attempts = 0
        self._retry_at = 0.0
        self._reconnect_task: asyncio.Task[None] | None = None

    # -- connection state machine ------------------------------------------

    def is_available(self) -> bool:
        if self.state is ConnectionState.ERROR and self._clock() >= self._retry_at:
            self._schedule_reconnect()
        return self.state is ConnectionState.READY

    def _schedule_reconnect(self) -> None:
        if self._reconnect_task is not None and not self._reconnect_task.done():
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._reconnect_task = loop.create_task(self.connect())

    async def connect(self) -> None:
        self.state = ConnectionState.CONNECTING
        try:
            await self._redis.ping()
        except (RedisError, OSError) as exc:
            self._mark_error("connect", exc)
            return
        if self._attempts:
            logger.info("Redis cache reconnected after %d attempt(s)", self._attempts)
        else:
            logger.info("Redis cache ready")
        self._attempts = 0
        self.state = ConnectionState.READY

    async def close(self) -> None:
        if self._reconnect_task is not None and not self._reconnect_task.done():
            self._reconnect_task.cancel()
        self._reconnect_task = None
        self.state = ConnectionState.DISCONNECTED
        try:
            await self._redis.aclose()
        except (RedisError, OSError):
            logger.warning("Error while closing Redis cache connection", exc_info=True)
        logger.info("Redis cache connection closed")

    def _mark_error(self, operation: str, exc: Exception) -> None:
        if self.state is ConnectionState.DISCONNECTED:
            return
        delay = reconnect_delay(self._attempts)
        self._attempts += 1
        self._retry_at = self._clock() + delay
        self.state = ConnectionState.ERROR
        CACHE_BACKEND_ERRORS.labels(operation=operation).inc()
        logger.warning(
            "Redis cache %s failed (%s: %s); caching disabled, retry in %.2fs",
            operation,
            type(exc).__name__,
            exc,
            delay,
        )
        if self._on_error is not None:
            self._on_error(exc)

    # -- operations --------------------------------------------------------

    async def get(self, key: str) -> str | None:
        if not self.is_available():
            return None
        try:
            return await self._redis.get(key)
        except (RedisError, OSError) as exc:
            self._mark_error("get", exc)
            return None

    async def set_with_ttl(self, key: str, value: Any, ttl_seconds: int) -> bool:
        payload = encode_value(value)
        if not self.is_available():
            return False
        try:
            # SETEX writes value and expiry atomically
            await self._redis.setex(key, ttl_seconds, payload)
        except (RedisError, OSError) as exc:
            self._mark_error("set", exc)
            return False
        return True

    async def _scan(self, pattern: str) -> list[str]:
        # SCAN may report a key twice across batches
        seen: dict[str, None] = {}
        async for key in self._redis.scan_iter(match=pattern, count=_SCAN_COUNT):
            seen[key] = None
        return list(seen)

    async def delete_by_pattern(self, pattern: str) -> int:
        if not self.is_available():
            return 0
        deleted = 0
        try:
            keys = await self._scan(pattern)
            for start in range(0, len(keys), _DELETE_BATCH):
                deleted += await self._redis.delete(*keys[start : start + _DELETE_BATCH])
        except (RedisError, OSError) as exc:
            self._mark_error("delete_by_pattern", exc)
            return deleted
        return deleted

    async def flush_all(self) -> bool:
        if not self.is_available():
            return False
        try:
            await self._redis.flushdb()
        except (RedisError, OSError) as exc:
            self._mark_error("flush_all", exc)
            return False
        return True

    async def count_keys(self, pattern: str = "*") -> int:
        if not self.is_available():
            return 0
        try:
            if pattern == "*":
                return await self._redis.dbsize()
            return len(await self._scan(pattern))
        except (RedisError, OSError) as exc:
            self._mark_error("count_keys", exc)
            return 0

    async def memory_info(self) -> dict[str, Any] | None:
        if not self.is_available():
            return None
        try:
            info = await self._redis.info("memory")
        except (RedisError, OSError) as exc:
            self._mark_error("memory_info", exc)
            return None
        return {
            "backend": "redis",
            "usedMemory": info.get("used_memory_human"),
            "peakMemory": info.get("used_memory_peak_human"),
        }

    async def keys_with_ttl(self, pattern: str) -> list[tuple[str, int]]:
        if not self.is_available():
            raise CacheUnavailableError("cache store is not available")
        try:
            keys = sorted(await self._scan(pattern))
            if not keys:
                return []
            async with self._redis.pipeline(transaction=False) as pipe:
                for key in keys:
                    pipe.ttl(key)
                ttls = await pipe.execute()
        except (RedisError, OSError) as exc:
            self._mark_error("keys_with_ttl", exc)
            raise CacheUnavailableError("cache store is not available") from exc
        # TTL -2 means the key expired between SCAN and TTL
        return [(k, t) for k, t in zip(keys, ttls) if t != -2]
