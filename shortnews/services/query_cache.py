"""Result cache for the JSON query layer (POST /graphql).

Same read-through discipline as the HTTP response cache, keyed on the
operation name plus its arguments instead of a URL.  TTLs come from
cache_policy.QUERY_TTLS unless a caller overrides them.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from typing import Any

from shortnews.services.cache_engine import CacheAside
from shortnews.services.cache_invalidation import CacheInvalidator
from shortnews.services.cache_keys import QUERY_PREFIX, glob_escape, query_cache_key
from shortnews.services.cache_policy import query_ttl

logger = logging.getLogger(__name__)


class QueryCache:
    def __init__(self, engine: CacheAside, invalidator: CacheInvalidator) -> None:
        self._engine = engine
        self._invalidator = invalidator

    @staticmethod
    def cache_key(operation: str, args: dict[str, Any] | None = None) -> str:
        return query_cache_key(operation, args)

    async def get_cached(self, operation: str, args: dict[str, Any] | None = None) -> Any:
        """Cached result, or None on a miss or when the store is down."""
        if not self._engine.is_available():
            return None
        raw = await self._engine.lookup(self.cache_key(operation, args))
        if raw is None:
            return None
        return json.loads(raw)

    async def set_cached(
        self,
        operation: str,
        args: dict[str, Any] | None,
        value: Any,
        ttl: int | None = None,
    ) -> bool:
        if not self._engine.is_available():
            return False
        key = self.cache_key(operation, args)
        return await self._engine.populate(
            key, value, ttl if ttl is not None else query_ttl(operation)
        )

    async def resolve(
        self,
        operation: str,
        args: dict[str, Any] | None,
        loader: Callable[[], Any],
        *,
        bypass: bool = False,
    ) -> Any:
        return await self._engine.read_through(
            self.cache_key(operation, args),
            query_ttl(operation),
            loader,
            bypass=bypass,
        )

    async def invalidate(self, pattern: str) -> int:
        return await self._invalidator.clear_by_pattern(pattern)

    async def invalidate_for_id(self, operation: str, item_id: str) -> int:
        """Clear every cached result of `operation` whose arguments mention `item_id`."""
        pattern = f"{QUERY_PREFIX}{operation}:*{glob_escape(str(item_id))}*"
        return await self.invalidate(pattern)
