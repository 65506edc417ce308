"""Operator endpoints for inspecting and managing the response cache.

  GET  /cache/stats           counters + live key count
  POST /cache/clear           wipe every entry
  POST /cache/clear-pattern   delete entries matching a glob
  POST /cache/reset-stats     zero the counters (entries untouched)
  GET  /cache/keys            list keys with remaining TTL
  POST /cache/warm            pre-populate the busiest public listings

These are meant for an internal network only; they carry no auth here.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, HTTPException, status
from pydantic import BaseModel, ValidationError

from shortnews.api.public import render
from shortnews.repos.content_repo import content_repo
from shortnews.services import content_service
from shortnews.services.cache import (
    cache_engine,
    cache_invalidator,
    cache_stats,
    cache_store,
)
from shortnews.services.cache_engine import WarmEntry
from shortnews.services.cache_keys import http_cache_key
from shortnews.services.cache_policy import CacheTTL
from shortnews.services.cache_store import CacheUnavailableError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cache", tags=["cache"])


class ClearPatternIn(BaseModel):
    pattern: str | None = None


def _unavailable() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Cache not available",
    )


def popular_entries() -> list[WarmEntry]:
    """The listings every app launch hits, rendered exactly as the routes render them."""
    return [
        WarmEntry(
            key=http_cache_key("/api/public/news"),
            value=render(content_service.public_news(content_repo)).body,
            ttl=CacheTTL.LISTING,
        ),
        WarmEntry(
            key=http_cache_key("/api/public/categories"),
            value=render(content_service.public_categories(content_repo)).body,
            ttl=CacheTTL.REFERENCE,
        ),
        WarmEntry(
            key=http_cache_key("/api/public/locations"),
            value=render(content_service.public_locations(content_repo)).body,
            ttl=CacheTTL.REFERENCE,
        ),
    ]


@router.get("/stats")
async def stats() -> dict[str, Any]:
    return await cache_stats.snapshot(cache_store)


@router.post("/clear")
async def clear() -> dict[str, Any]:
    if not await cache_invalidator.clear_all():
        raise _unavailable()
    logger.info("Cache cleared by operator")
    return {"success": True, "message": "Cache cleared"}


@router.post("/clear-pattern")
async def clear_pattern(body: Any = Body(default=None)) -> dict[str, Any]:
    try:
        parsed = ClearPatternIn.model_validate(body or {})
    except ValidationError:
        parsed = ClearPatternIn()
    pattern = (parsed.pattern or "").strip()
    if not pattern:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="pattern is required",
        )
    deleted = await cache_invalidator.clear_by_pattern(pattern)
    return {"success": True, "deleted": deleted, "pattern": pattern}


@router.post("/reset-stats")
async def reset_stats() -> dict[str, Any]:
    cache_stats.reset()
    logger.info("Cache stats reset by operator")
    return {"success": True, "message": "Cache statistics reset"}


@router.get("/keys")
async def keys(pattern: str = "cache:*") -> dict[str, Any]:
    try:
        entries = await cache_store.keys_with_ttl(pattern)
    except CacheUnavailableError:
        raise _unavailable() from None
    return {
        "success": True,
        "count": len(entries),
        "keys": [{"key": k, "ttl": ttl} for k, ttl in entries],
    }


@router.post("/warm")
async def warm() -> dict[str, Any]:
    if not cache_engine.is_available():
        raise _unavailable()
    warmed = await cache_engine.warm(popular_entries)
    return {"success": True, "warmed": warmed}
