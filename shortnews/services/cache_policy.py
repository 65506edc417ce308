"""TTL tiers and invalidation targets.

TTLs follow how often each class of content changes:

  LISTING    300s   news feed, ads, viral videos; new items all day
  ITEM       600s   a single article or ad by id
  REFERENCE 1800s   categories and locations; near-static lookup tables

Explicit invalidation on every admin write keeps the common case fresh;
the TTL bounds staleness when a write path is missed or a concurrent
miss repopulates an entry right after it was cleared.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

from shortnews.services.cache_keys import http_cache_key, query_namespace

logger = logging.getLogger(__name__)


class CacheTTL(enum.IntEnum):
    LISTING = 300
    ITEM = 600
    REFERENCE = 1800


class Resource(str, enum.Enum):
    NEWS = "news"
    CATEGORY = "category"
    LOCATION = "location"
    AD = "ad"
    VIRAL_VIDEO = "viral_video"


# ---------------------------------------------------------------------------
# Query layer
# ---------------------------------------------------------------------------

QUERY_TTLS: dict[str, CacheTTL] = {
    "news": CacheTTL.LISTING,
    "ads": CacheTTL.LISTING,
    "viralVideos": CacheTTL.LISTING,
    "newsById": CacheTTL.ITEM,
    "adById": CacheTTL.ITEM,
    "viralVideoById": CacheTTL.ITEM,
    "categories": CacheTTL.REFERENCE,
    "locations": CacheTTL.REFERENCE,
}


def query_ttl(operation: str) -> int:
    ttl = QUERY_TTLS.get(operation)
    if ttl is None:
        logger.warning(
            "No TTL policy for query operation %r; using %ds",
            operation,
            int(CacheTTL.LISTING),
        )
        return int(CacheTTL.LISTING)
    return int(ttl)


# ---------------------------------------------------------------------------
# HTTP layer
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CacheRule:
    """Cache GET responses whose path matches `path_glob` for `ttl` seconds."""

    path_glob: str
    ttl: int


# First match wins; more specific paths go first.
PUBLIC_CACHE_RULES: tuple[CacheRule, ...] = (
    CacheRule("/api/public/news/category/*", CacheTTL.ITEM),
    CacheRule("/api/public/news/location/*", CacheTTL.ITEM),
    CacheRule("/api/public/news/*", CacheTTL.ITEM),
    CacheRule("/api/public/news", CacheTTL.LISTING),
    CacheRule("/api/public/categories", CacheTTL.REFERENCE),
    CacheRule("/api/public/locations", CacheTTL.REFERENCE),
    CacheRule("/api/public/ads", CacheTTL.LISTING),
    CacheRule("/api/public/viral-videos", CacheTTL.LISTING),
)


def _http_namespace(path: str) -> str:
    return http_cache_key(path) + "*"


# ---------------------------------------------------------------------------
# Invalidation targets
# ---------------------------------------------------------------------------
# News payloads feed the per-category and per-location counts, so a news
# write also clears those lookup tables.

INVALIDATION_PATTERNS: dict[Resource, tuple[str, ...]] = {
    Resource.NEWS: (
        _http_namespace("/api/public/news"),
        _http_namespace("/api/public/locations"),
        _http_namespace("/api/public/categories"),
        query_namespace("news"),
        query_namespace("newsById"),
        query_namespace("locations"),
        query_namespace("categories"),
    ),
    Resource.CATEGORY: (
        _http_namespace("/api/public/categories"),
        query_namespace("categories"),
    ),
    Resource.LOCATION: (
        _http_namespace("/api/public/locations"),
        query_namespace("locations"),
    ),
    Resource.AD: (
        _http_namespace("/api/public/ads"),
        query_namespace("ads"),
        query_namespace("adById"),
    ),
    Resource.VIRAL_VIDEO: (
        _http_namespace("/api/public/viral-videos"),
        query_namespace("viralVideos"),
        query_namespace("viralVideoById"),
    ),
}
