"""Read-through response cache for public GET endpoints.

Route handlers know nothing about caching.  For each GET whose path
matches a CacheRule:

  1. key = "cache:" + path + "?" + query (query string verbatim)
  2. bypass header present      → handler runs, no read, no write, BYPASS
     store not available        → handler runs, no read, no write, BYPASS
  3. one GET on the store
       hit  → cached bytes become the response body, handler skipped, HIT
       miss → handler runs once; a 200 JSON body is stored byte-for-byte
              with the rule's TTL and forwarded unchanged, MISS

Every wrapped response carries X-Cache and X-Cache-Key headers; the JSON
body is never touched.  Any exception from the cache itself is logged
and the request proceeds as if the cache were empty: a cache failure
never becomes a user-visible error.
"""

from __future__ import annotations

import fnmatch
import logging
from collections.abc import Sequence

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from shortnews.services.cache_engine import CacheAside
from shortnews.services.cache_keys import http_cache_key
from shortnews.services.cache_policy import CacheRule

logger = logging.getLogger(__name__)

CACHE_STATUS_HEADER = "X-Cache"
CACHE_KEY_HEADER = "X-Cache-Key"

HIT = "HIT"
MISS = "MISS"
BYPASS = "BYPASS"

_BYPASS_OFF = ("0", "false", "no")


def is_bypass(request: Request, header: str) -> bool:
    value = request.headers.get(header)
    if value is None:
        return False
    return value.strip().lower() not in _BYPASS_OFF


def _mark(response: Response, status: str, key: str) -> Response:
    response.headers[CACHE_STATUS_HEADER] = status
    response.headers[CACHE_KEY_HEADER] = key
    return response


class ResponseCacheMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app: ASGIApp,
        *,
        engine: CacheAside,
        rules: Sequence[CacheRule],
        bypass_header: str = "X-Cache-Bypass",
    ) -> None:
        super().__init__(app)
        self._engine = engine
        self._rules = tuple(rules)
        self._bypass_header = bypass_header

    def ttl_for(self, path: str) -> int | None:
        for rule in self._rules:
            if fnmatch.fnmatchcase(path, rule.path_glob):
                return int(rule.ttl)
        return None

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.method != "GET":
            return await call_next(request)

        ttl = self.ttl_for(request.url.path)
        if ttl is None:
            return await call_next(request)

        key = http_cache_key(request.url.path, request.url.query)

        if is_bypass(request, self._bypass_header):
            logger.debug("Cache bypass requested for %s", key)
            return _mark(await call_next(request), BYPASS, key)

        if not self._engine.is_available():
            return _mark(await call_next(request), BYPASS, key)

        try:
            cached = await self._engine.lookup(key)
        except Exception:
            logger.exception("Cache lookup failed for %s; treating as miss", key)
            cached = None

        if cached is not None:
            return _mark(
                Response(content=cached, media_type="application/json"), HIT, key
            )

        response = await call_next(request)
        content_type = response.headers.get("content-type", "")
        if response.status_code != 200 or not content_type.startswith("application/json"):
            return _mark(response, MISS, key)

        body = b"".join([chunk async for chunk in response.body_iterator])  # type: ignore[attr-defined]

        try:
            await self._engine.populate(key, body, ttl)
        except Exception:
            logger.exception("Cache populate failed for %s", key)

        forwarded = Response(content=body, status_code=response.status_code)
        # raw list keeps repeated headers such as Set-Cookie
        forwarded.raw_headers = list(response.raw_headers)
        return _mark(forwarded, MISS, key)
