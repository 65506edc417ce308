"""Prometheus instrumentation for every HTTP request.

Counts requests by method, path, status and cache result, times them,
and tracks in-flight requests.  /metrics itself is skipped so scrapes
do not inflate the counts.  Cache hits and misses on the same path land
in very different duration buckets, so filtering the histogram's
companion counter by `cache` explains most latency shifts on the feed.
"""

from __future__ import annotations

import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from shortnews.core.metrics import ACTIVE_REQUESTS, REQUEST_COUNT, REQUEST_DURATION
from shortnews.middleware.response_cache import CACHE_STATUS_HEADER

_UNWRAPPED = "none"


def _cache_label(response: Response | None) -> str:
    if response is None:
        return _UNWRAPPED
    return response.headers.get(CACHE_STATUS_HEADER, _UNWRAPPED).lower()


class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path == "/metrics":
            return await call_next(request)

        response: Response | None = None
        ACTIVE_REQUESTS.inc()
        start = time.perf_counter()
        try:
            response = await call_next(request)
            return response
        finally:
            ACTIVE_REQUESTS.dec()
            REQUEST_DURATION.labels(method=request.method, endpoint=path).observe(
                time.perf_counter() - start
            )
            REQUEST_COUNT.labels(
                method=request.method,
                endpoint=path,
                status_code=str(response.status_code) if response is not None else "500",
                cache=_cache_label(response),
            ).inc()
