"""Request id and per-request summary logging.

Every request gets an id (the client's X-Request-ID when it sends one)
that is echoed on the response and stamped on every log line written
while the request is in flight.  One summary line is logged per request:

  GET /api/public/news → 200 (1.4ms) cache=HIT

The cache field is read from the X-Cache response header set by
ResponseCacheMiddleware; "-" for routes the cache does not wrap.
"""

from __future__ import annotations

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from shortnews.core.logging import request_id_var
from shortnews.middleware.response_cache import CACHE_KEY_HEADER, CACHE_STATUS_HEADER

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        req_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        token = request_id_var.set(req_id)
        try:
            start = time.perf_counter()
            response = await call_next(request)
            duration_ms = round((time.perf_counter() - start) * 1000, 1)

            cache_status = response.headers.get(CACHE_STATUS_HEADER)
            logger.info(
                "%s %s → %d (%.1fms) cache=%s",
                request.method,
                request.url.path,
                response.status_code,
                duration_ms,
                cache_status or "-",
                extra={
                    "request_id": req_id,
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": response.status_code,
                    "duration_ms": duration_ms,
                    "cache_status": cache_status,
                    "cache_key": response.headers.get(CACHE_KEY_HEADER),
                },
            )
        finally:
            request_id_var.reset(token)

        response.headers[REQUEST_ID_HEADER] = req_id
        return response
