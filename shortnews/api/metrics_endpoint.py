"""Prometheus scrape endpoint.

Returns every registered metric in the text exposition format, including
the cache counters:

  cache_operations_total{operation="hit"} 1432.0
  cache_operations_total{operation="miss"} 211.0
  cache_invalidated_keys_total{resource="news"} 38.0

Keep this on an internal port or behind the ingress allow-list in
production; the counters reveal traffic shape.
"""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter(tags=["observability"])


@router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )
