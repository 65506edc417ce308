"""Liveness and readiness probes.

/health answers "is the process alive" and reports the cache backend's
connection state.  It returns 200 even when the cache is down, because
every read path falls back to the content store: a degraded cache means
slower responses, not failed ones.

/ready answers "can this instance take traffic".  The cache is optional,
so readiness does not depend on it.
"""

from __future__ import annotations

from fastapi import APIRouter, Response

from shortnews.db.redis import redis_client
from shortnews.services.cache import cache_store

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict:
    checks: dict[str, str] = {}
    overall = "ok"

    if redis_client is None:
        checks["redis"] = "not_configured"
    elif cache_store.is_available():
        checks["redis"] = "ok"
    else:
        checks["redis"] = "degraded"
        overall = "degraded"

    checks["cache"] = cache_store.state.value

    return {"status": overall, "checks": checks}


@router.get("/ready")
async def ready() -> Response:
    return Response(status_code=200)
