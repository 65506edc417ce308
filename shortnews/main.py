from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shortnews.api.admin_content import router as admin_content_router
from shortnews.api.cache_admin import router as cache_admin_router
from shortnews.api.health import router as health_router
from shortnews.api.metrics_endpoint import router as metrics_router
from shortnews.api.public import router as public_router
from shortnews.api.query import router as query_router
from shortnews.core.config import SETTINGS
from shortnews.core.logging import setup_logging
from shortnews.middleware.metrics import MetricsMiddleware
from shortnews.middleware.request_context import RequestContextMiddleware
from shortnews.middleware.response_cache import ResponseCacheMiddleware
from shortnews.services.cache import cache_engine, lifespan_cache
from shortnews.services.cache_policy import PUBLIC_CACHE_RULES

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    async with lifespan_cache():
        yield


app = FastAPI(
    title="short-news-api",
    lifespan=lifespan,
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)

# Middleware execution order: last-added runs first (outermost layer).
# RequestContext → Metrics → CORS → ResponseCache → route handler
# The cache sits innermost so its X-Cache header is visible to the
# metrics and request-log layers, and a HIT still gets CORS headers.
app.add_middleware(
    ResponseCacheMiddleware,
    engine=cache_engine,
    rules=PUBLIC_CACHE_RULES,
    bypass_header=SETTINGS.cache_bypass_header,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Cache", "X-Cache-Key", "X-Request-ID"],
)
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)

app.include_router(metrics_router)
app.include_router(health_router)
app.include_router(public_router)
app.include_router(admin_content_router)
app.include_router(cache_admin_router)
app.include_router(query_router)

logger.info(
    "short-news-api started  env=%s log_level=%s port=%d cache=%s",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    "redis" if SETTINGS.redis_url else "memory",
)
