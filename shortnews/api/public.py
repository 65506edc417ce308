"""Public read endpoints for the mobile feed.

None of these handlers touch the cache: ResponseCacheMiddleware wraps
every path listed in cache_policy.PUBLIC_CACHE_RULES.  Handlers return
`render()`d responses so that /cache/warm can store exactly the bytes a
handler would have produced.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import JSONResponse

from shortnews.repos.content_repo import content_repo
from shortnews.services import content_service

router = APIRouter(prefix="/api/public", tags=["public"])


def render(payload: Any) -> JSONResponse:
    return JSONResponse(content=payload)


@router.get("/news")
def list_news(mediaType: str | None = None) -> JSONResponse:  # noqa: N803
    return render(content_service.public_news(content_repo, media_type=mediaType))


@router.get("/news/category/{category}")
def list_news_by_category(category: str) -> JSONResponse:
    return render(content_service.public_news(content_repo, category=category))


@router.get("/news/location/{location}")
def list_news_by_location(location: str) -> JSONResponse:
    return render(content_service.public_news(content_repo, location=location))


@router.get("/news/{news_id}")
def get_news(news_id: str) -> JSONResponse:
    item = content_service.public_news_item(content_repo, news_id)
    if item is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="News not found")
    return render(item)


@router.get("/categories")
def list_categories() -> JSONResponse:
    return render(content_service.public_categories(content_repo))


@router.get("/locations")
def list_locations() -> JSONResponse:
    return render(content_service.public_locations(content_repo))


@router.get("/ads")
def list_ads() -> JSONResponse:
    return render(content_service.public_ads(content_repo))


@router.get("/viral-videos")
def list_viral_videos() -> JSONResponse:
    return render(content_service.public_viral_videos(content_repo))
