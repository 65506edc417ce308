"""Admin write endpoints.

Every successful write clears the cached reads it affects before the
response goes out, so the client that made the change sees it on its
next read.  Which keys are affected is decided by the Resource passed to
`cache_invalidator.invalidate_resource`; handlers never name patterns.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel

from shortnews.repos.content_repo import content_repo
from shortnews.services import content_service
from shortnews.services.cache import cache_invalidator
from shortnews.services.cache_policy import Resource
from shortnews.services.content_service import (
    ContentAlreadyExistsError,
    ContentNotFoundError,
    ContentValidationError,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])


class NewsIn(BaseModel):
    title: str
    content: str
    category: str
    author: str
    location: str | None = None
    media_url: str | None = None
    media_type: str = "image"
    thumbnail_url: str | None = None
    read_full_link: str | None = None
    epaper_link: str | None = None


class NewsPatch(BaseModel):
    title: str | None = None
    content: str | None = None
    category: str | None = None
    author: str | None = None
    location: str | None = None
    media_url: str | None = None
    media_type: str | None = None
    thumbnail_url: str | None = None
    is_active: bool | None = None
    read_full_link: str | None = None
    epaper_link: str | None = None


class CategoryIn(BaseModel):
    name: str
    description: str = ""


class LocationIn(BaseModel):
    name: str
    state: str | None = None


class AdIn(BaseModel):
    title: str
    content: str | None = None
    image_urls: list[str] = []
    link_url: str | None = None
    position_interval: int = 3
    max_views_per_day: int = 3
    cooldown_period_hours: int = 24
    frequency_control_enabled: bool = True
    user_behavior_tracking_enabled: bool = True


class ViralVideoIn(BaseModel):
    title: str
    category: str
    author: str
    content: str | None = None
    video_url: str | None = None
    media_url: str | None = None
    thumbnail_url: str | None = None


def _bad_request(exc: ContentValidationError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


def _not_found(what: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{what} not found")


# --- news ------------------------------------------------------------------


@router.post("/news", status_code=status.HTTP_201_CREATED)
async def create_news(body: NewsIn) -> dict[str, Any]:
    try:
        news = content_service.create_news(content_repo, **body.model_dump())
    except ContentValidationError as e:
        raise _bad_request(e) from None
    await cache_invalidator.invalidate_resource(Resource.NEWS)
    return news.to_public()


@router.put("/news/{news_id}")
async def update_news(news_id: str, body: NewsPatch) -> dict[str, Any]:
    try:
        news = content_service.update_news(content_repo, news_id, **body.model_dump())
    except ContentValidationError as e:
        raise _bad_request(e) from None
    except ContentNotFoundError:
        raise _not_found("News") from None
    await cache_invalidator.invalidate_resource(Resource.NEWS)
    return news.to_public()


@router.delete("/news/{news_id}")
async def delete_news(news_id: str) -> dict[str, Any]:
    try:
        content_service.delete_news(content_repo, news_id)
    except ContentNotFoundError:
        raise _not_found("News") from None
    await cache_invalidator.invalidate_resource(Resource.NEWS)
    return {"success": True, "id": news_id}


# --- categories / locations ------------------------------------------------


@router.post("/categories", status_code=status.HTTP_201_CREATED)
async def create_category(body: CategoryIn) -> dict[str, Any]:
    try:
        category = content_service.create_category(
            content_repo, name=body.name, description=body.description
        )
    except ContentValidationError as e:
        raise _bad_request(e) from None
    except ContentAlreadyExistsError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="Category already exists"
        ) from None
    await cache_invalidator.invalidate_resource(Resource.CATEGORY)
    return {"name": category.name, "description": category.description}


@router.delete("/categories/{name}")
async def delete_category(name: str) -> dict[str, Any]:
    try:
        content_service.delete_category(content_repo, name)
    except ContentNotFoundError:
        raise _not_found("Category") from None
    await cache_invalidator.invalidate_resource(Resource.CATEGORY)
    return {"success": True, "name": name}


@router.post("/locations", status_code=status.HTTP_201_CREATED)
async def create_location(body: LocationIn) -> dict[str, Any]:
    try:
        location = content_service.create_location(
            content_repo, name=body.name, state=body.state
        )
    except ContentValidationError as e:
        raise _bad_request(e) from None
    except ContentAlreadyExistsError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="Location already exists"
        ) from None
    await cache_invalidator.invalidate_resource(Resource.LOCATION)
    return {"name": location.name, "state": location.state}


# --- ads / viral videos ----------------------------------------------------


@router.post("/ads", status_code=status.HTTP_201_CREATED)
async def create_ad(body: AdIn) -> dict[str, Any]:
    try:
        ad = content_service.create_ad(content_repo, **body.model_dump())
    except ContentValidationError as e:
        raise _bad_request(e) from None
    await cache_invalidator.invalidate_resource(Resource.AD)
    return ad.to_public()


@router.delete("/ads/{ad_id}")
async def delete_ad(ad_id: str) -> dict[str, Any]:
    try:
        content_service.delete_ad(content_repo, ad_id)
    except ContentNotFoundError:
        raise _not_found("Ad") from None
    await cache_invalidator.invalidate_resource(Resource.AD)
    return {"success": True, "id": ad_id}


@router.post("/viral-videos", status_code=status.HTTP_201_CREATED)
async def create_viral_video(body: ViralVideoIn) -> dict[str, Any]:
    try:
        video = content_service.create_viral_video(content_repo, **body.model_dump())
    except ContentValidationError as e:
        raise _bad_request(e) from None
    await cache_invalidator.invalidate_resource(Resource.VIRAL_VIDEO)
    return video.to_public()


@router.delete("/viral-videos/{video_id}")
async def delete_viral_video(video_id: str) -> dict[str, Any]:
    try:
        content_service.delete_viral_video(content_repo, video_id)
    except ContentNotFoundError:
        raise _not_found("Viral video") from None
    await cache_invalidator.invalidate_resource(Resource.VIRAL_VIDEO)
    return {"success": True, "id": video_id}
