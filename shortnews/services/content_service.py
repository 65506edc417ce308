"""Public payload builders and write helpers shared by the REST routes,
the /graphql resolvers and the cache warmer.

Readers get plain JSON-ready dicts so that the same payload is produced
whichever surface rendered it.  Writers raise the errors below and leave
cache invalidation to the caller.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Any

from shortnews.models.content import Ad, Category, Location, News, ViralVideo
from shortnews.repos.content_repo import ContentRepo

logger = logging.getLogger(__name__)

MEDIA_TYPES = ("image", "video")


class ContentValidationError(ValueError):
    pass


class ContentNotFoundError(LookupError):
    pass


class ContentAlreadyExistsError(Exception):
    pass


# ---------------------------------------------------------------------------
# Readers
# ---------------------------------------------------------------------------


def public_news(
    repo: ContentRepo,
    *,
    media_type: str | None = None,
    category: str | None = None,
    location: str | None = None,
) -> list[dict[str, Any]]:
    items = repo.list_news(media_type=media_type, category=category, location=location)
    return [n.to_public() for n in items]


def public_news_item(repo: ContentRepo, news_id: str) -> dict[str, Any] | None:
    n = repo.get_news(news_id)
    if n is None or not n.is_active:
        return None
    return n.to_public()


def public_categories(repo: ContentRepo) -> list[dict[str, Any]]:
    counts = Counter(n.category for n in repo.list_news())
    return [
        {"name": c.name, "description": c.description, "newsCount": counts[c.name]}
        for c in repo.list_categories()
    ]


def public_locations(repo: ContentRepo) -> list[dict[str, Any]]:
    counts = Counter(n.location for n in repo.list_news() if n.location)
    return [
        {"name": loc.name, "state": loc.state, "newsCount": counts[loc.name]}
        for loc in repo.list_locations()
    ]


def public_ads(repo: ContentRepo) -> list[dict[str, Any]]:
    return [a.to_public() for a in repo.list_ads()]


def public_ad(repo: ContentRepo, ad_id: str) -> dict[str, Any] | None:
    a = repo.get_ad(ad_id)
    if a is None or not a.is_active:
        return None
    return a.to_public()


def public_viral_videos(repo: ContentRepo) -> list[dict[str, Any]]:
    return [v.to_public() for v in repo.list_viral_videos()]


def public_viral_video(repo: ContentRepo, video_id: str) -> dict[str, Any] | None:
    v = repo.get_viral_video(video_id)
    if v is None or not v.is_active:
        return None
    return v.to_public()


# ---------------------------------------------------------------------------
# Writers
# ---------------------------------------------------------------------------


def _require_text(value: str, field: str) -> str:
    value = value.strip()
    if not value:
        logger.warning("Rejected blank %s", field)
        raise ContentValidationError(f"{field} must be non-empty")
    return value


def _check_media_type(media_type: str) -> None:
    if media_type not in MEDIA_TYPES:
        raise ContentValidationError(
            f"mediaType must be one of {', '.join(MEDIA_TYPES)}"
        )


def create_news(repo: ContentRepo, *, title: str, content: str, category: str,
                author: str, **extra: Any) -> News:
    _check_media_type(extra.get("media_type", "image"))
    news = News.new(
        title=_require_text(title, "title"),
        content=_require_text(content, "content"),
        category=_require_text(category, "category"),
        author=_require_text(author, "author"),
        **extra,
    )
    repo.add_news(news)
    logger.info("Created news id=%s category=%s", news.id, news.category)
    return news


def update_news(repo: ContentRepo, news_id: str, **changes: Any) -> News:
    changes = {k: v for k, v in changes.items() if v is not None}
    for field in ("title", "content", "category", "author"):
        if field in changes:
            changes[field] = _require_text(changes[field], field)
    if "media_type" in changes:
        _check_media_type(changes["media_type"])

    updated = repo.update_news(news_id, **changes)
    if updated is None:
        raise ContentNotFoundError(news_id)
    logger.info("Updated news id=%s fields=%s", news_id, sorted(changes))
    return updated


def delete_news(repo: ContentRepo, news_id: str) -> None:
    if not repo.delete_news(news_id):
        raise ContentNotFoundError(news_id)
    logger.info("Deleted news id=%s", news_id)


def create_category(repo: ContentRepo, *, name: str, description: str = "") -> Category:
    category = Category(name=_require_text(name, "name"), description=description)
    try:
        repo.add_category(category)
    except ValueError:
        logger.warning("Rejected duplicate category=%s", category.name)
        raise ContentAlreadyExistsError(category.name) from None
    logger.info("Created category=%s", category.name)
    return category


def delete_category(repo: ContentRepo, name: str) -> None:
    if not repo.delete_category(name):
        raise ContentNotFoundError(name)
    logger.info("Deleted category=%s", name)


def create_location(repo: ContentRepo, *, name: str, state: str | None = None) -> Location:
    location = Location(name=_require_text(name, "name"), state=state)
    try:
        repo.add_location(location)
    except ValueError:
        logger.warning("Rejected duplicate location=%s", location.name)
        raise ContentAlreadyExistsError(location.name) from None
    logger.info("Created location=%s", location.name)
    return location


def create_ad(repo: ContentRepo, *, title: str, **extra: Any) -> Ad:
    ad = Ad.new(title=_require_text(title, "title"), **extra)
    repo.add_ad(ad)
    logger.info("Created ad id=%s", ad.id)
    return ad


def delete_ad(repo: ContentRepo, ad_id: str) -> None:
    if not repo.delete_ad(ad_id):
        raise ContentNotFoundError(ad_id)
    logger.info("Deleted ad id=%s", ad_id)


def create_viral_video(repo: ContentRepo, *, title: str, category: str, author: str,
                       **extra: Any) -> ViralVideo:
    video = ViralVideo.new(
        title=_require_text(title, "title"),
        category=_require_text(category, "category"),
        author=_require_text(author, "author"),
        **extra,
    )
    repo.add_viral_video(video)
    logger.info("Created viral video id=%s", video.id)
    return video


def delete_viral_video(repo: ContentRepo, video_id: str) -> None:
    if not repo.delete_viral_video(video_id):
        raise ContentNotFoundError(video_id)
    logger.info("Deleted viral video id=%s", video_id)
