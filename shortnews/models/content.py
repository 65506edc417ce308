from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import Any
from uuid import uuid4

PLACEHOLDER_IMAGE = "/images/placeholder.png"


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


def _new_id() -> str:
    return uuid4().hex


@dataclass(frozen=True, slots=True)
class News:
    id: str
    title: str
    content: str
    category: str
    author: str
    location: str | None = None
    media_url: str | None = None
    media_type: str = "image"  # image|video
    thumbnail_url: str | None = None
    published_at: datetime.datetime = field(default_factory=_utcnow)
    likes: int = 0
    dislikes: int = 0
    comments: int = 0
    views: int = 0
    is_active: bool = True
    read_full_link: str | None = None
    epaper_link: str | None = None

    @staticmethod
    def new(
        *,
        title: str,
        content: str,
        category: str,
        author: str,
        **extra: Any,
    ) -> News:
        return News(
            id=_new_id(),
            title=title,
            content=content,
            category=category,
            author=author,
            **extra,
        )

    def to_public(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "imageUrl": self.thumbnail_url or self.media_url or PLACEHOLDER_IMAGE,
            "mediaUrl": self.media_url or PLACEHOLDER_IMAGE,
            "mediaType": self.media_type,
            "category": self.category,
            "location": self.location,
            "publishedAt": self.published_at.isoformat(),
            "likes": self.likes,
            "dislikes": self.dislikes,
            "comments": self.comments,
            "author": self.author,
            "readFullLink": self.read_full_link,
            "ePaperLink": self.epaper_link,
        }


@dataclass(frozen=True, slots=True)
class Category:
    name: str
    description: str = ""
    is_active: bool = True


@dataclass(frozen=True, slots=True)
class Location:
    name: str
    state: str | None = None


@dataclass(frozen=True, slots=True)
class Ad:
    """Sponsored card shown between news items.

    The frequency-control fields are stored and returned to clients as-is;
    the API does not enforce them.
    """

    id: str
    title: str
    content: str | None = None
    image_urls: tuple[str, ...] = ()
    link_url: str | None = None
    position_interval: int = 3
    max_views_per_day: int = 3
    cooldown_period_hours: int = 24
    frequency_control_enabled: bool = True
    user_behavior_tracking_enabled: bool = True
    is_active: bool = True
    created_at: datetime.datetime = field(default_factory=_utcnow)

    @staticmethod
    def new(*, title: str, **extra: Any) -> Ad:
        if "image_urls" in extra:
            extra["image_urls"] = tuple(extra["image_urls"])
        return Ad(id=_new_id(), title=title, **extra)

    def to_public(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "imageUrl": self.image_urls[0] if self.image_urls else PLACEHOLDER_IMAGE,
            "imageUrls": list(self.image_urls),
            "linkUrl": self.link_url,
            "positionInterval": self.position_interval,
            "maxViewsPerDay": self.max_views_per_day,
            "cooldownPeriodHours": self.cooldown_period_hours,
            "frequencyControlEnabled": self.frequency_control_enabled,
            "userBehaviorTrackingEnabled": self.user_behavior_tracking_enabled,
            "createdAt": self.created_at.isoformat(),
        }


@dataclass(frozen=True, slots=True)
class ViralVideo:
    id: str
    title: str
    category: str
    author: str
    content: str | None = None
    video_url: str | None = None
    media_url: str | None = None
    thumbnail_url: str | None = None
    published_at: datetime.datetime = field(default_factory=_utcnow)
    views: int = 0
    likes: int = 0
    is_active: bool = True

    @staticmethod
    def new(*, title: str, category: str, author: str, **extra: Any) -> ViralVideo:
        return ViralVideo(
            id=_new_id(), title=title, category=category, author=author, **extra
        )

    def to_public(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "videoUrl": self.video_url,
            "mediaUrl": self.media_url,
            "thumbnailUrl": self.thumbnail_url or PLACEHOLDER_IMAGE,
            "category": self.category,
            "publishedAt": self.published_at.isoformat(),
            "views": self.views,
            "likes": self.likes,
            "author": self.author,
        }
