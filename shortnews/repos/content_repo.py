from __future__ import annotations

from dataclasses import replace
from typing import Any, Protocol

from shortnews.models.content import Ad, Category, Location, News, ViralVideo


class ContentRepo(Protocol):
    def list_news(
        self,
        *,
        media_type: str | None = None,
        category: str | None = None,
        location: str | None = None,
    ) -> list[News]: ...
    def get_news(self, news_id: str) -> News | None: ...
    def add_news(self, news: News) -> None: ...
    def update_news(self, news_id: str, **changes: Any) -> News | None: ...
    def delete_news(self, news_id: str) -> bool: ...

    def list_categories(self) -> list[Category]: ...
    def add_category(self, category: Category) -> None: ...
    def delete_category(self, name: str) -> bool: ...

    def list_locations(self) -> list[Location]: ...
    def add_location(self, location: Location) -> None: ...

    def list_ads(self) -> list[Ad]: ...
    def get_ad(self, ad_id: str) -> Ad | None: ...
    def add_ad(self, ad: Ad) -> None: ...
    def delete_ad(self, ad_id: str) -> bool: ...

    def list_viral_videos(self) -> list[ViralVideo]: ...
    def get_viral_video(self, video_id: str) -> ViralVideo | None: ...
    def add_viral_video(self, video: ViralVideo) -> None: ...
    def delete_viral_video(self, video_id: str) -> bool: ...


class InMemoryContentRepo:
    """Active-only listings, newest first.  Inactive rows stay retrievable by id
    for admin writes but never appear in public lists."""

    def __init__(self) -> None:
        self._news: dict[str, News] = {}
        self._categories: dict[str, Category] = {}
        self._locations: dict[str, Location] = {}
        self._ads: dict[str, Ad] = {}
        self._videos: dict[str, ViralVideo] = {}

    def clear(self) -> None:
        self._news.clear()
        self._categories.clear()
        self._locations.clear()
        self._ads.clear()
        self._videos.clear()

    # -- news ---------------------------------------------------------------

    def list_news(
        self,
        *,
        media_type: str | None = None,
        category: str | None = None,
        location: str | None = None,
    ) -> list[News]:
        items = [
            n
            for n in self._news.values()
            if n.is_active
            and (media_type is None or n.media_type == media_type)
            and (category is None or n.category == category)
            and (location is None or n.location == location)
        ]
        return sorted(items, key=lambda n: n.published_at, reverse=True)

    def get_news(self, news_id: str) -> News | None:
        return self._news.get(news_id)

    def add_news(self, news: News) -> None:
        if news.id in self._news:
            raise ValueError("news id already exists")
        self._news[news.id] = news

    def update_news(self, news_id: str, **changes: Any) -> News | None:
        n = self._news.get(news_id)
        if n is None:
            return None
        updated = replace(n, **changes)
        self._news[news_id] = updated
        return updated

    def delete_news(self, news_id: str) -> bool:
        return self._news.pop(news_id, None) is not None

    # -- categories / locations --------------------------------------------

    def list_categories(self) -> list[Category]:
        return sorted(
            (c for c in self._categories.values() if c.is_active),
            key=lambda c: c.name,
        )

    def add_category(self, category: Category) -> None:
        if category.name in self._categories:
            raise ValueError("category already exists")
        self._categories[category.name] = category

    def delete_category(self, name: str) -> bool:
        return self._categories.pop(name, None) is not None

    def list_locations(self) -> list[Location]:
        return sorted(self._locations.values(), key=lambda loc: loc.name)

    def add_location(self, location: Location) -> None:
        if location.name in self._locations:
            raise ValueError("location already exists")
        self._locations[location.name] = location

    # -- ads / viral videos --------------------------------------------------

    def list_ads(self) -> list[Ad]:
        return sorted(
            (a for a in self._ads.values() if a.is_active),
            key=lambda a: a.created_at,
            reverse=True,
        )

    def get_ad(self, ad_id: str) -> Ad | None:
        return self._ads.get(ad_id)

    def add_ad(self, ad: Ad) -> None:
        self._ads[ad.id] = ad

    def delete_ad(self, ad_id: str) -> bool:
        return self._ads.pop(ad_id, None) is not None

    def list_viral_videos(self) -> list[ViralVideo]:
        return sorted(
            (v for v in self._videos.values() if v.is_active),
            key=lambda v: v.published_at,
            reverse=True,
        )

    def get_viral_video(self, video_id: str) -> ViralVideo | None:
        return self._videos.get(video_id)

    def add_viral_video(self, video: ViralVideo) -> None:
        self._videos[video.id] = video

    def delete_viral_video(self, video_id: str) -> bool:
        return self._videos.pop(video_id, None) is not None


def seed_sample_content(repo: InMemoryContentRepo) -> None:
    """Load the demo dataset used when no database is configured."""
    for name, description in (
        ("Politics", "National and state politics"),
        ("Sports", "Scores and match reports"),
        ("Technology", "Gadgets, apps and startups"),
    ):
        repo.add_category(Category(name=name, description=description))

    for name, state in (("Hyderabad", "Telangana"), ("Vijayawada", "Andhra Pradesh")):
        repo.add_location(Location(name=name, state=state))

    repo.add_news(
        News.new(
            title="City metro extends late-night service",
            content="Trains will run until 1 a.m. on weekends starting next month.",
            category="Politics",
            author="Desk",
            location="Hyderabad",
        )
    )
    repo.add_news(
        News.new(
            title="Local club wins state cricket final",
            content="A last-over six sealed the title in front of a packed stadium.",
            category="Sports",
            author="Desk",
            location="Vijayawada",
            media_type="video",
            media_url="/uploads/final-highlights.mp4",
        )
    )
    repo.add_ad(
        Ad.new(
            title="Festival sale",
            content="Up to 50% off electronics this week.",
            image_urls=["/uploads/ads/festival.png"],
            link_url="https://example.com/sale",
        )
    )


content_repo = InMemoryContentRepo()
seed_sample_content(content_repo)
