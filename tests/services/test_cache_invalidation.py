from __future__ import annotations

import asyncio

import pytest
from prometheus_client import REGISTRY

from shortnews.services.cache_invalidation import CacheInvalidator
from shortnews.services.cache_policy import INVALIDATION_PATTERNS, Resource
from shortnews.services.cache_store import ConnectionState, InMemoryCacheStore

_KEYS = (
    "cache:/api/public/news",
    "cache:/api/public/news?mediaType=video",
    "cache:/api/public/news/category/Sports",
    "cache:/api/public/locations",
    "cache:/api/public/categories",
    "cache:/api/public/ads",
    "cache:/api/public/viral-videos",
    'graphql:news:{"page":1}',
    'graphql:newsById:{"id":"abc"}',
    "graphql:ads:{}",
)


def _seed(store: InMemoryCacheStore) -> None:
    for key in _KEYS:
        asyncio.run(store.set_with_ttl(key, [], 300))


def _remaining(store: InMemoryCacheStore) -> set[str]:
    return {k for k, _ in asyncio.run(store.keys_with_ttl("*"))}


@pytest.fixture
def invalidator(store: InMemoryCacheStore) -> CacheInvalidator:
    _seed(store)
    return CacheInvalidator(store)


def test_news_pattern_keeps_locations(
    invalidator: CacheInvalidator, store: InMemoryCacheStore
) -> None:
    deleted = asyncio.run(invalidator.clear_by_pattern("cache:/api/public/news*"))
    assert deleted == 3
    remaining = _remaining(store)
    assert "cache:/api/public/news" not in remaining
    assert "cache:/api/public/locations" in remaining


def test_zero_matches_returns_zero(invalidator: CacheInvalidator) -> None:
    assert asyncio.run(invalidator.clear_by_pattern("cache:/nope*")) == 0


def test_invalidate_news_resource(
    invalidator: CacheInvalidator, store: InMemoryCacheStore
) -> None:
    before = REGISTRY.get_sample_value(
        "cache_invalidated_keys_total", {"resource": "news"}
    ) or 0.0

    deleted = asyncio.run(invalidator.invalidate_resource(Resource.NEWS))

    assert deleted == 7
    assert _remaining(store) == {
        "cache:/api/public/ads",
        "cache:/api/public/viral-videos",
        "graphql:ads:{}",
    }
    after = REGISTRY.get_sample_value("cache_invalidated_keys_total", {"resource": "news"})
    assert after - before == 7


def test_invalidate_ad_resource_leaves_news(
    invalidator: CacheInvalidator, store: InMemoryCacheStore
) -> None:
    assert asyncio.run(invalidator.invalidate_resource(Resource.AD)) == 2
    assert "cache:/api/public/news" in _remaining(store)


def test_every_resource_has_patterns() -> None:
    for resource in Resource:
        assert INVALIDATION_PATTERNS[resource]


def test_unavailable_store_clears_nothing(
    invalidator: CacheInvalidator, store: InMemoryCacheStore
) -> None:
    store.state = ConnectionState.ERROR
    assert asyncio.run(invalidator.clear_by_pattern("*")) == 0
    assert asyncio.run(invalidator.clear_all()) is False
    store.state = ConnectionState.READY
    assert len(_remaining(store)) == len(_KEYS)


def test_clear_all(invalidator: CacheInvalidator, store: InMemoryCacheStore) -> None:
    assert asyncio.run(invalidator.clear_all()) is True
    assert _remaining(store) == set()
