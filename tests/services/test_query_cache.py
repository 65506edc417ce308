from __future__ import annotations

import asyncio

import pytest

from shortnews.services.cache_engine import CacheAside
from shortnews.services.cache_invalidation import CacheInvalidator
from shortnews.services.cache_policy import CacheTTL, query_ttl
from shortnews.services.cache_stats import CacheStats
from shortnews.services.cache_store import ConnectionState, InMemoryCacheStore
from shortnews.services.query_cache import QueryCache


@pytest.fixture
def qcache(store: InMemoryCacheStore, stats: CacheStats) -> QueryCache:
    return QueryCache(CacheAside(store, stats), CacheInvalidator(store))


def test_cache_key_ignores_argument_order() -> None:
    a = QueryCache.cache_key("news", {"page": 1, "limit": 10})
    b = QueryCache.cache_key("news", {"limit": 10, "page": 1})
    assert a == b == 'graphql:news:{"limit":10,"page":1}'


def test_set_then_get(qcache: QueryCache) -> None:
    assert asyncio.run(qcache.set_cached("news", {"page": 1}, [{"id": "1"}])) is True
    assert asyncio.run(qcache.get_cached("news", {"page": 1})) == [{"id": "1"}]
    assert asyncio.run(qcache.get_cached("news", {"page": 2})) is None


def test_set_uses_operation_ttl(qcache: QueryCache, store: InMemoryCacheStore) -> None:
    asyncio.run(qcache.set_cached("categories", None, []))
    asyncio.run(qcache.set_cached("ads", None, [], ttl=42))
    ttls = dict(asyncio.run(store.keys_with_ttl("graphql:*")))
    assert ttls["graphql:categories:{}"] == CacheTTL.REFERENCE
    assert ttls["graphql:ads:{}"] == 42


def test_resolve_runs_resolver_once(qcache: QueryCache) -> None:
    calls = []

    def resolver():
        calls.append(1)
        return {"id": "abc"}

    for _ in range(2):
        assert asyncio.run(qcache.resolve("newsById", {"id": "abc"}, resolver)) == {"id": "abc"}
    assert len(calls) == 1


def test_resolve_with_bypass_does_not_store(
    qcache: QueryCache, store: InMemoryCacheStore
) -> None:
    asyncio.run(qcache.resolve("ads", {}, lambda: [], bypass=True))
    assert asyncio.run(store.count_keys()) == 0


def test_invalidate_for_id_only_touches_that_item(
    qcache: QueryCache, store: InMemoryCacheStore
) -> None:
    asyncio.run(qcache.set_cached("newsById", {"id": "abc"}, {}))
    asyncio.run(qcache.set_cached("newsById", {"id": "xyz"}, {}))

    assert asyncio.run(qcache.invalidate_for_id("newsById", "abc")) == 1
    assert asyncio.run(qcache.get_cached("newsById", {"id": "abc"})) is None
    assert asyncio.run(qcache.get_cached("newsById", {"id": "xyz"})) == {}


def test_invalidate_for_id_escapes_glob_characters(qcache: QueryCache) -> None:
    asyncio.run(qcache.set_cached("newsById", {"id": "abc"}, {}))
    assert asyncio.run(qcache.invalidate_for_id("newsById", "*")) == 0


def test_invalidate_namespace(qcache: QueryCache) -> None:
    asyncio.run(qcache.set_cached("news", {"page": 1}, []))
    asyncio.run(qcache.set_cached("news", {"page": 2}, []))
    assert asyncio.run(qcache.invalidate("graphql:news:*")) == 2


def test_unavailable_store_reads_none_writes_false(
    qcache: QueryCache, store: InMemoryCacheStore
) -> None:
    store.state = ConnectionState.ERROR
    assert asyncio.run(qcache.get_cached("news")) is None
    assert asyncio.run(qcache.set_cached("news", None, [])) is False


def test_unknown_operation_falls_back_to_listing_ttl() -> None:
    assert query_ttl("somethingNew") == CacheTTL.LISTING
    assert query_ttl("locations") == CacheTTL.REFERENCE
