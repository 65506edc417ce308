from __future__ import annotations

import asyncio

import pytest

from shortnews.services.cache_engine import CacheAside, WarmEntry
from shortnews.services.cache_stats import CacheStats
from shortnews.services.cache_store import (
    CacheSerializationError,
    ConnectionState,
    InMemoryCacheStore,
)
from tests.conftest import FakeClock


class CountingLoader:
    def __init__(self, value) -> None:
        self.value = value
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return self.value


def _explode():
    raise AssertionError("loader must not run on a hit")


@pytest.fixture
def engine(store: InMemoryCacheStore, stats: CacheStats) -> CacheAside:
    return CacheAside(store, stats)


def test_miss_runs_loader_once_and_stores(
    engine: CacheAside, store: InMemoryCacheStore, stats: CacheStats
) -> None:
    loader = CountingLoader([{"id": "1"}])

    first = asyncio.run(engine.read_through("k", 300, loader))
    second = asyncio.run(engine.read_through("k", 300, loader))

    assert first == second == [{"id": "1"}]
    assert loader.calls == 1
    assert (stats.misses, stats.hits) == (1, 1)
    assert asyncio.run(store.get("k")) is not None


def test_hit_never_invokes_loader(engine: CacheAside, store: InMemoryCacheStore) -> None:
    asyncio.run(store.set_with_ttl("k", {"cached": True}, 300))
    assert asyncio.run(engine.read_through("k", 300, _explode)) == {"cached": True}


def test_async_loader_is_awaited(engine: CacheAside) -> None:
    async def load() -> dict:
        return {"async": True}

    assert asyncio.run(engine.read_through("k", 300, load)) == {"async": True}


def test_expired_or_removed_key_reloads(
    engine: CacheAside, store: InMemoryCacheStore, clock: FakeClock
) -> None:
    loader = CountingLoader(1)
    asyncio.run(engine.read_through("k", 10, loader))

    clock.advance(11)
    asyncio.run(engine.read_through("k", 10, loader))
    assert loader.calls == 2

    asyncio.run(store.delete_by_pattern("k"))
    asyncio.run(engine.read_through("k", 10, loader))
    assert loader.calls == 3


def test_unavailable_store_always_loads_without_stats(
    engine: CacheAside, store: InMemoryCacheStore, stats: CacheStats
) -> None:
    store.state = ConnectionState.ERROR
    loader = CountingLoader("fresh")

    for _ in range(3):
        assert asyncio.run(engine.read_through("k", 300, loader)) == "fresh"

    assert loader.calls == 3
    assert (stats.hits, stats.misses) == (0, 0)


def test_bypass_skips_read_and_write(
    engine: CacheAside, store: InMemoryCacheStore, stats: CacheStats
) -> None:
    asyncio.run(store.set_with_ttl("k", "old", 300))
    loader = CountingLoader("new")

    assert asyncio.run(engine.read_through("k", 60, loader, bypass=True)) == "new"
    assert asyncio.run(store.get("k")) == '"old"'
    assert (stats.hits, stats.misses) == (0, 0)


def test_loader_exception_propagates_and_nothing_is_stored(
    engine: CacheAside, store: InMemoryCacheStore
) -> None:
    def broken():
        raise RuntimeError("db down")

    with pytest.raises(RuntimeError, match="db down"):
        asyncio.run(engine.read_through("k", 300, broken))
    assert asyncio.run(store.count_keys()) == 0


def test_unserializable_result_raises(engine: CacheAside) -> None:
    with pytest.raises(CacheSerializationError):
        asyncio.run(engine.read_through("k", 300, lambda: {1, 2}))


def test_refused_write_reports_through_callback(stats: CacheStats) -> None:
    class RefusingStore(InMemoryCacheStore):
        async def set_with_ttl(self, key, value, ttl_seconds):
            return False

    failures: list[tuple[str, int]] = []
    engine = CacheAside(
        RefusingStore(), stats, on_write_failure=lambda k, t: failures.append((k, t))
    )

    assert asyncio.run(engine.read_through("k", 300, lambda: 1)) == 1
    assert failures == [("k", 300)]


def test_warm_stores_every_entry(engine: CacheAside, store: InMemoryCacheStore) -> None:
    entries = [WarmEntry("a", [1], 300), WarmEntry("b", b'{"x":1}', 1800)]
    assert asyncio.run(engine.warm(lambda: entries)) == 2
    assert asyncio.run(store.get("b")) == '{"x":1}'


def test_warm_is_skipped_when_unavailable(
    engine: CacheAside, store: InMemoryCacheStore
) -> None:
    store.state = ConnectionState.ERROR
    assert asyncio.run(engine.warm(_explode)) == 0
