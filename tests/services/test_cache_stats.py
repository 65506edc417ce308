from __future__ import annotations

import asyncio

from prometheus_client import REGISTRY

from shortnews.services.cache_stats import CacheStats
from shortnews.services.cache_store import ConnectionState, InMemoryCacheStore
from tests.conftest import FakeClock


def _ops(operation: str) -> float:
    value = REGISTRY.get_sample_value("cache_operations_total", {"operation": operation})
    return value or 0.0


def test_hit_rate_is_zero_without_traffic(stats: CacheStats) -> None:
    assert stats.hit_rate == 0.0


def test_hit_rate_after_one_hit_one_miss(stats: CacheStats) -> None:
    stats.record_hit()
    stats.record_miss()
    assert stats.hit_rate == 0.5


def test_hit_rate_is_rounded(stats: CacheStats) -> None:
    stats.record_hit()
    stats.record_miss()
    stats.record_miss()
    assert stats.hit_rate == 0.3333


def test_counters_mirror_into_prometheus(stats: CacheStats) -> None:
    hits, misses = _ops("hit"), _ops("miss")
    stats.record_hit()
    stats.record_miss()
    stats.record_miss()
    assert _ops("hit") - hits == 1
    assert _ops("miss") - misses == 2


def test_reset_zeroes_counters_and_moves_last_reset(stats: CacheStats) -> None:
    before = stats.last_reset
    stats.record_hit()
    stats.record_error(RuntimeError("x"))
    stats.reset()
    assert (stats.hits, stats.misses, stats.errors) == (0, 0, 0)
    assert stats.last_reset >= before


def test_snapshot_shape(stats: CacheStats, store: InMemoryCacheStore) -> None:
    asyncio.run(store.set_with_ttl("cache:/a", 1, 60))
    stats.record_hit()

    snap = asyncio.run(stats.snapshot(store))

    assert snap["available"] is True
    assert snap["hits"] == 1
    assert snap["misses"] == 0
    assert snap["hitRate"] == 1.0
    assert snap["totalKeys"] == 1
    assert snap["errors"] == 0
    assert "lastReset" in snap
    assert snap["uptime"] >= 0
    assert snap["memory"] == {"backend": "memory", "entries": 1}


def test_snapshot_when_store_is_down(stats: CacheStats, store: InMemoryCacheStore) -> None:
    store.state = ConnectionState.ERROR
    snap = asyncio.run(stats.snapshot(store))
    assert snap["available"] is False
    assert snap["totalKeys"] == 0
    assert snap["memory"] is None


def test_uptime_counts_from_creation_and_survives_reset() -> None:
    clock = FakeClock()
    stats = CacheStats(clock=clock)
    clock.advance(90.7)
    stats.reset()
    assert stats.uptime == 90
