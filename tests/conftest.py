from __future__ import annotations

import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Ensure repo root is on sys.path so `import shortnews` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from shortnews.main import app  # noqa: E402
from shortnews.repos.content_repo import content_repo, seed_sample_content  # noqa: E402
from shortnews.services.cache import cache_stats, cache_store  # noqa: E402
from shortnews.services.cache_stats import CacheStats  # noqa: E402
from shortnews.services.cache_store import ConnectionState, InMemoryCacheStore  # noqa: E402


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def reset_content() -> None:
    """Restore the sample dataset between tests."""
    content_repo.clear()
    seed_sample_content(content_repo)


@pytest.fixture(autouse=True)
def reset_cache() -> None:
    """Empty the shared cache, bring it back up and zero its stats."""
    if hasattr(cache_store, "_store"):
        cache_store._store.clear()  # type: ignore[union-attr]
    cache_store.state = ConnectionState.READY
    cache_stats.reset()


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> InMemoryCacheStore:
    return InMemoryCacheStore(clock=clock)


@pytest.fixture
def stats() -> CacheStats:
    return CacheStats()


def first_news_id(client: TestClient) -> str:
    resp = client.get("/api/public/news", headers={"X-Cache-Bypass": "1"})
    return resp.json()[0]["id"]
