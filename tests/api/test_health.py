from __future__ import annotations

from fastapi.testclient import TestClient

from shortnews.services.cache import cache_store
from shortnews.services.cache_store import ConnectionState


def test_health_returns_ok(client: TestClient) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert data["checks"]["redis"] == "not_configured"
    assert data["checks"]["cache"] == "ready"


def test_health_reports_cache_state(client: TestClient) -> None:
    cache_store.state = ConnectionState.ERROR
    assert client.get("/health").json()["checks"]["cache"] == "error"


def test_ready(client: TestClient) -> None:
    assert client.get("/ready").status_code == 200
