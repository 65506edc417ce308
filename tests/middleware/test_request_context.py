from __future__ import annotations

import logging
import uuid

import pytest
from fastapi.testclient import TestClient


def test_request_id_generated_when_not_provided(client: TestClient) -> None:
    req_id = client.get("/health").headers.get("x-request-id")
    assert req_id is not None
    uuid.UUID(req_id)


def test_request_id_echoed_when_provided(client: TestClient) -> None:
    resp = client.get("/health", headers={"X-Request-ID": "my-request-123"})
    assert resp.headers.get("x-request-id") == "my-request-123"


def test_request_id_present_on_error_responses(client: TestClient) -> None:
    resp = client.get("/api/public/news/missing")
    assert resp.status_code == 404
    assert resp.headers.get("x-request-id") is not None


def test_summary_line_carries_cache_status(
    client: TestClient, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.INFO, logger="shortnews.middleware.request_context"):
        client.get("/api/public/locations")
        client.get("/api/public/locations")

    summaries = [
        r for r in caplog.records if r.name == "shortnews.middleware.request_context"
    ]
    assert [getattr(r, "cache_status", None) for r in summaries] == ["MISS", "HIT"]
    assert summaries[1].cache_key == "cache:/api/public/locations"  # type: ignore[attr-defined]
    assert "cache=HIT" in summaries[1].getMessage()
