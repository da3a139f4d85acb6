"""Tests for the application factory and auxiliary endpoints."""

from __future__ import annotations

from unittest.mock import MagicMock

from fastapi.testclient import TestClient

from magnetio.infrastructure.config import AppConfig
from magnetio.infrastructure.metrics import MetricsCollector
from magnetio.interfaces.app import create_app


def _client() -> TestClient:
    # No context manager: lifespan (real HTTP clients) is not started.
    app = create_app(AppConfig())
    app.state.metrics = MetricsCollector()
    app.state.provider_factory = MagicMock(return_value=[])
    return TestClient(app)


def test_healthz() -> None:
    resp = _client().get("/healthz")

    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_stats_snapshot() -> None:
    body = _client().get("/stats").json()

    assert body["resolve"]["requests"] == 0
    assert body["providers"] == {}
    assert body["background_refresh"] == {"succeeded": 0, "failed": 0}


def test_stats_not_shadowed_by_addon_routes() -> None:
    assert "uptime_seconds" in _client().get("/stats").json()


def test_manifest_served() -> None:
    resp = _client().get("/manifest.json")
    assert resp.json()["id"] == "org.Magnetio"
