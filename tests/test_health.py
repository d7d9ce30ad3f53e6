"""
tests/test_health.py -- Integration tests for GET /health and the envelope
on framework-level errors.
"""

from __future__ import annotations

import inspect


def test_health_returns_200_with_components(api_client):
    """Health endpoint returns 200 with status, version, and components."""
    resp = api_client.get("/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    data = body["data"]
    assert data["status"] == "healthy"
    assert "version" in data
    assert data["components"] == {"app": "ok", "database": "ok"}


def test_health_no_auth_required(api_client):
    resp = api_client.get("/health", headers={})
    assert resp.status_code == 200


def test_unknown_route_uses_envelope(api_client):
    resp = api_client.get("/no-such-route")
    assert resp.status_code == 404
    assert resp.json()["success"] is False


def test_wrong_method_uses_envelope(api_client):
    resp = api_client.patch("/posts")
    assert resp.status_code == 405
    assert resp.json()["success"] is False


def test_untrusted_host_rejected(api_client):
    resp = api_client.get("/health", headers={"Host": "evil.example.com"})
    assert resp.status_code == 400


def test_health_runs_in_threadpool(api_client):
    """The database probe blocks, so the endpoint must be a plain def."""
    route = next(r for r in api_client.app.routes if getattr(r, "path", None) == "/health")
    assert not inspect.iscoroutinefunction(route.endpoint)


def test_health_degraded_when_database_down(api_client, monkeypatch):
    monkeypatch.setattr("api.main.check_database", lambda engine: False)
    resp = api_client.get("/health")
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["status"] == "degraded"
    assert data["components"] == {"app": "ok", "database": "error"}
