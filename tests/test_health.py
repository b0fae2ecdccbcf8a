"""
tests/test_health.py -- Integration tests for GET / and GET /health.

Covers:
  - Welcome text on /
  - 200 response with status, version, and components fields
  - components.database reports 'ok' against the test DB
  - No authentication required
"""

from __future__ import annotations


def test_welcome_message(api_client):
    resp = api_client.get("/")
    assert resp.status_code == 200
    assert resp.text == "Welcome to Datify API!💖"


def test_health_returns_200_with_components(api_client):
    """Health endpoint returns 200 with status, version, and components."""
    resp = api_client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert "version" in data
    assert data["components"]["app"] == "ok"
    assert data["components"]["database"] == "ok"


def test_health_no_auth_required(api_client):
    """Health endpoint is accessible without any authentication headers."""
    resp = api_client.get("/health", headers={})
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"
