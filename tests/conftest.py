"""
tests/conftest.py -- Shared test fixtures for Datify unit and integration tests.

This module provides:
  - hasher / tokens / store / gateway: isolated auth components for unit tests
  - _patch_lifespan(): wires test components into app.state, bypassing real startup
  - api_client: module-scoped TestClient over the real FastAPI app

Design: Named shared-memory SQLite URIs (not plain :memory:) are required for
the TestClient because route handlers run in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker
thread. Unit-test stores are used from one thread, so :memory: is enough.

The DEBUG env var must be set before any core import so get_settings()
auto-generates a secret in dev mode rather than raising ValueError.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set DEBUG before any core import so get_settings() can
# auto-generate the secret in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.gateway import AuthGateway
from auth.passwords import PasswordHasher
from auth.ratelimit import RateLimiter
from auth.store import UserStore
from auth.tokens import TokenService

TEST_SECRET = "test-secret-key-with-at-least-32-characters"

# Minimum bcrypt cost -- keeps the suite fast; production uses 10.
TEST_ROUNDS = 4

# High enough that ordinary integration tests never trip it.
TEST_RATE_LIMIT = "1000/minute"


# ---------------------------------------------------------------------------
# Unit fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=TEST_ROUNDS)


@pytest.fixture
def tokens() -> TokenService:
    return TokenService(TEST_SECRET)


@pytest.fixture
def store() -> Generator[UserStore, None, None]:
    s = UserStore("sqlite:///:memory:")
    yield s
    s.close()


@pytest.fixture
def gateway(store: UserStore, hasher: PasswordHasher, tokens: TokenService) -> AuthGateway:
    return AuthGateway(store=store, hasher=hasher, tokens=tokens)


# ---------------------------------------------------------------------------
# Integration fixtures
# ---------------------------------------------------------------------------


def _patch_lifespan(user_store: UserStore, rate_limiter: RateLimiter):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test components into app.state so TestClient routes
    see an isolated test DB and a rate limiter the tests control.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        app.state.rate_limiter = rate_limiter
        app.state.gateway = AuthGateway(
            store=user_store,
            hasher=PasswordHasher(rounds=TEST_ROUNDS),
            tokens=TokenService(TEST_SECRET),
        )
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client(request) -> Generator[TestClient, None, None]:
    """Yield a TestClient backed by a fresh named in-memory DB per test module."""
    db_name = request.module.__name__.replace(".", "_")
    user_store = UserStore(f"sqlite:///file:{db_name}?mode=memory&cache=shared&uri=true")

    app.router.lifespan_context = _patch_lifespan(user_store, RateLimiter(TEST_RATE_LIMIT))

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client

    user_store.close()
