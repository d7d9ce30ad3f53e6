"""
tests/conftest.py -- Shared test fixtures for Quill.

This module provides:
  - make_settings(): Settings with a fixed secret and test-friendly hosts
  - engine / user_store / post_store / post_service: unit-level fixtures on
    a fresh in-memory SQLite database per test
  - api_client: TestClient over create_app() backed by an isolated named
    shared-memory database, one per test module
  - register(): helper that signs up a user through the API and returns
    (user_id, token)

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
for the TestClient fixtures because route handlers run in a thread pool.
Plain :memory: DBs are per-connection and would present a blank schema to
each worker thread. The named URI format
(file:name?mode=memory&cache=shared&uri=true) shares one in-memory instance
across all connections in the same process.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Generator

import pytest
from fastapi.testclient import TestClient

from api.main import create_app
from auth.models import User
from auth.store import UserStore
from core.config import Settings
from core.database import create_db_engine, init_schema
from posts.service import PostService
from posts.store import PostStore

TEST_SECRET = "quill-test-secret-key-0123456789abcdef"


def make_settings(**overrides) -> Settings:
    """Settings for tests. Explicit kwargs win over any environment variables."""
    values = {
        "secret_key": TEST_SECRET,
        "database_url": "sqlite:///:memory:",
        "allowed_hosts": ["testserver", "localhost"],
        "rate_limit_enabled": False,
    }
    values.update(overrides)
    return Settings(**values)


def shared_memory_url(label: str) -> str:
    return f"sqlite:///file:quill_{label}_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"


# ---------------------------------------------------------------------------
# Unit-level fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def settings_factory() -> Callable[..., Settings]:
    return make_settings


@pytest.fixture
def db_url_factory() -> Callable[[str], str]:
    return shared_memory_url


@pytest.fixture
def engine():
    eng = create_db_engine("sqlite:///:memory:")
    init_schema(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def user_store(engine) -> UserStore:
    return UserStore(engine)


@pytest.fixture
def post_store(engine) -> PostStore:
    return PostStore(engine)


@pytest.fixture
def post_service(post_store) -> PostService:
    return PostService(post_store)


@pytest.fixture
def make_user(user_store) -> Callable[[str], str]:
    """Insert a user directly (no bcrypt) and return its id."""

    def _make(name: str = "Author") -> str:
        email = f"{name.lower()}-{uuid.uuid4().hex[:8]}@example.com"
        return user_store.create_user(User(name=name, email=email, hashed_password="not-a-real-hash"))

    return _make


# ---------------------------------------------------------------------------
# Module-scoped API fixtures -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client() -> Generator[TestClient, None, None]:
    """Yield a TestClient over a fresh app and database.

    The context manager runs the real lifespan, so the engine and stores are
    built exactly as in production, just pointed at a private in-memory DB.
    """
    app = create_app(make_settings(database_url=shared_memory_url("api")))
    with TestClient(app, raise_server_exceptions=True) as client:
        yield client


@pytest.fixture
def register(api_client: TestClient) -> Callable[..., tuple[str, str]]:
    """Return a helper that registers a unique user and yields (user_id, token)."""

    def _register(name: str = "Writer", password: str = "s3cret-pass") -> tuple[str, str]:
        email = f"{name.lower()}-{uuid.uuid4().hex[:8]}@example.com"
        resp = api_client.post("/auth/register", json={"name": name, "email": email, "password": password})
        assert resp.status_code == 201, resp.text
        data = resp.json()["data"]
        return data["id"], data["token"]

    return _register
