"""
tests/conftest.py -- Shared test fixtures for TaskVault.

This module provides:
  - store: a fresh FakeRecordStore per test
  - client: TestClient on the real app with a patched lifespan that wires
    services built on the fake store into app.state
  - register(): helper that registers an account through the API
  - bearer(): Authorization header helper

The DEBUG env var must be set before any auth/core import so get_settings()
auto-generates SECRET_KEY in dev mode rather than raising ValueError.
Rate limiting is switched off so suites that register many accounts do not
trip LOGIN_RATE_LIMIT. tests/test_middleware.py turns it back on per test.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set before any auth/core import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.models import Identity
from auth.service import AuthService
from tasks.service import TaskService
from tests.fakes import FakeRecordStore


def _patch_lifespan(store: FakeRecordStore):
    """Return a lifespan that wires services over `store` into app.state.

    Replaces the real lifespan so no HTTP session to a real store is opened.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.store = store
        app.state.auth_service = AuthService(store)
        app.state.task_service = TaskService(store)
        yield

    return test_lifespan


@pytest.fixture
def store() -> FakeRecordStore:
    return FakeRecordStore()


@pytest.fixture
def client(store: FakeRecordStore) -> Generator[TestClient, None, None]:
    """TestClient over the real app and middleware, backed by the fake store."""
    app.router.lifespan_context = _patch_lifespan(store)
    with TestClient(app, raise_server_exceptions=True) as test_client:
        yield test_client


@pytest.fixture
def user_identity() -> Identity:
    return Identity(user_id=1, email="a@x.com", role="user")


@pytest.fixture
def other_identity() -> Identity:
    return Identity(user_id=2, email="b@x.com", role="user")


@pytest.fixture
def admin_identity() -> Identity:
    return Identity(user_id=99, email="root@x.com", role="admin")


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def register(client: TestClient, email: str, password: str = "secret1", role: str | None = None) -> tuple[str, dict]:
    """Register through the API and return (token, public user dict)."""
    body = {"email": email, "password": password}
    if role is not None:
        body["role"] = role
    resp = client.post("/api/auth/register", json=body)
    assert resp.status_code == 201, resp.text
    data = resp.json()["data"]
    return data["token"], data["user"]
