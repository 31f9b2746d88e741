"""
tests/test_error_boundary.py -- The single error translator in api/main.py.

Covers:
  - ErrorKind -> HTTP status table
  - request validation failures travel as ValidationError through the
    same translator as every other AppError
  - per-error headers (Retry-After on 429)
  - store failures surface as 500 with a generic message (no resource
    detail, no cause) and are logged
  - unknown routes -> 404 "Route <path> not found"
  - unclassified exceptions -> 500 generic message, no traceback in body
"""

from __future__ import annotations

import json
import logging

import pytest
from fastapi.testclient import TestClient
from starlette.requests import Request

from api.main import _app_error_response, app
from core.errors import (
    HTTP_STATUS,
    ConflictError,
    CredentialError,
    ErrorKind,
    ForbiddenError,
    InvalidTokenError,
    NotFoundError,
    RateLimitedError,
    StoreFailureError,
    UnauthenticatedError,
    ValidationError,
)
from tests.conftest import bearer, register


@pytest.mark.parametrize(
    "error,status",
    [
        (ValidationError(), 400),
        (UnauthenticatedError(), 401),
        (InvalidTokenError(), 401),
        (ForbiddenError(), 403),
        (NotFoundError(), 404),
        (ConflictError(), 409),
        (RateLimitedError(), 429),
        (StoreFailureError("tasks", "find_all", "boom"), 500),
        (CredentialError(), 500),
    ],
)
def test_status_mapping(error, status):
    assert error.status_code == status


def test_every_kind_has_a_status():
    assert set(HTTP_STATUS) == set(ErrorKind)


def test_store_failure_message_carries_context():
    err = StoreFailureError("users", "create", "connection refused")
    assert "users" in err.message
    assert "create" in err.message


def test_store_failure_is_500_without_detail(client: TestClient, store, caplog) -> None:
    token, _ = register(client, "a@x.com")
    store.fail = True
    with caplog.at_level(logging.ERROR, logger="taskvault.api"):
        resp = client.get("/api/tasks", headers=bearer(token))
    assert resp.status_code == 500
    assert resp.json() == {"success": False, "message": "Internal server error"}
    assert "connection refused" not in resp.text
    assert any("store_failure" in r.getMessage() for r in caplog.records)


def test_store_failure_during_login_is_500_not_401(client: TestClient, store) -> None:
    """An unreachable store must not be reported as bad credentials."""
    register(client, "a@x.com")
    store.fail = True
    resp = client.post("/api/auth/login", json={"email": "a@x.com", "password": "secret1"})
    assert resp.status_code == 500


def test_unknown_route(client: TestClient) -> None:
    resp = client.get("/api/nothing-here")
    assert resp.status_code == 404
    assert resp.json() == {"success": False, "message": "Route /api/nothing-here not found"}


def test_unclassified_exception_is_generic_500(store) -> None:
    from tests.conftest import _patch_lifespan

    def explode(*args, **kwargs):
        raise RuntimeError("secret internals")

    app.router.lifespan_context = _patch_lifespan(store)
    with TestClient(app, raise_server_exceptions=False) as client:
        token, _ = register(client, "a@x.com")
        store.find_all = explode
        resp = client.get("/api/tasks", headers=bearer(token))
    assert resp.status_code == 500
    assert resp.json() == {"success": False, "message": "An unexpected error occurred."}
    assert "secret internals" not in resp.text


def _request(method: str = "POST", path: str = "/api/tasks") -> Request:
    return Request({"type": "http", "method": method, "path": path, "headers": [], "query_string": b""})


def test_validation_error_carries_field_errors_to_envelope() -> None:
    err = ValidationError(field_errors=[{"field": "title", "message": "Field required"}])
    resp = _app_error_response(_request(), err)
    assert resp.status_code == 400
    assert json.loads(resp.body) == {
        "success": False,
        "message": "Validation failed",
        "errors": [{"field": "title", "message": "Field required"}],
    }


def test_validation_error_without_fields_has_no_errors_key() -> None:
    resp = _app_error_response(_request(), ValidationError("Bad input"))
    assert json.loads(resp.body) == {"success": False, "message": "Bad input"}


def test_rate_limited_error_sets_retry_after() -> None:
    resp = _app_error_response(_request("GET"), RateLimitedError(retry_after=42))
    assert resp.status_code == 429
    assert resp.headers["Retry-After"] == "42"


def test_request_validation_goes_through_validation_error(client: TestClient, monkeypatch) -> None:
    """The RequestValidationError handler reclassifies, it does not build its own body."""
    import api.main

    seen = []
    original = api.main._app_error_response

    def spy(request, exc):
        seen.append(exc)
        return original(request, exc)

    monkeypatch.setattr(api.main, "_app_error_response", spy)
    token, _ = register(client, "a@x.com")
    resp = client.post("/api/tasks", json={"title": ""}, headers=bearer(token))
    assert resp.status_code == 400
    assert [type(e) for e in seen] == [ValidationError]
    assert seen[0].field_errors[0]["field"] == "title"
    assert resp.json()["errors"] == seen[0].field_errors
