"""
api/main.py -- FastAPI application entry point for TaskVault.

Run with:      uvicorn asgi:app --reload
               python main.py serve

Middleware stack (outermost to innermost):
  1. CORSMiddleware         -- CORS headers for CORS_ORIGIN
  2. security_headers       -- nosniff / frame-deny / referrer headers
  3. log_requests           -- one log line per request with latency and
                               the authenticated user id, if any

Rate limits are router dependencies (api/limiter.py): API_RATE_LIMIT on
every /api route, LOGIN_RATE_LIMIT additionally on register and login.
/health is not limited.

Lifespan builds the stateless services once (record store client,
AuthService, TaskService) and hangs them on app.state. Handlers reach them
through request.app.state; nothing is a module-level singleton.

Error boundary: every classified failure is an AppError subclass. One
handler maps ErrorKind -> status and the {success: false, message}
envelope. 5xx kinds never expose their detail to the client.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.limiter import api_limit
from api.models import ErrorResponse, FieldError, HealthResponse
from api.routes.auth import router as auth_router
from api.routes.tasks import router as tasks_router
from auth.service import AuthService
from core.config import get_settings
from core.errors import AppError, ValidationError
from store.client import RecordStoreClient
from tasks.service import TaskService

_settings = get_settings()

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=_settings.log_level.upper(),
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("taskvault.api")

VERSION = "1.0.0"

_SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Resource-Policy": "same-origin",
}

# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build shared services on startup; release the HTTP session on shutdown.

    An unreachable store is logged, not fatal: the API still starts and
    requests fail individually with a store-failure 500 until it comes back.
    """
    logger.info("TaskVault API starting up (environment=%s)", _settings.environment)
    store = RecordStoreClient(_settings.store_url, timeout=_settings.store_timeout_seconds)
    app.state.store = store
    app.state.auth_service = AuthService(store)
    app.state.task_service = TaskService(store)
    if store.ping():
        logger.info("Record store reachable at %s", _settings.store_url)
    else:
        logger.warning("Record store unreachable at %s -- requests will fail until it is up", _settings.store_url)

    yield

    store.close()
    logger.info("TaskVault API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="TaskVault API",
    description="User authentication and per-user task management over a remote record store.",
    version=VERSION,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
#
# add_middleware() wraps the current stack, so the LAST one added is the
# outermost. @app.middleware("http") functions sit inside those.
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_credentials="*" not in _settings.cors_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)

@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    for name, value in _SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    return response


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    # get_identity() leaves the caller on request.state for authenticated routes.
    identity = getattr(request.state, "identity", None)
    logger.info(
        "%s %s %d %.1fms %s user=%s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
        identity.user_id if identity is not None else "-",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api", tags=["Auth"], dependencies=[Depends(api_limit)])
app.include_router(tasks_router, prefix="/api", tags=["Tasks"], dependencies=[Depends(api_limit)])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the ErrorResponse envelope so clients can parse errors
# uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


def _error(status_code: int, message: str, errors: list[FieldError] | None = None) -> JSONResponse:
    body = ErrorResponse(message=message, errors=errors)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def _app_error_response(request: Request, exc: AppError) -> JSONResponse:
    """Translate a classified failure into its status and envelope.

    5xx kinds (store failure, credential primitive failure) are logged with
    their detail and answered with a generic message.
    """
    status = exc.status_code
    if status >= 500:
        logger.error("%s on %s %s: %s", exc.kind.value, request.method, request.url.path, exc.message)
        return _error(status, "Internal server error")
    errors = None
    if isinstance(exc, ValidationError) and exc.field_errors:
        errors = [FieldError(**err) for err in exc.field_errors]
    response = _error(status, exc.message, errors)
    response.headers.update(exc.headers())
    return response


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return _app_error_response(request, exc)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Reclassify FastAPI's validation failure as a ValidationError (400)."""
    field_errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body") or "body",
            "message": err.get("msg", "Invalid value"),
        }
        for err in exc.errors()
    ]
    return _app_error_response(request, ValidationError(field_errors=field_errors))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Unknown routes get the route-not-found message; other HTTP errors pass through."""
    if exc.status_code == 404:
        return _error(404, f"Route {request.url.path} not found")
    return _error(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unexpected server errors.

    The traceback goes to the log only. The client gets a generic message.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error(500, "An unexpected error occurred.")


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py (not in a router) so it is always reachable.
# No auth and no rate limit -- supervisors and load balancers poll it.
# ---------------------------------------------------------------------------


@app.get("/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Liveness plus a best-effort record store check."""
    store: RecordStoreClient = request.app.state.store
    return HealthResponse(
        timestamp=datetime.now(timezone.utc).isoformat(),
        store="ok" if store.ping() else "unreachable",
    )
