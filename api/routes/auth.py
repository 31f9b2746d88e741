"""
api/routes/auth.py -- Registration, login, and profile endpoints.

Routes:
  POST /api/auth/register   -- create account; returns user + token (201)
  POST /api/auth/login      -- password login; returns user + token
  GET  /api/auth/me         -- current user profile (requires bearer token)
  GET  /api/auth/users      -- list all accounts (admin only)

Security:
  register and login share a LOGIN_RATE_LIMIT bucket per client IP, on top
  of the API_RATE_LIMIT applied to every /api route in api/main.py.
  login returns the same 401 "Invalid credentials" for an unknown email and
  a wrong password (AuthService owns that rule, including timing).
  Cache-Control: no-store on every response that carries a token.
  No user object ever leaves this module with a password field: responses
  are built from UserOut, which has none.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.limiter import login_limit
from api.models import AuthData, AuthResponse, LoginRequest, RegisterRequest, UserListResponse, UserOut, UserResponse
from auth.dependencies import get_identity, require_admin
from auth.models import Identity, User
from auth.service import AuthService

router = APIRouter()


def _auth_response(user: User, token: str, status_code: int) -> JSONResponse:
    body = AuthResponse(data=AuthData(user=UserOut.from_user(user), token=token))
    resp = JSONResponse(status_code=status_code, content=body.model_dump(mode="json", by_alias=True))
    resp.headers["Cache-Control"] = "no-store"
    return resp


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/auth/register", response_model=AuthResponse, status_code=201, dependencies=[Depends(login_limit)])
def register(request: Request, body: RegisterRequest) -> JSONResponse:
    """Create an account. 409 if the email is already registered."""
    auth_service: AuthService = request.app.state.auth_service
    user, token = auth_service.register(body.email, body.password, body.role.value)
    return _auth_response(user, token, 201)


@router.post("/auth/login", response_model=AuthResponse, dependencies=[Depends(login_limit)])
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password."""
    auth_service: AuthService = request.app.state.auth_service
    user, token = auth_service.login(body.email, body.password)
    return _auth_response(user, token, 200)


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/auth/me", response_model=UserResponse)
def me(request: Request, identity: Identity = Depends(get_identity)) -> UserResponse:
    """Return the stored profile of the authenticated caller."""
    auth_service: AuthService = request.app.state.auth_service
    user = auth_service.get_profile(identity.user_id)
    return UserResponse(data=UserOut.from_user(user))


@router.get("/auth/users", response_model=UserListResponse)
def list_users(request: Request, identity: Identity = Depends(require_admin)) -> UserListResponse:
    """List every account. Admin only."""
    auth_service: AuthService = request.app.state.auth_service
    users = [UserOut.from_user(u) for u in auth_service.list_users()]
    return UserListResponse(count=len(users), data=users)
