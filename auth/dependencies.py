"""
auth/dependencies.py -- FastAPI Depends() helpers for identity propagation.

get_identity() gates every protected route on an `Authorization: Bearer`
JWT. It performs no store lookups: the token's claims are trusted as the
caller's current identity until the token expires. A user removed from the
store after issuance stays authenticated until then.

require_admin() wraps get_identity() and adds a role check.

Both raise core.errors types; api/main.py maps them to 401/403.

Layer rule: no imports from store/ or tasks/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.models import Identity
from auth.tokens import decode_access_token
from core.errors import ForbiddenError, UnauthenticatedError

_BEARER_PREFIX = "Bearer "


def get_identity(request: Request) -> Identity:
    """Require a valid bearer token and return the caller's Identity.

    The Identity is also placed on request.state so middleware (e.g. the
    request logger) can see who made the call.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(identity: Identity = Depends(get_identity)): ...
    """
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith(_BEARER_PREFIX):
        raise UnauthenticatedError()
    token = auth_header[len(_BEARER_PREFIX) :].strip()
    if not token:
        raise UnauthenticatedError()

    identity = decode_access_token(token)
    request.state.identity = identity
    return identity


def require_admin(request: Request) -> Identity:
    """Require an admin identity. 401 if unauthenticated, 403 if not admin."""
    identity = get_identity(request)
    if not identity.is_admin:
        raise ForbiddenError("Admin access required")
    return identity
