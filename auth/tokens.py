"""
auth/tokens.py -- JWT issuance/verification and password hashing.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       userId, email, role, and expiry. Verification raises InvalidTokenError
       on any failure -- there is no soft-fail mode. The dependency layer
       turns that into a 401.

  Passwords: bcrypt used directly (no passlib wrapper). Each hash gets its
       own random salt from bcrypt.gensalt(); the cost factor comes from
       BCRYPT_ROUNDS (minimum 10). _DUMMY_HASH enables timing equalization in
       AuthService.login() so response time does not reveal whether an email
       is registered.

  Primitive failures: bcrypt raises ValueError for a malformed stored hash.
       That is a data integrity problem, not a wrong password, so it
       propagates as CredentialError instead of returning False.

Layer rule: no imports from api/, store/, or tasks/. Import from core/
is allowed -- core/ is the kernel and has no reverse dependencies.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt

from auth.models import Identity, Role
from core.config import get_settings
from core.errors import CredentialError, InvalidTokenError

logger = logging.getLogger("taskvault.auth")

# ---------------------------------------------------------------------------
# Config -- read once at module load via the lru_cache singleton
# ---------------------------------------------------------------------------

_settings = get_settings()

_ALGORITHM = "HS256"
_BCRYPT_MAX_BYTES = 72
_ROLES = {r.value for r in Role}

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


def hash_password(plain: str, rounds: int = 0) -> str:
    """Return a salted bcrypt hash of the plaintext password.

    bcrypt only accepts 72 bytes of input. The API layer rejects longer
    passwords before they get here; anything that slips through raises
    CredentialError.
    """
    cost = rounds if rounds > 0 else _settings.bcrypt_rounds
    try:
        return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=cost)).decode("utf-8")
    except ValueError as exc:
        raise CredentialError("Password hashing failed") from exc


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    bcrypt.checkpw compares in constant time. A password over 72 bytes can
    never have been hashed, so it simply does not match. A hash bcrypt
    cannot parse raises CredentialError.
    """
    secret = plain.encode("utf-8")
    if len(secret) > _BCRYPT_MAX_BYTES:
        return False
    try:
        return bcrypt.checkpw(secret, hashed.encode("utf-8"))
    except ValueError as exc:
        logger.error("Stored password hash could not be parsed")
        raise CredentialError() from exc


# Timing equalization dummy hash. Computed once at module load so the first
# login attempt is not measurably slower than subsequent ones.
_DUMMY_HASH: str = hash_password("taskvault_timing_dummy")


def dummy_verify(plain: str) -> None:
    """Burn one bcrypt comparison. Call when the account does not exist."""
    verify_password(plain, _DUMMY_HASH)


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def create_access_token(user_id: int, email: str, role: str, expire_seconds: int = 0) -> str:
    """Encode a signed JWT with the caller's identity and an expiry.

    Args:
        user_id:        Store-assigned user id.
        email:          Account email, carried so handlers need no lookup.
        role:           "user" or "admin".
        expire_seconds: Lifetime in seconds. If 0 (default), uses
                        Settings.token_expire_seconds.
    """
    duration = expire_seconds if expire_seconds > 0 else _settings.token_expire_seconds
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "userId": user_id,
        "email": email,
        "role": role,
        "iat": now,
        "exp": now + timedelta(seconds=duration),
    }
    return jwt.encode(payload, _settings.secret_key, algorithm=_ALGORITHM)


def decode_access_token(token: str) -> Identity:
    """Verify signature and expiry and return the embedded Identity.

    Raises InvalidTokenError for a bad signature, malformed token, expired
    token, or a payload missing the identity claims.
    """
    try:
        payload = jwt.decode(token, _settings.secret_key, algorithms=[_ALGORITHM])
    except JWTError as exc:
        raise InvalidTokenError() from exc

    user_id = payload.get("userId")
    email = payload.get("email")
    role = payload.get("role")
    if not isinstance(user_id, int) or not isinstance(email, str) or role not in _ROLES:
        raise InvalidTokenError()
    return Identity(user_id=user_id, email=email, role=role)
