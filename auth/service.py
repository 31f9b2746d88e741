"""
auth/service.py -- Account operations over the `users` collection.

Pattern: Service object. AuthService holds a RecordStoreClient handle and
nothing else; it is built once in the app lifespan and shared by every
request.

Security:
  login() always runs bcrypt, against a dummy hash when the email is unknown,
  so response time does not reveal whether an account exists. Unknown email
  and wrong password raise the same UnauthenticatedError("Invalid
  credentials").

  The duplicate-email check in register() is check-then-insert against a
  store with no unique constraints. Two concurrent registrations for the same
  email can both succeed; the store offers nothing stronger.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from auth.models import Role, User
from auth.tokens import create_access_token, dummy_verify, hash_password, verify_password
from core.errors import ConflictError, NotFoundError, UnauthenticatedError
from store.client import RecordStoreClient

logger = logging.getLogger("taskvault.auth")

USERS = "users"

_INVALID_CREDENTIALS = "Invalid credentials"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class AuthService:
    def __init__(self, store: RecordStoreClient) -> None:
        self.store = store

    def register(self, email: str, password: str, role: str = Role.user.value) -> tuple[User, str]:
        """Create an account and return it with a freshly issued token."""
        if self.store.find_by_field(USERS, "email", email) is not None:
            raise ConflictError("User already exists with this email")

        user = User(
            email=email,
            role=role,
            hashed_password=hash_password(password),
            created_at=_now_iso(),
        )
        created = User.from_record(self.store.create(USERS, user.to_record()))
        logger.info("Registered user id=%s role=%s", created.id, created.role)
        return created, self._issue(created)

    def login(self, email: str, password: str) -> tuple[User, str]:
        """Verify credentials and return the user with a new token."""
        record = self.store.find_by_field(USERS, "email", email)
        if record is None:
            dummy_verify(password)
            raise UnauthenticatedError(_INVALID_CREDENTIALS)

        user = User.from_record(record)
        if not verify_password(password, user.hashed_password):
            raise UnauthenticatedError(_INVALID_CREDENTIALS)
        return user, self._issue(user)

    def get_profile(self, user_id: int) -> User:
        record = self.store.find_by_id(USERS, user_id)
        if record is None:
            raise NotFoundError("User not found")
        return User.from_record(record)

    def list_users(self) -> list[User]:
        return [User.from_record(r) for r in self.store.find_all(USERS)]

    @staticmethod
    def _issue(user: User) -> str:
        return create_access_token(user_id=user.id, email=user.email, role=user.role)
