"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class + Data Mapper. The dataclasses own domain shape;
from_record() / to_record() map between the store's camelCase JSON records
and snake_case attributes. Services and routes do the work.

Layer rule: no imports from api/, store/, or tasks/.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class Role(str, Enum):
    user = "user"
    admin = "admin"


@dataclass
class User:
    """A registered account as held in the `users` collection.

    hashed_password is the bcrypt hash. It is kept on the object so login can
    verify it, and it is never emitted by public() -- every API response goes
    through public().
    """

    email: str
    role: str
    hashed_password: str
    id: int | None = None
    created_at: str | None = None

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "User":
        return cls(
            id=record.get("id"),
            email=record["email"],
            role=record.get("role", Role.user.value),
            hashed_password=record.get("password", ""),
            created_at=record.get("createdAt"),
        )

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {
            "email": self.email,
            "password": self.hashed_password,
            "role": self.role,
            "createdAt": self.created_at,
        }
        if self.id is not None:
            record["id"] = self.id
        return record

    def public(self) -> dict[str, Any]:
        """The user as a client may see it: no password field, ever."""
        return {
            "id": self.id,
            "email": self.email,
            "role": self.role,
            "createdAt": self.created_at,
        }

    @property
    def is_admin(self) -> bool:
        return self.role == Role.admin.value


@dataclass(frozen=True)
class Identity:
    """Verified caller attributes for the lifetime of one request.

    Materialized from token claims by auth.tokens.decode_access_token().
    Never persisted and never re-checked against the users collection.
    """

    user_id: int
    email: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == Role.admin.value

    def owns(self, owner_id: Any) -> bool:
        return owner_id == self.user_id
