"""
API request and response models for TaskVault REST endpoints.

These Pydantic v2 models define the HTTP transport contract. They are
intentionally separate from the dataclasses in auth/models.py and
tasks/models.py, which own the internal domain representation. Route
handlers map between the two.

Wire format is camelCase (userId, createdAt); attributes are snake_case.
alias_generator=to_camel bridges them and FastAPI serializes by alias.

Every successful response uses the {success: true, ...} envelope; every
error uses {success: false, message}. Error bodies are built by the
exception handlers in api/main.py.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from auth.models import User
from tasks.models import Task

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class RoleEnum(str, Enum):
    user = "user"
    admin = "admin"


class TaskStatusEnum(str, Enum):
    pending = "pending"
    in_progress = "in-progress"
    completed = "completed"


_WIRE = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


# bcrypt rejects (or silently truncates) secrets longer than this many bytes.
_BCRYPT_MAX_BYTES = 72


def _strip_email(value):
    return value.strip() if isinstance(value, str) else value


def _check_password_bytes(value: str) -> str:
    if len(value.encode("utf-8")) > _BCRYPT_MAX_BYTES:
        raise ValueError(f"Password must be at most {_BCRYPT_MAX_BYTES} bytes when UTF-8 encoded")
    return value


class RegisterRequest(BaseModel):
    """Request body for POST /api/auth/register.

    Only the email is trimmed. Whitespace in a password is significant, and
    the 72-byte cap is measured on the UTF-8 encoding, not on characters.
    """

    email: EmailStr
    password: str = Field(min_length=6)
    role: RoleEnum = RoleEnum.user

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, value):
        return _strip_email(value)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.lower()

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        return _check_password_bytes(value)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, value):
        return _strip_email(value)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.lower()

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        return _check_password_bytes(value)


class TaskCreate(BaseModel):
    """Request body for POST /api/tasks.

    Unknown keys (including userId) are dropped: the owner is always the
    authenticated caller.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=200)
    description: str = Field(default="", max_length=1000)
    status: TaskStatusEnum = TaskStatusEnum.pending


class TaskUpdate(BaseModel):
    """Request body for PUT /api/tasks/{id}. Every field is optional."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=1000)
    status: Optional[TaskStatusEnum] = None

    def changes(self) -> dict:
        """Only the fields the caller actually sent, in store (JSON) form."""
        return self.model_dump(mode="json", exclude_unset=True, exclude_none=True)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserOut(BaseModel):
    """A user as clients see it. There is no password field to leak."""

    model_config = _WIRE

    id: int
    email: str
    role: str
    created_at: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> "UserOut":
        return cls(**user.public())


class TaskOut(BaseModel):
    model_config = _WIRE

    id: int
    title: str
    description: str
    status: str
    user_id: int
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_task(cls, task: Task) -> "TaskOut":
        return cls(
            id=task.id,
            title=task.title,
            description=task.description,
            status=task.status,
            user_id=task.user_id,
            created_at=task.created_at,
            updated_at=task.updated_at,
        )


class AuthData(BaseModel):
    model_config = ConfigDict(frozen=True)

    user: UserOut
    token: str


class AuthResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    data: AuthData


class UserResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    data: UserOut


class UserListResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    count: int
    data: list[UserOut]


class TaskResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    data: TaskOut


class TaskListResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    count: int
    data: list[TaskOut]


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    message: str


class FieldError(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: str
    message: str


class ErrorResponse(BaseModel):
    """Uniform error envelope returned by every exception handler."""

    model_config = ConfigDict(frozen=True)

    success: bool = False
    message: str
    errors: Optional[list[FieldError]] = None


class HealthResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    message: str = "Server is running"
    timestamp: str
    store: str  # "ok" or "unreachable"
