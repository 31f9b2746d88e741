"""
tasks/models.py -- Task dataclass and status enum.

Pattern: Data class (pure data container) with record mappers, same as
auth/models.py.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class TaskStatus(str, Enum):
    # Free-form: any status may move to any other.
    pending = "pending"
    in_progress = "in-progress"
    completed = "completed"


@dataclass
class Task:
    title: str
    user_id: int
    description: str = ""
    status: str = TaskStatus.pending.value
    id: int | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Task":
        return cls(
            id=record.get("id"),
            title=record.get("title", ""),
            description=record.get("description", ""),
            status=record.get("status", TaskStatus.pending.value),
            user_id=record.get("userId"),
            created_at=record.get("createdAt"),
            updated_at=record.get("updatedAt"),
        )

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "userId": self.user_id,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        if self.id is not None:
            record["id"] = self.id
        return record
