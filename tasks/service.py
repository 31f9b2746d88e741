"""
tasks/service.py -- Ownership-checked task CRUD over the `tasks` collection.

Ownership rule: a task is visible and mutable only to the identity whose
user id matches task.userId, or to any admin identity. Every operation that
touches an existing task goes through get_task(), so update and delete are
checked exactly like a read.

Check order in get_task(): existence first, then ownership. A non-owner
therefore gets 403 for a task that exists and 404 for one that does not.

Concurrency: there is no in-process locking and no version token. Two
concurrent updates to one task race at the store; the last PUT wins.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from auth.models import Identity
from core.errors import ForbiddenError, NotFoundError
from store.client import RecordStoreClient
from tasks.models import Task, TaskStatus

logger = logging.getLogger("taskvault.tasks")

TASKS = "tasks"

# Fields a caller can never set through update_task(). userId is fixed at
# creation; id and createdAt belong to the store/creation path.
_IMMUTABLE_FIELDS = frozenset({"id", "userId", "createdAt"})


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class TaskService:
    def __init__(self, store: RecordStoreClient) -> None:
        self.store = store

    def list_tasks(self, identity: Identity) -> list[Task]:
        """Admins see every task; everyone else sees only their own."""
        if identity.is_admin:
            records = self.store.find_all(TASKS)
        else:
            records = self.store.find_all(TASKS, {"userId": identity.user_id})
        return [Task.from_record(r) for r in records]

    def get_task(self, task_id: int, identity: Identity) -> Task:
        """Fetch one task, enforcing existence then ownership."""
        record = self.store.find_by_id(TASKS, task_id)
        if record is None:
            raise NotFoundError("Task not found")

        task = Task.from_record(record)
        if not identity.is_admin and not identity.owns(task.user_id):
            logger.info("Denied user id=%s access to task id=%s", identity.user_id, task_id)
            raise ForbiddenError("Not authorized to access this task")
        return task

    def create_task(self, data: dict[str, Any], identity: Identity) -> Task:
        """Create a task owned by the caller.

        Any userId in `data` is ignored: ownership comes from the identity.
        """
        now = _now_iso()
        task = Task(
            title=data["title"],
            description=data.get("description") or "",
            status=data.get("status") or TaskStatus.pending.value,
            user_id=identity.user_id,
            created_at=now,
            updated_at=now,
        )
        created = Task.from_record(self.store.create(TASKS, task.to_record()))
        logger.info("User id=%s created task id=%s", identity.user_id, created.id)
        return created

    def update_task(self, task_id: int, data: dict[str, Any], identity: Identity) -> Task:
        """Merge `data` onto an existing task and re-stamp updatedAt."""
        existing = self.get_task(task_id, identity)

        merged = existing.to_record()
        merged.update({k: v for k, v in data.items() if k not in _IMMUTABLE_FIELDS})
        merged["id"] = existing.id
        merged["updatedAt"] = _now_iso()

        record = self.store.update(TASKS, task_id, merged)
        if record is None:
            # Deleted between the ownership check and the write.
            raise NotFoundError("Task not found")
        return Task.from_record(record)

    def delete_task(self, task_id: int, identity: Identity) -> bool:
        """Delete a task the caller may mutate.

        Returns False if the task vanished between the ownership check and
        the delete, True if this call removed it.
        """
        self.get_task(task_id, identity)
        removed = self.store.delete(TASKS, task_id)
        if removed:
            logger.info("User id=%s deleted task id=%s", identity.user_id, task_id)
        return removed
