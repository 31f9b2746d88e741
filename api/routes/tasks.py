"""
api/routes/tasks.py -- Task CRUD routes.

Routes:
  GET    /api/tasks         -- caller's tasks (all tasks for admins)
  GET    /api/tasks/{id}    -- one task; 404 absent, 403 not owner/admin
  POST   /api/tasks         -- create a task owned by the caller (201)
  PUT    /api/tasks/{id}    -- update; 404/403 as above
  DELETE /api/tasks/{id}    -- delete; 404/403 as above

Every route requires a bearer token. The ownership rule lives in
tasks/service.py; these handlers only translate HTTP to service calls.
NotFoundError / ForbiddenError propagate to the handler in api/main.py.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from api.models import MessageResponse, TaskCreate, TaskListResponse, TaskOut, TaskResponse, TaskUpdate
from auth.dependencies import get_identity
from auth.models import Identity
from core.errors import NotFoundError
from tasks.service import TaskService

router = APIRouter()


def _tasks(request: Request) -> TaskService:
    return request.app.state.task_service


@router.get("/tasks", response_model=TaskListResponse)
def list_tasks(request: Request, identity: Identity = Depends(get_identity)) -> TaskListResponse:
    tasks = [TaskOut.from_task(t) for t in _tasks(request).list_tasks(identity)]
    return TaskListResponse(count=len(tasks), data=tasks)


@router.get("/tasks/{task_id}", response_model=TaskResponse)
def get_task(request: Request, task_id: int, identity: Identity = Depends(get_identity)) -> TaskResponse:
    task = _tasks(request).get_task(task_id, identity)
    return TaskResponse(data=TaskOut.from_task(task))


@router.post("/tasks", response_model=TaskResponse, status_code=201)
def create_task(request: Request, body: TaskCreate, identity: Identity = Depends(get_identity)) -> TaskResponse:
    task = _tasks(request).create_task(body.model_dump(mode="json"), identity)
    return TaskResponse(data=TaskOut.from_task(task))


@router.put("/tasks/{task_id}", response_model=TaskResponse)
def update_task(
    request: Request,
    task_id: int,
    body: TaskUpdate,
    identity: Identity = Depends(get_identity),
) -> TaskResponse:
    task = _tasks(request).update_task(task_id, body.changes(), identity)
    return TaskResponse(data=TaskOut.from_task(task))


@router.delete("/tasks/{task_id}", response_model=MessageResponse)
def delete_task(request: Request, task_id: int, identity: Identity = Depends(get_identity)) -> MessageResponse:
    if not _tasks(request).delete_task(task_id, identity):
        raise NotFoundError("Task not found")
    return MessageResponse(message="Task deleted successfully")
