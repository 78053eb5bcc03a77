"""
Tasks API Endpoints
===================

Owner-scoped task CRUD.

Route prefix: /api/tasks

Endpoints:
    GET    /?userId=&date=  List the user's tasks, optionally for one due date
    POST   /                Create a task
    GET    /{task_id}       Fetch one task       (x-user-id header)
    PATCH  /{task_id}       Partially update it  (x-user-id header)
    DELETE /{task_id}       Delete it            (x-user-id header)

A task that does not exist and a task owned by someone else produce
the same 404.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Path, Query, Request, status

from app.core.errors import TaskNotFoundError, ValidationError
from app.db.base import MAX_ID
from app.dependencies import (
    DBSession,
    HeaderUserId,
    SessionCredentials,
    bind_user,
    verify_session,
)
from app.schemas.common import ErrorResponse
from app.schemas.task import (
    CreateTaskRequest,
    TaskApiResponse,
    UpdateTaskRequest,
)
from app.services.task_service import NoChangesError, TaskService
from app.utils.validators import parse_iso_date, parse_user_id

logger = logging.getLogger(__name__)

router = APIRouter()

TaskId = Annotated[int, Path(gt=0, le=MAX_ID, description="The task to operate on")]


# =============================================================================
# GET /tasks
# =============================================================================

@router.get(
    "",
    response_model=list[TaskApiResponse],
    responses={400: {"model": ErrorResponse, "description": "Missing or invalid userId/date"}},
)
async def list_tasks(
    request: Request,
    db: DBSession,
    credentials: SessionCredentials,
    user_id: Annotated[Optional[str], Query(alias="userId")] = None,
    date: Annotated[Optional[str], Query(description="Due date filter (YYYY-MM-DD)")] = None,
):
    """
    List the user's tasks.

    Without ``date`` every task the user owns is returned, ordered by
    due date and then creation order.
    """
    owner_id = parse_user_id(user_id, field_name="userId")
    target_date = parse_iso_date(date, field_name="date")
    verify_session(owner_id, credentials)
    bind_user(request, owner_id)

    task_service = TaskService(db)
    return await task_service.list_tasks(owner_id, target_date)


# =============================================================================
# POST /tasks
# =============================================================================

@router.post(
    "",
    response_model=TaskApiResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse, "description": "Missing required field"}},
)
async def create_task(
    request: Request,
    body: CreateTaskRequest,
    db: DBSession,
    credentials: SessionCredentials,
):
    """
    Create a task.

    The task starts as ``pending``; ``id`` and ``creationDate`` are
    assigned by the database.
    """
    verify_session(body.user_id, credentials)
    bind_user(request, body.user_id)

    task_service = TaskService(db)
    return await task_service.create_task(body)


# =============================================================================
# GET /tasks/{task_id}
# =============================================================================

@router.get(
    "/{task_id}",
    response_model=TaskApiResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid task or user id"},
        404: {"model": ErrorResponse, "description": "Task not found"},
    },
)
async def get_task(
    task_id: TaskId,
    user_id: HeaderUserId,
    db: DBSession,
):
    """Get a single task owned by the caller."""
    task_service = TaskService(db)
    task = await task_service.get_task(task_id, user_id)

    if task is None:
        raise TaskNotFoundError()

    return task


# =============================================================================
# PATCH /tasks/{task_id}
# =============================================================================

@router.patch(
    "/{task_id}",
    response_model=TaskApiResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input or nothing to update"},
        404: {"model": ErrorResponse, "description": "Task not found"},
    },
)
async def update_task(
    task_id: TaskId,
    body: UpdateTaskRequest,
    user_id: HeaderUserId,
    db: DBSession,
):
    """
    Partially update a task.

    Accepts any subset of ``title``, ``description``, ``dueDate`` and
    ``status``; fields that are absent or null keep their stored value.
    """
    task_service = TaskService(db)

    try:
        task = await task_service.update_task(task_id, user_id, body)
    except NoChangesError as exc:
        raise ValidationError(message=str(exc))

    if task is None:
        raise TaskNotFoundError()

    return task


# =============================================================================
# DELETE /tasks/{task_id}
# =============================================================================

@router.delete(
    "/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse, "description": "Task not found"}},
)
async def delete_task(
    task_id: TaskId,
    user_id: HeaderUserId,
    db: DBSession,
):
    """Permanently delete a task owned by the caller."""
    task_service = TaskService(db)
    deleted = await task_service.delete_task(task_id, user_id)

    if not deleted:
        raise TaskNotFoundError()

    # 204 No Content: return nothing
