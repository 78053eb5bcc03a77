"""
Task Service
============

Business logic for task CRUD scoped to an owner.

Every single-task operation passes ``(task_id, user_id)`` down to the
persistence call, so ownership is part of the query itself. A miss
is reported the same way whether the task does not exist or belongs
to another user.
"""

import logging
from datetime import date
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.db.gateway import PersistenceGateway
from app.models.task import TaskStatus
from app.schemas.task import CreateTaskRequest, UpdateTaskRequest
from app.utils.helpers import format_date, format_timestamp

logger = logging.getLogger(__name__)


class NoChangesError(ValueError):
    """An update request carried no writable field."""


def task_row_to_api(row: dict[str, Any]) -> dict[str, Any]:
    """
    Map a storage row to the API task shape.

    Maps storage names to the client contract:
        task_id       -> id
        user_id       -> userId
        creation_date -> creationDate (ISO 8601)
        due_date      -> dueDate (YYYY-MM-DD)
    """
    status = row["status"]
    return {
        "id": row["task_id"],
        "userId": row["user_id"],
        "title": row["title"],
        "description": row["description"],
        "creationDate": format_timestamp(row["creation_date"]),
        "dueDate": format_date(row["due_date"]),
        "status": status.value if isinstance(status, TaskStatus) else status,
    }


class TaskService:
    """Service for task operations."""

    def __init__(self, db: AsyncSession):
        self.gateway = PersistenceGateway(db)

    async def list_tasks(
        self,
        user_id: int,
        target_date: Optional[date] = None,
    ) -> list[dict[str, Any]]:
        """Tasks owned by the user, optionally only those due on a date."""
        rows = await self.gateway.call(
            "fn_get_tasks_for_user_by_date",
            user_id=user_id,
            target_date=target_date,
        )
        return [task_row_to_api(row) for row in rows]

    async def get_task(self, task_id: int, user_id: int) -> Optional[dict[str, Any]]:
        """Get task by ID ensuring it belongs to user."""
        rows = await self.gateway.call(
            "fn_get_task_details",
            task_id=task_id,
            user_id=user_id,
        )
        return task_row_to_api(rows[0]) if rows else None

    async def create_task(self, task_data: CreateTaskRequest) -> dict[str, Any]:
        """Create a pending task for ``task_data.user_id``."""
        rows = await self.gateway.call(
            "fn_create_task",
            user_id=task_data.user_id,
            title=task_data.title,
            description=task_data.description,
            due_date=task_data.due_date,
        )
        task = task_row_to_api(rows[0])
        logger.info("Created task %s for user %s", task["id"], task["userId"])
        return task

    async def update_task(
        self,
        task_id: int,
        user_id: int,
        task_data: UpdateTaskRequest,
    ) -> Optional[dict[str, Any]]:
        """
        Apply a partial update and return the full task.

        Returns None when ``(task_id, user_id)`` matched no row.

        Raises:
            NoChangesError: the request had no writable field
        """
        changes = task_data.changes()
        if not changes:
            raise NoChangesError("No fields to update")

        rows = await self.gateway.call(
            "fn_update_task",
            task_id=task_id,
            user_id=user_id,
            fields=changes,
        )
        return task_row_to_api(rows[0]) if rows else None

    async def delete_task(self, task_id: int, user_id: int) -> bool:
        """Delete the task; False when nothing matched."""
        rows = await self.gateway.call(
            "fn_delete_task",
            task_id=task_id,
            user_id=user_id,
        )
        if rows:
            logger.info("Deleted task %s for user %s", task_id, user_id)
        return bool(rows)
