"""
Task Schemas
============

Pydantic schemas for the task endpoints.

Wire names are camelCase (``userId``, ``dueDate``); the Python
attributes use the storage naming so request models can be handed
to the persistence layer without renaming.
"""

from datetime import date
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from app.db.base import MAX_ID
from app.models.task import TaskStatus


def _require_text(value: str) -> str:
    if not value.strip():
        raise ValueError("Title cannot be empty")
    return value.strip()


# =============================================================================
# Request Schemas
# =============================================================================

class CreateTaskRequest(BaseModel):
    """
    Request schema for creating a task.

    Maps to POST /api/tasks
    """

    user_id: int = Field(alias="userId", gt=0, le=MAX_ID)
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    due_date: date = Field(alias="dueDate", description="Due date (YYYY-MM-DD)")

    class Config:
        populate_by_name = True

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """Reject blank titles."""
        return _require_text(v)


class UpdateTaskRequest(BaseModel):
    """
    Request schema for a partial task update.

    Maps to PATCH /api/tasks/{task_id}

    Merge semantics: only fields present (and not null) are written;
    omitted fields keep their current values.
    """

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    due_date: Optional[date] = Field(None, alias="dueDate")
    status: Optional[TaskStatus] = None

    class Config:
        populate_by_name = True

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: Optional[str]) -> Optional[str]:
        """Reject blank titles; null means leave as-is."""
        if v is None:
            return v
        return _require_text(v)

    def changes(self) -> dict[str, Any]:
        """Columns to write, keyed by storage name."""
        return {
            name: value
            for name, value in self.model_dump(exclude_unset=True).items()
            if value is not None
        }


# =============================================================================
# Response Schemas
# =============================================================================

class TaskApiResponse(BaseModel):
    """
    Response schema for a task.

    Uses camelCase field names to match the client contract.
    """

    id: int
    userId: int
    title: str
    description: Optional[str] = None
    creationDate: str
    dueDate: str
    status: TaskStatus
