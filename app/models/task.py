"""
Task Models
===========

SQLAlchemy model for user-owned, date-scoped tasks.
"""

from datetime import date, datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    Date,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base

if TYPE_CHECKING:
    from app.models.user import User


# =============================================================================
# Enums
# =============================================================================

class TaskStatus(str, Enum):
    """Task status. Any value may follow any other."""
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


# =============================================================================
# Models
# =============================================================================

class Task(Base):
    """
    Task model.

    ``user_id`` is the ownership key: every statement that reads or
    mutates a single task filters on ``(task_id, user_id)`` together.
    ``creation_date`` is assigned by the database and never updated.
    """

    __tablename__ = "tasks"

    # Primary Key
    task_id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    # Foreign Key
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
    )

    # Task details
    title: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )
    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    creation_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    due_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )
    status: Mapped[TaskStatus] = mapped_column(
        SQLEnum(
            TaskStatus,
            name="taskstatus",
            create_constraint=True,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
        default=TaskStatus.PENDING,
        server_default=TaskStatus.PENDING.value,
    )

    # Relationships
    user: Mapped["User"] = relationship(
        "User",
        back_populates="tasks",
    )

    # Indexes
    __table_args__ = (
        Index("idx_task_user_date", "user_id", "due_date"),
    )

    def __repr__(self) -> str:
        return f"<Task(task_id={self.task_id}, title={self.title[:30]})>"
