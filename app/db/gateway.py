"""
Persistence Gateway
===================

Executes *named calls* against the task database and returns raw rows.

Each name maps to a builder that produces a parameterised SQLAlchemy
statement, so every value reaches the driver as a bound parameter and
is never spliced into SQL text. Rows come back as plain dicts keyed
with the storage naming (``task_id``, ``due_date``, ...); translating
them to the API shape is the caller's job.

The gateway runs on the request's session (see ``app.db.session.get_db``),
so one request uses one pooled connection and at most one transaction.
On any database failure the transaction is rolled back before the
error propagates.
"""

import logging
from datetime import date
from typing import Any, Callable, Optional

from sqlalchemy import Executable, delete, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Task, TaskStatus, User

logger = logging.getLogger(__name__)

# PostgreSQL SQLSTATE for unique_violation
_PG_UNIQUE_VIOLATION = "23505"


# =============================================================================
# Errors
# =============================================================================

class StorageError(Exception):
    """A named call failed inside the database."""

    def __init__(self, call_name: str, message: str = "Storage call failed"):
        self.call_name = call_name
        super().__init__(f"{message}: {call_name}")


class UniqueViolationError(StorageError):
    """A named call hit a uniqueness constraint."""

    def __init__(self, call_name: str):
        super().__init__(call_name, "Unique constraint violated")


class UnknownCallError(KeyError):
    """No named call is registered under the requested name."""


# =============================================================================
# Named calls
# =============================================================================

_TASK_COLUMNS = (
    Task.task_id,
    Task.user_id,
    Task.title,
    Task.description,
    Task.creation_date,
    Task.due_date,
    Task.status,
)


def fn_get_tasks_for_user_by_date(
    user_id: int,
    target_date: Optional[date] = None,
) -> Executable:
    """All tasks owned by ``user_id``, optionally due on ``target_date``."""
    stmt = select(*_TASK_COLUMNS).where(Task.user_id == user_id)
    if target_date is not None:
        stmt = stmt.where(Task.due_date == target_date)
    return stmt.order_by(Task.due_date, Task.task_id)


def fn_get_task_details(task_id: int, user_id: int) -> Executable:
    return select(*_TASK_COLUMNS).where(
        Task.task_id == task_id,
        Task.user_id == user_id,
    )


def fn_create_task(
    user_id: int,
    title: str,
    description: Optional[str],
    due_date: date,
) -> Executable:
    return (
        insert(Task)
        .values(
            user_id=user_id,
            title=title,
            description=description,
            due_date=due_date,
            status=TaskStatus.PENDING,
        )
        .returning(*_TASK_COLUMNS)
    )


def fn_update_task(task_id: int, user_id: int, fields: dict[str, Any]) -> Executable:
    """
    Partial update scoped to the owner.

    ``fields`` maps column names to new values. Only those columns are
    written; ``user_id`` and ``creation_date`` can never be changed here.
    """
    allowed = {"title", "description", "due_date", "status"}
    unexpected = set(fields) - allowed
    if unexpected:
        raise ValueError(f"Cannot update columns: {', '.join(sorted(unexpected))}")
    if not fields:
        raise ValueError("No columns to update")

    return (
        update(Task)
        .where(Task.task_id == task_id, Task.user_id == user_id)
        .values(**fields)
        .returning(*_TASK_COLUMNS)
        .execution_options(synchronize_session=False)
    )


def fn_delete_task(task_id: int, user_id: int) -> Executable:
    return (
        delete(Task)
        .where(Task.task_id == task_id, Task.user_id == user_id)
        .returning(Task.task_id)
        .execution_options(synchronize_session=False)
    )


def sp_get_user_credentials(username: str) -> Executable:
    return select(User.user_id, User.username, User.password_hash).where(
        User.username == username
    )


def sp_register_user(username: str, password_hash: str) -> Executable:
    return (
        insert(User)
        .values(username=username, password_hash=password_hash)
        .returning(User.user_id, User.username)
    )


CALLS: dict[str, Callable[..., Executable]] = {
    "fn_get_tasks_for_user_by_date": fn_get_tasks_for_user_by_date,
    "fn_get_task_details": fn_get_task_details,
    "fn_create_task": fn_create_task,
    "fn_update_task": fn_update_task,
    "fn_delete_task": fn_delete_task,
    "sp_get_user_credentials": sp_get_user_credentials,
    "sp_register_user": sp_register_user,
}


def _is_unique_violation(exc: IntegrityError) -> bool:
    """Detect a unique violation across asyncpg and sqlite drivers."""
    code = getattr(exc.orig, "sqlstate", None) or getattr(exc.orig, "pgcode", None)
    if code is not None:
        return code == _PG_UNIQUE_VIOLATION
    return "unique" in str(exc.orig).lower()


# =============================================================================
# Gateway
# =============================================================================

class PersistenceGateway:
    """Runs named calls on a request-scoped session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def call(self, name: str, **params: Any) -> list[dict[str, Any]]:
        """
        Execute the named call and return every row it produced.

        Args:
            name: Registered call name (see ``CALLS``)
            **params: Bound parameters for the call

        Returns:
            Rows as dicts in storage naming (possibly empty)

        Raises:
            UnknownCallError: ``name`` is not registered
            UniqueViolationError: a uniqueness constraint was hit
            StorageError: any other database failure
        """
        try:
            build = CALLS[name]
        except KeyError:
            raise UnknownCallError(name) from None

        stmt = build(**params)

        try:
            result = await self.db.execute(stmt)
            rows = [dict(row) for row in result.mappings().all()]
        except IntegrityError as exc:
            await self.db.rollback()
            if _is_unique_violation(exc):
                logger.info("Unique violation in %s", name)
                raise UniqueViolationError(name) from exc
            logger.exception("Integrity error in %s", name)
            raise StorageError(name) from exc
        except (SQLAlchemyError, OverflowError) as exc:
            # OverflowError: a value the driver cannot bind (sqlite3)
            await self.db.rollback()
            logger.exception("Storage call %s failed", name)
            raise StorageError(name) from exc

        logger.debug("Call %s returned %d row(s)", name, len(rows))
        return rows
