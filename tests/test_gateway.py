"""
Persistence Gateway Tests
=========================

Named calls against a real SQLite session, plus failure mapping with a
mocked session.
"""

from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.gateway import (
    CALLS,
    PersistenceGateway,
    StorageError,
    UniqueViolationError,
    UnknownCallError,
    fn_update_task,
)
from app.models.task import TaskStatus


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def _register(gateway: PersistenceGateway, username: str = "alice") -> int:
    rows = await gateway.call(
        "sp_register_user", username=username, password_hash="not-a-real-hash"
    )
    return rows[0]["user_id"]


async def _create(
    gateway: PersistenceGateway,
    user_id: int,
    due: date = date(2025, 3, 10),
    title: str = "Task",
) -> dict:
    rows = await gateway.call(
        "fn_create_task",
        user_id=user_id,
        title=title,
        description=None,
        due_date=due,
    )
    return rows[0]


def _mock_session(error: Exception) -> AsyncMock:
    session = AsyncMock(spec=AsyncSession)
    session.execute.side_effect = error
    return session


# ---------------------------------------------------------------------------
# Named calls
# ---------------------------------------------------------------------------

def test_registered_call_names():
    assert set(CALLS) == {
        "fn_get_tasks_for_user_by_date",
        "fn_get_task_details",
        "fn_create_task",
        "fn_update_task",
        "fn_delete_task",
        "sp_get_user_credentials",
        "sp_register_user",
    }


@pytest.mark.asyncio
async def test_create_returns_storage_named_row(db_session: AsyncSession):
    gateway = PersistenceGateway(db_session)
    user_id = await _register(gateway)

    row = await _create(gateway, user_id, title="Buy milk")

    assert set(row) == {
        "task_id",
        "user_id",
        "title",
        "description",
        "creation_date",
        "due_date",
        "status",
    }
    assert row["user_id"] == user_id
    assert row["due_date"] == date(2025, 3, 10)
    assert row["status"] == TaskStatus.PENDING
    assert row["creation_date"] is not None


@pytest.mark.asyncio
async def test_task_details_require_owner(db_session: AsyncSession):
    gateway = PersistenceGateway(db_session)
    owner = await _register(gateway, "alice")
    stranger = await _register(gateway, "bob")
    task = await _create(gateway, owner)

    mine = await gateway.call("fn_get_task_details", task_id=task["task_id"], user_id=owner)
    theirs = await gateway.call(
        "fn_get_task_details", task_id=task["task_id"], user_id=stranger
    )

    assert [row["task_id"] for row in mine] == [task["task_id"]]
    assert theirs == []


@pytest.mark.asyncio
async def test_update_and_delete_return_nothing_on_miss(db_session: AsyncSession):
    gateway = PersistenceGateway(db_session)
    owner = await _register(gateway, "alice")
    stranger = await _register(gateway, "bob")
    task = await _create(gateway, owner)

    updated = await gateway.call(
        "fn_update_task",
        task_id=task["task_id"],
        user_id=stranger,
        fields={"title": "Mine now"},
    )
    deleted = await gateway.call(
        "fn_delete_task", task_id=task["task_id"], user_id=stranger
    )

    assert updated == []
    assert deleted == []


@pytest.mark.asyncio
async def test_update_writes_only_given_columns(db_session: AsyncSession):
    gateway = PersistenceGateway(db_session)
    owner = await _register(gateway)
    task = await _create(gateway, owner, title="Original")

    rows = await gateway.call(
        "fn_update_task",
        task_id=task["task_id"],
        user_id=owner,
        fields={"status": TaskStatus.IN_PROGRESS},
    )

    assert rows[0]["status"] == TaskStatus.IN_PROGRESS
    assert rows[0]["title"] == "Original"
    assert rows[0]["due_date"] == task["due_date"]


@pytest.mark.asyncio
async def test_list_by_date(db_session: AsyncSession):
    gateway = PersistenceGateway(db_session)
    owner = await _register(gateway)
    on_day = await _create(gateway, owner, due=date(2025, 3, 10))
    await _create(gateway, owner, due=date(2025, 3, 11))

    rows = await gateway.call(
        "fn_get_tasks_for_user_by_date", user_id=owner, target_date=date(2025, 3, 10)
    )

    assert [row["task_id"] for row in rows] == [on_day["task_id"]]


@pytest.mark.asyncio
async def test_credentials_lookup(db_session: AsyncSession):
    gateway = PersistenceGateway(db_session)
    user_id = await _register(gateway, "alice")

    found = await gateway.call("sp_get_user_credentials", username="alice")
    missing = await gateway.call("sp_get_user_credentials", username="nobody")

    assert found == [
        {"user_id": user_id, "username": "alice", "password_hash": "not-a-real-hash"}
    ]
    assert missing == []


@pytest.mark.asyncio
async def test_duplicate_username_is_unique_violation(db_session: AsyncSession):
    gateway = PersistenceGateway(db_session)
    await _register(gateway, "alice")

    with pytest.raises(UniqueViolationError) as exc_info:
        await _register(gateway, "alice")

    assert exc_info.value.call_name == "sp_register_user"


# ---------------------------------------------------------------------------
# Failure mapping
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_unknown_call_name():
    session = AsyncMock(spec=AsyncSession)
    gateway = PersistenceGateway(session)

    with pytest.raises(UnknownCallError):
        await gateway.call("fn_drop_everything")

    session.execute.assert_not_awaited()


@pytest.mark.asyncio
async def test_unique_violation_rolls_back():
    orig = MagicMock()
    orig.sqlstate = "23505"
    session = _mock_session(IntegrityError("INSERT ...", {}, orig))
    gateway = PersistenceGateway(session)

    with pytest.raises(UniqueViolationError):
        await gateway.call("sp_register_user", username="alice", password_hash="x")

    session.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_other_integrity_error_is_storage_error():
    orig = MagicMock()
    orig.sqlstate = "23503"  # foreign_key_violation
    session = _mock_session(IntegrityError("INSERT ...", {}, orig))
    gateway = PersistenceGateway(session)

    with pytest.raises(StorageError) as exc_info:
        await gateway.call(
            "fn_create_task",
            user_id=42,
            title="Orphan",
            description=None,
            due_date=date(2025, 3, 10),
        )

    assert not isinstance(exc_info.value, UniqueViolationError)
    session.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_database_failure_is_storage_error():
    session = _mock_session(OperationalError("SELECT ...", {}, Exception("gone")))
    gateway = PersistenceGateway(session)

    with pytest.raises(StorageError) as exc_info:
        await gateway.call("fn_get_task_details", task_id=1, user_id=1)

    assert exc_info.value.call_name == "fn_get_task_details"
    session.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_unbindable_value_is_storage_error():
    session = _mock_session(OverflowError("Python int too large to convert to SQLite INTEGER"))
    gateway = PersistenceGateway(session)

    with pytest.raises(StorageError):
        await gateway.call("fn_get_task_details", task_id=2**70, user_id=1)

    session.rollback.assert_awaited_once()


# ---------------------------------------------------------------------------
# Update builder
# ---------------------------------------------------------------------------

def test_update_rejects_protected_columns():
    with pytest.raises(ValueError, match="user_id"):
        fn_update_task(1, 1, {"user_id": 2})

    with pytest.raises(ValueError, match="creation_date"):
        fn_update_task(1, 1, {"creation_date": "2025-01-01"})


def test_update_requires_a_column():
    with pytest.raises(ValueError):
        fn_update_task(1, 1, {})
