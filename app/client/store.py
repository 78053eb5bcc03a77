"""
Client Task Store
=================

In-memory state behind a task UI: the logged-in user, the selected
due-date filter, the fetched task list and the task open in the
detail view, plus loading/error flags and dismissible notifications.

State changes follow three rules:
- list loads replace ``tasks`` wholesale, never merge
- status changes are optimistic: snapshot, apply locally, then commit
  the server's copy or restore the snapshot exactly
- a created task triggers a reload only if it belongs to the current view
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from itertools import count
from typing import Any, Optional

from app.client.api import ApiError, TaskApiClient
from app.client.session_storage import SessionStorage, SessionUser
from app.models.task import TaskStatus
from app.schemas.task import TaskApiResponse

logger = logging.getLogger(__name__)

_notification_ids = count(1)


class NotLoggedInError(RuntimeError):
    """A task operation was attempted without a logged-in user."""


@dataclass
class Notification:
    """A dismissible message for the UI."""

    message: str
    level: str = "error"
    id: int = field(default_factory=lambda: next(_notification_ids))


class TaskStore:
    """State container for one client session."""

    def __init__(
        self,
        api: TaskApiClient,
        storage: SessionStorage,
        selected_date: Optional[date] = None,
    ):
        self.api = api
        self.storage = storage

        self.user: Optional[SessionUser] = None
        self.selected_date = selected_date
        self.tasks: list[TaskApiResponse] = []
        self.current_task: Optional[TaskApiResponse] = None

        self.is_loading = False
        self.list_error: Optional[str] = None
        self.notifications: list[Notification] = []

        self._started = False
        self._status_in_flight: set[int] = set()

    # ---- session ---------------------------------------------------------

    def start(self) -> Optional[SessionUser]:
        """Restore the remembered user. Only the first call reads storage."""
        if not self._started:
            self._started = True
            self._set_user(self.storage.load_user())
        return self.user

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    async def login(self, username: str, password: str) -> bool:
        """Log in and remember the user; False on any failure."""
        self.is_loading = True
        try:
            result = await self.api.login(username, password)
        except ApiError as exc:
            logger.info("Login failed: %s", exc)
            self._forget_user()
            self.notify(exc.message)
            return False
        finally:
            self.is_loading = False

        user = SessionUser(id=result.id, username=result.username, token=result.token)
        self._set_user(user)
        self.storage.save_user(user)
        return True

    def logout(self) -> None:
        self._forget_user()
        self.tasks = []
        self.current_task = None
        self.list_error = None

    def _set_user(self, user: Optional[SessionUser]) -> None:
        self.user = user
        self.api.set_token(user.token if user else None)

    def _forget_user(self) -> None:
        self._set_user(None)
        self.storage.clear_user()

    def _require_user(self) -> SessionUser:
        if self.user is None:
            raise NotLoggedInError("Log in before working with tasks")
        return self.user

    # ---- notifications ---------------------------------------------------

    def notify(self, message: str, level: str = "error") -> Notification:
        notification = Notification(message=message, level=level)
        self.notifications.append(notification)
        return notification

    def dismiss(self, notification_id: int) -> None:
        self.notifications = [n for n in self.notifications if n.id != notification_id]

    # ---- list ------------------------------------------------------------

    async def select_date(self, selected: Optional[date]) -> None:
        """Change the due-date filter (None shows every task) and reload."""
        self.selected_date = selected
        await self.refresh()

    async def refresh(self) -> None:
        """Reload the list for the current filter, replacing it wholesale."""
        user = self._require_user()
        self.is_loading = True
        self.list_error = None
        try:
            self.tasks = await self.api.list_tasks(user.id, self.selected_date)
        except ApiError as exc:
            logger.warning("Loading tasks failed: %s", exc)
            self.list_error = exc.message
            self.notify(f"Could not load tasks: {exc.message}")
        finally:
            self.is_loading = False

    async def retry(self) -> None:
        """Retry a failed list load."""
        await self.refresh()

    # ---- detail ----------------------------------------------------------

    async def load_task(self, task_id: int) -> Optional[TaskApiResponse]:
        user = self._require_user()
        self.is_loading = True
        try:
            self.current_task = await self.api.get_task(task_id, user.id)
        except ApiError as exc:
            self.current_task = None
            self.notify(exc.message)
        finally:
            self.is_loading = False
        return self.current_task

    async def change_status(self, task_id: int, status: TaskStatus) -> bool:
        """
        Optimistically set a task's status.

        Returns True once the server confirmed; on failure the task is
        restored in the list and detail view to exactly what it was
        before. While one change for a task is pending, further changes
        to it are refused.
        """
        user = self._require_user()
        status = TaskStatus(status)

        if task_id in self._status_in_flight:
            logger.info("Status change for task %s already pending", task_id)
            return False

        listed = next((task for task in self.tasks if task.id == task_id), None)
        shown = self.current_task if self._shows(task_id) else None

        self._status_in_flight.add(task_id)
        self._apply(lambda task: task.model_copy(update={"status": status}), task_id)

        try:
            updated = await self.api.update_task(task_id, user.id, {"status": status.value})
        except ApiError as exc:
            logger.info("Status change for task %s reverted: %s", task_id, exc)
            self._restore(task_id, listed, shown)
            self.notify(f"Could not update status: {exc.message}")
            return False
        finally:
            self._status_in_flight.discard(task_id)

        self._apply(lambda _task: updated, task_id)
        return True

    def is_status_pending(self, task_id: int) -> bool:
        return task_id in self._status_in_flight

    async def update_task(self, task_id: int, **changes: Any) -> bool:
        """
        Edit a task and take the server's copy on success.

        ``changes`` uses wire names (title, description, dueDate, status).
        """
        user = self._require_user()
        payload = {
            key: value.isoformat() if isinstance(value, date) else value
            for key, value in changes.items()
        }

        try:
            updated = await self.api.update_task(task_id, user.id, payload)
        except ApiError as exc:
            self.notify(f"Could not update task: {exc.message}")
            return False

        self._apply(lambda _task: updated, task_id)
        return True

    # ---- create / delete -------------------------------------------------

    async def create_task(
        self,
        title: str,
        due_date: date,
        description: Optional[str] = None,
    ) -> Optional[TaskApiResponse]:
        """Create a task; reload only if it belongs to the current view."""
        user = self._require_user()
        try:
            created = await self.api.create_task(user.id, title, due_date, description)
        except ApiError as exc:
            self.notify(f"Could not create task: {exc.message}")
            return None

        if self.selected_date is None or self.selected_date == due_date:
            await self.refresh()
        return created

    async def delete_task(self, task_id: int) -> bool:
        user = self._require_user()
        try:
            await self.api.delete_task(task_id, user.id)
        except ApiError as exc:
            self.notify(f"Could not delete task: {exc.message}")
            return False

        self.tasks = [task for task in self.tasks if task.id != task_id]
        if self._shows(task_id):
            self.current_task = None
        return True

    def _shows(self, task_id: int) -> bool:
        return self.current_task is not None and self.current_task.id == task_id

    def _apply(self, change, task_id: int) -> None:
        """Replace the matching task in the list and the detail view."""
        self.tasks = [change(task) if task.id == task_id else task for task in self.tasks]
        if self._shows(task_id):
            self.current_task = change(self.current_task)

    def _restore(
        self,
        task_id: int,
        listed: Optional[TaskApiResponse],
        shown: Optional[TaskApiResponse],
    ) -> None:
        """Put back the copies of one task taken before a change."""
        if listed is not None:
            self.tasks = [listed if task.id == task_id else task for task in self.tasks]
        if shown is not None and self._shows(task_id):
            self.current_task = shown
