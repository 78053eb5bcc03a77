"""
Task API Client
===============

Thin async HTTP client for the task tracker endpoints.

Responses are validated into the same schemas the server emits, so
callers work with typed records rather than raw JSON. Any non-2xx
response or transport failure is raised as ``ApiError``.
"""

import logging
from datetime import date
from typing import Any, Optional

import httpx

from app.schemas.auth import LoginResponse
from app.schemas.task import TaskApiResponse

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """A request failed; ``status_code`` is 0 for transport errors."""

    def __init__(self, status_code: int, code: str, message: str):
        self.status_code = status_code
        self.code = code
        self.message = message
        super().__init__(f"{status_code} {code}: {message}")

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404


class TaskApiClient:
    """Async client for /api/auth and /api/tasks."""

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url,
            transport=transport,
            timeout=timeout,
        )
        self._token: Optional[str] = None

    async def __aenter__(self) -> "TaskApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def set_token(self, token: Optional[str]) -> None:
        """Attach (or drop) the bearer token sent with task requests."""
        self._token = token

    # ---- plumbing --------------------------------------------------------

    def _headers(self, user_id: Optional[int] = None) -> dict[str, str]:
        headers: dict[str, str] = {}
        if user_id is not None:
            headers["x-user-id"] = str(user_id)
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise ApiError(0, "NETWORK_ERROR", "Could not reach the server") from exc

        if response.is_error:
            raise _error_from_response(response)
        return response

    # ---- auth ------------------------------------------------------------

    async def login(self, username: str, password: str) -> LoginResponse:
        response = await self._request(
            "POST",
            "/api/auth/login",
            json={"username": username, "password": password},
        )
        return LoginResponse.model_validate(response.json())

    async def register(self, username: str, password: str) -> int:
        response = await self._request(
            "POST",
            "/api/auth/register",
            json={"username": username, "password": password},
        )
        return int(response.json()["userId"])

    # ---- tasks -----------------------------------------------------------

    async def list_tasks(
        self,
        user_id: int,
        target_date: Optional[date] = None,
    ) -> list[TaskApiResponse]:
        params: dict[str, str] = {"userId": str(user_id)}
        if target_date is not None:
            params["date"] = target_date.isoformat()

        response = await self._request(
            "GET", "/api/tasks", params=params, headers=self._headers()
        )
        return [TaskApiResponse.model_validate(item) for item in response.json()]

    async def create_task(
        self,
        user_id: int,
        title: str,
        due_date: date,
        description: Optional[str] = None,
    ) -> TaskApiResponse:
        body: dict[str, Any] = {
            "userId": user_id,
            "title": title,
            "dueDate": due_date.isoformat(),
        }
        if description is not None:
            body["description"] = description

        response = await self._request(
            "POST", "/api/tasks", json=body, headers=self._headers()
        )
        return TaskApiResponse.model_validate(response.json())

    async def get_task(self, task_id: int, user_id: int) -> TaskApiResponse:
        response = await self._request(
            "GET", f"/api/tasks/{task_id}", headers=self._headers(user_id)
        )
        return TaskApiResponse.model_validate(response.json())

    async def update_task(
        self,
        task_id: int,
        user_id: int,
        changes: dict[str, Any],
    ) -> TaskApiResponse:
        """``changes`` uses wire names: title, description, dueDate, status."""
        response = await self._request(
            "PATCH",
            f"/api/tasks/{task_id}",
            json=changes,
            headers=self._headers(user_id),
        )
        return TaskApiResponse.model_validate(response.json())

    async def delete_task(self, task_id: int, user_id: int) -> None:
        await self._request(
            "DELETE", f"/api/tasks/{task_id}", headers=self._headers(user_id)
        )


def _error_from_response(response: httpx.Response) -> ApiError:
    """Build an ApiError from the server's error envelope, if there is one."""
    code = "HTTP_ERROR"
    message = response.reason_phrase or "Request failed"
    try:
        error = response.json().get("error") or {}
        code = error.get("code", code)
        message = error.get("message", message)
    except (ValueError, AttributeError):
        pass
    return ApiError(response.status_code, code, message)
