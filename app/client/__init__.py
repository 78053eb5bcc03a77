"""
Task Tracker Client
===================

Async SDK and client-side state store for the task tracker API.
"""

from app.client.api import ApiError, TaskApiClient
from app.client.labels import due_label
from app.client.session_storage import SessionStorage, SessionUser
from app.client.store import Notification, NotLoggedInError, TaskStore

__all__ = [
    "ApiError",
    "Notification",
    "NotLoggedInError",
    "SessionStorage",
    "SessionUser",
    "TaskApiClient",
    "TaskStore",
    "due_label",
]
