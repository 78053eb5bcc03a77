"""
Session Storage
===============

Durable key-value slot holding the logged-in user between runs.

The slot is a small JSON file. Its content is untrusted: it is read
once, validated for shape, and discarded (and the slot cleared) if it
does not look like a user record. No password is ever written here.
"""

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

USER_KEY = "tasksp_user"


class SessionUser(BaseModel):
    """The logged-in user as remembered by the client."""

    id: int = Field(gt=0)
    username: str = Field(min_length=1)
    token: Optional[str] = None


class SessionStorage:
    """JSON-file backed key-value store with a single user slot."""

    def __init__(self, path: str | Path):
        self._path = Path(path)

    def _read(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except OSError as exc:
            logger.warning("Unreadable session storage %s: %s", self._path, exc)
            return {}
        except ValueError:
            data = None

        if not isinstance(data, dict):
            logger.warning("Resetting corrupt session storage %s", self._path)
            self._write({})
            return {}
        return data

    def _write(self, data: dict) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_text(json.dumps(data), encoding="utf-8")
        tmp.replace(self._path)

    def load_user(self) -> Optional[SessionUser]:
        """Return the stored user, clearing the slot if it is malformed."""
        raw = self._read().get(USER_KEY)
        if raw is None:
            return None

        try:
            return SessionUser.model_validate(raw)
        except ValidationError:
            logger.warning("Discarding malformed stored user")
            self.clear_user()
            return None

    def save_user(self, user: SessionUser) -> None:
        data = self._read()
        data[USER_KEY] = user.model_dump(exclude_none=True)
        self._write(data)

    def clear_user(self) -> None:
        data = self._read()
        if USER_KEY in data:
            del data[USER_KEY]
            self._write(data)
