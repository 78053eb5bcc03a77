"""
Authentication Service
======================

Business logic for user authentication and registration.
"""

import asyncio
import logging
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import dummy_verify, hash_password, verify_password
from app.db.gateway import PersistenceGateway, UniqueViolationError
from app.schemas.auth import UserRegister

logger = logging.getLogger(__name__)


class UsernameTakenError(Exception):
    """The requested username is already registered."""

    def __init__(self, username: str):
        self.username = username
        super().__init__(f"Username already exists: {username}")


class AuthService:
    """Service for authentication operations."""

    def __init__(self, db: AsyncSession):
        self.gateway = PersistenceGateway(db)

    async def authenticate_user(
        self,
        username: str,
        password: str,
    ) -> Optional[dict[str, Any]]:
        """
        Authenticate user by username and password.

        An unknown username still runs a dummy hash check so both
        failure paths take comparable time.

        Args:
            username: Account name
            password: Plain text password

        Returns:
            ``{"id", "username"}`` if authentication succeeded, None otherwise
        """
        rows = await self.gateway.call("sp_get_user_credentials", username=username)

        # bcrypt is CPU-bound; keep it off the event loop
        if not rows:
            await asyncio.to_thread(dummy_verify)
            return None

        user = rows[0]
        valid = await asyncio.to_thread(verify_password, password, user["password_hash"])
        if not valid:
            return None

        return {"id": user["user_id"], "username": user["username"]}

    async def create_user(self, user_data: UserRegister) -> int:
        """
        Create a new user.

        Args:
            user_data: Registration data

        Returns:
            The new user's id

        Raises:
            UsernameTakenError: the username is already registered
        """
        password_hash = await asyncio.to_thread(hash_password, user_data.password)

        try:
            rows = await self.gateway.call(
                "sp_register_user",
                username=user_data.username,
                password_hash=password_hash,
            )
        except UniqueViolationError:
            raise UsernameTakenError(user_data.username) from None

        user_id = rows[0]["user_id"]
        logger.info("Registered user %s (%s)", user_id, user_data.username)
        return user_id
