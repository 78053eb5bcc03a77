"""
Common Dependencies
===================

Shared dependencies used across the application.

Identity is asserted by the client: the task endpoints receive the
user id in the ``x-user-id`` header, the ``userId`` query parameter or
the request body. When ``SESSION_TOKENS_ENABLED`` is set, every
asserted id must also match the subject of a signed bearer token.
"""

import logging
from typing import Annotated, Optional

from fastapi import Depends, Header, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.errors import AuthenticationError, ErrorCodes
from app.core.security import token_subject
from app.db.session import get_db
from app.utils.validators import parse_user_id

logger = logging.getLogger(__name__)

# Database session dependency
DBSession = Annotated[AsyncSession, Depends(get_db)]

# Security scheme for signed session tokens
security = HTTPBearer(auto_error=False)

SessionCredentials = Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)]


def verify_session(
    user_id: int,
    credentials: Optional[HTTPAuthorizationCredentials],
) -> None:
    """
    Check the asserted user id against the session token.

    No-op unless signed session tokens are enabled.

    Raises:
        AuthenticationError: token missing, invalid, or for another user
    """
    if not settings.SESSION_TOKENS_ENABLED:
        return

    if credentials is None:
        raise AuthenticationError(
            code=ErrorCodes.AUTH_NOT_AUTHENTICATED,
            message="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    subject = token_subject(credentials.credentials)
    if subject is None or subject != user_id:
        logger.warning("Rejected session token for asserted user %s", user_id)
        raise AuthenticationError(
            code=ErrorCodes.AUTH_INVALID_TOKEN,
            message="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )


def bind_user(request: Request, user_id: int) -> None:
    """Expose the acting user to middleware via request state."""
    request.state.user_id = user_id


async def get_header_user_id(
    request: Request,
    credentials: SessionCredentials,
    x_user_id: Annotated[Optional[str], Header(alias="x-user-id")] = None,
) -> int:
    """
    Resolve the acting user from the ``x-user-id`` header.

    Raises 400 if the header is missing or not a positive integer.
    """
    user_id = parse_user_id(x_user_id, field_name="x-user-id")
    verify_session(user_id, credentials)
    bind_user(request, user_id)
    return user_id


# Type alias for the header-asserted user dependency
HeaderUserId = Annotated[int, Depends(get_header_user_id)]
