"""
Authentication API Endpoints
============================

Handles user registration and login.
"""

import logging

from fastapi import APIRouter, status

from app.config import settings
from app.core.errors import AuthenticationError, ConflictError, ErrorCodes
from app.core.security import create_access_token
from app.dependencies import DBSession
from app.schemas.auth import (
    LoginResponse,
    RegisterResponse,
    UserLogin,
    UserRegister,
)
from app.schemas.common import ErrorResponse
from app.services.auth_service import AuthService, UsernameTakenError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input"},
        409: {"model": ErrorResponse, "description": "Username already exists"},
    },
)
async def register(
    user_data: UserRegister,
    db: DBSession,
):
    """
    Register a new user account.

    Username uniqueness is enforced by the database.
    """
    auth_service = AuthService(db)

    try:
        user_id = await auth_service.create_user(user_data)
    except UsernameTakenError:
        raise ConflictError(
            code=ErrorCodes.AUTH_USERNAME_TAKEN,
            message="Username already exists",
        )

    return RegisterResponse(userId=user_id)


@router.post(
    "/login",
    response_model=LoginResponse,
    response_model_exclude_none=True,
    responses={
        400: {"model": ErrorResponse, "description": "Missing fields"},
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
    },
)
async def login(
    credentials: UserLogin,
    db: DBSession,
):
    """
    Authenticate user and return their identity.

    Unknown usernames and wrong passwords produce the same 401.
    """
    auth_service = AuthService(db)

    user = await auth_service.authenticate_user(
        username=credentials.username,
        password=credentials.password,
    )

    if user is None:
        logger.info("Failed login attempt")
        raise AuthenticationError()

    token = None
    if settings.SESSION_TOKENS_ENABLED:
        token = create_access_token(user["id"], user["username"])

    return LoginResponse(id=user["id"], username=user["username"], token=token)
