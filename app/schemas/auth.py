"""
Authentication Schemas
======================

Pydantic schemas for authentication endpoints.
"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

MIN_PASSWORD_LENGTH = 8


def _clean_username(value: str) -> str:
    if not value.strip():
        raise ValueError("Username is required")
    return value.strip()


class UserRegister(BaseModel):
    """Request schema for user registration."""

    username: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=128)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        """Usernames are stored trimmed and may not be blank."""
        return _clean_username(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        """Validate password length."""
        if len(v) < MIN_PASSWORD_LENGTH:
            raise ValueError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
            )
        return v


class UserLogin(BaseModel):
    """Request schema for user login."""

    username: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=128)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        """Match the trimming applied at registration."""
        return _clean_username(v)


class LoginResponse(BaseModel):
    """
    Response schema for a successful login.

    ``token`` is only present when signed session tokens are enabled.
    """

    id: int
    username: str
    token: Optional[str] = None


class RegisterResponse(BaseModel):
    """Response schema for user registration."""

    userId: int
