"""
Authentication API Tests
========================

Registration and login through /api/auth.
"""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_register_returns_new_user_id(client: AsyncClient):
    response = await client.post(
        "/api/auth/register",
        json={"username": "carol", "password": "long-enough"},
    )

    assert response.status_code == 201
    assert isinstance(response.json()["userId"], int)
    assert response.json()["userId"] > 0


@pytest.mark.asyncio
async def test_login_returns_identity_without_token(client: AsyncClient, user: dict):
    """Token mode is off by default, so no token field is sent."""
    assert user["username"] == "alice"
    assert user["id"] > 0
    assert "token" not in user
    assert "password" not in user


@pytest.mark.asyncio
async def test_register_rejects_duplicate_username(client: AsyncClient, user: dict):
    response = await client.post(
        "/api/auth/register",
        json={"username": "alice", "password": "another-password"},
    )

    assert response.status_code == 409
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == "AUTH_004"
    assert body["error"]["message"] == "Username already exists"


@pytest.mark.asyncio
async def test_register_rejects_short_password(client: AsyncClient):
    response = await client.post(
        "/api/auth/register",
        json={"username": "dave", "password": "short"},
    )

    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert "at least 8 characters" in error["message"]


@pytest.mark.asyncio
async def test_register_trims_username(client: AsyncClient):
    response = await client.post(
        "/api/auth/register",
        json={"username": "  erin  ", "password": "long-enough"},
    )
    assert response.status_code == 201

    response = await client.post(
        "/api/auth/login",
        json={"username": "erin", "password": "long-enough"},
    )
    assert response.status_code == 200
    assert response.json()["username"] == "erin"


@pytest.mark.asyncio
async def test_login_accepts_username_as_registered(client: AsyncClient):
    """Whatever string was used to register also works to log in."""
    response = await client.post(
        "/api/auth/register",
        json={"username": "  erin  ", "password": "long-enough"},
    )
    assert response.status_code == 201

    response = await client.post(
        "/api/auth/login",
        json={"username": "  erin  ", "password": "long-enough"},
    )

    assert response.status_code == 200
    assert response.json()["username"] == "erin"


@pytest.mark.asyncio
async def test_login_failures_are_indistinguishable(client: AsyncClient, user: dict):
    """Wrong password and unknown username produce the same response."""
    wrong_password = await client.post(
        "/api/auth/login",
        json={"username": "alice", "password": "not-the-password"},
    )
    unknown_user = await client.post(
        "/api/auth/login",
        json={"username": "nobody", "password": "not-the-password"},
    )

    assert wrong_password.status_code == 401
    assert unknown_user.status_code == 401
    assert wrong_password.json() == unknown_user.json()
    assert wrong_password.json()["error"]["code"] == "AUTH_001"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"username": "alice"},
        {"password": "correct-horse"},
        {"username": "", "password": "correct-horse"},
        {"username": "   ", "password": "correct-horse"},
        {},
    ],
)
async def test_login_requires_both_fields(client: AsyncClient, payload: dict):
    response = await client.post("/api/auth/login", json=payload)

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"
