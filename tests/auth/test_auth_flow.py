"""End-to-end auth flows over the API."""

from __future__ import annotations

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from friendzi.db.models import User
from tests.conftest import TEST_PASSWORD, open_session, register


class TestRegister:
    @pytest.mark.asyncio
    async def test_register_returns_user_and_token(self, client: AsyncClient):
        response = await client.post(
            "/api/auth/register",
            json={"username": "alice", "email": "Alice@Example.com", "password": TEST_PASSWORD},
        )
        assert response.status_code == 201
        data = response.json()
        assert data["success"] is True
        assert data["user"]["username"] == "alice"
        assert data["user"]["email"] == "alice@example.com"
        assert data["user"]["avatar_url"]
        assert data["token"]
        assert "password_hash" not in data["user"]

    @pytest.mark.asyncio
    async def test_duplicate_username_conflicts(self, client: AsyncClient, alice: dict):
        response = await client.post(
            "/api/auth/register",
            json={"username": "ALICE", "email": "other@example.com", "password": TEST_PASSWORD},
        )
        assert response.status_code == 409
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_duplicate_email_conflicts(self, client: AsyncClient, alice: dict):
        response = await client.post(
            "/api/auth/register",
            json={"username": "alice2", "email": "alice@example.com", "password": TEST_PASSWORD},
        )
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_weak_password_rejected(self, client: AsyncClient):
        response = await client.post(
            "/api/auth/register",
            json={"username": "weak", "email": "weak@example.com", "password": "password"},
        )
        assert response.status_code == 400
        assert "uppercase" in response.json()["message"]

    @pytest.mark.asyncio
    async def test_invalid_body_is_422_with_errors(self, client: AsyncClient):
        response = await client.post("/api/auth/register", json={"username": "x"})
        assert response.status_code == 422
        data = response.json()
        assert data["success"] is False
        assert data["errors"]


class TestLogin:
    @pytest.mark.asyncio
    async def test_login_marks_online(self, client: AsyncClient, alice: dict):
        response = await client.post(
            "/api/auth/login",
            json={"email": "alice@example.com", "password": TEST_PASSWORD},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["user"]["is_online"] is True
        assert data["user"]["last_seen"] is not None

    @pytest.mark.asyncio
    async def test_bad_password_is_401(self, client: AsyncClient, alice: dict):
        response = await client.post(
            "/api/auth/login",
            json={"email": "alice@example.com", "password": "Wrong1234"},
        )
        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "Invalid email or password"}

    @pytest.mark.asyncio
    async def test_unknown_email_is_401(self, client: AsyncClient):
        response = await client.post(
            "/api/auth/login",
            json={"email": "nobody@example.com", "password": TEST_PASSWORD},
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_logout_marks_offline(self, client: AsyncClient, alice: dict):
        await client.post("/api/auth/login", json={"email": "alice@example.com", "password": TEST_PASSWORD})
        response = await client.post("/api/auth/logout", headers=alice["headers"])
        assert response.status_code == 200

        async with open_session() as db:
            user = (await db.execute(select(User).where(User.username == "alice"))).scalar_one()
            assert user.is_online is False
            assert user.last_seen is not None


class TestMe:
    @pytest.mark.asyncio
    async def test_me_returns_private_profile(self, client: AsyncClient, alice: dict):
        response = await client.get("/api/auth/me", headers=alice["headers"])
        assert response.status_code == 200
        assert response.json()["user"]["email"] == "alice@example.com"

    @pytest.mark.asyncio
    async def test_missing_token_is_401(self, client: AsyncClient):
        response = await client.get("/api/auth/me")
        assert response.status_code == 401
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_garbage_token_is_401(self, client: AsyncClient):
        response = await client.get("/api/auth/me", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401
