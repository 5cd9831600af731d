"""Integration: profiles, search, presence and the follow graph over the API."""

from __future__ import annotations

import uuid

import pytest
from httpx import AsyncClient

from tests.conftest import TEST_PASSWORD, register


class TestProfile:
    @pytest.mark.asyncio
    async def test_own_profile_with_counts(self, client: AsyncClient, alice: dict, bob: dict):
        await client.post("/api/posts", json={"content": "hi"}, headers=alice["headers"])
        await client.post(f"/api/users/{alice['id']}/follow", headers=bob["headers"])

        response = await client.get("/api/users/profile", headers=alice["headers"])
        assert response.status_code == 200
        user = response.json()["user"]
        assert user["posts_count"] == 1
        assert user["followers_count"] == 1
        assert user["following_count"] == 0
        assert user["is_following"] is False

    @pytest.mark.asyncio
    async def test_update_profile(self, client: AsyncClient, alice: dict):
        response = await client.put(
            "/api/users/profile",
            json={"full_name": "Alice Liddell", "bio": "Down the rabbit hole"},
            headers=alice["headers"],
        )
        assert response.status_code == 200
        user = response.json()["user"]
        assert user["full_name"] == "Alice Liddell"
        assert user["bio"] == "Down the rabbit hole"

    @pytest.mark.asyncio
    async def test_other_profile_shows_is_following(self, client: AsyncClient, alice: dict, bob: dict):
        await client.post(f"/api/users/{bob['id']}/follow", headers=alice["headers"])
        response = await client.get(f"/api/users/{bob['id']}", headers=alice["headers"])
        user = response.json()["user"]
        assert user["is_following"] is True
        assert user["followers_count"] == 1
        assert "email" not in user

    @pytest.mark.asyncio
    async def test_unknown_user_is_404(self, client: AsyncClient, alice: dict):
        response = await client.get(f"/api/users/{uuid.uuid4()}", headers=alice["headers"])
        assert response.status_code == 404


class TestDirectory:
    @pytest.mark.asyncio
    async def test_search_matches_username_and_full_name(self, client: AsyncClient, alice: dict):
        await register(client, "bobby", full_name="Robert Tables")
        await register(client, "charlie", full_name="Charlie Brown")

        response = await client.get("/api/users/search", params={"q": "ROB"}, headers=alice["headers"])
        assert [u["username"] for u in response.json()["users"]] == ["bobby"]

        response = await client.get("/api/users/search", params={"q": "li"}, headers=alice["headers"])
        assert {u["username"] for u in response.json()["users"]} == {"alice", "charlie"}

    @pytest.mark.asyncio
    async def test_blank_search_rejected(self, client: AsyncClient, alice: dict):
        for params in ({}, {"q": "  "}):
            response = await client.get("/api/users/search", params=params, headers=alice["headers"])
            assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_online_users(self, client: AsyncClient, alice: dict, bob: dict):
        await client.post("/api/auth/login", json={"email": "bob@example.com", "password": TEST_PASSWORD})
        response = await client.get("/api/users/online", headers=alice["headers"])
        assert [u["username"] for u in response.json()["users"]] == ["bob"]


class TestFollowGraph:
    @pytest.mark.asyncio
    async def test_follow_and_unfollow(self, client: AsyncClient, alice: dict, bob: dict):
        followed = await client.post(f"/api/users/{bob['id']}/follow", headers=alice["headers"])
        assert followed.status_code == 200

        duplicate = await client.post(f"/api/users/{bob['id']}/follow", headers=alice["headers"])
        assert duplicate.status_code == 409

        followers = await client.get(f"/api/users/{bob['id']}/followers", headers=alice["headers"])
        assert [u["username"] for u in followers.json()["followers"]] == ["alice"]
        following = await client.get(f"/api/users/{alice['id']}/following", headers=alice["headers"])
        assert [u["username"] for u in following.json()["following"]] == ["bob"]
        assert following.json()["total_count"] == 1

        unfollowed = await client.delete(f"/api/users/{bob['id']}/follow", headers=alice["headers"])
        assert unfollowed.status_code == 200
        again = await client.delete(f"/api/users/{bob['id']}/follow", headers=alice["headers"])
        assert again.status_code == 400

    @pytest.mark.asyncio
    async def test_cannot_follow_self(self, client: AsyncClient, alice: dict):
        response = await client.post(f"/api/users/{alice['id']}/follow", headers=alice["headers"])
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_follow_unknown_user_is_404(self, client: AsyncClient, alice: dict):
        response = await client.post(f"/api/users/{uuid.uuid4()}/follow", headers=alice["headers"])
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_user_posts_listing(self, client: AsyncClient, alice: dict, bob: dict):
        await client.post("/api/posts", json={"content": "a1"}, headers=alice["headers"])
        await client.post("/api/posts", json={"content": "b1"}, headers=bob["headers"])
        response = await client.get(f"/api/users/{alice['id']}/posts", headers=bob["headers"])
        data = response.json()
        assert data["total_count"] == 1
        assert data["posts"][0]["content"] == "a1"
