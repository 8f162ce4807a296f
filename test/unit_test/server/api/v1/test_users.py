"""Unit tests for user profile and admin user management endpoints."""

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


class TestOwnProfile:
    async def test_update_own_profile(self, client: AsyncClient, register):
        _, headers = await register("profile@example.com")
        response = await client.patch(
            "/api/v1/users/me",
            json={"headline": "Carpenter", "skills": ["joinery", "framing"]},
            headers=headers,
        )
        assert response.status_code == 200
        assert response.json()["headline"] == "Carpenter"
        assert response.json()["skills"] == ["joinery", "framing"]

    async def test_cannot_change_own_account_type(self, client: AsyncClient, register):
        user, headers = await register("sneaky@example.com")
        response = await client.patch(f"/api/v1/users/{user['id']}", json={"user_type": "ADMIN"}, headers=headers)
        assert response.status_code == 403

    async def test_cannot_update_someone_else(self, client: AsyncClient, register):
        other, _ = await register("other@example.com")
        _, headers = await register("me@example.com")
        response = await client.patch(f"/api/v1/users/{other['id']}", json={"bio": "hi"}, headers=headers)
        assert response.status_code == 403


class TestDirectory:
    async def test_public_profile_hides_email(self, client: AsyncClient, register):
        user, _ = await register("public@example.com", display_name="Public Person")
        response = await client.get(f"/api/v1/users/{user['id']}")
        assert response.status_code == 200
        assert "email" not in response.json()

    async def test_unknown_user_is_404(self, client: AsyncClient):
        response = await client.get("/api/v1/users/missing")
        assert response.status_code == 404
        assert response.json()["detail"] == "User not found"

    async def test_search_by_name_and_type(self, client: AsyncClient, register):
        await register("mentor@example.com", user_type="MENTOR", display_name="Aunty June")
        await register("member@example.com", display_name="June Member")
        _, headers = await register("seeker@example.com")

        response = await client.get("/api/v1/users/search", params={"q": "june", "user_type": "MENTOR"}, headers=headers)
        assert response.status_code == 200
        data = response.json()
        assert data["pagination"]["total"] == 1
        assert data["data"][0]["display_name"] == "Aunty June"


class TestAdminManagement:
    async def test_listing_requires_admin(self, client: AsyncClient, register):
        _, headers = await register("plain@example.com")
        assert (await client.get("/api/v1/users", headers=headers)).status_code == 403

    async def test_admin_lists_with_pagination(self, client: AsyncClient, register, admin):
        for index in range(3):
            await register(f"user{index}@example.com")
        _, admin_headers = admin
        response = await client.get("/api/v1/users", params={"page": 1, "limit": 2}, headers=admin_headers)
        assert response.status_code == 200
        body = response.json()
        assert len(body["data"]) == 2
        assert body["pagination"] == {"page": 1, "limit": 2, "total": 4, "total_pages": 2}

    async def test_page_size_is_bounded(self, client: AsyncClient, admin):
        _, admin_headers = admin
        response = await client.get("/api/v1/users", params={"limit": 500}, headers=admin_headers)
        assert response.status_code == 422

    async def test_admin_changes_account_type(self, client: AsyncClient, register, admin):
        user, _ = await register("promote@example.com")
        _, admin_headers = admin
        response = await client.patch(
            f"/api/v1/users/{user['id']}", json={"user_type": "MENTOR"}, headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["user_type"] == "MENTOR"
