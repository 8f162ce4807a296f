"""
Unit tests for authentication endpoints.

Tests cover registration, login, token rotation, logout and the inactivity
timeout of sessions.
"""

from datetime import timedelta

import pytest
from httpx import AsyncClient
from sqlmodel import select

from ngurra_pathways.core.database.entities.billing import Subscription
from ngurra_pathways.core.database.entities.users import AuthSession

pytestmark = pytest.mark.asyncio


class TestRegister:
    async def test_register_returns_user_and_tokens(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/auth/register",
            json={"email": "Ada@Example.com", "password": "password123", "display_name": "Ada"},
        )
        assert response.status_code == 201
        data = response.json()
        assert data["user"]["email"] == "ada@example.com"
        assert data["user"]["user_type"] == "MEMBER"
        assert data["token_type"] == "bearer"
        assert data["expires_in"] == 15 * 60
        assert data["access_token"] != data["refresh_token"]
        assert "password_hash" not in data["user"]

    async def test_duplicate_email_conflicts(self, client: AsyncClient, register):
        await register("dup@example.com")
        response = await client.post(
            "/api/v1/auth/register", json={"email": "DUP@example.com", "password": "password123"}
        )
        assert response.status_code == 409

    async def test_admin_self_registration_rejected(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/auth/register",
            json={"email": "root@example.com", "password": "password123", "user_type": "ADMIN"},
        )
        assert response.status_code == 400

    async def test_short_password_rejected(self, client: AsyncClient):
        response = await client.post("/api/v1/auth/register", json={"email": "a@example.com", "password": "short"})
        assert response.status_code == 422

    @pytest.mark.parametrize("password", ["a" * 100, "\u00e9" * 40])
    async def test_password_over_72_bytes_rejected(self, client: AsyncClient, password):
        response = await client.post("/api/v1/auth/register", json={"email": "a@example.com", "password": password})
        assert response.status_code == 422

    async def test_72_byte_password_accepted(self, client: AsyncClient):
        payload = {"email": "long@example.com", "password": "a" * 72}
        assert (await client.post("/api/v1/auth/register", json=payload)).status_code == 201
        assert (await client.post("/api/v1/auth/login", json=payload)).status_code == 200

    async def test_company_gets_free_subscription(self, client: AsyncClient, register, session):
        user, _ = await register("co@example.com", user_type="COMPANY", company_name="Acme")
        result = await session.execute(select(Subscription).where(Subscription.user_id == user["id"]))
        assert result.scalars().first().tier == "FREE"


class TestLogin:
    async def test_login_success(self, client: AsyncClient, register):
        await register("login@example.com")
        response = await client.post(
            "/api/v1/auth/login", json={"email": "login@example.com", "password": "password123"}
        )
        assert response.status_code == 200
        assert response.json()["user"]["last_login_at"] is not None

    @pytest.mark.parametrize(
        "email,password",
        [("login@example.com", "wrong-password"), ("nobody@example.com", "password123")],
    )
    async def test_invalid_credentials_share_one_message(self, client: AsyncClient, register, email, password):
        await register("login@example.com")
        response = await client.post("/api/v1/auth/login", json={"email": email, "password": password})
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid email or password"

    async def test_overlong_password_is_invalid_credentials(self, client: AsyncClient, register):
        await register("login@example.com")
        response = await client.post("/api/v1/auth/login", json={"email": "login@example.com", "password": "a" * 100})
        assert response.status_code == 401


class TestTokens:
    async def test_me_requires_token(self, client: AsyncClient):
        response = await client.get("/api/v1/auth/me")
        assert response.status_code == 401

    async def test_me_with_token(self, client: AsyncClient, register):
        user, headers = await register("me@example.com")
        response = await client.get("/api/v1/auth/me", headers=headers)
        assert response.status_code == 200
        assert response.json()["id"] == user["id"]

    async def test_unknown_token_rejected(self, client: AsyncClient):
        response = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-token"})
        assert response.status_code == 401

    async def test_refresh_rotates_pair(self, client: AsyncClient):
        registered = await client.post(
            "/api/v1/auth/register", json={"email": "rot@example.com", "password": "password123"}
        )
        old = registered.json()

        response = await client.post("/api/v1/auth/refresh", json={"refresh_token": old["refresh_token"]})
        assert response.status_code == 200
        new = response.json()
        assert new["access_token"] != old["access_token"]

        # The old pair stops working
        old_me = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {old['access_token']}"})
        assert old_me.status_code == 401
        reused = await client.post("/api/v1/auth/refresh", json={"refresh_token": old["refresh_token"]})
        assert reused.status_code == 401

        new_me = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {new['access_token']}"})
        assert new_me.status_code == 200

    async def test_logout_revokes_session(self, client: AsyncClient, register):
        _, headers = await register("bye@example.com")
        response = await client.post("/api/v1/auth/logout", headers=headers)
        assert response.status_code == 204
        assert (await client.get("/api/v1/auth/me", headers=headers)).status_code == 401

    async def test_idle_session_expires(self, client: AsyncClient, register, session):
        user, headers = await register("idle@example.com")
        result = await session.execute(select(AuthSession).where(AuthSession.user_id == user["id"]))
        auth_session = result.scalars().first()
        auth_session.last_activity_at = auth_session.last_activity_at - timedelta(minutes=31)
        session.add(auth_session)
        await session.commit()

        response = await client.get("/api/v1/auth/me", headers=headers)
        assert response.status_code == 401
        assert response.json()["detail"] == "Session expired due to inactivity"

    async def test_deactivated_user_rejected(self, client: AsyncClient, register, admin):
        user, headers = await register("gone@example.com")
        _, admin_headers = admin
        response = await client.delete(f"/api/v1/users/{user['id']}", headers=admin_headers)
        assert response.status_code == 200
        assert (await client.get("/api/v1/auth/me", headers=headers)).status_code == 401
