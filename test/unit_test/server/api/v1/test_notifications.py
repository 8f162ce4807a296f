"""
Unit tests for notification endpoints.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from ngurra_pathways.core.database.entities.notifications import Notification
from ngurra_pathways.server.services.notifications import notify, publish_notifications

pytestmark = pytest.mark.asyncio


@pytest.fixture
async def inbox(session: AsyncSession, register):
    user, headers = await register("alice@example.com")
    ids = []
    for index in range(3):
        notification = await notify(session, user["id"], "SYSTEM", f"Title {index}", f"Message {index}")
        ids.append(notification.id)
    return user, headers, ids


class TestListNotifications:
    async def test_list_with_pagination(self, client: AsyncClient, inbox):
        _, headers, _ = inbox
        response = await client.get("/api/v1/notifications", params={"page": 1, "limit": 2}, headers=headers)
        assert response.status_code == 200
        body = response.json()
        assert len(body["data"]) == 2
        assert body["pagination"] == {"page": 1, "limit": 2, "total": 3, "total_pages": 2}
        assert body["unread_count"] == 3

    async def test_unread_only(self, client: AsyncClient, inbox):
        _, headers, ids = inbox
        await client.post(f"/api/v1/notifications/{ids[0]}/read", headers=headers)
        body = (await client.get("/api/v1/notifications", params={"unread_only": True}, headers=headers)).json()
        assert {n["id"] for n in body["data"]} == set(ids[1:])
        assert body["unread_count"] == 2

    async def test_requires_authentication(self, client: AsyncClient):
        response = await client.get("/api/v1/notifications")
        assert response.status_code == 401


class TestMarkRead:
    async def test_mark_single_read(self, client: AsyncClient, inbox):
        _, headers, ids = inbox
        response = await client.post(f"/api/v1/notifications/{ids[0]}/read", headers=headers)
        assert response.status_code == 200
        assert response.json()["is_read"] is True
        assert response.json()["read_at"] is not None

        count = await client.get("/api/v1/notifications/unread-count", headers=headers)
        assert count.json() == {"count": 2}

    async def test_mark_all_read(self, client: AsyncClient, inbox):
        _, headers, _ = inbox
        response = await client.post("/api/v1/notifications/read-all", headers=headers)
        assert response.json() == {"count": 3}
        again = await client.post("/api/v1/notifications/read-all", headers=headers)
        assert again.json() == {"count": 0}

    async def test_other_users_notification(self, client: AsyncClient, inbox, register):
        _, _, ids = inbox
        _, other_headers = await register("bob@example.com")
        response = await client.post(f"/api/v1/notifications/{ids[0]}/read", headers=other_headers)
        assert response.status_code == 404


class TestDelete:
    async def test_delete(self, client: AsyncClient, inbox):
        _, headers, ids = inbox
        assert (await client.delete(f"/api/v1/notifications/{ids[0]}", headers=headers)).status_code == 204
        assert (await client.delete(f"/api/v1/notifications/{ids[0]}", headers=headers)).status_code == 404
        count = await client.get("/api/v1/notifications/unread-count", headers=headers)
        assert count.json() == {"count": 2}


class TestDelivery:
    async def test_committed_notification_is_pushed(self, session: AsyncSession, register, pushed_notifications):
        user, _ = await register("alice@example.com")
        notification = await notify(session, user["id"], "SYSTEM", "Hello", "Welcome aboard")
        pushed = [(user_id, payload["id"]) for user_id, payload in pushed_notifications]
        assert pushed == [(user["id"], notification.id)]

    async def test_joined_transaction_defers_push(self, session: AsyncSession, register, pushed_notifications):
        user, _ = await register("alice@example.com")
        notification = await notify(session, user["id"], "SYSTEM", "Hello", "Welcome aboard", commit=False)
        assert pushed_notifications == []

        await session.commit()
        await publish_notifications(notification, None)
        assert [payload["id"] for _, payload in pushed_notifications] == [notification.id]

    async def test_rolled_back_notification_is_never_pushed(
        self, session: AsyncSession, register, pushed_notifications
    ):
        user, _ = await register("alice@example.com")
        notification = await notify(session, user["id"], "SYSTEM", "Hello", "Welcome aboard", commit=False)
        notification_id = notification.id
        await session.rollback()

        assert pushed_notifications == []
        assert await session.get(Notification, notification_id) is None
