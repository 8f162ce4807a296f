"""
In-app notification service.

Notifications are persisted and, once committed, pushed as a
``notification:new`` event to the recipient's personal room when they are
connected. Callers that join ``notify`` to their own transaction publish the
returned rows with ``publish_notifications`` after their commit.
"""

from typing import Any, Dict, Optional, Tuple, List

from sqlalchemy import func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ngurra_pathways.core.database.entities.notifications import Notification, NotificationPriority
from ngurra_pathways.core.database.repositories import PageParams, paginate
from ngurra_pathways.core.database.utils import utc_now
from ngurra_pathways.core.errors import NotFoundError
from ngurra_pathways.core.logging_config import get_logger

from .realtime import manager

logger = get_logger(__name__)


def serialize_notification(notification: Notification) -> Dict[str, Any]:
    return {
        "id": notification.id,
        "type": notification.type,
        "title": notification.title,
        "message": notification.message,
        "data": notification.data,
        "action_url": notification.action_url,
        "priority": notification.priority,
        "is_read": notification.is_read,
        "created_at": notification.created_at.isoformat(),
    }


async def notify(
    session: AsyncSession,
    user_id: str,
    type: str,
    title: str,
    message: str,
    data: Optional[Dict[str, Any]] = None,
    action_url: Optional[str] = None,
    priority: str = NotificationPriority.MEDIUM.value,
    commit: bool = True,
) -> Notification:
    """
    Persist a notification and push it to the recipient's live sockets.

    With ``commit=False`` the row is only flushed and nothing is pushed; the
    caller commits and then passes the returned row to
    ``publish_notifications``.

    Args:
        session: Database session
        user_id: Recipient
        type: Notification type (see ``NotificationType``)
        title: Short headline
        message: Body text
        data: Structured payload for the client
        action_url: Where the client should navigate on click
        priority: LOW, MEDIUM or HIGH
        commit: Commit immediately; pass False to join the caller's transaction
    """
    notification = Notification(
        user_id=user_id,
        type=str(type),
        title=title,
        message=message,
        data=data,
        action_url=action_url,
        priority=str(priority),
    )
    session.add(notification)
    if not commit:
        await session.flush()
        return notification

    await session.commit()
    await session.refresh(notification)
    await publish_notifications(notification)
    return notification


async def publish_notifications(*notifications: Optional[Notification]) -> None:
    """Push committed notifications to their recipients. ``None`` entries are skipped."""
    for notification in notifications:
        if notification is not None:
            await manager.send_to_user(
                notification.user_id, "notification:new", serialize_notification(notification)
            )


class NotificationService:
    """Read-side operations on a user's notifications."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list(self, user_id: str, params: PageParams, unread_only: bool = False) -> Tuple[List[Notification], int]:
        stmt = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            stmt = stmt.where(Notification.is_read.is_(False))
        stmt = stmt.order_by(Notification.created_at.desc())
        return await paginate(self.session, stmt, params)

    async def unread_count(self, user_id: str) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        )
        return int(result.scalar_one())

    async def _get_owned(self, user_id: str, notification_id: str) -> Notification:
        notification = await self.session.get(Notification, notification_id)
        if notification is None or notification.user_id != user_id:
            raise NotFoundError("Notification")
        return notification

    async def mark_read(self, user_id: str, notification_id: str) -> Notification:
        notification = await self._get_owned(user_id, notification_id)
        if not notification.is_read:
            notification.is_read = True
            notification.read_at = utc_now()
            self.session.add(notification)
            await self.session.commit()
            await self.session.refresh(notification)
        return notification

    async def mark_all_read(self, user_id: str) -> int:
        result = await self.session.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
            .values(is_read=True, read_at=utc_now())
        )
        await self.session.commit()
        logger.debug(f"Marked {result.rowcount} notifications read for user {user_id}")
        return int(result.rowcount or 0)

    async def delete(self, user_id: str, notification_id: str) -> None:
        notification = await self._get_owned(user_id, notification_id)
        await self.session.delete(notification)
        await self.session.commit()
