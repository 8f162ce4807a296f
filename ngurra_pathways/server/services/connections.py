"""
Connections, follows and blocks between members.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import and_, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ngurra_pathways.core.database.entities.notifications import NotificationType
from ngurra_pathways.core.database.entities.social import ConnectionStatus, UserBlock, UserConnection, UserFollow
from ngurra_pathways.core.database.entities.users import User
from ngurra_pathways.core.database.utils import utc_now
from ngurra_pathways.core.errors import BadRequestError, ConflictError, NotFoundError
from ngurra_pathways.core.logging_config import get_logger

from .notifications import notify, publish_notifications
from .rate_limit import RateLimiter

logger = get_logger(__name__)


def _peer(user: Optional[User], user_id: str) -> Dict[str, Any]:
    return {
        "user_id": user_id,
        "name": user.name if user else "Unknown user",
        "headline": user.headline if user else None,
        "avatar_url": user.avatar_url if user else None,
    }


class ConnectionService:
    def __init__(self, session: AsyncSession, rate_limiter: Optional[RateLimiter] = None):
        self.session = session
        self.rate_limiter = rate_limiter or RateLimiter(session)

    async def _active_user(self, user_id: str) -> User:
        user = await self.session.get(User, user_id)
        if user is None or not user.is_active:
            raise NotFoundError("User")
        return user

    async def _users(self, user_ids: List[str]) -> Dict[str, User]:
        if not user_ids:
            return {}
        result = await self.session.execute(select(User).where(User.id.in_(user_ids)))
        return {user.id: user for user in result.scalars().all()}

    # ------------------------------------------------------------------
    # Connections
    # ------------------------------------------------------------------

    async def list_connections(self, user: User) -> List[Dict[str, Any]]:
        result = await self.session.execute(
            select(UserConnection)
            .where(
                UserConnection.status == ConnectionStatus.ACCEPTED.value,
                or_(UserConnection.requester_id == user.id, UserConnection.addressee_id == user.id),
            )
            .order_by(UserConnection.created_at.desc())
        )
        connections = list(result.scalars().all())
        other_ids = [c.addressee_id if c.requester_id == user.id else c.requester_id for c in connections]
        users = await self._users(other_ids)
        return [
            {
                "connection_id": c.id,
                **_peer(users.get(other_id), other_id),
                "status": c.status,
                "message": c.message,
                "created_at": c.created_at,
            }
            for c, other_id in zip(connections, other_ids)
        ]

    async def pending_requests(self, user: User) -> List[Dict[str, Any]]:
        """Incoming requests awaiting the user's answer."""
        result = await self.session.execute(
            select(UserConnection)
            .where(
                UserConnection.addressee_id == user.id,
                UserConnection.status == ConnectionStatus.PENDING.value,
            )
            .order_by(UserConnection.created_at.desc())
        )
        requests = list(result.scalars().all())
        users = await self._users([r.requester_id for r in requests])
        return [
            {
                "connection_id": r.id,
                **_peer(users.get(r.requester_id), r.requester_id),
                "status": r.status,
                "message": r.message,
                "created_at": r.created_at,
            }
            for r in requests
        ]

    async def request(self, user: User, addressee_id: str, message: Optional[str] = None) -> UserConnection:
        if addressee_id == user.id:
            raise BadRequestError("You cannot connect with yourself")
        addressee = await self._active_user(addressee_id)

        existing = await self.session.execute(
            select(UserConnection).where(
                or_(
                    and_(UserConnection.requester_id == user.id, UserConnection.addressee_id == addressee_id),
                    and_(UserConnection.requester_id == addressee_id, UserConnection.addressee_id == user.id),
                )
            )
        )
        if existing.scalars().first() is not None:
            raise ConflictError("A connection or request already exists with this user")

        await self.rate_limiter.check(user.id, "connection_request")
        connection = UserConnection(requester_id=user.id, addressee_id=addressee.id, message=message)
        self.session.add(connection)
        await self.session.flush()
        notification = await notify(
            self.session,
            addressee.id,
            NotificationType.CONNECTION_REQUEST.value,
            "New connection request",
            f"{user.name} wants to connect with you",
            data={"connection_id": connection.id, "requester_id": user.id},
            action_url="/connections/requests",
            commit=False,
        )
        await self.session.commit()
        await publish_notifications(notification)
        await self.session.refresh(connection)
        return connection

    async def _incoming(self, user: User, connection_id: str) -> UserConnection:
        connection = await self.session.get(UserConnection, connection_id)
        if connection is None or connection.addressee_id != user.id:
            raise NotFoundError("Connection request")
        if connection.status != ConnectionStatus.PENDING.value:
            raise BadRequestError("Connection request has already been answered")
        return connection

    async def accept(self, user: User, connection_id: str) -> UserConnection:
        connection = await self._incoming(user, connection_id)
        connection.status = ConnectionStatus.ACCEPTED.value
        connection.responded_at = utc_now()
        self.session.add(connection)
        notification = await notify(
            self.session,
            connection.requester_id,
            NotificationType.CONNECTION_ACCEPTED.value,
            "Connection accepted",
            f"{user.name} accepted your connection request",
            data={"connection_id": connection.id, "user_id": user.id},
            action_url="/connections",
            commit=False,
        )
        await self.session.commit()
        await publish_notifications(notification)
        await self.session.refresh(connection)
        return connection

    async def reject(self, user: User, connection_id: str) -> UserConnection:
        connection = await self._incoming(user, connection_id)
        connection.status = ConnectionStatus.REJECTED.value
        connection.responded_at = utc_now()
        self.session.add(connection)
        await self.session.commit()
        await self.session.refresh(connection)
        return connection

    async def remove(self, user: User, connection_id: str) -> None:
        connection = await self.session.get(UserConnection, connection_id)
        if connection is None or user.id not in (connection.requester_id, connection.addressee_id):
            raise NotFoundError("Connection")
        await self.session.delete(connection)
        await self.session.commit()

    # ------------------------------------------------------------------
    # Follows
    # ------------------------------------------------------------------

    async def follow(self, user: User, following_id: str) -> UserFollow:
        if following_id == user.id:
            raise BadRequestError("You cannot follow yourself")
        await self._active_user(following_id)
        existing = await self.session.execute(
            select(UserFollow).where(UserFollow.follower_id == user.id, UserFollow.following_id == following_id)
        )
        if existing.scalars().first() is not None:
            raise ConflictError("You already follow this user")
        await self.rate_limiter.check(user.id, "follow")
        follow = UserFollow(follower_id=user.id, following_id=following_id)
        self.session.add(follow)
        await self.session.commit()
        await self.session.refresh(follow)
        return follow

    async def unfollow(self, user: User, following_id: str) -> None:
        result = await self.session.execute(
            select(UserFollow).where(UserFollow.follower_id == user.id, UserFollow.following_id == following_id)
        )
        follow = result.scalars().first()
        if follow is None:
            raise NotFoundError("Follow")
        await self.session.delete(follow)
        await self.session.commit()

    async def _related(self, rows: List[UserFollow], attr: str) -> List[Dict[str, Any]]:
        ids = [getattr(row, attr) for row in rows]
        users = await self._users(ids)
        return [{**_peer(users.get(uid), uid), "since": row.created_at} for row, uid in zip(rows, ids)]

    async def following(self, user: User) -> List[Dict[str, Any]]:
        result = await self.session.execute(
            select(UserFollow).where(UserFollow.follower_id == user.id).order_by(UserFollow.created_at.desc())
        )
        return await self._related(list(result.scalars().all()), "following_id")

    async def followers(self, user: User) -> List[Dict[str, Any]]:
        result = await self.session.execute(
            select(UserFollow).where(UserFollow.following_id == user.id).order_by(UserFollow.created_at.desc())
        )
        return await self._related(list(result.scalars().all()), "follower_id")

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------

    async def block(self, user: User, blocked_id: str) -> UserBlock:
        """Block a user; any connection and follows between the two are removed."""
        if blocked_id == user.id:
            raise BadRequestError("You cannot block yourself")
        await self._active_user(blocked_id)
        existing = await self.session.execute(
            select(UserBlock).where(UserBlock.blocker_id == user.id, UserBlock.blocked_id == blocked_id)
        )
        block = existing.scalars().first()
        if block is not None:
            return block

        pair = {user.id, blocked_id}
        connections = await self.session.execute(
            select(UserConnection).where(
                UserConnection.requester_id.in_(list(pair)), UserConnection.addressee_id.in_(list(pair))
            )
        )
        for connection in connections.scalars().all():
            await self.session.delete(connection)
        follows = await self.session.execute(
            select(UserFollow).where(UserFollow.follower_id.in_(list(pair)), UserFollow.following_id.in_(list(pair)))
        )
        for follow in follows.scalars().all():
            await self.session.delete(follow)

        block = UserBlock(blocker_id=user.id, blocked_id=blocked_id)
        self.session.add(block)
        await self.session.commit()
        await self.session.refresh(block)
        return block

    async def unblock(self, user: User, blocked_id: str) -> None:
        result = await self.session.execute(
            select(UserBlock).where(UserBlock.blocker_id == user.id, UserBlock.blocked_id == blocked_id)
        )
        block = result.scalars().first()
        if block is None:
            raise NotFoundError("Block")
        await self.session.delete(block)
        await self.session.commit()
