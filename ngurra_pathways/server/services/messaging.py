"""
Direct messaging service.

A conversation is visible to a user while they hold a participant row with
``has_left`` unset. Sending a message bumps the conversation's ``updated_at``
and the unread counter of every other current participant; opening the
conversation resets the caller's counter.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ngurra_pathways.core.database.entities.messaging import (
    Conversation,
    ConversationParticipant,
    ConversationType,
    DirectMessage,
    ParticipantRole,
)
from ngurra_pathways.core.database.entities.users import User
from ngurra_pathways.core.database.utils import utc_now
from ngurra_pathways.core.errors import BadRequestError, NotFoundError
from ngurra_pathways.core.logging_config import get_logger
from ngurra_pathways.core.models.io.messaging import ConversationCreate, MessageCreate

from .rate_limit import RateLimiter
from .realtime import conversation_room, manager

logger = get_logger(__name__)

DELETED_PLACEHOLDER = "Message deleted"


def is_muted(participant: ConversationParticipant, now: Optional[datetime] = None) -> bool:
    """A mute with an elapsed ``muted_until`` no longer applies."""
    if not participant.is_muted:
        return False
    if participant.muted_until is None:
        return True
    return participant.muted_until > (now or utc_now())


def serialize_message(message: DirectMessage, sender: Optional[User]) -> Dict[str, Any]:
    return {
        "id": message.id,
        "conversation_id": message.conversation_id,
        "sender_id": message.sender_id,
        "sender_name": sender.name if sender else None,
        "sender_avatar": sender.avatar_url if sender else None,
        "content": message.content,
        "message_type": message.message_type,
        "media_url": message.media_url,
        "media_type": message.media_type,
        "file_name": message.file_name,
        "file_size": message.file_size,
        "is_edited": message.is_edited,
        "is_deleted": message.is_deleted,
        "created_at": message.created_at,
    }


class MessagingService:
    """Conversations and messages of one caller."""

    def __init__(self, session: AsyncSession, rate_limiter: Optional[RateLimiter] = None):
        self.session = session
        self.rate_limiter = rate_limiter or RateLimiter(session)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def _participant(
        self, conversation_id: str, user_id: str, current_only: bool = True
    ) -> ConversationParticipant:
        stmt = select(ConversationParticipant).where(
            ConversationParticipant.conversation_id == conversation_id,
            ConversationParticipant.user_id == user_id,
        )
        if current_only:
            stmt = stmt.where(ConversationParticipant.has_left.is_(False))
        participant = (await self.session.execute(stmt)).scalars().first()
        if participant is None:
            raise NotFoundError("Conversation")
        return participant

    async def is_participant(self, conversation_id: str, user_id: str) -> bool:
        try:
            await self._participant(conversation_id, user_id)
        except NotFoundError:
            return False
        return True

    async def _users(self, user_ids: Sequence[str]) -> Dict[str, User]:
        if not user_ids:
            return {}
        result = await self.session.execute(select(User).where(User.id.in_(list(user_ids))))
        return {user.id: user for user in result.scalars().all()}

    async def _participants_of(self, conversation_ids: Sequence[str]) -> List[ConversationParticipant]:
        if not conversation_ids:
            return []
        result = await self.session.execute(
            select(ConversationParticipant).where(ConversationParticipant.conversation_id.in_(list(conversation_ids)))
        )
        return list(result.scalars().all())

    async def _last_message(self, conversation_id: str) -> Optional[DirectMessage]:
        result = await self.session.execute(
            select(DirectMessage)
            .where(DirectMessage.conversation_id == conversation_id)
            .order_by(DirectMessage.created_at.desc())
            .limit(1)
        )
        return result.scalars().first()

    @staticmethod
    def _participant_view(participant: ConversationParticipant, users: Dict[str, User]) -> Dict[str, Any]:
        user = users.get(participant.user_id)
        return {
            "user_id": participant.user_id,
            "name": user.name if user else "Unknown user",
            "avatar_url": user.avatar_url if user else None,
            "role": participant.role,
        }

    # ------------------------------------------------------------------
    # Conversations
    # ------------------------------------------------------------------

    async def list_conversations(self, user: User) -> List[Dict[str, Any]]:
        """Conversations the user has not left, most recently active first."""
        result = await self.session.execute(
            select(Conversation, ConversationParticipant)
            .join(ConversationParticipant, ConversationParticipant.conversation_id == Conversation.id)
            .where(ConversationParticipant.user_id == user.id, ConversationParticipant.has_left.is_(False))
            .order_by(Conversation.updated_at.desc())
        )
        rows = result.all()
        conversation_ids = [conversation.id for conversation, _ in rows]

        others: Dict[str, List[ConversationParticipant]] = {cid: [] for cid in conversation_ids}
        for participant in await self._participants_of(conversation_ids):
            if participant.user_id != user.id and not participant.has_left:
                others[participant.conversation_id].append(participant)
        users = await self._users({p.user_id for members in others.values() for p in members})

        now = utc_now()
        summaries = []
        for conversation, own in rows:
            participants = [self._participant_view(p, users) for p in others[conversation.id]]
            last = await self._last_message(conversation.id)
            name = conversation.name or ", ".join(p["name"] for p in participants) or None
            summaries.append(
                {
                    "id": conversation.id,
                    "type": conversation.type,
                    "name": name,
                    "participants": participants,
                    "last_message": (
                        {
                            "id": last.id,
                            "content": DELETED_PLACEHOLDER if last.is_deleted else last.content,
                            "sender_id": last.sender_id,
                            "created_at": last.created_at,
                        }
                        if last
                        else None
                    ),
                    "unread_count": own.unread_count,
                    "is_muted": is_muted(own, now),
                    "updated_at": conversation.updated_at,
                }
            )
        return summaries

    async def _find_direct(self, user_id: str, other_id: str) -> Optional[str]:
        """Id of the direct conversation between exactly these two users."""
        result = await self.session.execute(
            select(Conversation.id)
            .join(ConversationParticipant, ConversationParticipant.conversation_id == Conversation.id)
            .where(Conversation.type == ConversationType.DIRECT.value, ConversationParticipant.user_id == user_id)
        )
        candidate_ids = [row[0] for row in result.all()]
        members: Dict[str, set] = {cid: set() for cid in candidate_ids}
        for participant in await self._participants_of(candidate_ids):
            members[participant.conversation_id].add(participant.user_id)
        for conversation_id, user_ids in members.items():
            if user_ids == {user_id, other_id}:
                return conversation_id
        return None

    async def create_conversation(self, user: User, data: ConversationCreate) -> Dict[str, Any]:
        """
        Start a conversation, or reuse the existing direct conversation with a
        single participant.

        Returns:
            ``{"conversation": {"id"}, "is_existing": bool}``
        """
        if not data.participant_ids:
            raise BadRequestError("At least one participant is required")
        participant_ids = list(dict.fromkeys(pid for pid in data.participant_ids if pid != user.id))
        if not participant_ids:
            raise BadRequestError("At least one other participant is required")

        users = await self._users(participant_ids)
        missing = [pid for pid in participant_ids if pid not in users or not users[pid].is_active]
        if missing:
            raise NotFoundError("User", f"User not found: {missing[0]}")

        conversation_type = data.type.value
        if conversation_type == ConversationType.DIRECT.value and len(participant_ids) == 1:
            existing_id = await self._find_direct(user.id, participant_ids[0])
            if existing_id is not None:
                own = await self._participant(existing_id, user.id, current_only=False)
                if own.has_left:
                    own.has_left = False
                    own.left_at = None
                    self.session.add(own)
                    await self.session.commit()
                return {"conversation": {"id": existing_id}, "is_existing": True}

        conversation = Conversation(
            type=conversation_type,
            name=data.name if conversation_type == ConversationType.GROUP.value else None,
            creator_id=user.id,
        )
        self.session.add(conversation)
        await self.session.flush()

        self.session.add(
            ConversationParticipant(conversation_id=conversation.id, user_id=user.id, role=ParticipantRole.ADMIN.value)
        )
        for pid in participant_ids:
            self.session.add(
                ConversationParticipant(conversation_id=conversation.id, user_id=pid, role=ParticipantRole.MEMBER.value)
            )
        await self.session.flush()

        message = None
        if data.initial_message and data.initial_message.strip():
            message = await self._insert_message(conversation, user, MessageCreate(content=data.initial_message))

        await self.session.commit()
        logger.info(f"Conversation {conversation.id} created by {user.id} with {len(participant_ids)} participants")

        if message is not None:
            await self._publish_message(conversation.id, message, user)
        return {"conversation": {"id": conversation.id}, "is_existing": False}

    async def get_conversation(
        self, user: User, conversation_id: str, limit: int = 50, before: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """Latest page of messages in ascending order; marks the conversation read."""
        own = await self._participant(conversation_id, user.id)
        conversation = await self.session.get(Conversation, conversation_id)
        if conversation is None:
            raise NotFoundError("Conversation")

        stmt = select(DirectMessage).where(DirectMessage.conversation_id == conversation_id)
        if before is not None:
            stmt = stmt.where(DirectMessage.created_at < before)
        stmt = stmt.order_by(DirectMessage.created_at.desc()).limit(limit + 1)
        page = list((await self.session.execute(stmt)).scalars().all())
        has_more = len(page) > limit
        page = list(reversed(page[:limit]))

        participants = [p for p in await self._participants_of([conversation_id]) if not p.has_left]
        users = await self._users({p.user_id for p in participants} | {m.sender_id for m in page})

        own.unread_count = 0
        own.last_read_at = utc_now()
        self.session.add(own)
        await self.session.commit()

        return {
            "conversation": {
                "id": conversation.id,
                "type": conversation.type,
                "name": conversation.name,
                "created_at": conversation.created_at,
                "updated_at": conversation.updated_at,
            },
            "participants": [self._participant_view(p, users) for p in participants],
            "messages": [serialize_message(m, users.get(m.sender_id)) for m in page],
            "has_more": has_more,
        }

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    async def _insert_message(self, conversation: Conversation, sender: User, data: MessageCreate) -> DirectMessage:
        now = utc_now()
        message = DirectMessage(
            conversation_id=conversation.id,
            sender_id=sender.id,
            content=data.content,
            message_type=data.message_type,
            media_url=data.media_url,
            media_type=data.media_type,
            file_name=data.file_name,
            file_size=data.file_size,
            created_at=now,
            updated_at=now,
        )
        self.session.add(message)
        conversation.updated_at = now
        self.session.add(conversation)
        await self.session.execute(
            update(ConversationParticipant)
            .where(
                ConversationParticipant.conversation_id == conversation.id,
                ConversationParticipant.user_id != sender.id,
                ConversationParticipant.has_left.is_(False),
            )
            .values(unread_count=ConversationParticipant.unread_count + 1)
        )
        await self.session.flush()
        return message

    async def _publish_message(self, conversation_id: str, message: DirectMessage, sender: User) -> None:
        payload = serialize_message(message, sender)
        payload["created_at"] = message.created_at.isoformat()
        await manager.send_to_room(conversation_room(conversation_id), "message:new", payload)

        participants = await self._participants_of([conversation_id])
        for participant in participants:
            if participant.user_id == sender.id or participant.has_left:
                continue
            await manager.send_to_user(
                participant.user_id,
                "notification:new",
                {
                    "type": "NEW_MESSAGE",
                    "title": f"New message from {sender.name}",
                    "message": (message.content or message.file_name or "Sent an attachment")[:100],
                    "data": {"conversation_id": conversation_id, "message_id": message.id},
                },
            )

    async def send_message(self, user: User, conversation_id: str, data: MessageCreate) -> Dict[str, Any]:
        if not (data.content and data.content.strip()) and not data.media_url:
            raise BadRequestError("Message content or media is required")
        await self._participant(conversation_id, user.id)
        conversation = await self.session.get(Conversation, conversation_id)
        if conversation is None:
            raise NotFoundError("Conversation")

        await self.rate_limiter.check(user.id, "message")
        message = await self._insert_message(conversation, user, data)
        await self.session.commit()

        await self._publish_message(conversation_id, message, user)
        return serialize_message(message, user)

    async def delete_message(self, user: User, conversation_id: str, message_id: str) -> None:
        """Soft-delete one of the caller's own messages."""
        result = await self.session.execute(
            select(DirectMessage).where(
                DirectMessage.id == message_id,
                DirectMessage.conversation_id == conversation_id,
                DirectMessage.sender_id == user.id,
            )
        )
        message = result.scalars().first()
        if message is None:
            raise NotFoundError("Message")

        message.is_deleted = True
        message.deleted_at = utc_now()
        message.content = None
        self.session.add(message)
        await self.session.commit()
        await manager.send_to_room(
            conversation_room(conversation_id),
            "message:deleted",
            {"conversation_id": conversation_id, "message_id": message_id},
        )

    # ------------------------------------------------------------------
    # Participant state
    # ------------------------------------------------------------------

    async def mark_read(self, user: User, conversation_id: str) -> None:
        participant = await self._participant(conversation_id, user.id, current_only=False)
        participant.unread_count = 0
        participant.last_read_at = utc_now()
        self.session.add(participant)
        await self.session.commit()

    async def mute(self, user: User, conversation_id: str, duration_hours: Optional[int] = None) -> Optional[datetime]:
        """Mute notifications; ``None`` duration mutes until unmuted."""
        participant = await self._participant(conversation_id, user.id, current_only=False)
        participant.is_muted = True
        participant.muted_until = utc_now() + timedelta(hours=duration_hours) if duration_hours else None
        self.session.add(participant)
        await self.session.commit()
        return participant.muted_until

    async def unmute(self, user: User, conversation_id: str) -> None:
        participant = await self._participant(conversation_id, user.id, current_only=False)
        participant.is_muted = False
        participant.muted_until = None
        self.session.add(participant)
        await self.session.commit()

    async def leave(self, user: User, conversation_id: str) -> None:
        participant = await self._participant(conversation_id, user.id, current_only=False)
        participant.has_left = True
        participant.left_at = utc_now()
        self.session.add(participant)
        await self.session.commit()

    async def unread_count(self, user: User) -> int:
        """Unread messages over conversations not left and not muted."""
        result = await self.session.execute(
            select(ConversationParticipant).where(
                ConversationParticipant.user_id == user.id, ConversationParticipant.has_left.is_(False)
            )
        )
        now = utc_now()
        return sum(p.unread_count for p in result.scalars().all() if not is_muted(p, now))
