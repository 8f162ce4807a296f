"""
Direct messaging entities.

Tables:
- conversations: Direct (two people) or group threads
- conversation_participants: Membership with per-user unread/mute state
- direct_messages: Messages, soft-deleted in place
"""

from enum import Enum
from typing import Optional

from pydantic import NaiveDatetime
from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field

from ..base import Base
from ..utils import new_id, utc_now


class ConversationType(str, Enum):
    DIRECT = "direct"
    GROUP = "group"


class ParticipantRole(str, Enum):
    ADMIN = "admin"
    MEMBER = "member"


class Conversation(Base, table=True):
    """Table: conversations"""

    __tablename__ = "conversations"
    __table_args__ = ({"extend_existing": True},)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    type: str = Field(default=ConversationType.DIRECT.value, max_length=10)
    name: Optional[str] = Field(default=None, max_length=120)
    creator_id: str = Field(foreign_key="users.id", max_length=36)
    created_at: NaiveDatetime = Field(default_factory=utc_now, sa_type=DateTime())
    updated_at: NaiveDatetime = Field(default_factory=utc_now, index=True, sa_type=DateTime())


class ConversationParticipant(Base, table=True):
    """Table: conversation_participants"""

    __tablename__ = "conversation_participants"
    __table_args__ = (
        UniqueConstraint("conversation_id", "user_id", name="uq_conversation_participants_conv_user"),
        {"extend_existing": True},
    )

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    conversation_id: str = Field(foreign_key="conversations.id", index=True, max_length=36)
    user_id: str = Field(foreign_key="users.id", index=True, max_length=36)
    role: str = Field(default=ParticipantRole.MEMBER.value, max_length=10)
    unread_count: int = Field(default=0)
    last_read_at: Optional[NaiveDatetime] = Field(default=None, sa_type=DateTime())
    is_muted: bool = Field(default=False)
    muted_until: Optional[NaiveDatetime] = Field(default=None, sa_type=DateTime())
    has_left: bool = Field(default=False)
    left_at: Optional[NaiveDatetime] = Field(default=None, sa_type=DateTime())
    joined_at: NaiveDatetime = Field(default_factory=utc_now, sa_type=DateTime())


class DirectMessage(Base, table=True):
    """Table: direct_messages"""

    __tablename__ = "direct_messages"
    __table_args__ = ({"extend_existing": True},)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    conversation_id: str = Field(foreign_key="conversations.id", index=True, max_length=36)
    sender_id: str = Field(foreign_key="users.id", index=True, max_length=36)
    content: Optional[str] = Field(default=None)
    message_type: str = Field(default="text", max_length=20)
    media_url: Optional[str] = Field(default=None)
    media_type: Optional[str] = Field(default=None, max_length=100)
    file_name: Optional[str] = Field(default=None, max_length=255)
    file_size: Optional[int] = Field(default=None)
    is_edited: bool = Field(default=False)
    is_deleted: bool = Field(default=False)
    deleted_at: Optional[NaiveDatetime] = Field(default=None, sa_type=DateTime())
    created_at: NaiveDatetime = Field(default_factory=utc_now, index=True, sa_type=DateTime())
    updated_at: NaiveDatetime = Field(
        default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now}, sa_type=DateTime()
    )
