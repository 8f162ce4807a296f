"""
Direct messaging I/O models.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ngurra_pathways.core.database.entities.messaging import ConversationType


class ConversationCreate(BaseModel):
    participant_ids: List[str] = Field(description="Users to add besides the caller")
    name: Optional[str] = Field(default=None, max_length=120)
    type: ConversationType = ConversationType.DIRECT
    initial_message: Optional[str] = Field(default=None, max_length=5000)


class ConversationRef(BaseModel):
    id: str


class ConversationCreated(BaseModel):
    conversation: ConversationRef
    is_existing: bool


class ParticipantRead(BaseModel):
    user_id: str
    name: str
    avatar_url: Optional[str] = None
    role: str


class LastMessage(BaseModel):
    id: str
    content: Optional[str] = None
    sender_id: str
    created_at: datetime


class ConversationSummary(BaseModel):
    id: str
    type: str
    name: Optional[str] = None
    participants: List[ParticipantRead]
    last_message: Optional[LastMessage] = None
    unread_count: int
    is_muted: bool
    updated_at: datetime


class MessageCreate(BaseModel):
    content: Optional[str] = Field(default=None, max_length=5000)
    message_type: str = Field(default="text", max_length=20)
    media_url: Optional[str] = None
    media_type: Optional[str] = Field(default=None, max_length=100)
    file_name: Optional[str] = Field(default=None, max_length=255)
    file_size: Optional[int] = Field(default=None, ge=0)


class MessageRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    conversation_id: str
    sender_id: str
    sender_name: Optional[str] = None
    sender_avatar: Optional[str] = None
    content: Optional[str] = None
    message_type: str
    media_url: Optional[str] = None
    media_type: Optional[str] = None
    file_name: Optional[str] = None
    file_size: Optional[int] = None
    is_edited: bool
    is_deleted: bool
    created_at: datetime


class ConversationInfo(BaseModel):
    id: str
    type: str
    name: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ConversationDetail(BaseModel):
    conversation: ConversationInfo
    participants: List[ParticipantRead]
    messages: List[MessageRead]
    has_more: bool


class MuteRequest(BaseModel):
    duration_hours: Optional[int] = Field(default=None, ge=1, le=24 * 365, description="Omit to mute indefinitely")


class MuteResponse(BaseModel):
    success: bool = True
    muted_until: Optional[datetime] = None


class UnreadCount(BaseModel):
    unread_count: int
