"""
Direct Messaging API Endpoints.

Conversations between members, their messages and per-participant state
(read markers, mute, leave). New messages are also pushed over the
real-time channel.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Query, Response, status

from ngurra_pathways.core.models.io.common import MessageResponse
from ngurra_pathways.core.models.io.messaging import (
    ConversationCreate,
    ConversationCreated,
    ConversationDetail,
    ConversationSummary,
    MessageCreate,
    MessageRead,
    MuteRequest,
    MuteResponse,
    UnreadCount,
)
from ngurra_pathways.server.services.deps import CurrentUser, DBSession
from ngurra_pathways.server.services.messaging import MessagingService

router = APIRouter()


@router.get(
    "/conversations",
    response_model=List[ConversationSummary],
    summary="List Conversations",
    description="Conversations the caller takes part in, most recently active first.",
    response_description="Conversation summaries with the last message and unread count.",
)
async def list_conversations(user: CurrentUser, session: DBSession) -> List[ConversationSummary]:
    conversations = await MessagingService(session).list_conversations(user)
    return [ConversationSummary.model_validate(c) for c in conversations]


@router.post(
    "/conversations",
    response_model=ConversationCreated,
    status_code=status.HTTP_201_CREATED,
    summary="Start Conversation",
    description=(
        "Start a conversation. Starting a direct conversation with someone you already "
        "have one with returns the existing conversation with `is_existing: true`."
    ),
    responses={
        200: {"description": "Existing direct conversation returned"},
        201: {"description": "Conversation created"},
        400: {"description": "No participants given"},
        404: {"description": "A participant does not exist"},
    },
)
async def create_conversation(
    data: ConversationCreate, response: Response, user: CurrentUser, session: DBSession
) -> ConversationCreated:
    """
    Start a conversation.

    - **participant_ids**: Users to talk to (the caller is added automatically).
    - **type**: `direct` or `group`.
    - **name**: Group name, ignored for direct conversations.
    - **initial_message**: Optional first message.
    """
    result = await MessagingService(session).create_conversation(user, data)
    if result["is_existing"]:
        response.status_code = status.HTTP_200_OK
    return ConversationCreated.model_validate(result)


@router.get(
    "/conversations/{conversation_id}",
    response_model=ConversationDetail,
    summary="Get Conversation",
    description="Participants and the latest messages in ascending order. Marks the conversation read.",
    responses={404: {"description": "Conversation not found or caller is not a participant"}},
)
async def get_conversation(
    conversation_id: str,
    user: CurrentUser,
    session: DBSession,
    limit: int = Query(default=50, ge=1, le=100),
    before: Optional[datetime] = Query(default=None, description="Only messages older than this timestamp"),
) -> ConversationDetail:
    detail = await MessagingService(session).get_conversation(user, conversation_id, limit=limit, before=before)
    return ConversationDetail.model_validate(detail)


@router.post(
    "/conversations/{conversation_id}/messages",
    response_model=MessageRead,
    status_code=status.HTTP_201_CREATED,
    summary="Send Message",
    description="Post a message to a conversation the caller participates in.",
    responses={
        400: {"description": "Neither content nor media given"},
        404: {"description": "Conversation not found or caller is not a participant"},
        429: {"description": "Message rate limit exceeded"},
    },
)
async def send_message(
    conversation_id: str, data: MessageCreate, user: CurrentUser, session: DBSession
) -> MessageRead:
    """
    Send a message.

    - **content**: Message text. Required unless `media_url` is set.
    - **message_type**: `text`, `image`, `file`, ...
    - **media_url**: URL of an uploaded attachment.
    """
    return MessageRead.model_validate(await MessagingService(session).send_message(user, conversation_id, data))


@router.delete(
    "/conversations/{conversation_id}/messages/{message_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Message",
    description="Soft-delete one of the caller's own messages.",
    responses={404: {"description": "Message not found"}},
)
async def delete_message(conversation_id: str, message_id: str, user: CurrentUser, session: DBSession):
    await MessagingService(session).delete_message(user, conversation_id, message_id)


@router.post(
    "/conversations/{conversation_id}/read",
    response_model=MessageResponse,
    summary="Mark Conversation Read",
    responses={404: {"description": "Conversation not found"}},
)
async def mark_read(conversation_id: str, user: CurrentUser, session: DBSession) -> MessageResponse:
    await MessagingService(session).mark_read(user, conversation_id)
    return MessageResponse(message="Conversation marked as read")


@router.post(
    "/conversations/{conversation_id}/mute",
    response_model=MuteResponse,
    summary="Mute Conversation",
    description="Mute notifications for a number of hours, or indefinitely when no duration is given.",
    responses={404: {"description": "Conversation not found"}},
)
async def mute(
    conversation_id: str, user: CurrentUser, session: DBSession, data: Optional[MuteRequest] = None
) -> MuteResponse:
    duration = data.duration_hours if data else None
    muted_until = await MessagingService(session).mute(user, conversation_id, duration)
    return MuteResponse(muted_until=muted_until)


@router.delete(
    "/conversations/{conversation_id}/mute",
    response_model=MessageResponse,
    summary="Unmute Conversation",
    responses={404: {"description": "Conversation not found"}},
)
async def unmute(conversation_id: str, user: CurrentUser, session: DBSession) -> MessageResponse:
    await MessagingService(session).unmute(user, conversation_id)
    return MessageResponse(message="Conversation unmuted")


@router.delete(
    "/conversations/{conversation_id}",
    response_model=MessageResponse,
    summary="Leave Conversation",
    description="Leave a conversation. Starting a new direct conversation with the same person rejoins it.",
    responses={404: {"description": "Conversation not found"}},
)
async def leave(conversation_id: str, user: CurrentUser, session: DBSession) -> MessageResponse:
    await MessagingService(session).leave(user, conversation_id)
    return MessageResponse(message="Left conversation")


@router.get(
    "/unread-count",
    response_model=UnreadCount,
    summary="Unread Message Count",
    description="Unread messages across conversations that are neither left nor muted.",
)
async def unread_count(user: CurrentUser, session: DBSession) -> UnreadCount:
    return UnreadCount(unread_count=await MessagingService(session).unread_count(user))
