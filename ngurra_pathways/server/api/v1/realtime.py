"""
Real-time WebSocket Endpoint.

Clients connect with ``/api/v1/ws?token=<access token>``. Every message in
either direction is a JSON object ``{"event": ..., "data": {...}}``; server
messages also carry a ``timestamp``.

Client events:
- ``conversation:join`` / ``conversation:leave`` with ``conversation_id``
- ``message:typing`` with ``conversation_id`` and ``is_typing``
- ``presence:update`` with ``status`` (online, idle, offline)
- ``ping``
"""

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ngurra_pathways.core.database.entities.users import User
from ngurra_pathways.core.database.session import get_session_factory
from ngurra_pathways.core.errors import AuthenticationError
from ngurra_pathways.core.logging_config import get_logger
from ngurra_pathways.server.core.constant import WS_CLOSE_UNAUTHORIZED
from ngurra_pathways.server.services.auth import AuthService
from ngurra_pathways.server.services.messaging import MessagingService
from ngurra_pathways.server.services.realtime import PRESENCE_STATUSES, conversation_room, manager

logger = get_logger(__name__)
router = APIRouter()


async def handle_client_event(
    websocket: WebSocket, user: User, message: Any, session: AsyncSession
) -> None:
    """Dispatch one decoded client message."""
    if not isinstance(message, dict) or not isinstance(message.get("event"), str):
        await manager.send(websocket, "error", {"message": "Malformed event"})
        return
    event = message["event"]
    data = message.get("data")
    if data is None:
        data = {}
    if not isinstance(data, dict):
        await manager.send(websocket, "error", {"message": "Malformed event data"})
        return

    if event == "ping":
        await manager.send(websocket, "pong", {})

    elif event == "conversation:join":
        conversation_id = data.get("conversation_id")
        if not conversation_id or not await MessagingService(session).is_participant(conversation_id, user.id):
            await manager.send(websocket, "error", {"message": "Not a participant of this conversation"})
            return
        manager.join(websocket, conversation_room(conversation_id))
        await manager.send(websocket, "conversation:joined", {"conversation_id": conversation_id})

    elif event == "conversation:leave":
        conversation_id = data.get("conversation_id")
        if conversation_id:
            manager.leave(websocket, conversation_room(conversation_id))
        await manager.send(websocket, "conversation:left", {"conversation_id": conversation_id})

    elif event == "message:typing":
        conversation_id = data.get("conversation_id")
        room = conversation_room(conversation_id) if conversation_id else None
        if room is None or websocket not in manager.room_members(room):
            await manager.send(websocket, "error", {"message": "Join the conversation first"})
            return
        await manager.send_to_room(
            room,
            "message:typing",
            {
                "conversation_id": conversation_id,
                "user_id": user.id,
                "name": user.name,
                "is_typing": bool(data.get("is_typing", True)),
            },
            exclude=websocket,
        )

    elif event == "presence:update":
        status = data.get("status")
        if status not in PRESENCE_STATUSES:
            await manager.send(websocket, "error", {"message": f"Invalid presence status: {status}"})
            return
        manager.set_presence(user.id, status)
        await manager.broadcast("presence:update", {"user_id": user.id, "status": status}, exclude=websocket)

    else:
        await manager.send(websocket, "error", {"message": f"Unknown event: {event}"})


@router.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    token: Optional[str] = Query(default=None),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
):
    """
    Real-time channel for messages, notifications and presence.

    The socket is closed with code 4401 when the token is missing or invalid.
    Database work runs in a short-lived session per event, so an idle socket
    holds no pooled connection.
    """
    async with session_factory() as session:
        try:
            user = await AuthService(session).authenticate(token)
        except AuthenticationError as e:
            await websocket.accept()
            await websocket.close(code=WS_CLOSE_UNAUTHORIZED, reason=e.message)
            logger.info(f"Rejected WebSocket connection: {e.message}")
            return

    await manager.connect(websocket, user.id)
    await manager.send(websocket, "authenticated", {"user_id": user.id})
    await manager.broadcast("presence:update", {"user_id": user.id, "status": "online"}, exclude=websocket)

    try:
        while True:
            try:
                message = await websocket.receive_json()
            except ValueError:
                await manager.send(websocket, "error", {"message": "Invalid JSON"})
                continue
            async with session_factory() as session:
                await handle_client_event(websocket, user, message, session)
    except WebSocketDisconnect:
        logger.debug(f"WebSocket closed by client for user {user.id}")
    finally:
        offline_user = manager.disconnect(websocket)
        if offline_user is not None:
            await manager.broadcast("presence:update", {"user_id": offline_user, "status": "offline"})
