"""
Real-time event hub for WebSocket clients.

Each connected socket belongs to one user and may join any number of rooms.
Every socket joins ``user:{id}`` on connect; clients additionally join
``conversation:{id}`` rooms they participate in. Services publish events to
rooms through the module-level ``manager``.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Set

from fastapi import WebSocket, WebSocketDisconnect

from ngurra_pathways.core.logging_config import get_logger

logger = get_logger(__name__)

PRESENCE_STATUSES = ("online", "idle", "offline")


def user_room(user_id: str) -> str:
    return f"user:{user_id}"


def conversation_room(conversation_id: str) -> str:
    return f"conversation:{conversation_id}"


def build_event(event: str, data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Envelope shared by every server-sent event."""
    return {
        "event": event,
        "data": data or {},
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


class ConnectionManager:
    """Tracks sockets, room membership and user presence."""

    def __init__(self) -> None:
        # room -> sockets
        self.rooms: Dict[str, Set[WebSocket]] = {}
        # socket -> rooms it joined
        self.socket_rooms: Dict[WebSocket, Set[str]] = {}
        # socket -> owning user
        self.socket_users: Dict[WebSocket, str] = {}
        # user -> presence status
        self.presence: Dict[str, str] = {}

    async def connect(self, websocket: WebSocket, user_id: str, accept: bool = True) -> None:
        """Accept a socket and register it in the user's personal room."""
        if accept:
            await websocket.accept()
        self.socket_users[websocket] = user_id
        self.socket_rooms[websocket] = set()
        self.join(websocket, user_room(user_id))
        self.presence[user_id] = "online"
        logger.info(f"WebSocket connected for user {user_id}")

    def disconnect(self, websocket: WebSocket) -> Optional[str]:
        """Forget a socket.

        Returns:
            The user id when that user has no sockets left, otherwise None.
        """
        user_id = self.socket_users.pop(websocket, None)
        for room in self.socket_rooms.pop(websocket, set()):
            members = self.rooms.get(room)
            if members is not None:
                members.discard(websocket)
                if not members:
                    del self.rooms[room]

        if user_id is None:
            return None
        if self.is_connected(user_id):
            return None
        self.presence[user_id] = "offline"
        logger.info(f"WebSocket disconnected for user {user_id}")
        return user_id

    def join(self, websocket: WebSocket, room: str) -> None:
        self.rooms.setdefault(room, set()).add(websocket)
        self.socket_rooms.setdefault(websocket, set()).add(room)

    def leave(self, websocket: WebSocket, room: str) -> None:
        members = self.rooms.get(room)
        if members is not None:
            members.discard(websocket)
            if not members:
                del self.rooms[room]
        self.socket_rooms.get(websocket, set()).discard(room)

    def is_connected(self, user_id: str) -> bool:
        return any(owner == user_id for owner in self.socket_users.values())

    def set_presence(self, user_id: str, status: str) -> None:
        if status not in PRESENCE_STATUSES:
            raise ValueError(f"Unknown presence status: {status}")
        self.presence[user_id] = status

    def get_presence(self, user_id: str) -> str:
        return self.presence.get(user_id, "offline")

    def room_members(self, room: str) -> List[WebSocket]:
        return list(self.rooms.get(room, ()))

    async def send(self, websocket: WebSocket, event: str, data: Optional[Dict[str, Any]] = None) -> bool:
        """Send one event to one socket. A socket that fails is dropped."""
        try:
            await websocket.send_json(build_event(event, data))
            return True
        except (WebSocketDisconnect, ConnectionError, RuntimeError) as e:
            logger.debug(f"WebSocket connection closed during send: {e}")
            self.disconnect(websocket)
            return False

    async def _send_many(
        self,
        sockets: Iterable[WebSocket],
        event: str,
        data: Optional[Dict[str, Any]],
        exclude: Optional[WebSocket],
    ) -> int:
        delivered = 0
        for websocket in list(sockets):
            if websocket is exclude:
                continue
            if await self.send(websocket, event, data):
                delivered += 1
        return delivered

    async def send_to_room(
        self,
        room: str,
        event: str,
        data: Optional[Dict[str, Any]] = None,
        exclude: Optional[WebSocket] = None,
    ) -> int:
        """Publish an event to every socket in a room.

        Returns:
            Number of sockets the event reached.
        """
        return await self._send_many(self.room_members(room), event, data, exclude)

    async def send_to_user(self, user_id: str, event: str, data: Optional[Dict[str, Any]] = None) -> int:
        return await self.send_to_room(user_room(user_id), event, data)

    async def broadcast(self, event: str, data: Optional[Dict[str, Any]] = None, exclude: Optional[WebSocket] = None) -> int:
        """Publish an event to every connected socket."""
        return await self._send_many(self.socket_users.keys(), event, data, exclude)


manager = ConnectionManager()
