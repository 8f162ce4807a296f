"""
Connections API Endpoints.

Two-sided connection requests, one-sided follows and blocks.
"""

from typing import List

from fastapi import APIRouter, status

from ngurra_pathways.core.models.io.common import MessageResponse
from ngurra_pathways.core.models.io.feed import (
    BlockRequest,
    ConnectionPeer,
    ConnectionRead,
    ConnectionRequestCreate,
    FollowRequest,
    RelatedUser,
)
from ngurra_pathways.server.services.connections import ConnectionService
from ngurra_pathways.server.services.deps import CurrentUser, DBSession

router = APIRouter()


@router.get(
    "",
    response_model=List[ConnectionPeer],
    summary="List Connections",
    description="Accepted connections of the caller.",
)
async def list_connections(user: CurrentUser, session: DBSession) -> List[ConnectionPeer]:
    return [ConnectionPeer.model_validate(c) for c in await ConnectionService(session).list_connections(user)]


@router.get(
    "/requests",
    response_model=List[ConnectionPeer],
    summary="Pending Requests",
    description="Connection requests waiting for the caller's answer.",
)
async def pending_requests(user: CurrentUser, session: DBSession) -> List[ConnectionPeer]:
    return [ConnectionPeer.model_validate(c) for c in await ConnectionService(session).pending_requests(user)]


@router.post(
    "/request",
    response_model=ConnectionRead,
    status_code=status.HTTP_201_CREATED,
    summary="Send Connection Request",
    responses={
        400: {"description": "Cannot connect with yourself"},
        404: {"description": "User not found"},
        409: {"description": "A connection already exists"},
        429: {"description": "Connection request rate limit exceeded"},
    },
)
async def send_request(data: ConnectionRequestCreate, user: CurrentUser, session: DBSession) -> ConnectionRead:
    """
    Ask another member to connect.

    - **addressee_id**: The member to connect with.
    - **message**: Optional note shown with the request.
    """
    connection = await ConnectionService(session).request(user, data.addressee_id, data.message)
    return ConnectionRead.model_validate(connection)


@router.put(
    "/{connection_id}/accept",
    response_model=ConnectionRead,
    summary="Accept Request",
    responses={400: {"description": "Request is not pending"}, 404: {"description": "Request not found"}},
)
async def accept(connection_id: str, user: CurrentUser, session: DBSession) -> ConnectionRead:
    return ConnectionRead.model_validate(await ConnectionService(session).accept(user, connection_id))


@router.put(
    "/{connection_id}/reject",
    response_model=ConnectionRead,
    summary="Reject Request",
    responses={400: {"description": "Request is not pending"}, 404: {"description": "Request not found"}},
)
async def reject(connection_id: str, user: CurrentUser, session: DBSession) -> ConnectionRead:
    return ConnectionRead.model_validate(await ConnectionService(session).reject(user, connection_id))


@router.post(
    "/follow",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Follow Member",
    responses={
        400: {"description": "Cannot follow yourself"},
        404: {"description": "User not found"},
        409: {"description": "Already following"},
        429: {"description": "Follow rate limit exceeded"},
    },
)
async def follow(data: FollowRequest, user: CurrentUser, session: DBSession) -> MessageResponse:
    await ConnectionService(session).follow(user, data.following_id)
    return MessageResponse(message="Now following")


@router.delete(
    "/follow/{following_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Unfollow Member",
    responses={404: {"description": "Not following"}},
)
async def unfollow(following_id: str, user: CurrentUser, session: DBSession):
    await ConnectionService(session).unfollow(user, following_id)


@router.get("/following", response_model=List[RelatedUser], summary="Followed Members")
async def following(user: CurrentUser, session: DBSession) -> List[RelatedUser]:
    return [RelatedUser.model_validate(r) for r in await ConnectionService(session).following(user)]


@router.get("/followers", response_model=List[RelatedUser], summary="Followers")
async def followers(user: CurrentUser, session: DBSession) -> List[RelatedUser]:
    return [RelatedUser.model_validate(r) for r in await ConnectionService(session).followers(user)]


@router.post(
    "/block",
    response_model=MessageResponse,
    summary="Block Member",
    description="Block a member. Existing connections and follows between the two are removed.",
    responses={400: {"description": "Cannot block yourself"}, 404: {"description": "User not found"}},
)
async def block(data: BlockRequest, user: CurrentUser, session: DBSession) -> MessageResponse:
    await ConnectionService(session).block(user, data.blocked_id)
    return MessageResponse(message="User blocked")


@router.delete(
    "/block/{blocked_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Unblock Member",
    responses={404: {"description": "User is not blocked"}},
)
async def unblock(blocked_id: str, user: CurrentUser, session: DBSession):
    await ConnectionService(session).unblock(user, blocked_id)


@router.delete(
    "/{connection_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove Connection",
    description="Remove a connection. Either party may do this.",
    responses={404: {"description": "Connection not found"}},
)
async def remove(connection_id: str, user: CurrentUser, session: DBSession):
    await ConnectionService(session).remove(user, connection_id)
