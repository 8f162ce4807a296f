"""
Notification API Endpoints.
"""

from fastapi import APIRouter, Query, status

from ngurra_pathways.core.models.io.common import CountResponse
from ngurra_pathways.core.models.io.notifications import NotificationList, NotificationRead
from ngurra_pathways.server.services.deps import CurrentUser, DBSession, Paging
from ngurra_pathways.server.services.notifications import NotificationService

router = APIRouter()


@router.get(
    "",
    response_model=NotificationList,
    summary="List Notifications",
    description="The caller's notifications, newest first.",
)
async def list_notifications(
    user: CurrentUser,
    session: DBSession,
    paging: Paging,
    unread_only: bool = Query(default=False),
) -> NotificationList:
    service = NotificationService(session)
    rows, total = await service.list(user.id, paging, unread_only=unread_only)
    return NotificationList(
        data=[NotificationRead.model_validate(n) for n in rows],
        pagination=paging.envelope(total),
        unread_count=await service.unread_count(user.id),
    )


@router.get("/unread-count", response_model=CountResponse, summary="Unread Notification Count")
async def unread_count(user: CurrentUser, session: DBSession) -> CountResponse:
    return CountResponse(count=await NotificationService(session).unread_count(user.id))


@router.post(
    "/{notification_id}/read",
    response_model=NotificationRead,
    summary="Mark Notification Read",
    responses={404: {"description": "Notification not found"}},
)
async def mark_read(notification_id: str, user: CurrentUser, session: DBSession) -> NotificationRead:
    return NotificationRead.model_validate(await NotificationService(session).mark_read(user.id, notification_id))


@router.post("/read-all", response_model=CountResponse, summary="Mark All Notifications Read")
async def mark_all_read(user: CurrentUser, session: DBSession) -> CountResponse:
    return CountResponse(count=await NotificationService(session).mark_all_read(user.id))


@router.delete(
    "/{notification_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Notification",
    responses={404: {"description": "Notification not found"}},
)
async def delete_notification(notification_id: str, user: CurrentUser, session: DBSession):
    await NotificationService(session).delete(user.id, notification_id)
