"""
User API Endpoints.

Profiles, member search and admin account management.
"""

from typing import Optional

from fastapi import APIRouter, Query

from ngurra_pathways.core.database.entities.users import UserType
from ngurra_pathways.core.models.io.jobs import ApplicationList, ApplicationRead
from ngurra_pathways.core.models.io.users import (
    AdminUserUpdate,
    ProfileUpdate,
    PublicUserList,
    PublicUserRead,
    UserList,
    UserRead,
)
from ngurra_pathways.server.services.deps import AdminUser, CurrentUser, DBSession, Paging
from ngurra_pathways.server.services.users import UserService

router = APIRouter()


@router.get(
    "/me",
    response_model=UserRead,
    summary="Get Own Profile",
    description="Return the full account of the caller.",
    responses={401: {"description": "Not authenticated"}},
)
async def get_me(user: CurrentUser) -> UserRead:
    return UserRead.model_validate(user)


@router.patch(
    "/me",
    response_model=UserRead,
    summary="Update Own Profile",
    description="Partially update profile fields of the caller.",
    response_description="The updated account.",
)
async def update_me(data: ProfileUpdate, user: CurrentUser, session: DBSession) -> UserRead:
    """
    Update the caller's profile.

    Only the fields present in the body are changed. Account type and status
    cannot be changed here.
    """
    updated = await UserService(session).update_profile(user, user.id, data)
    return UserRead.model_validate(updated)


@router.get(
    "/search",
    response_model=PublicUserList,
    summary="Search Members",
    description="Search active members by name, headline or email prefix.",
    response_description="A page of public profiles.",
)
async def search_users(
    user: CurrentUser,
    session: DBSession,
    paging: Paging,
    q: Optional[str] = Query(default=None, max_length=100, description="Search text"),
    user_type: Optional[UserType] = Query(default=None, description="Restrict to one account type"),
) -> PublicUserList:
    users, total = await UserService(session).search(q, paging, user_type.value if user_type else None)
    return PublicUserList(
        data=[PublicUserRead.model_validate(u) for u in users],
        pagination=paging.envelope(total),
    )


@router.get(
    "",
    response_model=UserList,
    summary="List Users",
    description="Admin listing of all accounts including deactivated ones.",
    responses={403: {"description": "Admin only"}},
)
async def list_users(
    admin: AdminUser,
    session: DBSession,
    paging: Paging,
    user_type: Optional[UserType] = Query(default=None),
    search: Optional[str] = Query(default=None, max_length=100),
) -> UserList:
    users, total = await UserService(session).list_all(paging, user_type.value if user_type else None, search)
    return UserList(data=[UserRead.model_validate(u) for u in users], pagination=paging.envelope(total))


@router.get(
    "/{user_id}",
    response_model=PublicUserRead,
    summary="Get Public Profile",
    description="Retrieve the public profile of an active member.",
    responses={404: {"description": "User not found"}},
)
async def get_user(user_id: str, session: DBSession) -> PublicUserRead:
    return PublicUserRead.model_validate(await UserService(session).get_active(user_id))


@router.patch(
    "/{user_id}",
    response_model=UserRead,
    summary="Update User",
    description="Update a profile. Users may edit themselves; only admins may change account type or status.",
    responses={
        403: {"description": "Not allowed to edit this user or these fields"},
        404: {"description": "User not found"},
    },
)
async def update_user(user_id: str, data: AdminUserUpdate, user: CurrentUser, session: DBSession) -> UserRead:
    """
    Update a user profile.

    - **user_type**: Admin only.
    - **is_active**: Admin only.
    """
    updated = await UserService(session).update_profile(user, user_id, data)
    return UserRead.model_validate(updated)


@router.delete(
    "/{user_id}",
    response_model=UserRead,
    summary="Deactivate User",
    description="Soft-delete an account and revoke all of its sessions.",
    responses={403: {"description": "Admin only"}, 404: {"description": "User not found"}},
)
async def deactivate_user(user_id: str, admin: AdminUser, session: DBSession) -> UserRead:
    return UserRead.model_validate(await UserService(session).deactivate(user_id))


@router.get(
    "/{user_id}/applications",
    response_model=ApplicationList,
    summary="List User Applications",
    description="Job applications submitted by a user. Visible to that user and admins.",
    responses={403: {"description": "Not your applications"}},
)
async def user_applications(user_id: str, user: CurrentUser, session: DBSession, paging: Paging) -> ApplicationList:
    rows, total = await UserService(session).applications_of(user, user_id, paging)
    return ApplicationList(
        data=[ApplicationRead.model_validate(a) for a in rows],
        pagination=paging.envelope(total),
    )
