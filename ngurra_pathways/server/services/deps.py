"""
Request dependencies.

Provides the database session and the authenticated user to API endpoints as
annotated aliases.
"""

from typing import Annotated, Callable, Optional

from fastapi import Depends, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from ngurra_pathways.core.database.entities.users import User, UserType
from ngurra_pathways.core.database.repositories import PageParams
from ngurra_pathways.core.database.session import get_session
from ngurra_pathways.core.errors import AuthenticationError, ForbiddenError
from ngurra_pathways.server.core.constant import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

from .auth import AuthService

bearer_scheme = HTTPBearer(auto_error=False)

DBSession = Annotated[AsyncSession, Depends(get_session)]
BearerCredentials = Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)]


async def get_current_user(session: DBSession, credentials: BearerCredentials) -> User:
    """Resolve the bearer token; 401 when absent or invalid."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Authentication required")
    return await AuthService(session).authenticate(credentials.credentials)


async def get_optional_user(session: DBSession, credentials: BearerCredentials) -> Optional[User]:
    """Like ``get_current_user`` but anonymous requests get ``None``.

    A token that is present but invalid is still rejected.
    """
    if credentials is None or not credentials.credentials:
        return None
    return await AuthService(session).authenticate(credentials.credentials)


CurrentUser = Annotated[User, Depends(get_current_user)]
OptionalUser = Annotated[Optional[User], Depends(get_optional_user)]


def require_roles(*user_types: UserType) -> Callable:
    """Dependency factory allowing only the given account types."""
    allowed = {str(t.value) for t in user_types}

    async def _checker(user: CurrentUser) -> User:
        if user.user_type not in allowed:
            raise ForbiddenError("Insufficient permissions")
        return user

    return _checker


AdminUser = Annotated[User, Depends(require_roles(UserType.ADMIN))]


def is_admin(user: Optional[User]) -> bool:
    return user is not None and user.user_type == UserType.ADMIN


def page_params(
    page: int = Query(default=1, ge=1, description="1-based page number"),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, description="Page size"),
) -> PageParams:
    return PageParams(page=page, limit=limit)


Paging = Annotated[PageParams, Depends(page_params)]
