"""Unit tests for request dependencies.

Tests verify the annotated aliases wire the expected callables and that the
role and pagination helpers behave as endpoints rely on.
"""

import pytest

from ngurra_pathways.core.database.entities.users import User, UserType
from ngurra_pathways.core.database.session import get_session
from ngurra_pathways.core.errors import AuthenticationError, ForbiddenError
from ngurra_pathways.server.services.deps import (
    CurrentUser,
    DBSession,
    Paging,
    get_current_user,
    get_optional_user,
    is_admin,
    page_params,
    require_roles,
)


def _user(user_type: UserType) -> User:
    return User(email=f"{user_type.value.lower()}@example.com", password_hash="x", user_type=user_type.value)


class TestAnnotatedAliases:
    def test_db_session_uses_get_session(self):
        assert DBSession.__metadata__[0].dependency is get_session

    def test_current_user_uses_get_current_user(self):
        assert CurrentUser.__metadata__[0].dependency is get_current_user

    def test_paging_uses_page_params(self):
        assert Paging.__metadata__[0].dependency is page_params


class TestRequireRoles:
    async def test_allows_listed_type(self):
        checker = require_roles(UserType.COMPANY, UserType.ADMIN)
        user = _user(UserType.COMPANY)
        assert await checker(user) is user

    async def test_rejects_other_types(self):
        checker = require_roles(UserType.ADMIN)
        with pytest.raises(ForbiddenError):
            await checker(_user(UserType.MEMBER))


def test_is_admin():
    assert is_admin(_user(UserType.ADMIN))
    assert not is_admin(_user(UserType.MENTOR))
    assert not is_admin(None)


def test_page_params_builds_page():
    params = page_params(page=3, limit=5)
    assert params.page == 3
    assert params.offset == 10


async def test_current_user_requires_credentials():
    with pytest.raises(AuthenticationError):
        await get_current_user(session=None, credentials=None)


async def test_optional_user_is_none_for_anonymous():
    assert await get_optional_user(session=None, credentials=None) is None
