"""Unit tests for pagination and query helpers."""

from sqlmodel import select

from ngurra_pathways.core.database.entities.users import User
from ngurra_pathways.core.database.repositories import PageParams
from ngurra_pathways.core.database.repositories.base import QueryBuilder, count_rows, paginate


class TestPageParams:
    def test_offset_is_zero_on_first_page(self):
        assert PageParams(page=1, limit=20).offset == 0

    def test_offset_skips_previous_pages(self):
        assert PageParams(page=3, limit=10).offset == 20

    def test_envelope_rounds_total_pages_up(self):
        assert PageParams(page=2, limit=10).envelope(21) == {
            "page": 2,
            "limit": 10,
            "total": 21,
            "total_pages": 3,
        }

    def test_envelope_with_no_rows(self):
        assert PageParams().envelope(0)["total_pages"] == 0


async def _seed_users(session, count: int, user_type: str = "MEMBER") -> None:
    for index in range(count):
        session.add(User(email=f"user{index}-{user_type.lower()}@example.com", password_hash="x", user_type=user_type))
    await session.commit()


async def test_count_rows_ignores_ordering(in_memory_session):
    await _seed_users(in_memory_session, 3)
    stmt = select(User).order_by(User.created_at.desc())
    assert await count_rows(in_memory_session, stmt) == 3


async def test_paginate_returns_page_and_total(in_memory_session):
    await _seed_users(in_memory_session, 5)
    rows, total = await paginate(in_memory_session, select(User).order_by(User.email), PageParams(page=2, limit=2))
    assert total == 5
    assert [row.email for row in rows] == ["user2-member@example.com", "user3-member@example.com"]


async def test_apply_filters_skips_none_and_unknown_fields(in_memory_session):
    await _seed_users(in_memory_session, 2)
    await _seed_users(in_memory_session, 1, user_type="MENTOR")
    stmt = QueryBuilder.apply_filters(
        select(User), User, {"user_type": "MENTOR", "location": None, "not_a_column": "x"}
    )
    rows = (await in_memory_session.execute(stmt)).scalars().all()
    assert len(rows) == 1
    assert rows[0].user_type == "MENTOR"
