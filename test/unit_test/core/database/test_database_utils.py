"""Unit tests for engine helpers and column defaults."""

from datetime import datetime, timedelta, timezone

import pytest

from ngurra_pathways.core.database.utils import create_engine, new_id, normalize_database_url, to_naive_utc, utc_now


class TestNormalizeDatabaseUrl:
    @pytest.mark.parametrize(
        "url",
        [
            "postgres://u:p@db:5432/app",
            "postgresql://u:p@db:5432/app",
            "postgresql+psycopg://u:p@db:5432/app",
            "postgresql+asyncpg://u:p@db:5432/app",
        ],
    )
    def test_postgres_urls_use_asyncpg(self, url):
        assert normalize_database_url(url) == "postgresql+asyncpg://u:p@db:5432/app"

    def test_other_urls_pass_through(self):
        url = "sqlite+aiosqlite:///:memory:"
        assert normalize_database_url(url) == url


async def test_create_engine_for_sqlite():
    engine = create_engine("sqlite+aiosqlite:///:memory:")
    try:
        assert engine.url.drivername == "sqlite+aiosqlite"
    finally:
        await engine.dispose()


def test_utc_now_is_naive():
    now = utc_now()
    assert isinstance(now, datetime)
    assert now.tzinfo is None


def test_new_id_is_unique_uuid_string():
    first, second = new_id(), new_id()
    assert first != second
    assert len(first) == 36


def test_to_naive_utc():
    aware = datetime(2026, 1, 1, 20, 0, tzinfo=timezone(timedelta(hours=10)))
    assert to_naive_utc(aware) == datetime(2026, 1, 1, 10, 0)
    naive = datetime(2026, 1, 1, 10, 0)
    assert to_naive_utc(naive) is naive
