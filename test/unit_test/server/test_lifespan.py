"""
Unit tests for FastAPI application lifespan management.

Tests verify that startup initializes the database and that a failing
initialization is logged without preventing the app from starting.
"""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi import FastAPI

pytestmark = pytest.mark.asyncio


class TestLifespanStartup:
    """Test application startup lifespan events."""

    async def test_lifespan_startup_initializes_database(self):
        from ngurra_pathways.server.main import lifespan

        with patch("ngurra_pathways.server.main.init_db", new_callable=AsyncMock) as mock_init_db:
            async with lifespan(FastAPI()):
                mock_init_db.assert_awaited_once()

    async def test_lifespan_survives_database_failure(self):
        from ngurra_pathways.server.main import lifespan

        with (
            patch("ngurra_pathways.server.main.init_db", new_callable=AsyncMock, side_effect=RuntimeError("down")),
            patch("ngurra_pathways.server.main.logger") as mock_logger,
        ):
            async with lifespan(FastAPI()):
                pass

        mock_logger.error.assert_called_once()


class TestInitDb:
    async def test_init_db_skips_without_auto_create(self):
        from ngurra_pathways.core.database import session as db_session

        with (
            patch.object(db_session.settings, "database_auto_create", False),
            patch.object(db_session, "create_all", new_callable=AsyncMock) as mock_create_all,
        ):
            await db_session.init_db()
        mock_create_all.assert_not_awaited()

    async def test_init_db_creates_tables_when_enabled(self):
        from ngurra_pathways.core.database import session as db_session

        with (
            patch.object(db_session.settings, "database_auto_create", True),
            patch.object(db_session, "create_all", new_callable=AsyncMock) as mock_create_all,
        ):
            await db_session.init_db()
        mock_create_all.assert_awaited_once_with(db_session.engine)
