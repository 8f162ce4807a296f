"""
Global database session and engine management.

This module manages the global AsyncEngine and async_sessionmaker instances
that are used throughout the application for database access.
"""

from __future__ import annotations

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ngurra_pathways.core.logging_config import get_logger
from ngurra_pathways.server.core.config import settings

from .utils import create_all, create_engine, create_sessionmaker

logger = get_logger(__name__)

engine = create_engine(settings.database_url)
async_session_maker = create_sessionmaker(engine)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency generator for database sessions.

    Yields:
        AsyncSession: An asynchronous SQLAlchemy session.
    """
    async with async_session_maker() as session:
        yield session


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """
    Dependency returning the session factory.

    Long-lived handlers such as WebSocket connections open a short session
    per unit of work instead of holding one pooled connection for their
    whole lifetime.
    """
    return async_session_maker


async def init_db() -> None:
    """
    Initialize the database.

    Alembic migrations own the schema in deployed environments. When
    ``DATABASE_AUTO_CREATE`` is set (local development) missing tables are
    created from the SQLModel metadata instead.
    """
    if not settings.database_auto_create:
        logger.info("DATABASE_AUTO_CREATE is off; expecting schema from Alembic migrations")
        return
    await create_all(engine)
    logger.info("Database tables created from SQLModel metadata")
