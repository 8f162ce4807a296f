"""
Database layer for Ngurra Pathways.

Structure:
- entities/: SQLModel table models organized by business domain
- repositories/: Query helpers shared by the service layer
- session.py: Global engine and session factory management
- utils.py: Engine, session factory and column default helpers
"""

from .base import Base
from .session import (
    async_session_maker,
    engine,
    get_session,
    init_db,
)
from .utils import (
    create_all,
    create_engine,
    create_sessionmaker,
    new_id,
    utc_now,
)

__all__ = [
    "Base",
    "async_session_maker",
    "create_all",
    "create_engine",
    "create_sessionmaker",
    "engine",
    "get_session",
    "init_db",
    "new_id",
    "utc_now",
]
