"""
Alembic environment configuration.

Runs migrations through the application's async engine settings so the same
DATABASE_URL (postgresql+asyncpg in production) drives both the API and
migrations.
"""

import asyncio
from logging.config import fileConfig
from urllib.parse import urlparse, urlunparse

from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from alembic import context
from ngurra_pathways.core.database import entities  # noqa: F401  registers every table
from ngurra_pathways.core.database.base import Base
from ngurra_pathways.core.database.utils import normalize_database_url
from ngurra_pathways.server.core.config import settings

config = context.config


def _mask_database_url(url: str) -> str:
    """Mask the password of a database URL for logging."""
    parsed = urlparse(url)
    if not parsed.username:
        return url
    netloc = f"{parsed.username}:***@{parsed.hostname or ''}"
    if parsed.port:
        netloc = f"{netloc}:{parsed.port}"
    return urlunparse(parsed._replace(netloc=netloc))


database_url = normalize_database_url(settings.database_url)
config.set_main_option("sqlalchemy.url", database_url)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)
    context.config.print_stdout(f"Alembic will use database URL: {_mask_database_url(database_url)}")

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    context.configure(connection=connection, target_metadata=target_metadata)

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    connectable = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode."""
    asyncio.run(run_async_migrations())


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
