"""
Alembic Environment Configuration

This file configures Alembic to work with our async SQLModel/SQLAlchemy setup.
It handles:
- Database connection from settings (DATABASE_DSN)
- Model imports for autogenerate
- Sync engine for SQLite, async asyncpg engine for PostgreSQL
"""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool
from sqlalchemy.engine import Connection, make_url
from sqlalchemy.ext.asyncio import async_engine_from_config
from sqlmodel import SQLModel

from shortener.core.setting import settings
from shortener.core.urls import to_async_database_url
from shortener.db import models  # noqa: F401  registers tables on SQLModel.metadata

# this is the Alembic Config object
config = context.config

if not settings.DATABASE_DSN:
    raise RuntimeError("DATABASE_DSN must be set to run migrations")

database_url = to_async_database_url(settings.DATABASE_DSN)
is_sqlite = make_url(database_url).get_backend_name() == "sqlite"

if is_sqlite:
    # Migrations on SQLite run through the stdlib driver
    database_url = make_url(database_url).set(drivername="sqlite").render_as_string(hide_password=False)

config.set_main_option("sqlalchemy.url", database_url.replace("%", "%%"))

# Interpret the config file for Python logging.
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = SQLModel.metadata


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode.

    This configures the context with just a URL and emits the SQL
    to the script output instead of executing it.
    """
    context.configure(
        url=database_url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    """Run migrations with a connection."""
    context.configure(
        connection=connection,
        target_metadata=target_metadata
    )

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
    if is_sqlite:
        connectable = create_engine(database_url, poolclass=pool.NullPool)
        with connectable.connect() as connection:
            do_run_migrations(connection)
        connectable.dispose()
    else:
        asyncio.run(run_async_migrations())


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
