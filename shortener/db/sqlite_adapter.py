"""
SQLite Database Adapter

This module implements the DatabaseAdapter interface for SQLite.
All SQLite-specific configuration and behavior is encapsulated here.

SQLite is a file-based database that's perfect for:
- Local development
- Testing
- Single-instance deployments

Key characteristics:
- File-based (single .db file)
- No server required
- Single writer at a time (file locking)
- No COPY protocol, bulk writes go through executemany
"""

from typing import Any, Sequence

from sqlalchemy import Table, func, insert, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import NullPool

from shortener.db.interface import DatabaseAdapter


class SQLiteAdapter(DatabaseAdapter):
    """
    SQLite database adapter implementation.

    This adapter handles all SQLite-specific configuration and operations.
    """

    def create_engine(self, database_url: str, **kwargs) -> AsyncEngine:
        """
        Create SQLite async engine with appropriate configuration.

        SQLite-specific configuration:
        - NullPool: Single connection (file-based, no pooling needed)
        - check_same_thread=False: Required for async SQLite operations

        Args:
            database_url: SQLite connection string (sqlite+aiosqlite:///...)
            **kwargs: Additional engine options (merged with SQLite defaults)

        Returns:
            Configured AsyncEngine for SQLite
        """
        engine_kwargs = self.get_engine_kwargs()
        engine_kwargs.update(kwargs)

        return create_async_engine(
            database_url,
            poolclass=self.get_pool_class(),
            connect_args=self.get_connect_args(),
            **engine_kwargs
        )

    def get_pool_class(self) -> type[NullPool]:
        """
        SQLite uses NullPool because the file-based database
        doesn't benefit from connection pooling.
        """
        return NullPool

    def get_connect_args(self) -> dict[str, Any]:
        return {
            "check_same_thread": False
        }

    def get_engine_kwargs(self) -> dict[str, Any]:
        return {
            "echo": False  # Set to True only for SQL debugging in development
        }

    async def bulk_insert(
        self,
        session: AsyncSession,
        table: Table,
        rows: Sequence[dict[str, Any]]
    ) -> int:
        """
        Insert rows with executemany and count what landed.

        executemany does not report a reliable rowcount for every driver, so
        the written rows are counted by id inside the same transaction.
        """
        await session.execute(insert(table), list(rows))

        ids = [row["id"] for row in rows]
        statement = select(func.count()).select_from(table).where(table.c.id.in_(ids))
        result = await session.execute(statement)
        return result.scalar_one()

    def get_dialect_name(self) -> str:
        return "sqlite"
