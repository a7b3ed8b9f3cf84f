"""
PostgreSQL Database Adapter

This module implements the DatabaseAdapter interface for PostgreSQL through asyncpg.

Key characteristics:
- Server-based, real connection pooling with explicit bounds
- Bulk writes use the COPY protocol (asyncpg copy_records_to_table)
- Unique violations surface as SQLSTATE 23505
"""

from typing import Any, Sequence

from sqlalchemy import Table, text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import AsyncAdaptedQueuePool

from shortener.db.interface import DatabaseAdapter

UNIQUE_VIOLATION = "23505"


class PostgreSQLAdapter(DatabaseAdapter):
    """
    PostgreSQL database adapter implementation.

    Pool sizing:
    - pool_min_size connections are kept open (pool_size)
    - up to pool_max_size connections in total (pool_size + max_overflow)
    - connections are recycled after pool_recycle seconds
    """

    def __init__(
        self,
        pool_min_size: int = 10,
        pool_max_size: int = 100,
        pool_recycle: int = 3600,
        pool_timeout: int = 30
    ):
        if pool_max_size < pool_min_size:
            raise ValueError("pool_max_size must not be smaller than pool_min_size")

        self.pool_min_size = pool_min_size
        self.pool_max_size = pool_max_size
        self.pool_recycle = pool_recycle
        self.pool_timeout = pool_timeout

    def create_engine(self, database_url: str, **kwargs) -> AsyncEngine:
        engine_kwargs = self.get_engine_kwargs()
        engine_kwargs.update(kwargs)

        return create_async_engine(
            database_url,
            poolclass=self.get_pool_class(),
            connect_args=self.get_connect_args(),
            **engine_kwargs
        )

    def get_pool_class(self) -> type[AsyncAdaptedQueuePool]:
        return AsyncAdaptedQueuePool

    def get_connect_args(self) -> dict[str, Any]:
        return {}

    def get_engine_kwargs(self) -> dict[str, Any]:
        return {
            "echo": False,
            "pool_size": self.pool_min_size,
            "max_overflow": self.pool_max_size - self.pool_min_size,
            "pool_recycle": self.pool_recycle,
            "pool_timeout": self.pool_timeout,
            "pool_pre_ping": True,
        }

    async def bulk_insert(
        self,
        session: AsyncSession,
        table: Table,
        rows: Sequence[dict[str, Any]]
    ) -> int:
        """
        Copy rows with COPY FROM on the session's own connection.

        The asyncpg dialect only opens its BEGIN on the first statement, so a
        statement runs through the session before the COPY; the copy then
        belongs to the session transaction and a rollback discards it.

        Returns:
            Row count parsed from the COPY command tag ("COPY <n>")
        """
        columns = list(rows[0].keys())
        records = [tuple(row[column] for column in columns) for row in rows]

        connection = await session.connection()
        await connection.execute(text("SELECT 1"))
        raw_connection = await connection.get_raw_connection()
        status = await raw_connection.driver_connection.copy_records_to_table(
            table.name,
            records=records,
            columns=columns,
        )
        return int(status.split()[-1])

    def is_unique_violation(self, error: Exception) -> bool:
        if super().is_unique_violation(error):
            return True
        return getattr(error, "sqlstate", None) == UNIQUE_VIOLATION

    def get_dialect_name(self) -> str:
        return "postgresql"
