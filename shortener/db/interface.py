"""
Database Abstraction Interface

This module defines the database abstraction layer that allows switching between
different database backends (SQLite, PostgreSQL) without changing the
rest of the codebase.

The interface covers engine configuration plus the few operations whose
implementation differs per backend: bulk copy and unique-violation detection.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence

from sqlalchemy import Table
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession
from sqlalchemy.pool import Pool


class DatabaseAdapter(ABC):
    """
    Abstract base class for database adapters.

    This interface defines the contract that all database implementations
    must follow. By using this abstraction, the repository works against SQLite
    or PostgreSQL without modification.

    To add a new database backend:
    1. Create a new class inheriting from DatabaseAdapter
    2. Implement all abstract methods
    3. Register it in get_database_adapter()
    """

    @abstractmethod
    def create_engine(self, database_url: str, **kwargs) -> AsyncEngine:
        """
        Create and configure the async database engine.

        Args:
            database_url: Connection string for the database
            **kwargs: Additional engine configuration options

        Returns:
            Configured AsyncEngine instance
        """
        pass

    @abstractmethod
    def get_pool_class(self) -> Optional[type[Pool]]:
        """
        Get the connection pool class for this database type.

        Returns:
            Pool class (e.g., NullPool for SQLite, AsyncAdaptedQueuePool for PostgreSQL)
        """
        pass

    @abstractmethod
    def get_connect_args(self) -> dict[str, Any]:
        """
        Get connection arguments specific to this database type.

        Returns:
            Dictionary of connection arguments
        """
        pass

    @abstractmethod
    def get_engine_kwargs(self) -> dict[str, Any]:
        """
        Get additional engine configuration specific to this database type.

        Returns:
            Dictionary of engine configuration options
        """
        pass

    @abstractmethod
    async def bulk_insert(
        self,
        session: AsyncSession,
        table: Table,
        rows: Sequence[dict[str, Any]]
    ) -> int:
        """
        Write rows with the fastest path the backend offers.

        Runs inside the caller's transaction; the caller commits or rolls back.

        Args:
            session: The database session
            table: Target table
            rows: Column-name keyed rows, all with the same keys

        Returns:
            Number of rows the backend reports as written
        """
        pass

    def is_unique_violation(self, error: Exception) -> bool:
        """
        Tell whether an error raised by bulk_insert is a uniqueness conflict.

        SQLAlchemy wraps constraint failures into IntegrityError; adapters that
        talk to the driver directly extend this check.
        """
        return isinstance(error, IntegrityError)

    @abstractmethod
    def get_dialect_name(self) -> str:
        """
        Get the SQLAlchemy dialect name for this database.

        Returns:
            Dialect name (e.g., 'sqlite', 'postgresql')
        """
        pass
