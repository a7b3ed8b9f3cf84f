"""
Repository factory: turns settings into a concrete URLRepository.
"""

import logging
from typing import Optional

from shortener.core.setting import Settings, StorageStrategy
from shortener.db.session import Database
from shortener.repositories.base import URLRepository
from shortener.repositories.database import DatabaseURLRepository
from shortener.repositories.file import FileURLRepository
from shortener.repositories.memory import MemoryURLRepository

logger = logging.getLogger(__name__)


def build_database(settings: Settings) -> Database:
    """
    Raises:
        ValueError: DATABASE_DSN is empty
    """
    if not settings.DATABASE_DSN:
        raise ValueError("DATABASE_DSN is required for database storage")
    return Database(
        settings.DATABASE_DSN,
        pool_min_size=settings.DB_POOL_MIN_SIZE,
        pool_max_size=settings.DB_POOL_MAX_SIZE,
        pool_recycle=settings.DB_POOL_RECYCLE,
        pool_timeout=settings.DB_POOL_TIMEOUT,
    )


def build_repository(settings: Settings, database: Optional[Database] = None) -> URLRepository:
    """
    Build the repository for the configured storage strategy.

    Args:
        settings: Application settings
        database: Existing Database handle for the database strategy;
            one is built from DATABASE_DSN when omitted

    Raises:
        ValueError: The strategy needs a setting that is empty
        StorageUnavailableError: The file log cannot be opened or replayed
    """
    strategy = settings.resolve_storage_strategy()
    logger.info(f"Using {strategy.value} storage")

    if strategy is StorageStrategy.database:
        if database is None:
            database = build_database(settings)
        return DatabaseURLRepository(
            database,
            batch_size=settings.DELETE_BATCH_SIZE,
            workers=settings.DELETE_WORKERS,
        )

    if strategy is StorageStrategy.file:
        if not settings.FILE_STORAGE_PATH:
            raise ValueError("FILE_STORAGE_PATH is required for file storage")
        return FileURLRepository(settings.FILE_STORAGE_PATH)

    return MemoryURLRepository()
