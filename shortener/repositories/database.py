"""
Database URL Repository

Stores records in the `shorteners` table through SQLAlchemy's async engine.

Key Features:
- Single creates fall back to the existing row on a unique violation
- Batch creates go through the adapter's bulk path (COPY on PostgreSQL)
  and are verified against the number of submitted rows
- Soft deletes run through BatchDeletePipeline, one transaction per batch
"""

import logging
from typing import Iterable, Optional, Sequence

from sqlalchemy import bindparam, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from shortener.core.exceptions import (
    BulkWriteError,
    CountMismatchError,
    EmptyInputError,
    ShortKeyCollisionError,
    ShortKeyNotFoundError,
    StorageUnavailableError,
    URLAlreadyExistsError,
    URLDeletedError,
)
from shortener.db.models import Shortener, shorteners_table
from shortener.db.session import Database
from shortener.repositories.base import URLRecord, URLRepository
from shortener.repositories.delete_pipeline import DEFAULT_BATCH_SIZE, BatchDeletePipeline

logger = logging.getLogger(__name__)

_DELETE_STATEMENT = (
    update(shorteners_table)
    .where(
        shorteners_table.c.short_key == bindparam("key"),
        shorteners_table.c.user_id == bindparam("owner"),
    )
    .values(is_deleted=True)
)


class DatabaseURLRepository(URLRepository):
    """
    SQL-backed store.

    The Database handle is owned by the caller; close() disposes it
    (Database.close() is idempotent).
    """

    def __init__(
        self,
        database: Database,
        batch_size: int = DEFAULT_BATCH_SIZE,
        workers: Optional[int] = None
    ):
        self.database = database
        self.delete_pipeline = BatchDeletePipeline(
            self._delete_batch,
            batch_size=batch_size,
            workers=workers,
        )

    async def get(self, short_key: str) -> URLRecord:
        # Active row first, otherwise any deleted row that used the key
        statement = (
            select(Shortener)
            .where(Shortener.short_key == short_key)
            .order_by(Shortener.is_deleted)
            .limit(1)
        )
        try:
            async with self.database.session() as session:
                result = await session.execute(statement)
                row = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise self._unavailable("get", e) from e

        if row is None:
            raise ShortKeyNotFoundError(short_key)
        if row.is_deleted:
            raise URLDeletedError(short_key)
        return row.to_record()

    async def create(self, record: URLRecord) -> URLRecord:
        try:
            async with self.database.session() as session:
                session.add(Shortener.from_record(record))
                try:
                    await session.commit()
                except IntegrityError:
                    await session.rollback()
                    existing = await self._find_active(session, record.original_url)
                    if existing is not None:
                        raise URLAlreadyExistsError(existing)
                    raise ShortKeyCollisionError(record.short_key)
        except (SQLAlchemyError, OSError) as e:
            raise self._unavailable("create", e) from e

        logger.info(f"URL created: {record.short_key} -> {record.original_url}")
        return record

    async def create_batch(self, records: Sequence[URLRecord]) -> list[URLRecord]:
        if not records:
            raise EmptyInputError("create_batch")

        rows = [Shortener.from_record(record).model_dump() for record in records]
        adapter = self.database.adapter

        try:
            async with self.database.session() as session:
                try:
                    written = await adapter.bulk_insert(session, shorteners_table, rows)
                except Exception as e:
                    await session.rollback()
                    if adapter.is_unique_violation(e):
                        raise BulkWriteError("unique constraint violated", original_error=e) from e
                    raise self._unavailable("create_batch", e) from e

                if written != len(rows):
                    await session.rollback()
                    raise CountMismatchError(written, len(rows))

                await session.commit()
        except (SQLAlchemyError, OSError) as e:
            raise self._unavailable("create_batch", e) from e

        logger.info(f"All URLs created successfully: count={len(records)}")
        return list(records)

    async def find_by_original_urls(self, original_urls: Iterable[str]) -> dict[str, URLRecord]:
        original_urls = list(dict.fromkeys(original_urls))
        if not original_urls:
            return {}

        statement = select(Shortener).where(
            Shortener.original_url.in_(original_urls),
            Shortener.is_deleted == False,  # noqa: E712
        )
        try:
            async with self.database.session() as session:
                result = await session.execute(statement)
                rows = result.scalars().all()
        except SQLAlchemyError as e:
            raise self._unavailable("find_by_original_urls", e) from e

        return {row.original_url: row.to_record() for row in rows}

    async def list_by_user(self, user_id: str) -> list[URLRecord]:
        statement = select(Shortener).where(
            Shortener.user_id == user_id,
            Shortener.is_deleted == False,  # noqa: E712
        )
        return await self._fetch(statement, "list_by_user")

    async def list_all(self) -> list[URLRecord]:
        return await self._fetch(select(Shortener), "list_all")

    async def mark_deleted(self, short_keys: Sequence[str], user_id: str) -> None:
        await self.delete_pipeline.run(short_keys, user_id)
        logger.info(f"Processed delete of {len(short_keys)} key(s) for user {user_id}")

    async def health_check(self) -> None:
        try:
            await self.database.ping()
        except (SQLAlchemyError, OSError) as e:
            raise self._unavailable("ping", e) from e

    async def close(self) -> None:
        await self.database.close()

    async def _delete_batch(self, short_keys: Sequence[str], user_id: str) -> None:
        params = [{"key": short_key, "owner": user_id} for short_key in short_keys]
        async with self.database.session() as session:
            async with session.begin():
                result = await session.execute(_DELETE_STATEMENT, params)
                affected = result.rowcount

        if not affected:
            logger.debug(f"No rows affected deleting {list(short_keys)} for user {user_id}")

    async def _fetch(self, statement, operation: str) -> list[URLRecord]:
        try:
            async with self.database.session() as session:
                result = await session.execute(statement)
                rows = result.scalars().all()
        except SQLAlchemyError as e:
            raise self._unavailable(operation, e) from e
        return [row.to_record() for row in rows]

    async def _find_active(self, session, original_url: str) -> Optional[URLRecord]:
        statement = select(Shortener).where(
            Shortener.original_url == original_url,
            Shortener.is_deleted == False,  # noqa: E712
        )
        result = await session.execute(statement)
        row = result.scalar_one_or_none()
        return row.to_record() if row is not None else None

    @staticmethod
    def _unavailable(operation: str, error: Exception) -> StorageUnavailableError:
        logger.error(f"Database error during {operation}: {error}")
        return StorageUnavailableError(f"{operation} failed", original_error=error)
