"""
In-Memory URL Repository

Keeps every record in process memory. Nothing survives a restart.

Indexes:
- records by id (insertion order)
- short key -> id of the newest record that used the key
- original URL -> id of its active record

All mutations run under one asyncio.Lock, reads are plain dict lookups.
"""

import asyncio
import logging
from typing import Callable, Iterable, Optional, Sequence

from shortener.core.exceptions import (
    BulkWriteError,
    EmptyInputError,
    ShortKeyCollisionError,
    ShortKeyNotFoundError,
    StorageUnavailableError,
    URLAlreadyExistsError,
    URLDeletedError,
)
from shortener.repositories.base import URLRecord, URLRepository

logger = logging.getLogger(__name__)


class MemoryURLRepository(URLRepository):
    """
    Dictionary-backed store.

    Subclasses persist changes by overriding _persist(); if it raises
    StorageUnavailableError the in-memory change is undone.
    """

    def __init__(self):
        self._records: dict[str, URLRecord] = {}
        self._by_key: dict[str, str] = {}
        self._by_original: dict[str, str] = {}
        self._lock = asyncio.Lock()

    async def get(self, short_key: str) -> URLRecord:
        record = self._lookup_key(short_key)
        if record is None:
            raise ShortKeyNotFoundError(short_key)
        if record.deleted_flag:
            raise URLDeletedError(short_key)
        return record

    async def create(self, record: URLRecord) -> URLRecord:
        async with self._lock:
            self._check_available(record)
            undo = self._index_new([record])
            await self._commit([record], undo)

        logger.info(f"URL created: {record.short_key} -> {record.original_url}")
        return record

    async def create_batch(self, records: Sequence[URLRecord]) -> list[URLRecord]:
        if not records:
            raise EmptyInputError("create_batch")

        async with self._lock:
            seen_keys: set[str] = set()
            seen_urls: set[str] = set()
            for record in records:
                try:
                    self._check_available(record)
                except (URLAlreadyExistsError, ShortKeyCollisionError) as e:
                    raise BulkWriteError(str(e), original_error=e) from e

                if record.short_key in seen_keys or record.original_url in seen_urls:
                    raise BulkWriteError(f"duplicate entry in batch: {record.original_url}")
                seen_keys.add(record.short_key)
                seen_urls.add(record.original_url)

            undo = self._index_new(records)
            await self._commit(records, undo)

        logger.info(f"All URLs created successfully: count={len(records)}")
        return list(records)

    async def find_by_original_urls(self, original_urls: Iterable[str]) -> dict[str, URLRecord]:
        found = {}
        for original_url in original_urls:
            record_id = self._by_original.get(original_url)
            if record_id is not None:
                found[original_url] = self._records[record_id]
        return found

    async def list_by_user(self, user_id: str) -> list[URLRecord]:
        return [
            record for record in self._records.values()
            if record.user_id == user_id and not record.deleted_flag
        ]

    async def list_all(self) -> list[URLRecord]:
        return list(self._records.values())

    async def mark_deleted(self, short_keys: Sequence[str], user_id: str) -> None:
        if not short_keys:
            raise EmptyInputError("mark_deleted")

        async with self._lock:
            owned = []
            for short_key in dict.fromkeys(short_keys):
                record = self._lookup_key(short_key)
                if record is None or record.deleted_flag or record.user_id != user_id:
                    logger.debug(f"Skipping delete of '{short_key}' for user {user_id}")
                    continue
                owned.append(record)

            if not owned:
                return

            deleted = [record.mark_deleted() for record in owned]
            for record in deleted:
                self._index(record)

            def undo() -> None:
                for record in owned:
                    self._index(record)

            await self._commit(deleted, undo)

        logger.info(f"Marked {len(deleted)} URL(s) deleted for user {user_id}")

    async def health_check(self) -> None:
        # Nothing external to probe
        pass

    async def _persist(self, records: Sequence[URLRecord]) -> None:
        """Hook for durable backends; the memory store keeps nothing outside the process."""
        pass

    async def _commit(self, records: Sequence[URLRecord], undo: Callable[[], None]) -> None:
        try:
            await self._persist(records)
        except StorageUnavailableError:
            undo()
            raise

    def _lookup_key(self, short_key: str) -> Optional[URLRecord]:
        record_id = self._by_key.get(short_key)
        if record_id is None:
            return None
        return self._records[record_id]

    def _check_available(self, record: URLRecord) -> None:
        existing_id = self._by_original.get(record.original_url)
        if existing_id is not None:
            raise URLAlreadyExistsError(self._records[existing_id])

        holder = self._lookup_key(record.short_key)
        if holder is not None and not holder.deleted_flag:
            raise ShortKeyCollisionError(record.short_key)

    def _index(self, record: URLRecord) -> None:
        self._records[record.id] = record
        self._by_key[record.short_key] = record.id
        if not record.deleted_flag:
            self._by_original[record.original_url] = record.id
        elif self._by_original.get(record.original_url) == record.id:
            del self._by_original[record.original_url]

    def _index_new(self, records: Sequence[URLRecord]) -> Callable[[], None]:
        previous_holders = {record.short_key: self._by_key.get(record.short_key) for record in records}
        for record in records:
            self._index(record)

        def undo() -> None:
            for record in records:
                self._records.pop(record.id, None)
                self._by_original.pop(record.original_url, None)
            for short_key, holder in previous_holders.items():
                if holder is None:
                    self._by_key.pop(short_key, None)
                else:
                    self._by_key[short_key] = holder

        return undo
