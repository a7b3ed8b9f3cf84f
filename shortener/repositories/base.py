"""
URL Record Store Interface

Every storage strategy (memory, file, database) implements URLRepository.
The service layer only talks to this interface, so the backend is a
construction-time choice.
"""

import uuid
from abc import ABC, abstractmethod
from typing import Iterable, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field


class URLRecord(BaseModel):
    """
    One shortened URL.

    The JSON form of this model is also the line format of the file backend:
    {"id", "user_id", "short_key", "original_url", "deleted_flag"}
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: Optional[str] = None
    short_key: str
    original_url: str
    deleted_flag: bool = False

    def mark_deleted(self) -> "URLRecord":
        return self.model_copy(update={"deleted_flag": True})


class URLRepository(ABC):
    """
    Abstract base class for URL record stores.

    Contract shared by all backends:
    - get() distinguishes unknown keys (ShortKeyNotFoundError) from
      soft-deleted ones (URLDeletedError)
    - create() never shortens the same original URL twice: an active record
      for it wins and is reported through URLAlreadyExistsError
    - create_batch() is all-or-nothing
    - mark_deleted() only touches records owned by the given user
    """

    @abstractmethod
    async def get(self, short_key: str) -> URLRecord:
        """
        Look up a record by short key.

        Raises:
            ShortKeyNotFoundError: No record ever used this key
            URLDeletedError: The record behind this key is soft-deleted
        """
        pass

    @abstractmethod
    async def create(self, record: URLRecord) -> URLRecord:
        """
        Store a new record.

        Raises:
            URLAlreadyExistsError: original_url already has an active record (attached)
            ShortKeyCollisionError: short_key is used by another active record
            StorageUnavailableError: The backend could not persist the record
        """
        pass

    @abstractmethod
    async def create_batch(self, records: Sequence[URLRecord]) -> list[URLRecord]:
        """
        Store several new records at once, all or nothing.

        Raises:
            EmptyInputError: records is empty
            BulkWriteError: A record conflicts with stored data
            CountMismatchError: The backend wrote a different number of rows
        """
        pass

    @abstractmethod
    async def find_by_original_urls(self, original_urls: Iterable[str]) -> dict[str, URLRecord]:
        """Map each original URL that has an active record to that record."""
        pass

    @abstractmethod
    async def list_by_user(self, user_id: str) -> list[URLRecord]:
        """Active records owned by user_id; empty list when there are none."""
        pass

    @abstractmethod
    async def list_all(self) -> list[URLRecord]:
        pass

    @abstractmethod
    async def mark_deleted(self, short_keys: Sequence[str], user_id: str) -> None:
        """
        Soft-delete the user's records behind short_keys.

        Keys that are unknown or owned by someone else are skipped.

        Raises:
            EmptyInputError: short_keys is empty
        """
        pass

    @abstractmethod
    async def health_check(self) -> None:
        """
        Raises:
            StorageUnavailableError: The backend cannot serve requests
        """
        pass

    async def close(self) -> None:
        pass
