"""
URL Shortening Service

This service handles the core business logic for URL shortening:
- Generating random short keys
- Validating URLs before they reach the store
- Turning stored records into short URLs for the configured base URL

Design Decisions:
- Short keys: 5 random ASCII letters by default (52^5, about 380 million keys)
- No collision check at generation time: the store rejects a taken key and
  the service retries with a fresh one a bounded number of times
- Idempotent per original URL: shortening a URL twice returns the first key
- Storage agnostic: the service only talks to URLRepository
"""

import logging
import random
import string
from dataclasses import dataclass
from typing import Optional, Sequence

from shortener.core.exceptions import (
    EmptyInputError,
    InvalidURLError,
    ShortKeyCollisionError,
    URLAlreadyExistsError,
)
from shortener.core.urls import build_short_url, is_valid_url, normalize_base_url
from shortener.repositories.base import URLRecord, URLRepository

logger = logging.getLogger(__name__)

ALPHABET = string.ascii_letters
DEFAULT_KEY_LENGTH = 5
DEFAULT_MAX_KEY_ATTEMPTS = 5


def generate_short_key(length: int = DEFAULT_KEY_LENGTH) -> str:
    """
    Draw a random key of ASCII letters.

    Not cryptographically secure; keys only need to be hard to guess by accident.

    Example:
        generate_short_key() -> "qZbRt"
    """
    return "".join(random.choices(ALPHABET, k=length))


@dataclass(frozen=True)
class ShortenResult:
    short_url: str
    record: URLRecord
    created: bool


class ShortenerService:
    """
    Core business logic for URL shortening.

    Handles URL validation, key generation and short URL formatting.
    Separated from the API layer for testability and maintainability.
    """

    def __init__(
        self,
        repository: URLRepository,
        base_url: str,
        key_length: int = DEFAULT_KEY_LENGTH,
        max_key_attempts: int = DEFAULT_MAX_KEY_ATTEMPTS
    ):
        self.repository = repository
        self.base_url = normalize_base_url(base_url)
        self.key_length = key_length
        self.max_key_attempts = max(1, max_key_attempts)

    def short_url(self, short_key: str) -> str:
        return build_short_url(self.base_url, short_key)

    async def shorten(self, original_url: str, user_id: Optional[str] = None) -> ShortenResult:
        """
        Shorten a URL, or return the key it already has.

        Args:
            original_url: The long URL to shorten
            user_id: Owner of the new record, None for anonymous requests

        Returns:
            ShortenResult; created is False when the URL was shortened before

        Raises:
            InvalidURLError: If URL format is invalid
            ShortKeyCollisionError: No free key was found within max_key_attempts
            StorageUnavailableError: The store could not persist the record
        """
        original_url = original_url.strip() if original_url else original_url
        if not is_valid_url(original_url):
            raise InvalidURLError(
                original_url,
                reason="Invalid URL format. URL must use http:// or https:// and have a valid domain"
            )

        for attempt in range(1, self.max_key_attempts + 1):
            record = URLRecord(
                user_id=user_id,
                short_key=generate_short_key(self.key_length),
                original_url=original_url,
            )
            try:
                await self.repository.create(record)
                return ShortenResult(self.short_url(record.short_key), record, True)
            except URLAlreadyExistsError as e:
                logger.info(f"URL already shortened: {original_url} -> {e.record.short_key}")
                return ShortenResult(self.short_url(e.record.short_key), e.record, False)
            except ShortKeyCollisionError:
                logger.warning(
                    f"Short key collision on attempt {attempt}/{self.max_key_attempts}"
                )

        raise ShortKeyCollisionError(record.short_key)

    async def put(self, original_url: str, user_id: Optional[str] = None) -> str:
        result = await self.shorten(original_url, user_id)
        return result.short_url

    async def get(self, short_key: str) -> URLRecord:
        return await self.repository.get(short_key)

    async def get_all(self) -> list[URLRecord]:
        return await self.repository.list_all()

    async def create_batch(
        self,
        user_id: Optional[str],
        items: Sequence[tuple[str, str]]
    ) -> list[tuple[str, str]]:
        """
        Shorten many URLs in one write.

        Args:
            user_id: Owner of the new records
            items: (correlation_id, original_url) pairs

        Returns:
            (correlation_id, short_url) pairs in input order

        Raises:
            EmptyInputError: items is empty
            InvalidURLError: One of the URLs is invalid (nothing is written)
            BulkWriteError: The store rejected the batch
        """
        if not items:
            raise EmptyInputError("create_batch")

        items = [(correlation_id, original_url.strip()) for correlation_id, original_url in items]
        for _, original_url in items:
            if not is_valid_url(original_url):
                raise InvalidURLError(original_url)

        keys = await self.repository.find_by_original_urls(url for _, url in items)
        keys = {url: record.short_key for url, record in keys.items()}

        new_records = []
        for _, original_url in items:
            if original_url in keys:
                continue
            record = URLRecord(
                user_id=user_id,
                short_key=self._unused_key(keys.values()),
                original_url=original_url,
            )
            keys[original_url] = record.short_key
            new_records.append(record)

        if new_records:
            await self.repository.create_batch(new_records)

        logger.info(
            f"Batch shortened: {len(items)} item(s), {len(new_records)} new record(s)"
        )
        return [
            (correlation_id, self.short_url(keys[original_url]))
            for correlation_id, original_url in items
        ]

    async def list_by_user(self, user_id: str) -> list[tuple[str, str]]:
        records = await self.repository.list_by_user(user_id)
        return [(self.short_url(record.short_key), record.original_url) for record in records]

    async def mark_deleted(self, short_keys: Sequence[str], user_id: str) -> None:
        await self.repository.mark_deleted(short_keys, user_id)

    async def health_check(self) -> None:
        await self.repository.health_check()

    def _unused_key(self, taken) -> str:
        taken = set(taken)
        key = generate_short_key(self.key_length)
        while key in taken:
            key = generate_short_key(self.key_length)
        return key
