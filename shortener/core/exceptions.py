"""
Custom Exceptions

This module defines the error taxonomy shared by the storage backends,
the shortener service and the HTTP layer.

Conventions:
- Storage backends raise these directly, the service lets them propagate
- Driver errors (SQLAlchemy, OS) are wrapped into StorageUnavailableError
- URLAlreadyExistsError is an expected outcome, it carries the existing record
"""

from typing import TYPE_CHECKING, Optional, Sequence

if TYPE_CHECKING:
    from shortener.repositories.base import URLRecord


class URLShortenerException(Exception):
    """Base exception for URL shortener service."""
    pass


class InvalidURLError(URLShortenerException):
    """Raised when URL validation fails."""

    def __init__(self, url: str, reason: str = "Invalid URL format"):
        self.url = url
        self.reason = reason
        super().__init__(f"{reason}: {url}")


class ShortKeyNotFoundError(URLShortenerException):
    """Raised when a short key is not known to the store."""

    def __init__(self, short_key: str):
        self.short_key = short_key
        super().__init__(f"Short key '{short_key}' not found")


class URLDeletedError(URLShortenerException):
    """Raised when a short key exists but its record was soft-deleted."""

    def __init__(self, short_key: str):
        self.short_key = short_key
        super().__init__(f"Short key '{short_key}' is deleted")


class URLAlreadyExistsError(URLShortenerException):
    """
    Raised when the original URL already has an active short key.

    The existing record is attached so callers can still answer
    with the short URL that was issued before.
    """

    def __init__(self, record: "URLRecord"):
        self.record = record
        super().__init__(
            f"URL '{record.original_url}' is already shortened as '{record.short_key}'"
        )


class ShortKeyCollisionError(URLShortenerException):
    """Raised when a generated short key is already taken by an active record."""

    def __init__(self, short_key: str):
        self.short_key = short_key
        super().__init__(f"Short key '{short_key}' is already in use")


class EmptyInputError(URLShortenerException):
    """Raised when a batch operation receives no items."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Empty input provided for {operation}")


class BulkWriteError(URLShortenerException):
    """Raised when a bulk write could not be applied."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.original_error = original_error
        super().__init__(f"Bulk write failed: {message}")


class CountMismatchError(BulkWriteError):
    """Raised when a bulk write stored a different number of rows than submitted."""

    def __init__(self, written: int, expected: int):
        self.written = written
        self.expected = expected
        super().__init__(f"{written} rows copied, expected {expected}")


class StorageUnavailableError(URLShortenerException):
    """Raised when the underlying file or database cannot be used."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.original_error = original_error
        super().__init__(f"Storage error: {message}")


class BatchDeleteError(URLShortenerException):
    """Aggregate of the errors reported by delete workers."""

    def __init__(self, errors: Sequence[Exception]):
        self.errors = list(errors)
        details = "; ".join(str(error) for error in self.errors)
        super().__init__(f"{len(self.errors)} delete batch(es) failed: {details}")
