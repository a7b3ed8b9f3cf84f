"""
Database Models for URL Shortener Service

This module defines the SQLModel table backing the database storage strategy.

Design Decisions:
- UUID string primary key, assigned by the service
- Soft delete via is_deleted, rows are never removed
- Partial unique indexes: short_key and original_url are unique among
  active rows only, so a deleted link's key and URL can be issued again
- Index on user_id for per-user listing and authorized deletes
"""

from typing import Optional

from sqlalchemy import Boolean, Column, Index, String, Text, false, text
from sqlmodel import Field, SQLModel

from shortener.repositories.base import URLRecord

_ACTIVE_ONLY_SQLITE = text("is_deleted = 0")
_ACTIVE_ONLY_POSTGRES = text("is_deleted = false")


class Shortener(SQLModel, table=True):
    """
    Table storing URL shortening mappings.

    Fields:
    - id: UUID assigned at creation
    - user_id: Owner of the link (nullable for anonymous creations)
    - short_key: Generated key (5 letters by default)
    - original_url: The long URL that was shortened
    - is_deleted: Soft delete flag, set once by the delete pipeline
    """
    __tablename__ = "shorteners"
    __table_args__ = (
        Index(
            "ix_shorteners_short_key_active",
            "short_key",
            unique=True,
            sqlite_where=_ACTIVE_ONLY_SQLITE,
            postgresql_where=_ACTIVE_ONLY_POSTGRES,
        ),
        Index(
            "ix_shorteners_original_url_active",
            "original_url",
            unique=True,
            sqlite_where=_ACTIVE_ONLY_SQLITE,
            postgresql_where=_ACTIVE_ONLY_POSTGRES,
        ),
        Index("ix_shorteners_user_id", "user_id"),
    )

    id: str = Field(sa_column=Column(String(36), primary_key=True))
    user_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(36), nullable=True)
    )
    short_key: str = Field(sa_column=Column(String(10), nullable=False))
    original_url: str = Field(sa_column=Column(Text, nullable=False))
    is_deleted: bool = Field(
        default=False,
        sa_column=Column(Boolean, nullable=False, default=False, server_default=false())
    )

    @classmethod
    def from_record(cls, record: URLRecord) -> "Shortener":
        return cls(
            id=record.id,
            user_id=record.user_id,
            short_key=record.short_key,
            original_url=record.original_url,
            is_deleted=record.deleted_flag,
        )

    def to_record(self) -> URLRecord:
        return URLRecord(
            id=self.id,
            user_id=self.user_id,
            short_key=self.short_key,
            original_url=self.original_url,
            deleted_flag=self.is_deleted,
        )


shorteners_table = Shortener.__table__
