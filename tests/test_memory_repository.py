"""Tests for the in-memory URL store."""

import pytest

from shortener.core.exceptions import (
    BulkWriteError,
    EmptyInputError,
    ShortKeyCollisionError,
    ShortKeyNotFoundError,
    StorageUnavailableError,
    URLAlreadyExistsError,
    URLDeletedError,
)
from shortener.repositories.base import URLRecord
from shortener.repositories.memory import MemoryURLRepository


def make_record(short_key="abcde", original_url="https://example.com", user_id="user-1"):
    return URLRecord(user_id=user_id, short_key=short_key, original_url=original_url)


@pytest.mark.asyncio
class TestCreateAndGet:

    async def test_create_then_get(self, memory_repository):
        record = make_record()
        await memory_repository.create(record)

        assert await memory_repository.get("abcde") == record

    async def test_unknown_key(self, memory_repository):
        with pytest.raises(ShortKeyNotFoundError):
            await memory_repository.get("nope")

    async def test_existing_original_url_wins(self, memory_repository):
        first = make_record()
        await memory_repository.create(first)

        with pytest.raises(URLAlreadyExistsError) as exc_info:
            await memory_repository.create(make_record(short_key="zzzzz"))

        assert exc_info.value.record == first

    async def test_key_collision(self, memory_repository):
        await memory_repository.create(make_record())

        with pytest.raises(ShortKeyCollisionError):
            await memory_repository.create(make_record(original_url="https://other.example.com"))

    async def test_deleted_url_can_be_shortened_again(self, memory_repository):
        await memory_repository.create(make_record())
        await memory_repository.mark_deleted(["abcde"], "user-1")

        again = make_record(short_key="fghij")
        await memory_repository.create(again)

        assert await memory_repository.get("fghij") == again
        with pytest.raises(URLDeletedError):
            await memory_repository.get("abcde")


@pytest.mark.asyncio
class TestBatch:

    async def test_create_batch(self, memory_repository):
        records = [
            make_record("aaaaa", "https://a.example.com"),
            make_record("bbbbb", "https://b.example.com"),
        ]
        assert await memory_repository.create_batch(records) == records
        assert len(await memory_repository.list_all()) == 2

    async def test_empty_batch(self, memory_repository):
        with pytest.raises(EmptyInputError):
            await memory_repository.create_batch([])

    async def test_conflict_writes_nothing(self, memory_repository):
        await memory_repository.create(make_record("aaaaa", "https://a.example.com"))

        with pytest.raises(BulkWriteError):
            await memory_repository.create_batch([
                make_record("bbbbb", "https://b.example.com"),
                make_record("ccccc", "https://a.example.com"),
            ])

        assert len(await memory_repository.list_all()) == 1

    async def test_duplicate_inside_batch(self, memory_repository):
        with pytest.raises(BulkWriteError):
            await memory_repository.create_batch([
                make_record("aaaaa", "https://a.example.com"),
                make_record("aaaaa", "https://b.example.com"),
            ])

        assert await memory_repository.list_all() == []

    async def test_find_by_original_urls(self, memory_repository):
        record = make_record()
        await memory_repository.create(record)

        found = await memory_repository.find_by_original_urls(
            ["https://example.com", "https://missing.example.com"]
        )

        assert found == {"https://example.com": record}


@pytest.mark.asyncio
class TestDelete:

    async def test_owner_deletes(self, memory_repository):
        await memory_repository.create(make_record())

        await memory_repository.mark_deleted(["abcde"], "user-1")

        with pytest.raises(URLDeletedError):
            await memory_repository.get("abcde")
        assert await memory_repository.find_by_original_urls(["https://example.com"]) == {}

    async def test_other_user_is_ignored(self, memory_repository):
        await memory_repository.create(make_record())

        await memory_repository.mark_deleted(["abcde"], "user-2")

        record = await memory_repository.get("abcde")
        assert record.deleted_flag is False

    async def test_unknown_keys_are_skipped(self, memory_repository):
        await memory_repository.create(make_record())

        await memory_repository.mark_deleted(["nope", "abcde"], "user-1")

        with pytest.raises(URLDeletedError):
            await memory_repository.get("abcde")

    async def test_empty_keys(self, memory_repository):
        with pytest.raises(EmptyInputError):
            await memory_repository.mark_deleted([], "user-1")

    async def test_listing_excludes_deleted(self, memory_repository):
        await memory_repository.create(make_record("aaaaa", "https://a.example.com"))
        await memory_repository.create(make_record("bbbbb", "https://b.example.com"))
        await memory_repository.create(make_record("ccccc", "https://c.example.com", user_id="user-2"))

        await memory_repository.mark_deleted(["aaaaa"], "user-1")

        listed = await memory_repository.list_by_user("user-1")
        assert [record.short_key for record in listed] == ["bbbbb"]
        assert len(await memory_repository.list_all()) == 3


class FailingRepository(MemoryURLRepository):

    async def _persist(self, records):
        raise StorageUnavailableError("disk full")


@pytest.mark.asyncio
async def test_failed_persist_is_rolled_back():
    repository = FailingRepository()

    with pytest.raises(StorageUnavailableError):
        await repository.create(make_record())

    with pytest.raises(ShortKeyNotFoundError):
        await repository.get("abcde")
    assert await repository.find_by_original_urls(["https://example.com"]) == {}


@pytest.mark.asyncio
async def test_reissued_key_is_not_deleted_by_previous_owner(memory_repository):
    await memory_repository.create(make_record("abcde", "https://a.example.com", user_id="user-a"))
    await memory_repository.mark_deleted(["abcde"], "user-a")
    reissued = make_record("abcde", "https://b.example.com", user_id="user-b")
    await memory_repository.create(reissued)

    await memory_repository.mark_deleted(["abcde"], "user-a")

    assert await memory_repository.get("abcde") == reissued
