"""Tests for settings validation and storage selection."""

import pytest
from pydantic import ValidationError

from shortener.core.setting import Settings, StorageStrategy
from shortener.repositories.factory import build_database, build_repository
from shortener.repositories.file import FileURLRepository
from shortener.repositories.memory import MemoryURLRepository


class TestShortKeyLength:

    def test_default(self):
        assert Settings().SHORT_KEY_LENGTH == 5

    def test_longer_than_column_rejected(self):
        with pytest.raises(ValidationError):
            Settings(SHORT_KEY_LENGTH=11)

    def test_zero_rejected(self):
        with pytest.raises(ValidationError):
            Settings(SHORT_KEY_LENGTH=0)


class TestStorageSelection:

    def test_defaults_to_memory(self):
        settings = Settings(DATABASE_DSN="", FILE_STORAGE_PATH="")
        assert settings.resolve_storage_strategy() is StorageStrategy.memory
        assert isinstance(build_repository(settings), MemoryURLRepository)

    def test_dsn_wins_over_file(self):
        settings = Settings(DATABASE_DSN="sqlite:///x.db", FILE_STORAGE_PATH="urls.jsonl")
        assert settings.resolve_storage_strategy() is StorageStrategy.database

    def test_file_strategy(self, tmp_path):
        settings = Settings(DATABASE_DSN="", FILE_STORAGE_PATH=str(tmp_path / "urls.jsonl"))
        assert isinstance(build_repository(settings), FileURLRepository)

    def test_database_without_dsn(self):
        settings = Settings(STORAGE_STRATEGY="database", DATABASE_DSN="")

        with pytest.raises(ValueError, match="DATABASE_DSN"):
            build_database(settings)
        with pytest.raises(ValueError, match="DATABASE_DSN"):
            build_repository(settings)

    def test_file_without_path(self):
        settings = Settings(STORAGE_STRATEGY="file", FILE_STORAGE_PATH="")

        with pytest.raises(ValueError, match="FILE_STORAGE_PATH"):
            build_repository(settings)
