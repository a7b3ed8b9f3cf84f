"""
Shared fixtures.

Environment defaults are set before the shortener package is imported,
because module-level settings and the rate limiter read them at import time.
"""

import os

os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("BASE_URL", "http://localhost:8080")

import pytest
from fastapi.testclient import TestClient

from shortener.core.setting import Settings
from shortener.db.session import Database
from shortener.main import create_app
from shortener.repositories.database import DatabaseURLRepository
from shortener.repositories.file import FileURLRepository
from shortener.repositories.memory import MemoryURLRepository
from shortener.services.url_service import ShortenerService

BASE_URL = "http://localhost:8080"
JWT_SECRET = "test-secret"


@pytest.fixture
def memory_repository():
    return MemoryURLRepository()


@pytest.fixture
def storage_path(tmp_path):
    return tmp_path / "data" / "urls.jsonl"


@pytest.fixture
def file_repository(storage_path):
    return FileURLRepository(storage_path)


@pytest.fixture
def sqlite_dsn(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'shortener.db'}"


@pytest.fixture
async def database(sqlite_dsn):
    database = Database(sqlite_dsn)
    await database.create_schema()
    yield database
    await database.close()


@pytest.fixture
def database_repository(database):
    return DatabaseURLRepository(database, batch_size=2, workers=2)


@pytest.fixture
def service(memory_repository):
    return ShortenerService(memory_repository, BASE_URL)


@pytest.fixture
def app_settings():
    return Settings(
        STORAGE_STRATEGY="memory",
        BASE_URL=BASE_URL,
        JWT_SECRET=JWT_SECRET,
        RATE_LIMIT_ENABLED=False,
    )


@pytest.fixture
def client(app_settings):
    with TestClient(create_app(app_settings)) as client:
        yield client
