"""Pytest configuration for all tests."""

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from crudbase.core.config import Settings, get_settings
from crudbase.infrastructure.api.app import create_app
from crudbase.infrastructure.storage import (
    FileStorageBackend,
    MemoryStorageBackend,
    StorageFactory,
    StorageManager,
)


class FakeClock:
    """Deterministic clock; advances only when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, milliseconds: int = 1) -> None:
        self.now += timedelta(milliseconds=milliseconds)


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    """Settings are cached per process; start each test from a clean slate."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def data_file(tmp_path: Path) -> Path:
    return tmp_path / "data" / "storage.json"


@pytest.fixture
def settings(tmp_path: Path, data_file: Path) -> Settings:
    """Testing settings pointing at a temporary data directory."""
    return Settings(
        environment="testing",
        data_file=str(data_file),
        backup_dir=str(tmp_path / "backups"),
        log_level="WARNING",
    )


@pytest_asyncio.fixture
async def file_storage(data_file: Path, clock: FakeClock) -> FileStorageBackend:
    storage = FileStorageBackend(file_path=data_file, clock=clock)
    await storage.init()
    return storage


@pytest_asyncio.fixture
async def memory_storage(clock: FakeClock) -> MemoryStorageBackend:
    storage = MemoryStorageBackend(clock=clock)
    await storage.init()
    return storage


@pytest.fixture(params=["file", "memory"])
def storage_kind(request) -> str:
    return request.param


@pytest_asyncio.fixture
async def storage(storage_kind: str, data_file: Path, clock: FakeClock):
    """Each contract test runs once against every backend."""
    if storage_kind == "file":
        backend = FileStorageBackend(file_path=data_file, clock=clock)
    else:
        backend = MemoryStorageBackend(clock=clock)
    await backend.init()
    return backend


@pytest_asyncio.fixture
async def make_client() -> AsyncGenerator:
    """Factory for HTTP clients over an initialized app.

    ASGITransport does not run the lifespan, so the manager is initialized
    here instead. Returns ``(client, manager)``.
    """
    clients: list[AsyncClient] = []

    async def _make(
        settings: Settings, storage_type: str | None = None
    ) -> tuple[AsyncClient, StorageManager]:
        manager = StorageManager(StorageFactory(settings))
        await manager.init(storage_type)
        app = create_app(settings=settings, storage_manager=manager)
        ac = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
        clients.append(ac)
        return ac, manager

    yield _make

    for ac in clients:
        await ac.aclose()


@pytest_asyncio.fixture
async def client(settings: Settings, make_client) -> AsyncClient:
    """HTTP client over an app backed by memory storage."""
    ac, _ = await make_client(settings)
    return ac