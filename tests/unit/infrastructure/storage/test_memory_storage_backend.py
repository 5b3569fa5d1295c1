"""Unit tests for the in-memory storage backend."""

import json

import pytest

from crudbase.domain.services import RecordIdGenerator
from crudbase.infrastructure.storage.memory_storage_backend import (
    VOLATILE_WARNING,
    MemoryStorageBackend,
)


@pytest.mark.asyncio
async def test_ids_carry_memory_prefix(memory_storage: MemoryStorageBackend):
    created = await memory_storage.create_record("users", {"name": "Jane"})

    assert created["id"].startswith("mem-")
    assert RecordIdGenerator.validate(created["id"])


@pytest.mark.asyncio
async def test_returned_records_are_copies(memory_storage: MemoryStorageBackend):
    created = await memory_storage.create_record("users", {"name": "Jane", "tags": ["a"]})
    created["name"] = "Mallory"

    fetched = await memory_storage.get_record("users", created["id"])
    fetched["tags"].append("b")

    stored = await memory_storage.get_record("users", created["id"])
    assert stored["name"] == "Jane"
    assert stored["tags"] == ["a"]


@pytest.mark.asyncio
async def test_init_resets_only_once(clock):
    storage = MemoryStorageBackend(clock=clock)
    await storage.init()
    await storage.create_record("users", {"name": "Jane"})

    await storage.init()

    assert storage.get_memory_state()["recordCounts"]["users"] == 1


@pytest.mark.asyncio
async def test_stats_flag_volatility(memory_storage: MemoryStorageBackend):
    await memory_storage.create_record("users", {"name": "Jane"})

    stats = await memory_storage.get_stats()

    assert stats["storageType"] == "memory"
    assert stats["persistent"] is False
    assert stats["warning"] == VOLATILE_WARNING
    assert stats["createdAt"] == "2024-01-02T03:04:05.678Z"
    assert stats["memoryUsage"] > 0


@pytest.mark.asyncio
async def test_memory_usage_tracks_serialized_size(memory_storage: MemoryStorageBackend):
    await memory_storage.create_record("users", {"name": "Jane"})
    backup = await memory_storage.create_backup()

    stats = await memory_storage.get_stats()

    assert stats["memoryUsage"] == len(json.dumps(backup["data"]).encode("utf-8"))


@pytest.mark.asyncio
async def test_last_modified_moves_on_mutation(memory_storage: MemoryStorageBackend, clock):
    clock.advance(500)
    await memory_storage.create_record("users", {"name": "Jane"})

    stats = await memory_storage.get_stats()

    assert stats["lastModified"] == "2024-01-02T03:04:06.178Z"
    assert stats["createdAt"] == "2024-01-02T03:04:05.678Z"


@pytest.mark.asyncio
async def test_get_memory_state(memory_storage: MemoryStorageBackend):
    await memory_storage.create_record("orders", {"total": 5})

    state = memory_storage.get_memory_state()

    assert state["initialized"] is True
    assert state["collections"] == ["users", "posts", "comments", "orders"]
    assert state["recordCounts"] == {"users": 0, "posts": 0, "comments": 0, "orders": 1}
    assert state["dataSize"] > 0


@pytest.mark.asyncio
async def test_backup_metadata(memory_storage: MemoryStorageBackend):
    backup = await memory_storage.create_backup()

    assert backup["metadata"]["persistent"] is False
    assert "originalPath" not in backup["metadata"]
