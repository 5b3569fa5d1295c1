"""File and memory backends must be indistinguishable through the contract."""

import pytest

from crudbase.infrastructure.storage import FileStorageBackend, MemoryStorageBackend

STAT_FIELDS = ("totalCollections", "totalRecords", "collections")


def _without_id(record):
    return {k: v for k, v in record.items() if k != "id"}


async def _scenario(storage):
    jane = await storage.create_record("users", {"name": "Jane", "email": "jane@example.com"})
    john = await storage.create_record("users", {"name": "John", "age": 41})
    await storage.create_record("posts", {"title": "Hello", "author": "jane"})
    await storage.update_record("users", jane["id"], {"name": "Jane Smith", "age": None})
    await storage.delete_record("users", john["id"])
    await storage.create_record("tags", {"label": "news", "meta": {"weight": 2}})
    assert await storage.update_record("users", "missing", {"x": 1}) is None
    assert await storage.delete_record("posts", "missing") is False

    collections = {}
    for name in (await storage.get_stats())["collections"]:
        collections[name] = [_without_id(r) for r in await storage.get_collection(name)]
    stats = await storage.get_stats()
    return collections, {field: stats[field] for field in STAT_FIELDS}


@pytest.mark.asyncio
async def test_same_operations_same_observable_records(data_file, clock):
    file_storage = FileStorageBackend(file_path=data_file, clock=clock)
    memory_storage = MemoryStorageBackend(clock=clock)
    await file_storage.init()
    await memory_storage.init()

    file_view = await _scenario(file_storage)
    memory_view = await _scenario(memory_storage)

    assert file_view == memory_view
