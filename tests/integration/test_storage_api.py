"""Integration tests for the storage-wide endpoints."""

import asyncio
import json
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient

from crudbase.core.config import Settings

PREFIX = "/api/storage"


@pytest.mark.asyncio
async def test_storage_health(client: AsyncClient):
    response = await client.get(f"{PREFIX}/health")

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "healthy": True,
        "storageType": "memory",
        "message": "Storage is healthy and accessible",
    }


@pytest.mark.asyncio
async def test_storage_health_unhealthy_is_503(settings: Settings, make_client):
    ac, manager = await make_client(settings)
    manager.get_storage().health_check = AsyncMock(return_value=False)

    response = await ac.get(f"{PREFIX}/health")

    assert response.status_code == 503
    assert response.json() == {
        "success": False,
        "healthy": False,
        "storageType": "memory",
        "message": "Storage health check failed",
    }


@pytest.mark.asyncio
async def test_storage_health_unreadable_file_is_503(settings: Settings, make_client):
    ac, manager = await make_client(settings, "file")
    manager.get_storage().file_path.write_text("{not json", encoding="utf-8")

    response = await ac.get(f"{PREFIX}/health")

    assert response.status_code == 503
    body = response.json()
    assert body["success"] is False
    assert body["healthy"] is False
    assert body["storageType"] == "file"


@pytest.mark.asyncio
async def test_overlapping_health_requests_are_healthy(client: AsyncClient):
    responses = await asyncio.gather(
        client.get(f"{PREFIX}/health"),
        client.get("/ready"),
        client.get(f"{PREFIX}/health"),
    )

    assert [r.status_code for r in responses] == [200, 200, 200]


@pytest.mark.asyncio
async def test_stats_are_consistent_with_collections(client: AsyncClient):
    await client.post(f"{PREFIX}/users", json={"name": "Jane"})
    await client.post(f"{PREFIX}/users", json={"name": "John"})
    await client.post(f"{PREFIX}/orders", json={"total": 3})

    response = await client.get(f"{PREFIX}/stats")

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Storage statistics retrieved successfully"
    stats = body["data"]
    total = 0
    for name in stats["collections"]:
        total += (await client.get(f"{PREFIX}/{name}")).json()["count"]
    assert stats["totalRecords"] == total == 3
    assert stats["storageType"] == "memory"


@pytest.mark.asyncio
async def test_get_backup(client: AsyncClient):
    await client.post(f"{PREFIX}/users", json={"name": "Jane"})

    response = await client.get(f"{PREFIX}/backup")

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Backup created successfully"
    assert body["data"]["data"]["users"][0]["name"] == "Jane"
    assert body["data"]["metadata"]["storageType"] == "memory"


@pytest.mark.asyncio
async def test_post_backup_writes_file(client: AsyncClient, settings: Settings):
    await client.post(f"{PREFIX}/users", json={"name": "Jane"})

    response = await client.post(f"{PREFIX}/backup")

    assert response.status_code == 201
    path = Path(response.json()["path"])
    assert path.parent == settings.backup_path
    assert path.name.startswith("storage-backup-")
    backup = json.loads(path.read_text(encoding="utf-8"))
    assert backup["data"]["users"][0]["name"] == "Jane"


@pytest.mark.asyncio
async def test_clear_outside_production(client: AsyncClient):
    await client.post(f"{PREFIX}/users", json={"name": "Jane"})

    response = await client.delete(f"{PREFIX}/clear")

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "message": "Storage cleared successfully",
        "environment": "testing",
    }
    assert (await client.get(f"{PREFIX}/users")).json()["count"] == 0


@pytest.mark.asyncio
async def test_clear_forbidden_in_production(tmp_path: Path, make_client):
    settings = Settings(
        environment="production",
        data_file=str(tmp_path / "data" / "storage.json"),
    )
    ac, manager = await make_client(settings)
    created = (await ac.post(f"{PREFIX}/users", json={"name": "Jane"})).json()["data"]
    before = await manager.get_storage().create_backup()

    response = await ac.delete(f"{PREFIX}/clear")

    assert response.status_code == 403
    assert response.json() == {
        "success": False,
        "error": "Clear operation not allowed in production environment",
        "operation": "clear",
    }
    after = await manager.get_storage().create_backup()
    assert after["data"] == before["data"]
    assert (await ac.get(f"{PREFIX}/users/{created['id']}")).status_code == 200


@pytest.mark.asyncio
async def test_storage_routes_take_precedence_over_collections(client: AsyncClient):
    response = await client.get(f"{PREFIX}/stats")

    assert "collections" in response.json()["data"]
    assert "count" not in response.json()
