"""Storage-wide API routes: health, stats, backup and clear.

Registered ahead of the collection routes so ``/health`` and friends are not
captured as collection names.
"""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from crudbase.core.exceptions import OperationForbiddenError
from crudbase.core.logging import get_logger
from crudbase.infrastructure.api.dependencies import SettingsDep, StorageDep
from crudbase.infrastructure.api.errors import storage_operation
from crudbase.infrastructure.api.schemas import (
    BackupFileEnvelope,
    ClearEnvelope,
    DataEnvelope,
    ErrorEnvelope,
    HealthEnvelope,
)

logger = get_logger(__name__)

router = APIRouter()


@router.get(
    "/health",
    response_model=HealthEnvelope,
    responses={503: {"model": HealthEnvelope, "description": "Storage unhealthy"}},
)
async def storage_health(storage: StorageDep) -> HealthEnvelope | JSONResponse:
    """Run the storage round-trip probe.

    Returns 200 when the probe succeeds and 503 otherwise, including when
    the stored document cannot be read at all.
    """
    healthy = await storage.health_check()
    storage_type = storage.storage_type.value

    if healthy:
        return HealthEnvelope(
            healthy=True,
            storage_type=storage_type,
            message="Storage is healthy and accessible",
        )

    logger.warning("Storage health check failed", storage_type=storage_type)
    envelope = HealthEnvelope(
        success=False,
        healthy=False,
        storage_type=storage_type,
        message="Storage health check failed",
    )
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=envelope.model_dump(by_alias=True),
    )


@router.get("/stats", response_model=DataEnvelope)
async def storage_stats(storage: StorageDep) -> DataEnvelope:
    """Point-in-time storage statistics."""
    with storage_operation("get_stats"):
        stats = await storage.get_stats()
    return DataEnvelope(data=stats, message="Storage statistics retrieved successfully")


@router.get("/backup", response_model=DataEnvelope)
async def get_backup(storage: StorageDep) -> DataEnvelope:
    """Full copy of the stored document plus metadata."""
    with storage_operation("create_backup"):
        backup = await storage.create_backup()
    logger.info("Backup created", storage_type=storage.storage_type.value)
    return DataEnvelope(data=backup, message="Backup created successfully")


@router.post("/backup", response_model=BackupFileEnvelope, status_code=status.HTTP_201_CREATED)
async def write_backup(storage: StorageDep, settings: SettingsDep) -> BackupFileEnvelope:
    """Write a backup file into the configured backup directory."""
    with storage_operation("write_backup"):
        path = await storage.write_backup(settings.backup_path)
    return BackupFileEnvelope(path=str(path), message="Backup file written successfully")


@router.delete(
    "/clear",
    response_model=ClearEnvelope,
    responses={403: {"model": ErrorEnvelope, "description": "Disabled in production"}},
)
async def clear_storage(storage: StorageDep, settings: SettingsDep) -> ClearEnvelope:
    """Reset the storage to its seed structure. Refused in production."""
    if settings.is_production:
        raise OperationForbiddenError(
            "Clear operation not allowed in production environment",
            operation="clear",
        )

    with storage_operation("clear"):
        await storage.clear()

    logger.warning("Storage cleared via API", environment=settings.environment)
    return ClearEnvelope(message="Storage cleared successfully", environment=settings.environment)
