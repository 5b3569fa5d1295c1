"""Storage backend selection, construction and failover."""

from typing import Any, Callable, Mapping

from crudbase.core.config import Settings, get_settings
from crudbase.core.exceptions import InitializationError, StorageError, StorageUnavailableError
from crudbase.core.logging import get_logger
from crudbase.infrastructure.storage.base import StorageBackend, StorageType
from crudbase.infrastructure.storage.file_storage_backend import FileStorageBackend
from crudbase.infrastructure.storage.memory_storage_backend import MemoryStorageBackend

logger = get_logger(__name__)

BackendBuilder = Callable[[], StorageBackend]

RECOMMENDATIONS: dict[str, tuple[StorageType, str]] = {
    "test": (StorageType.MEMORY, "Fast, isolated storage for testing"),
    "testing": (StorageType.MEMORY, "Fast, isolated storage for testing"),
    "development": (StorageType.FILE, "Persistent storage for development with data retention"),
    "production": (StorageType.FILE, "Reliable persistent storage for production data"),
}
DEFAULT_RECOMMENDATION = (StorageType.FILE, "Default persistent storage")


class StorageFactory:
    """Chooses and builds a storage backend from settings.

    Selection priority: explicit override, then ``settings.storage_type``,
    then a default derived from ``settings.environment``.
    """

    FALLBACK_ORDER: tuple[StorageType, ...] = (StorageType.FILE, StorageType.MEMORY)

    def __init__(
        self,
        settings: Settings | None = None,
        builders: Mapping[StorageType, BackendBuilder] | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._builders: dict[StorageType, BackendBuilder] = {
            StorageType.FILE: lambda: FileStorageBackend(file_path=self.settings.data_path),
            StorageType.MEMORY: MemoryStorageBackend,
        }
        if builders:
            self._builders.update(builders)

    @staticmethod
    def is_valid_storage_type(value: Any) -> bool:
        return isinstance(value, (str, StorageType)) and str(
            getattr(value, "value", value)
        ) in StorageType.values()

    def resolve_storage_type(self, override: str | StorageType | None = None) -> StorageType:
        """Pick the backend type to use.

        Args:
            override: Explicit type requested by the caller. Unknown values are
                ignored and selection continues with the settings.

        Returns:
            StorageType: The selected backend type.
        """
        if override is not None:
            if self.is_valid_storage_type(override):
                return StorageType(override)
            logger.warning("Ignoring unknown storage type override", override=str(override))

        return StorageType(self.settings.resolved_storage_type)

    async def create_storage(self, storage_type: str | StorageType | None = None) -> StorageBackend:
        """Build and initialize a single backend, without failover.

        Raises:
            InitializationError: If the backend cannot be constructed or initialized.
        """
        resolved = self.resolve_storage_type(storage_type)
        try:
            storage = self._builders[resolved]()
            await storage.init()
        except StorageError:
            raise
        except Exception as e:
            raise InitializationError(
                f"Failed to initialize {resolved.value} storage: {e}",
                operation="init",
            ) from e

        logger.info("Storage initialized", storage_type=resolved.value)
        return storage

    async def create_storage_with_failover(
        self, storage_type: str | StorageType | None = None
    ) -> StorageBackend:
        """Build the first backend that initializes and passes its health check.

        The resolved type is tried first, then the remaining types in
        ``FALLBACK_ORDER``.

        Raises:
            StorageUnavailableError: If every candidate failed.
        """
        primary = self.resolve_storage_type(storage_type)
        candidates = [primary] + [t for t in self.FALLBACK_ORDER if t != primary]
        attempted: list[str] = []

        for candidate in candidates:
            attempted.append(candidate.value)
            is_fallback = candidate != primary
            if is_fallback:
                logger.info("Trying fallback storage", storage_type=candidate.value)

            try:
                storage = await self.create_storage(candidate)
            except Exception as e:
                logger.warning(
                    "Storage failed to initialize",
                    storage_type=candidate.value,
                    fallback=is_fallback,
                    error=str(e),
                )
                continue

            if await storage.health_check():
                if is_fallback:
                    logger.warning(
                        "Using fallback storage",
                        storage_type=candidate.value,
                        primary=primary.value,
                    )
                return storage

            logger.warning(
                "Storage failed health check",
                storage_type=candidate.value,
                fallback=is_fallback,
            )

        logger.error("All storage adapters failed to initialize", attempted=attempted)
        raise StorageUnavailableError(attempted)

    def get_config(self) -> dict[str, Any]:
        """Diagnostic view of how the backend type is selected."""
        return {
            "detectedType": self.resolve_storage_type().value,
            "environment": self.settings.environment,
            "storageTypeSetting": self.settings.storage_type,
            "devStorageSetting": self.settings.dev_storage,
            "dataFile": str(self.settings.data_path),
            "availableTypes": StorageType.values(),
            "selection": {
                "test|testing": StorageType.MEMORY.value,
                "development|dev": self.settings.dev_storage or StorageType.FILE.value,
                "production|prod": StorageType.FILE.value,
                "default": StorageType.FILE.value,
            },
        }

    def get_recommendation(self) -> dict[str, str]:
        """Recommended backend type for the configured environment, with a reason."""
        storage_type, reason = RECOMMENDATIONS.get(
            self.settings.environment, DEFAULT_RECOMMENDATION
        )
        return {"type": storage_type.value, "reason": reason}
