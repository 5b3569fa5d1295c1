"""Process-wide handle on the active storage backend."""

import asyncio

from crudbase.core.exceptions import NotInitializedError
from crudbase.core.logging import get_logger
from crudbase.infrastructure.storage.base import StorageBackend, StorageType
from crudbase.infrastructure.storage.storage_factory import StorageFactory

logger = get_logger(__name__)


class StorageManager:
    """Owns the single backend instance shared by every request handler.

    Constructed explicitly once per application and stored on ``app.state``;
    handlers receive it through a FastAPI dependency.
    """

    def __init__(self, factory: StorageFactory | None = None) -> None:
        self.factory = factory or StorageFactory()
        self._storage: StorageBackend | None = None
        self._init_lock = asyncio.Lock()

    @property
    def initialized(self) -> bool:
        return self._storage is not None

    async def init(self, storage_type: str | StorageType | None = None) -> StorageBackend:
        """Create the backend with failover, once.

        Later calls return the existing instance whatever ``storage_type`` they
        pass. Concurrent first calls share a single construction.

        Raises:
            StorageUnavailableError: If no backend could be initialized.
        """
        async with self._init_lock:
            if self._storage is None:
                self._storage = await self.factory.create_storage_with_failover(storage_type)
                logger.info(
                    "Storage manager initialized",
                    storage_type=self._storage.storage_type.value,
                )
        return self._storage

    def get_storage(self) -> StorageBackend:
        """Return the active backend.

        Raises:
            NotInitializedError: If :meth:`init` has not completed yet.
        """
        if self._storage is None:
            raise NotInitializedError()
        return self._storage

    def reset(self) -> None:
        """Forget the active backend so the next :meth:`init` builds a new one."""
        self._storage = None
