"""Storage contract, backends and backend selection."""

from crudbase.infrastructure.storage.base import StorageBackend, StorageType
from crudbase.infrastructure.storage.file_storage_backend import FileStorageBackend
from crudbase.infrastructure.storage.memory_storage_backend import MemoryStorageBackend
from crudbase.infrastructure.storage.storage_factory import StorageFactory
from crudbase.infrastructure.storage.storage_manager import StorageManager

__all__ = [
    "FileStorageBackend",
    "MemoryStorageBackend",
    "StorageBackend",
    "StorageFactory",
    "StorageManager",
    "StorageType",
]
