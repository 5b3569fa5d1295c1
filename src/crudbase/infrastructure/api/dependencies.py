"""FastAPI dependencies exposing application state to route handlers."""

from typing import Annotated

from fastapi import Depends, Request

from crudbase.core.config import Settings
from crudbase.infrastructure.storage import StorageBackend, StorageManager


def get_app_settings(request: Request) -> Settings:
    """Settings the application was created with."""
    return request.app.state.settings


def get_storage_manager(request: Request) -> StorageManager:
    """The application's storage manager, created in ``create_app``."""
    return request.app.state.storage_manager


def get_storage(
    manager: Annotated[StorageManager, Depends(get_storage_manager)],
) -> StorageBackend:
    """Active storage backend.

    Raises:
        NotInitializedError: If the manager has not been initialized yet.
    """
    return manager.get_storage()


SettingsDep = Annotated[Settings, Depends(get_app_settings)]
StorageDep = Annotated[StorageBackend, Depends(get_storage)]
