"""Core CrudBase utilities.

This module exports core utilities for use throughout the application.
"""

from crudbase.core.config import Settings, get_settings
from crudbase.core.exceptions import (
    InitializationError,
    NotInitializedError,
    OperationForbiddenError,
    PersistenceError,
    StorageError,
    StorageUnavailableError,
    ValidationError,
)
from crudbase.core.logging import (
    LoggingContext,
    bind_correlation_id,
    clear_context,
    configure_logging,
    get_logger,
)

__all__ = [
    "Settings",
    "get_settings",
    "configure_logging",
    "get_logger",
    "LoggingContext",
    "bind_correlation_id",
    "clear_context",
    "StorageError",
    "ValidationError",
    "InitializationError",
    "PersistenceError",
    "StorageUnavailableError",
    "NotInitializedError",
    "OperationForbiddenError",
]
