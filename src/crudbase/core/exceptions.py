"""Error taxonomy shared by the storage layer and the HTTP handlers.

Not-found is deliberately absent: lookups return ``None`` and deletes return
``False`` instead of raising.
"""


class StorageError(Exception):
    """Base class for all storage-related errors."""

    operation: str | None = None

    def __init__(self, message: str, operation: str | None = None) -> None:
        self.message = message
        if operation is not None:
            self.operation = operation
        super().__init__(message)


class ValidationError(StorageError):
    """Raised when caller input is malformed (missing collection/id, empty body)."""

    pass


class InitializationError(StorageError):
    """Raised when a backend cannot reach a usable state."""

    pass


class PersistenceError(StorageError):
    """Raised when reading, writing or parsing the document fails mid-operation."""

    pass


class StorageUnavailableError(StorageError):
    """Raised when every failover candidate failed to initialize."""

    def __init__(self, attempted: list[str]) -> None:
        self.attempted = attempted
        super().__init__(
            "All storage adapters failed to initialize "
            f"(attempted: {', '.join(attempted) or 'none'})"
        )


class NotInitializedError(StorageError):
    """Raised when storage is requested before the manager was initialized."""

    def __init__(self) -> None:
        super().__init__("Storage not initialized. Call StorageManager.init() first.")


class OperationForbiddenError(StorageError):
    """Raised when an operation is disabled for the current environment."""

    pass
