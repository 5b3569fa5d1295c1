"""Infrastructure layer - External dependencies and implementations.

This layer contains:
- Storage backends (JSON file, in-memory) and backend selection
- API routes (FastAPI)

The infrastructure layer implements the storage contract consumed by the
API handlers.
"""

from crudbase.infrastructure.storage import StorageFactory, StorageManager

__all__ = ["StorageFactory", "StorageManager"]
