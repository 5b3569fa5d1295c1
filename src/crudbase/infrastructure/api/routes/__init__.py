"""API Routes for CrudBase."""

from .records_router import router as records_router
from .storage_router import router as storage_router

__all__ = ["records_router", "storage_router"]
