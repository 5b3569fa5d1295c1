"""Domain services for CrudBase."""

from crudbase.domain.services.collection_validator import (
    RESERVED_COLLECTION_NAMES,
    CollectionValidationError,
    CollectionValidator,
)
from crudbase.domain.services.record_id_generator import (
    RecordIdExhaustedError,
    RecordIdGenerator,
)

__all__ = [
    "RESERVED_COLLECTION_NAMES",
    "CollectionValidationError",
    "CollectionValidator",
    "RecordIdExhaustedError",
    "RecordIdGenerator",
]
