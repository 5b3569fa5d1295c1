"""Domain entities for CrudBase."""

from crudbase.domain.entities.record import (
    CREATED_AT_FIELD,
    DEFAULT_COLLECTIONS,
    ID_FIELD,
    METADATA_KEY,
    RESERVED_FIELD_NAMES,
    UPDATED_AT_FIELD,
    Collection,
    Document,
    JSONValue,
    Record,
)

__all__ = [
    "CREATED_AT_FIELD",
    "DEFAULT_COLLECTIONS",
    "ID_FIELD",
    "METADATA_KEY",
    "RESERVED_FIELD_NAMES",
    "UPDATED_AT_FIELD",
    "Collection",
    "Document",
    "JSONValue",
    "Record",
]
