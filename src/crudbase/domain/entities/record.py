"""Record entity helpers.

A record is a schema-less JSON object. Three fields are owned by the storage
layer: ``id`` (immutable), ``createdAt`` (set once) and ``updatedAt``
(refreshed on every update). Everything else is caller data.
"""

import json
from copy import deepcopy
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, TypeAlias

JSONValue: TypeAlias = (
    str | int | float | bool | None | list["JSONValue"] | dict[str, "JSONValue"]
)
Record: TypeAlias = dict[str, JSONValue]
Collection: TypeAlias = list[Record]
Document: TypeAlias = dict[str, Any]

Clock: TypeAlias = Callable[[], datetime]

ID_FIELD = "id"
CREATED_AT_FIELD = "createdAt"
UPDATED_AT_FIELD = "updatedAt"

RESERVED_FIELD_NAMES = frozenset({ID_FIELD, CREATED_AT_FIELD, UPDATED_AT_FIELD})

# Top-level document key holding document metadata rather than records
METADATA_KEY = "metadata"

# Throwaway collection written and removed by storage health probes
HEALTH_CHECK_COLLECTION = "_healthCheck"

DEFAULT_COLLECTIONS: tuple[str, ...] = ("users", "posts", "comments")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(moment: datetime) -> str:
    """Format a datetime as ISO-8601 UTC with millisecond precision.

    Examples:
        >>> to_iso(datetime(2024, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc))
        '2024-01-02T03:04:05.678Z'
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def strip_reserved(data: Mapping[str, Any]) -> Record:
    """Return a deep copy of ``data`` without storage-owned fields."""
    return {
        key: deepcopy(value)
        for key, value in data.items()
        if key not in RESERVED_FIELD_NAMES
    }


def build_record(data: Mapping[str, Any], record_id: str, timestamp: str) -> Record:
    """Create a new record from caller data.

    Caller-supplied ``id``/``createdAt``/``updatedAt`` values are discarded so
    identity and timestamps cannot be forged.
    """
    record = strip_reserved(data)
    record[ID_FIELD] = record_id
    record[CREATED_AT_FIELD] = timestamp
    record[UPDATED_AT_FIELD] = timestamp
    return record


def apply_patch(existing: Mapping[str, Any], patch: Mapping[str, Any], timestamp: str) -> Record:
    """Shallow-merge ``patch`` onto ``existing``.

    Fields present in the patch overwrite, fields absent are preserved.
    ``id`` and ``createdAt`` always keep their stored values and ``updatedAt``
    never moves backwards, even if the wall clock does.
    """
    merged: Record = deepcopy(dict(existing))
    merged.update(strip_reserved(patch))

    merged[ID_FIELD] = existing[ID_FIELD]
    if CREATED_AT_FIELD in existing:
        merged[CREATED_AT_FIELD] = existing[CREATED_AT_FIELD]

    floor = max(
        str(existing.get(CREATED_AT_FIELD) or ""),
        str(existing.get(UPDATED_AT_FIELD) or ""),
    )
    merged[UPDATED_AT_FIELD] = max(timestamp, floor)
    return merged


def _filter_value_matches(value: Any, expected: Any) -> bool:
    if value == expected:
        return True
    # Query strings only carry text, so compare against the JSON rendering too
    if isinstance(expected, str) and not isinstance(value, str):
        try:
            return json.dumps(value) == expected
        except (TypeError, ValueError):
            return False
    return False


def matches_filter(record: Mapping[str, Any], filters: Mapping[str, Any] | None) -> bool:
    """Exact-match field filter; every filter key must match."""
    if not filters:
        return True
    return all(
        key in record and _filter_value_matches(record[key], expected)
        for key, expected in filters.items()
    )


def collection_names(document: Mapping[str, Any]) -> list[str]:
    """Names of the record collections held by a document, in insertion order."""
    return [
        name
        for name, value in document.items()
        if name != METADATA_KEY and isinstance(value, list)
    ]


def is_valid_document(document: Any) -> bool:
    """Check that a parsed value has the shape of a document.

    A document maps collection names to lists of records; an optional
    ``metadata`` object may sit alongside them.
    """
    if not isinstance(document, dict):
        return False
    for name, value in document.items():
        if name == METADATA_KEY and isinstance(value, dict):
            continue
        if not isinstance(value, list):
            return False
        if not all(isinstance(item, dict) for item in value):
            return False
    return True


def seed_document(metadata: Mapping[str, Any] | None = None) -> Document:
    """Fresh document containing the default collections."""
    document: Document = {name: [] for name in DEFAULT_COLLECTIONS}
    if metadata is not None:
        document[METADATA_KEY] = dict(metadata)
    return document
