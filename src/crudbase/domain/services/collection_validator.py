"""Request validation for collection endpoints.

Validates collection names, record IDs and request bodies before they reach
the storage layer. The storage contract itself assumes valid input.
"""

from dataclasses import dataclass
from typing import Any

from crudbase.core.exceptions import ValidationError
from crudbase.domain.entities.record import HEALTH_CHECK_COLLECTION, METADATA_KEY

# Paths claimed by the storage-wide routes ahead of /{collection}
STORAGE_ROUTE_NAMES = frozenset({"health", "stats", "backup", "clear"})

RESERVED_COLLECTION_NAMES = (
    frozenset({METADATA_KEY, HEALTH_CHECK_COLLECTION}) | STORAGE_ROUTE_NAMES
)


@dataclass
class CollectionValidationError:
    """A single validation error."""

    field: str
    message: str
    code: str


class CollectionValidator:
    """Validator for collection/record requests."""

    MAX_NAME_LENGTH = 128

    @classmethod
    def validate_name(cls, name: Any) -> list[CollectionValidationError]:
        """Validate a collection name.

        Args:
            name: The collection name to validate.

        Returns:
            List of validation errors (empty if valid).
        """
        if not isinstance(name, str) or not name.strip():
            return [
                CollectionValidationError(
                    field="collection",
                    message="Invalid collection name",
                    code="name_required",
                )
            ]
        if len(name) > cls.MAX_NAME_LENGTH:
            return [
                CollectionValidationError(
                    field="collection",
                    message=f"Collection name must be at most {cls.MAX_NAME_LENGTH} characters",
                    code="name_too_long",
                )
            ]
        if name in RESERVED_COLLECTION_NAMES:
            return [
                CollectionValidationError(
                    field="collection",
                    message=f"'{name}' is a reserved name",
                    code="name_reserved",
                )
            ]
        return []

    @classmethod
    def validate_record_id(cls, record_id: Any) -> list[CollectionValidationError]:
        if not isinstance(record_id, str) or not record_id.strip():
            return [
                CollectionValidationError(
                    field="id",
                    message="Collection and ID are required",
                    code="id_required",
                )
            ]
        return []

    @classmethod
    def validate_body(cls, body: Any) -> list[CollectionValidationError]:
        """Validate a create/update body: a non-empty JSON object."""
        if body is None:
            return [
                CollectionValidationError(
                    field="body",
                    message="Request body with data is required",
                    code="body_required",
                )
            ]
        if not isinstance(body, dict):
            return [
                CollectionValidationError(
                    field="body",
                    message="Request body must be a JSON object",
                    code="body_invalid",
                )
            ]
        if not body:
            return [
                CollectionValidationError(
                    field="body",
                    message="Request body with data is required",
                    code="body_required",
                )
            ]
        return []

    @classmethod
    def ensure_valid(
        cls,
        *,
        collection: Any = None,
        record_id: Any = None,
        body: Any = None,
        check_id: bool = False,
        check_body: bool = False,
        operation: str | None = None,
    ) -> None:
        """Run the requested checks and raise on the first failure.

        Raises:
            ValidationError: With the message of the first error found.
        """
        errors = cls.validate_name(collection)
        if check_id:
            errors += cls.validate_record_id(record_id)
        if check_body:
            errors += cls.validate_body(body)
        if errors:
            raise ValidationError(errors[0].message, operation=operation)
