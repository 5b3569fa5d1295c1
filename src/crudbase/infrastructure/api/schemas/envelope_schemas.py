"""Pydantic schemas for the response envelope.

Every endpoint answers with ``{success, data?, error?, message?, ...}``.
Field names on the wire are camelCase.
"""

from typing import Any

from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field


class Envelope(BaseModel):
    """Common envelope fields."""

    model_config = {"populate_by_name": True}

    success: bool = Field(True, description="Whether the operation succeeded")
    message: str | None = Field(None, description="Human-readable summary")


class RecordEnvelope(Envelope):
    """A single record."""

    data: dict[str, Any] = Field(..., description="The stored record")
    collection: str = Field(..., description="Collection the record belongs to")


class RecordListEnvelope(Envelope):
    """Records of one collection."""

    data: list[dict[str, Any]] = Field(..., description="Matching records")
    count: int = Field(..., description="Number of records returned")
    collection: str = Field(..., description="Collection name")
    storage_type: str = Field(..., alias="storageType", description="Active backend")


class DeleteEnvelope(Envelope):
    """Result of a record deletion."""

    deleted_id: str = Field(..., alias="deletedId", description="ID of the removed record")
    collection: str = Field(..., description="Collection name")


class DataEnvelope(Envelope):
    """Stats or backup payload."""

    data: dict[str, Any] = Field(..., description="Operation payload")


class BackupFileEnvelope(Envelope):
    """Location of a backup written to disk."""

    path: str = Field(..., description="Path of the written backup file")


class HealthEnvelope(Envelope):
    """Storage health report."""

    healthy: bool = Field(..., description="Result of the storage round-trip probe")
    storage_type: str = Field(..., alias="storageType", description="Active backend")


class ClearEnvelope(Envelope):
    """Result of clearing the storage."""

    environment: str = Field(..., description="Environment the clear ran in")


class ErrorEnvelope(BaseModel):
    """Error response."""

    success: bool = Field(False, description="Always false")
    error: str = Field(..., description="Error message")
    operation: str | None = Field(None, description="Operation that failed")
    message: str | None = Field(None, description="Additional detail")

    def to_response(self, status_code: int) -> JSONResponse:
        return JSONResponse(
            status_code=status_code,
            content=self.model_dump(exclude_none=True),
        )
