"""API Schemas for response envelopes."""

from crudbase.infrastructure.api.schemas.envelope_schemas import (
    BackupFileEnvelope,
    ClearEnvelope,
    DataEnvelope,
    DeleteEnvelope,
    Envelope,
    ErrorEnvelope,
    HealthEnvelope,
    RecordEnvelope,
    RecordListEnvelope,
)

__all__ = [
    "BackupFileEnvelope",
    "ClearEnvelope",
    "DataEnvelope",
    "DeleteEnvelope",
    "Envelope",
    "ErrorEnvelope",
    "HealthEnvelope",
    "RecordEnvelope",
    "RecordListEnvelope",
]
