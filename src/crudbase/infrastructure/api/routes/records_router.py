"""Records API routes.

Provides dynamic CRUD endpoints for any collection name. Collections are
created implicitly on the first POST.
"""

from typing import Any

from fastapi import APIRouter, Body, Request, status
from fastapi.responses import JSONResponse

from crudbase.core.logging import get_logger
from crudbase.domain.services import CollectionValidator
from crudbase.infrastructure.api.dependencies import StorageDep
from crudbase.infrastructure.api.errors import storage_operation
from crudbase.infrastructure.api.schemas import (
    DeleteEnvelope,
    ErrorEnvelope,
    RecordEnvelope,
    RecordListEnvelope,
)

logger = get_logger(__name__)

router = APIRouter()


def _not_found(collection: str, record_id: str, operation: str) -> JSONResponse:
    return ErrorEnvelope(
        error=f"Record with ID '{record_id}' not found in collection '{collection}'",
        operation=operation,
    ).to_response(status.HTTP_404_NOT_FOUND)


@router.get("/{collection}", response_model=RecordListEnvelope)
async def list_records(
    collection: str,
    request: Request,
    storage: StorageDep,
) -> RecordListEnvelope:
    """List the records of a collection.

    Query parameters act as exact-match field filters, e.g.
    ``GET /users?role=admin``. Unknown collections yield an empty list.
    """
    CollectionValidator.ensure_valid(collection=collection, operation="get_collection")

    filters = dict(request.query_params)
    with storage_operation("get_collection"):
        records = await storage.get_collection(collection, filters or None)

    return RecordListEnvelope(
        data=records,
        count=len(records),
        collection=collection,
        storage_type=storage.storage_type.value,
        message=f"Retrieved {len(records)} records from collection '{collection}'",
    )


@router.get(
    "/{collection}/{record_id}",
    response_model=RecordEnvelope,
    responses={404: {"model": ErrorEnvelope, "description": "Record not found"}},
)
async def get_record(
    collection: str,
    record_id: str,
    storage: StorageDep,
) -> RecordEnvelope | JSONResponse:
    """Fetch a single record by ID."""
    CollectionValidator.ensure_valid(
        collection=collection, record_id=record_id, check_id=True, operation="get_record"
    )

    with storage_operation("get_record"):
        record = await storage.get_record(collection, record_id)

    if record is None:
        return _not_found(collection, record_id, "get_record")

    return RecordEnvelope(
        data=record,
        collection=collection,
        message=f"Record retrieved from collection '{collection}'",
    )


@router.post(
    "/{collection}",
    status_code=status.HTTP_201_CREATED,
    response_model=RecordEnvelope,
    responses={400: {"model": ErrorEnvelope, "description": "Validation error"}},
)
async def create_record(
    collection: str,
    storage: StorageDep,
    data: Any = Body(default=None),
) -> RecordEnvelope:
    """Create a record, creating the collection if needed.

    ``id``, ``createdAt`` and ``updatedAt`` in the body are ignored; the
    storage layer assigns them.
    """
    CollectionValidator.ensure_valid(
        collection=collection, body=data, check_body=True, operation="create_record"
    )

    with storage_operation("create_record"):
        record = await storage.create_record(collection, data)

    logger.info(
        "Record created",
        collection=collection,
        record_id=record["id"],
        storage_type=storage.storage_type.value,
    )
    return RecordEnvelope(
        data=record,
        collection=collection,
        message=f"Record created in collection '{collection}'",
    )


@router.put(
    "/{collection}/{record_id}",
    response_model=RecordEnvelope,
    responses={
        400: {"model": ErrorEnvelope, "description": "Validation error"},
        404: {"model": ErrorEnvelope, "description": "Record not found"},
    },
)
async def update_record(
    collection: str,
    record_id: str,
    storage: StorageDep,
    data: Any = Body(default=None),
) -> RecordEnvelope | JSONResponse:
    """Shallow-merge the body onto an existing record."""
    CollectionValidator.ensure_valid(
        collection=collection,
        record_id=record_id,
        body=data,
        check_id=True,
        check_body=True,
        operation="update_record",
    )

    with storage_operation("update_record"):
        record = await storage.update_record(collection, record_id, data)

    if record is None:
        return _not_found(collection, record_id, "update_record")

    logger.info("Record updated", collection=collection, record_id=record_id)
    return RecordEnvelope(
        data=record,
        collection=collection,
        message=f"Record updated in collection '{collection}'",
    )


@router.delete(
    "/{collection}/{record_id}",
    response_model=DeleteEnvelope,
    responses={404: {"model": ErrorEnvelope, "description": "Record not found"}},
)
async def delete_record(
    collection: str,
    record_id: str,
    storage: StorageDep,
) -> DeleteEnvelope | JSONResponse:
    """Delete a record permanently."""
    CollectionValidator.ensure_valid(
        collection=collection, record_id=record_id, check_id=True, operation="delete_record"
    )

    with storage_operation("delete_record"):
        deleted = await storage.delete_record(collection, record_id)

    if not deleted:
        return _not_found(collection, record_id, "delete_record")

    logger.info("Record deleted", collection=collection, record_id=record_id)
    return DeleteEnvelope(
        deleted_id=record_id,
        collection=collection,
        message=f"Record deleted from collection '{collection}'",
    )
