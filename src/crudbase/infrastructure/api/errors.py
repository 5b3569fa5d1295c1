"""Translation of storage errors into envelope responses."""

from contextlib import contextmanager
from typing import Iterator

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from crudbase.core.exceptions import (
    NotInitializedError,
    OperationForbiddenError,
    PersistenceError,
    StorageError,
    StorageUnavailableError,
    ValidationError,
)
from crudbase.core.logging import get_logger
from crudbase.infrastructure.api.schemas import ErrorEnvelope

logger = get_logger(__name__)

# Checked in order; first matching class wins
STATUS_BY_ERROR: tuple[tuple[type[StorageError], int], ...] = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (OperationForbiddenError, status.HTTP_403_FORBIDDEN),
    (NotInitializedError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (StorageUnavailableError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (PersistenceError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def status_for(exc: StorageError) -> int:
    for error_type, status_code in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@contextmanager
def storage_operation(operation: str) -> Iterator[None]:
    """Tag storage errors raised inside the block with ``operation``."""
    try:
        yield
    except StorageError as e:
        if e.operation is None:
            e.operation = operation
        raise


def register_exception_handlers(app: FastAPI, debug: bool = False) -> None:
    """Register exception handlers producing the error envelope.

    Args:
        app: FastAPI application instance.
        debug: Include exception text in 500 responses.
    """

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
        status_code = status_for(exc)
        log = logger.error if status_code >= 500 else logger.info
        log(
            "Storage operation failed",
            path=str(request.url.path),
            method=request.method,
            operation=exc.operation,
            error=exc.message,
            exc_type=type(exc).__name__,
            status_code=status_code,
        )
        return ErrorEnvelope(error=exc.message, operation=exc.operation).to_response(status_code)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = exc.errors()
        detail = errors[0].get("msg") if errors else None
        logger.info(
            "Malformed request",
            path=str(request.url.path),
            method=request.method,
            error=detail,
        )
        return ErrorEnvelope(
            error="Request body must be valid JSON",
            message=detail,
        ).to_response(status.HTTP_400_BAD_REQUEST)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle uncaught exceptions."""
        logger.error(
            "Unhandled exception",
            path=str(request.url.path),
            method=request.method,
            error=str(exc),
            exc_type=type(exc).__name__,
        )
        return ErrorEnvelope(
            error="Internal server error",
            message=str(exc) if debug else "An unexpected error occurred",
        ).to_response(status.HTTP_500_INTERNAL_SERVER_ERROR)
