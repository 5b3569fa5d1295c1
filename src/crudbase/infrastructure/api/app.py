"""FastAPI application factory and configuration.

This module provides the application factory function for creating
and configuring the FastAPI application with all middleware, routes,
and lifecycle handlers.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from crudbase.core.config import Settings, get_settings
from crudbase.core.logging import (
    bind_correlation_id,
    clear_context,
    configure_logging,
    get_logger,
    new_correlation_id,
)
from crudbase.domain.entities.record import to_iso, utc_now
from crudbase.infrastructure.api.errors import register_exception_handlers
from crudbase.infrastructure.storage import StorageFactory, StorageManager

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Initializes the storage manager with failover before serving. If no
    backend can be initialized the error propagates and startup aborts.

    Args:
        app: FastAPI application instance.

    Yields:
        None: Control is yielded to the application during its lifetime.
    """
    settings: Settings = app.state.settings
    manager: StorageManager = app.state.storage_manager

    configure_logging(settings)

    logger.info(
        "Starting CrudBase",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )

    try:
        storage = await manager.init()
    except Exception as e:
        logger.error("Failed to initialize storage", error=str(e))
        raise

    logger.info("Storage ready", storage_type=storage.storage_type.value)

    yield

    logger.info("Shutting down CrudBase")


def create_app(
    settings: Settings | None = None,
    storage_manager: StorageManager | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to use. Defaults to :func:`get_settings`.
        storage_manager: Pre-built manager, mostly for tests. Defaults to a
            manager over a :class:`StorageFactory` for ``settings``.

    Returns:
        FastAPI: Configured FastAPI application instance.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Collection-based JSON record storage over HTTP",
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        openapi_url="/openapi.json" if not settings.is_production else None,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.storage_manager = storage_manager or StorageManager(StorageFactory(settings))

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    register_health_check(app)
    register_routes(app)
    register_exception_handlers(app, debug=settings.debug)
    register_middleware(app)

    return app


def register_health_check(app: FastAPI) -> None:
    """Register service-level info and health endpoints.

    Args:
        app: FastAPI application instance.
    """
    settings: Settings = app.state.settings

    @app.get("/", tags=["root"])
    async def root():
        """Service information and endpoint map."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "environment": settings.environment,
            "endpoints": {
                "health": "/health",
                "ready": "/ready",
                "storage": settings.api_prefix,
            },
        }

    @app.get("/health", tags=["health"])
    async def health_check():
        """Liveness check. Does not touch storage."""
        return {
            "ok": True,
            "message": "Server is running",
            "timestamp": to_iso(utc_now()),
        }

    @app.get("/ready", tags=["health"])
    async def readiness_check(request: Request):
        """Readiness check.

        Returns 200 when storage is initialized and passes its health probe.
        """
        manager: StorageManager = request.app.state.storage_manager
        if not manager.initialized:
            return JSONResponse(
                status_code=503,
                content={"status": "not_ready", "storage": "uninitialized"},
            )

        storage = manager.get_storage()
        if await storage.health_check():
            return {
                "status": "ready",
                "storageType": storage.storage_type.value,
                "storage": "healthy",
            }
        return JSONResponse(
            status_code=503,
            content={
                "status": "not_ready",
                "storageType": storage.storage_type.value,
                "storage": "unhealthy",
            },
        )


def register_routes(app: FastAPI) -> None:
    """Register API routes.

    Args:
        app: FastAPI application instance.
    """
    from crudbase.infrastructure.api.routes import records_router, storage_router

    settings: Settings = app.state.settings

    # Storage-wide routes first so they are not captured by /{collection}
    app.include_router(storage_router, prefix=settings.api_prefix, tags=["storage"])
    app.include_router(records_router, prefix=settings.api_prefix, tags=["records"])


def register_middleware(app: FastAPI) -> None:
    """Register custom middleware.

    Args:
        app: FastAPI application instance.
    """

    @app.middleware("http")
    async def logging_middleware(request, call_next):
        """Log every request and propagate the correlation ID."""
        correlation_id = request.headers.get("X-Correlation-ID") or new_correlation_id()
        bind_correlation_id(correlation_id)

        logger.info(
            "Request started",
            method=request.method,
            path=str(request.url.path),
        )

        try:
            response = await call_next(request)
            logger.info(
                "Request completed",
                method=request.method,
                path=str(request.url.path),
                status_code=response.status_code,
            )
            response.headers["X-Correlation-ID"] = correlation_id
            return response
        finally:
            clear_context()


# Create the application instance
app = create_app()
