"""Structured logging with correlation IDs.

Configures structlog for JSON output in production and a coloured console
renderer during development. Request handlers bind a correlation ID so every
storage log line emitted while serving a request can be traced back to it.
"""

import logging
import sys
import uuid
from functools import lru_cache
from pathlib import Path
from typing import Any, TextIO

import structlog
from structlog.types import EventDict, Processor

from crudbase.core.config import get_settings


def new_correlation_id() -> str:
    """Generate a short correlation ID."""
    return f"cid_{uuid.uuid4().hex[:12]}"


def add_correlation_id(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Make sure every entry carries a correlation ID.

    Args:
        logger: Logger instance (unused).
        method_name: Method name (unused).
        event_dict: Event dictionary to modify.

    Returns:
        EventDict: Modified event dictionary with correlation_id.
    """
    # Bound by the request middleware; startup and CLI logs get a throwaway one
    if "correlation_id" not in event_dict:
        event_dict["correlation_id"] = new_correlation_id()
    return event_dict


def add_logger_name(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Add logger name to log entry."""
    event_dict["logger"] = logger.name if hasattr(logger, "name") else "crudbase"
    return event_dict


def rename_message_field(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Rename 'event' field to 'message' for compatibility."""
    if "event" in event_dict:
        event_dict["message"] = event_dict.pop("event")
    return event_dict


@lru_cache
def _open_log_file(path: Path) -> TextIO:
    """One append handle per log file for the life of the process."""
    path.parent.mkdir(parents=True, exist_ok=True)
    return path.open("a", encoding="utf-8")


def _log_stream(log_file: str | None) -> TextIO:
    if not log_file:
        return sys.stdout
    return _open_log_file(Path(log_file).expanduser().resolve())


def configure_logging(settings: Any | None = None) -> None:
    """Configure structured logging for the application.

    Sets up structlog with JSON formatting for production and
    console formatting for development.

    Args:
        settings: Optional settings instance. If not provided, will load from environment.
    """
    if settings is None:
        settings = get_settings()

    level = getattr(logging, settings.log_level)
    stream = _log_stream(settings.log_file)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        add_correlation_id,
        rename_message_field,
    ]

    console = settings.log_format == "console" or (
        settings.is_development and settings.log_file is None
    )

    if console:
        renderer: Processor = structlog.dev.ConsoleRenderer(
            colors=stream is sys.stdout,
            exception_formatter=structlog.dev.plain_traceback,
        )
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=not console,
    )

    # Standard logging for third-party libraries
    logging.basicConfig(
        format="%(message)s",
        stream=stream,
        level=level,
    )
    for logger_name in ["uvicorn", "uvicorn.access", "uvicorn.error"]:
        logging.getLogger(logger_name).setLevel(level)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Optional logger name. If not provided, uses 'crudbase'.

    Returns:
        BoundLogger: Configured structured logger instance.
    """
    return structlog.get_logger(name or "crudbase")


class LoggingContext:
    """Context manager for adding logging context.

    Example:
        with LoggingContext(collection="users", operation="create_record"):
            logger.info("Creating record")  # carries collection and operation
    """

    def __init__(self, **kwargs: str) -> None:
        self.context = kwargs
        self.tokens: Any = None

    def __enter__(self) -> "LoggingContext":
        self.tokens = structlog.contextvars.bind_contextvars(**self.context)
        return self

    def __exit__(self, *args: Any) -> None:
        if self.tokens is not None:
            structlog.contextvars.unbind_contextvars(*self.context.keys())


def bind_correlation_id(correlation_id: str) -> None:
    """Bind a correlation ID to the current logging context."""
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)


def clear_context() -> None:
    """Clear all context variables from the current logging context.

    Called at the end of a request so context doesn't leak between requests.
    """
    structlog.contextvars.clear_contextvars()
