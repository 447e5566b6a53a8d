"""
Structured logging configuration with operation correlation.

This module provides centralized logging configuration with structured
output, operation ID correlation for console actions and performance
logging around service calls.
"""

import logging
import sys
import time
from contextvars import ContextVar
from typing import Any, Optional
from uuid import uuid4

import structlog
from structlog.types import EventDict, Processor

from orderdesk.core.config import get_settings

# Context variable tying every log line of one shell action together
operation_id_ctx: ContextVar[str] = ContextVar("operation_id", default="")


def add_operation_id(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """
    Add operation ID from context to log event.

    Args:
        logger: Logger instance
        method_name: Log method name
        event_dict: Event dictionary to modify

    Returns:
        Modified event dictionary with operation_id
    """
    operation_id = operation_id_ctx.get()
    if operation_id:
        event_dict["operation_id"] = operation_id
    return event_dict


def add_timestamp(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """
    Add ISO format timestamp to log event.

    Args:
        logger: Logger instance
        method_name: Log method name
        event_dict: Event dictionary to modify

    Returns:
        Modified event dictionary with timestamp
    """
    from datetime import datetime, timezone

    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def add_logger_name(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add logger name to event dictionary."""
    event_dict["logger"] = logger.name
    return event_dict


def configure_logging() -> None:
    """
    Configure structured logging.

    Sets up structlog with a console renderer for development and JSON
    output for every other environment. Log lines go to stderr so they do
    not interleave with the console menu on stdout.
    """
    settings = get_settings()

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        add_timestamp,
        add_logger_name,
        add_operation_id,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.is_development:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=False,
                exception_formatter=structlog.dev.plain_traceback,
            )
        )
    else:
        processors.append(structlog.processors.JSONRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, settings.log_level),
    )

    # Set log levels for third-party libraries
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance
    """
    return structlog.get_logger(name)


def set_operation_id(operation_id: Optional[str] = None) -> str:
    """
    Set operation ID in context for correlation.

    Args:
        operation_id: Optional operation ID, generates UUID if not provided

    Returns:
        Operation ID that was set
    """
    if operation_id is None:
        operation_id = str(uuid4())
    operation_id_ctx.set(operation_id)
    return operation_id


def get_operation_id() -> str:
    """Get current operation ID, or an empty string if none is set."""
    return operation_id_ctx.get()


def clear_context() -> None:
    """Clear the operation ID once a shell action has finished."""
    operation_id_ctx.set("")


class PerformanceLogger:
    """
    Context manager for performance logging.

    Logs execution time of code blocks with structured context.
    """

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger,
        operation: str,
        **context: Any,
    ):
        self.logger = logger
        self.operation = operation
        self.context = context
        self.start_time: Optional[float] = None

    def __enter__(self) -> "PerformanceLogger":
        self.start_time = time.perf_counter()
        self.logger.debug(
            "Operation started",
            operation=self.operation,
            **self.context,
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self.start_time is None:
            return

        duration_ms = (time.perf_counter() - self.start_time) * 1000

        if exc_type is not None:
            self.logger.warning(
                "Operation failed",
                operation=self.operation,
                duration_ms=round(duration_ms, 2),
                error_type=exc_type.__name__,
                **self.context,
            )
        else:
            log_method = self.logger.warning if duration_ms > 500 else self.logger.debug
            log_method(
                "Operation completed",
                operation=self.operation,
                duration_ms=round(duration_ms, 2),
                **self.context,
            )


def log_performance(
    logger: structlog.stdlib.BoundLogger,
    operation: str,
    **context: Any,
) -> PerformanceLogger:
    """
    Create performance logger context manager.

    Args:
        logger: Logger instance to use
        operation: Operation name for logging
        **context: Additional context to include in logs

    Returns:
        PerformanceLogger context manager

    Example:
        >>> logger = get_logger(__name__)
        >>> with log_performance(logger, "order.create", number="0001"):
        ...     await service.create(order)
    """
    return PerformanceLogger(logger, operation, **context)
