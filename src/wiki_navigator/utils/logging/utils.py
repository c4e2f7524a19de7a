# ABOUTME: Logger utilities with context binding and operation tracking decorators
# ABOUTME: Provides get_logger and decorators for consistent structured logging of upstream wiki calls

import functools
import time
import uuid
from collections.abc import Callable
from typing import Any, TypeVar

import structlog

# Type variable for decorated functions
F = TypeVar("F", bound=Callable[..., Any])


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a logger instance with automatic module detection.

    Args:
        name: Logger name, auto-detected from caller if None

    Returns:
        Configured structlog logger instance
    """
    if name is None:
        import inspect

        frame = inspect.currentframe()
        if frame and frame.f_back:
            name = frame.f_back.f_globals.get("__name__", "unknown")

    return structlog.get_logger(name or "wiki_navigator")


def generate_operation_id() -> str:
    """Generate a unique operation ID for tracking requests."""
    return str(uuid.uuid4())[:8]


def log_api_call(api_name: str, **context) -> Callable[[F], F]:
    """Decorator to log upstream API calls with timing and outcome.

    The first positional string argument that looks like a URL is bound as ``url``.

    Args:
        api_name: Name of the API being called
        **context: Additional context for the API call

    Returns:
        Decorated coroutine function with API call logging
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            logger = get_logger(func.__module__)
            call_id = generate_operation_id()

            url = None
            for arg in args:
                if isinstance(arg, str) and arg.startswith(("http://", "https://")):
                    url = arg
                    break

            bound_logger = logger.bind(api_name=api_name, call_id=call_id, url=url, **context)

            bound_logger.debug(f"API call to {api_name}")
            start_time = time.monotonic()

            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                bound_logger.warning(
                    f"API call to {api_name} failed",
                    duration_seconds=round(time.monotonic() - start_time, 3),
                    error=str(e),
                    error_type=type(e).__name__,
                    success=False,
                )
                raise

            bound_logger.debug(
                f"API call to {api_name} succeeded",
                duration_seconds=round(time.monotonic() - start_time, 3),
                success=True,
            )
            return result

        return wrapper  # type: ignore[return-value]

    return decorator


def with_async_operation_context(operation: str, **context) -> Callable[[F], F]:
    """Decorator to add operation context to async function logging.

    Args:
        operation: Operation name for logging
        **context: Additional context to bind to logger

    Returns:
        Decorated async function with operation logging
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            logger = get_logger(func.__module__)
            bound_logger = logger.bind(
                operation=operation, operation_id=generate_operation_id(), function=func.__name__, **context
            )

            bound_logger.debug(f"Starting {operation}")
            start_time = time.monotonic()

            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                bound_logger.info(
                    f"Failed {operation}",
                    duration_seconds=round(time.monotonic() - start_time, 3),
                    error=str(e),
                    error_type=type(e).__name__,
                    success=False,
                )
                raise

            bound_logger.info(
                f"Completed {operation}", duration_seconds=round(time.monotonic() - start_time, 3), success=True
            )
            return result

        return wrapper  # type: ignore[return-value]

    return decorator


class LogContext:
    """Context manager for binding logger context."""

    def __init__(self, logger: structlog.stdlib.BoundLogger, **context):
        self.logger = logger
        self.context = context
        self.bound_logger = None

    def __enter__(self) -> structlog.stdlib.BoundLogger:
        self.bound_logger = self.logger.bind(**self.context)
        return self.bound_logger

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None and self.bound_logger is not None:
            self.bound_logger.error("Context operation failed", error=str(exc_val), error_type=exc_type.__name__)


def with_wiki_context(wiki_url: str, **context) -> LogContext:
    """Create a logging context for operations against a single wiki.

    Args:
        wiki_url: Base URL of the wiki
        **context: Additional context to bind (title, section index, ...)

    Returns:
        LogContext manager with wiki context
    """
    logger = get_logger()
    return LogContext(logger, wiki_url=wiki_url, operation_id=generate_operation_id(), **context)
