# ABOUTME: Logging configuration and structured logger helpers
# ABOUTME: Provides loguru output setup and structlog loggers bound with wiki request context

from .config import LoggingMode, configure_logging, detect_logging_mode, get_logging_status
from .utils import (
    LogContext,
    generate_operation_id,
    get_logger,
    log_api_call,
    with_async_operation_context,
    with_wiki_context,
)

__all__ = [
    # Configuration
    "LoggingMode",
    "configure_logging",
    "detect_logging_mode",
    "get_logging_status",
    # Utilities
    "LogContext",
    "generate_operation_id",
    "get_logger",
    "log_api_call",
    "with_async_operation_context",
    "with_wiki_context",
]
