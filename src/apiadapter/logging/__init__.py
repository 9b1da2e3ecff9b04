"""
Structured logging module.

Provides JSON logging with adapter/operation context propagation.
"""

from apiadapter.logging.context import (
    clear_log_context,
    get_log_context,
    set_log_context,
)
from apiadapter.logging.context_managers import LogContext
from apiadapter.logging.formatters import ConsoleFormatter, JSONFormatter
from apiadapter.logging.setup import get_logger, setup_logging
from apiadapter.logging.utilities import log_exception, log_with_context

__all__ = [
    # Setup
    "setup_logging",
    "get_logger",
    # Formatters
    "JSONFormatter",
    "ConsoleFormatter",
    # Context
    "set_log_context",
    "get_log_context",
    "clear_log_context",
    # Context Managers
    "LogContext",
    # Utilities
    "log_with_context",
    "log_exception",
]
