"""
Error classification and exception hierarchy.

Provides:
- ErrorCategory enum for classifying errors
- AdapterError hierarchy for typed exceptions
- ServiceError, the single failure type surfaced by adapters
- Classification utilities for error handling
"""

from apiadapter.errors.exceptions import (
    INTERNAL_ERROR_STATUS,
    # Base classes
    AdapterError,
    AttemptTimeoutError,
    DeserializationError,
    # Enums
    ErrorCategory,
    InvalidUsageError,
    PermanentError,
    ServiceError,
    TransientError,
    # Classification utilities
    classify_exception,
    classify_http_status,
    is_retryable_error,
)

__all__ = [
    # Enums
    "ErrorCategory",
    # Base classes
    "AdapterError",
    "TransientError",
    "PermanentError",
    # Concrete errors
    "AttemptTimeoutError",
    "DeserializationError",
    "InvalidUsageError",
    "ServiceError",
    "INTERNAL_ERROR_STATUS",
    # Classification utilities
    "classify_exception",
    "classify_http_status",
    "is_retryable_error",
]
