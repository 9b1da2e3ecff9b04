"""
Unified exception hierarchy for apiadapter.

Provides typed exceptions with retry classification so callers can tell
invalid usage, service failures and unparseable responses apart.
Caller cancellation is never represented here; it surfaces as
asyncio.CancelledError.
"""

import asyncio
from typing import TYPE_CHECKING, Any

import aiohttp

from apiadapter.types import ErrorCategory

if TYPE_CHECKING:
    from apiadapter.http.headers import ResponseHeaderMap

# Status reported by ServiceError when no HTTP response was received
INTERNAL_ERROR_STATUS = 500


class AdapterError(Exception):
    """
    Base exception for all adapter errors.

    Attributes:
        message: Human-readable error description
        category: Error classification for retry decisions
        cause: Original exception if wrapping
        context: Additional context dict for debugging
    """

    category: ErrorCategory = ErrorCategory.UNKNOWN

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        context: dict | None = None,
    ):
        self.message = message
        self.cause = cause
        self.context = context or {}
        super().__init__(message)

    @property
    def is_retryable(self) -> bool:
        return self.category == ErrorCategory.TRANSIENT

    def __str__(self) -> str:
        parts = [self.message]
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " | ".join(parts)


# =============================================================================
# Transient Errors
# =============================================================================


class TransientError(AdapterError):
    """Base class for transient/retriable errors."""

    category = ErrorCategory.TRANSIENT


class AttemptTimeoutError(TransientError):
    """A single attempt exceeded its time budget."""

    def __init__(self, timeout_seconds: float):
        super().__init__(
            f"Attempt timed out after {timeout_seconds:g}s",
            context={"timeout_seconds": timeout_seconds},
        )
        self.timeout_seconds = timeout_seconds


# =============================================================================
# Permanent Errors (Don't Retry)
# =============================================================================


class PermanentError(AdapterError):
    """Base class for permanent/non-retriable errors."""

    category = ErrorCategory.PERMANENT


class InvalidUsageError(PermanentError, ValueError):
    """The caller asked for something the adapter cannot do. Never sent."""

    pass


class DeserializationError(PermanentError):
    """A successful response body could not be parsed into the requested type."""

    def __init__(
        self,
        message: str,
        body: str = "",
        result_type: Any = None,
        cause: Exception | None = None,
    ):
        super().__init__(
            message,
            cause,
            {"result_type": getattr(result_type, "__name__", repr(result_type))},
        )
        self.body = body
        self.result_type = result_type


# =============================================================================
# Service Errors
# =============================================================================


class ServiceError(AdapterError):
    """
    Normalized failure of a service call.

    Built either from a completed non-2xx exchange (real status, captured
    response headers, raw body) or from a transport/policy failure
    (INTERNAL_ERROR_STATUS, no headers, the failure text).
    """

    def __init__(
        self,
        status_code: int,
        response_headers: "ResponseHeaderMap | None" = None,
        response_message: str = "",
        cause: Exception | None = None,
    ):
        super().__init__(
            f"Service call failed with status {status_code}",
            cause,
            {"status_code": status_code},
        )
        self.status_code = status_code
        self.response_headers = response_headers
        self.response_message = response_message

    @classmethod
    def from_exception(cls, exc: BaseException) -> "ServiceError":
        """Wrap a non-HTTP failure."""
        return cls(INTERNAL_ERROR_STATUS, None, str(exc), cause=exc)

    @property
    def category(self) -> ErrorCategory:  # type: ignore[override]
        if self.response_headers is None and self.cause is not None:
            return classify_exception(self.cause)
        return classify_http_status(self.status_code)

    @property
    def is_internal(self) -> bool:
        """True when no HTTP response was received."""
        return self.response_headers is None and self.cause is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "status_code": self.status_code,
            "response_headers": (
                self.response_headers.to_dict()
                if self.response_headers is not None
                else None
            ),
            "response_message": self.response_message,
            "error_category": self.category.value,
        }

    def __str__(self) -> str:
        if self.response_message:
            return f"{self.message}: {self.response_message[:500]}"
        return self.message

    def __reduce__(self):
        # cause is dropped: arbitrary transport exceptions don't pickle reliably
        return (
            self.__class__,
            (self.status_code, self.response_headers, self.response_message),
        )


# =============================================================================
# Error Classification Utilities
# =============================================================================


def classify_http_status(status_code: int) -> ErrorCategory:
    """Classify HTTP status code into error category."""
    if 200 <= status_code < 300:
        return ErrorCategory.UNKNOWN  # Not an error

    if status_code == 401:
        return ErrorCategory.AUTH

    if status_code == 429:
        return ErrorCategory.TRANSIENT  # Rate limited

    if 400 <= status_code < 500:
        return ErrorCategory.PERMANENT

    if status_code >= 500:
        return ErrorCategory.TRANSIENT  # Server errors, may recover

    return ErrorCategory.UNKNOWN


def classify_exception(exc: BaseException) -> ErrorCategory:
    """Classify an exception into error category."""
    # Already classified
    if isinstance(exc, AdapterError):
        return exc.category

    if isinstance(exc, (asyncio.TimeoutError, aiohttp.ClientError, ConnectionError)):
        return ErrorCategory.TRANSIENT

    if isinstance(exc, OSError):
        return ErrorCategory.TRANSIENT

    exc_str = str(exc).lower()
    if "timeout" in exc_str or "connection" in exc_str:
        return ErrorCategory.TRANSIENT

    return ErrorCategory.UNKNOWN


def is_retryable_error(exc: BaseException) -> bool:
    """Check if exception may succeed on retry."""
    return classify_exception(exc) == ErrorCategory.TRANSIENT


__all__ = [
    "INTERNAL_ERROR_STATUS",
    "AdapterError",
    "AttemptTimeoutError",
    "DeserializationError",
    "ErrorCategory",
    "InvalidUsageError",
    "PermanentError",
    "ServiceError",
    "TransientError",
    "classify_exception",
    "classify_http_status",
    "is_retryable_error",
]
