"""
Core types and protocols used across modules.

This module provides base types, enums, and protocol definitions that are
shared across the adapter library to ensure consistency and type safety.
"""

from collections.abc import Awaitable, Callable
from enum import Enum
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from apiadapter.http.client import HttpClient
    from apiadapter.http.models import ApiResponse


class ErrorCategory(Enum):
    """
    Classification of error types for handling decisions.

    Categories:
        TRANSIENT: Temporary failures that may succeed on retry
                   (e.g., connection resets, attempt timeouts, 5xx responses)
        AUTH: Authentication failures (401)
        PERMANENT: Non-retriable failures that won't succeed on retry
                   (e.g., 404, invalid usage, unparseable response bodies)
        UNKNOWN: Unclassified errors
    """

    TRANSIENT = "transient"
    AUTH = "auth"
    PERMANENT = "permanent"
    UNKNOWN = "unknown"


class ClientFactory(Protocol):
    """
    Protocol for HTTP client factories.

    Implementations own connection pooling. Every call hands out a client
    that the adapter configures and releases for a single exchange.
    """

    def create_client(self) -> "HttpClient":
        """
        Create a client for one exchange.

        Returns:
            Unconfigured HttpClient (no base address, no default headers)
        """
        ...


class Policy(Protocol):
    """
    Protocol for resilience policies.

    A policy runs an attempt factory one or more times and returns the
    response it settles on, or raises the failure it gives up on.
    """

    async def execute(
        self, action: Callable[[], Awaitable["ApiResponse"]]
    ) -> "ApiResponse":
        ...


__all__ = [
    "ClientFactory",
    "ErrorCategory",
    "Policy",
]
