"""
Per-attempt timeout policy.

Bounds one attempt with asyncio.timeout. Only this policy's own expiry is
turned into AttemptTimeoutError; a caller's cancellation passes through as
asyncio.CancelledError and transport-level timeouts are re-raised unchanged.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from apiadapter.errors.exceptions import AttemptTimeoutError
from apiadapter.resilience.base import PolicyBase

if TYPE_CHECKING:
    from apiadapter.http.models import ApiResponse

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0


class TimeoutPolicy(PolicyBase):
    """Cancel an attempt that runs longer than ``timeout_seconds``."""

    def __init__(self, timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS):
        timeout_seconds = float(timeout_seconds)
        if timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be positive, got {timeout_seconds}")
        self.timeout_seconds = timeout_seconds

    async def execute(
        self, action: Callable[[], Awaitable["ApiResponse"]]
    ) -> "ApiResponse":
        deadline = asyncio.timeout(self.timeout_seconds)
        try:
            async with deadline:
                return await action()
        except TimeoutError as e:
            if not deadline.expired():
                raise
            logger.warning(
                "Attempt exceeded %.2fs timeout",
                self.timeout_seconds,
                extra={"timeout_seconds": self.timeout_seconds},
            )
            raise AttemptTimeoutError(self.timeout_seconds) from e

    def __repr__(self) -> str:
        return f"TimeoutPolicy(timeout_seconds={self.timeout_seconds})"


__all__ = ["DEFAULT_TIMEOUT_SECONDS", "TimeoutPolicy"]
