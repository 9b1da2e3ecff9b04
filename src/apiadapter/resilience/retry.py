"""
Retry policy with exponential backoff.

Retries an attempt when it raises one of the configured transient exception
types or when its response matches the retry predicate (default: status
>= 500). Backoff is purely exponential, ``base_delay * exponential_base **
attempt`` with attempts numbered from 1, so the defaults wait 2s, 4s, 8s...

When retries run out on a response, that last response is returned so the
caller sees the real status. When they run out on an exception, the
exception is re-raised.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import aiohttp

from apiadapter.errors.exceptions import AttemptTimeoutError, classify_exception
from apiadapter.resilience.base import PolicyBase

if TYPE_CHECKING:
    from apiadapter.http.models import ApiResponse

logger = logging.getLogger(__name__)

DEFAULT_RETRY_COUNT = 1

# Transport failures, per-attempt timeouts and low-level I/O failures
DEFAULT_RETRY_EXCEPTIONS: tuple[type[BaseException], ...] = (
    aiohttp.ClientError,
    AttemptTimeoutError,
    OSError,
)


def default_retry_result(response: "ApiResponse") -> bool:
    """Retry server errors. 429 is left to callers that opt in."""
    return response.status_code >= 500


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""

    # Retries after the first attempt (total attempts = retry_count + 1)
    retry_count: int = DEFAULT_RETRY_COUNT
    base_delay: float = 1.0
    exponential_base: float = 2.0

    # None leaves the backoff uncapped
    max_delay: float | None = None

    retry_on: tuple[type[BaseException], ...] = field(
        default=DEFAULT_RETRY_EXCEPTIONS
    )

    def __post_init__(self):
        """Ensure proper types from YAML/env vars."""
        self.retry_count = int(self.retry_count)
        self.base_delay = float(self.base_delay)
        self.exponential_base = float(self.exponential_base)
        if self.max_delay is not None:
            self.max_delay = float(self.max_delay)
        if self.retry_count < 0:
            raise ValueError(f"retry_count must be >= 0, got {self.retry_count}")
        if self.base_delay < 0:
            raise ValueError(f"base_delay must be >= 0, got {self.base_delay}")
        self.retry_on = tuple(self.retry_on)

    @property
    def max_attempts(self) -> int:
        return self.retry_count + 1

    def get_delay(self, attempt: int) -> float:
        """
        Delay before retry number ``attempt``.

        Args:
            attempt: 1-indexed retry number

        Returns:
            Delay in seconds
        """
        delay = self.base_delay * (self.exponential_base**attempt)
        if self.max_delay is not None:
            return min(delay, self.max_delay)
        return delay


def _log_retry_attempt(
    attempt: int,
    config: RetryConfig,
    delay: float,
    outcome: "ApiResponse | BaseException",
    duration_ms: float,
) -> None:
    log_extras: dict[str, object] = {
        "operation": "retry",
        "attempt": attempt,
        "max_attempts": config.max_attempts,
        "delay_seconds": round(delay, 2),
        "duration_ms": duration_ms,
    }
    if isinstance(outcome, BaseException):
        log_extras["error_type"] = type(outcome).__name__
        log_extras["error_category"] = classify_exception(outcome).value
        log_extras["error_message"] = str(outcome)[:200]
        reason = type(outcome).__name__
    else:
        log_extras["status_code"] = outcome.status_code
        reason = f"status {outcome.status_code}"

    logger.warning(
        "Retryable outcome (%s) on attempt %d/%d, retrying in %.1fs",
        reason,
        attempt,
        config.max_attempts,
        delay,
        extra=log_extras,
    )


def _log_retry_exhausted(
    attempts: int,
    config: RetryConfig,
    outcome: "ApiResponse | BaseException",
) -> None:
    log_extras: dict[str, object] = {
        "operation": "retry",
        "total_attempts": attempts,
        "max_attempts": config.max_attempts,
    }
    if isinstance(outcome, BaseException):
        log_extras["error_type"] = type(outcome).__name__
        log_extras["error_message"] = str(outcome)[:200]
    else:
        log_extras["status_code"] = outcome.status_code

    logger.error(
        "Retries exhausted after %d attempts",
        attempts,
        extra=log_extras,
    )


class RetryPolicy(PolicyBase):
    """Wait-and-retry policy. Compose with ``wrap`` to bound each attempt."""

    def __init__(
        self,
        config: RetryConfig | None = None,
        retry_result: Callable[["ApiResponse"], bool] | None = None,
    ):
        self.config = config or RetryConfig()
        self.retry_result = retry_result or default_retry_result

    async def execute(
        self, action: Callable[[], Awaitable["ApiResponse"]]
    ) -> "ApiResponse":
        config = self.config
        attempt = 1

        while True:
            start = time.perf_counter()
            try:
                response = await action()
            except config.retry_on as e:
                if attempt > config.retry_count:
                    if config.retry_count:
                        _log_retry_exhausted(attempt, config, e)
                    raise
                outcome: "ApiResponse | BaseException" = e
            else:
                if not self.retry_result(response):
                    if attempt > 1:
                        logger.info(
                            "Retry succeeded after %d attempts",
                            attempt,
                            extra={
                                "operation": "retry",
                                "attempt": attempt,
                                "status_code": response.status_code,
                            },
                        )
                    return response
                if attempt > config.retry_count:
                    if config.retry_count:
                        _log_retry_exhausted(attempt, config, response)
                    return response
                outcome = response

            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            delay = config.get_delay(attempt)
            _log_retry_attempt(attempt, config, delay, outcome, duration_ms)
            await asyncio.sleep(delay)
            attempt += 1

    def __repr__(self) -> str:
        return (
            f"RetryPolicy(retry_count={self.config.retry_count}, "
            f"base_delay={self.config.base_delay})"
        )


__all__ = [
    "DEFAULT_RETRY_COUNT",
    "DEFAULT_RETRY_EXCEPTIONS",
    "RetryConfig",
    "RetryPolicy",
    "default_retry_result",
]
