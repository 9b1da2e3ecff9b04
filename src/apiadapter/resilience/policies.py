"""
Policy builders.

The default policy is retry wrapped around timeout: every retry attempt gets
its own fresh timeout budget, so one slow attempt cannot use up the whole
retry sequence.
"""

from collections.abc import Callable
from typing import TYPE_CHECKING

from apiadapter.resilience.base import PolicyWrap
from apiadapter.resilience.retry import (
    DEFAULT_RETRY_COUNT,
    RetryConfig,
    RetryPolicy,
)
from apiadapter.resilience.timeout import DEFAULT_TIMEOUT_SECONDS, TimeoutPolicy

if TYPE_CHECKING:
    from apiadapter.http.models import ApiResponse


def timeout_policy(timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS) -> TimeoutPolicy:
    """Bound a single attempt."""
    return TimeoutPolicy(timeout_seconds)


def wait_and_retry_policy(
    retry_count: int = DEFAULT_RETRY_COUNT,
    retry_result: Callable[["ApiResponse"], bool] | None = None,
    base_delay: float = 1.0,
) -> RetryPolicy:
    """Retry transient failures and matching responses with exponential backoff."""
    return RetryPolicy(
        RetryConfig(retry_count=retry_count, base_delay=base_delay),
        retry_result=retry_result,
    )


def default_retry_policy(
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    retry_count: int = DEFAULT_RETRY_COUNT,
    retry_result: Callable[["ApiResponse"], bool] | None = None,
    base_delay: float = 1.0,
) -> PolicyWrap:
    """
    Retry (outer) wrapped around timeout (inner).

    Args:
        timeout_seconds: Budget for each individual attempt
        retry_count: Retries after the first attempt
        retry_result: Response predicate that triggers a retry
            (default: status >= 500)
        base_delay: Backoff base; retry n waits base_delay * 2**n seconds
    """
    return wait_and_retry_policy(retry_count, retry_result, base_delay).wrap(
        timeout_policy(timeout_seconds)
    )


__all__ = [
    "default_retry_policy",
    "timeout_policy",
    "wait_and_retry_policy",
]
