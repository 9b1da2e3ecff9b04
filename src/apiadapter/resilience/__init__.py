"""
Resilience patterns module.

Provides the policies adapters wrap around each send.

Components:
    - TimeoutPolicy: Per-attempt time bound
    - RetryPolicy / RetryConfig: Wait-and-retry with exponential backoff
    - PolicyWrap: Outer policy around inner policy
    - NoOpPolicy: Single attempt, no resilience
    - Builders: timeout_policy, wait_and_retry_policy, default_retry_policy
"""

from .base import NoOpPolicy, PolicyBase, PolicyWrap
from .policies import default_retry_policy, timeout_policy, wait_and_retry_policy
from .retry import (
    DEFAULT_RETRY_COUNT,
    DEFAULT_RETRY_EXCEPTIONS,
    RetryConfig,
    RetryPolicy,
    default_retry_result,
)
from .timeout import DEFAULT_TIMEOUT_SECONDS, TimeoutPolicy

__all__ = [
    # Composition
    "PolicyBase",
    "PolicyWrap",
    "NoOpPolicy",
    # Timeout
    "TimeoutPolicy",
    "DEFAULT_TIMEOUT_SECONDS",
    # Retry
    "RetryConfig",
    "RetryPolicy",
    "default_retry_result",
    "DEFAULT_RETRY_COUNT",
    "DEFAULT_RETRY_EXCEPTIONS",
    # Builders
    "timeout_policy",
    "wait_and_retry_policy",
    "default_retry_policy",
]
