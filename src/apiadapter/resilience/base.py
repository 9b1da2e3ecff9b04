"""Policy base class and composition."""

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from apiadapter.http.models import ApiResponse
    from apiadapter.types import Policy


class PolicyBase:
    """Shared composition helper for resilience policies."""

    async def execute(
        self, action: Callable[[], Awaitable["ApiResponse"]]
    ) -> "ApiResponse":
        raise NotImplementedError

    def wrap(self, inner: "Policy") -> "PolicyWrap":
        """Run ``inner`` inside this policy: every outer attempt re-enters inner."""
        return PolicyWrap(self, inner)


class PolicyWrap(PolicyBase):
    """Outer policy around inner policy around the action."""

    def __init__(self, outer: "Policy", inner: "Policy"):
        self.outer = outer
        self.inner = inner

    async def execute(
        self, action: Callable[[], Awaitable["ApiResponse"]]
    ) -> "ApiResponse":
        return await self.outer.execute(lambda: self.inner.execute(action))

    def __repr__(self) -> str:
        return f"PolicyWrap(outer={self.outer!r}, inner={self.inner!r})"


class NoOpPolicy(PolicyBase):
    """Runs the action once with no timeout and no retries."""

    async def execute(
        self, action: Callable[[], Awaitable["ApiResponse"]]
    ) -> "ApiResponse":
        return await action()

    def __repr__(self) -> str:
        return "NoOpPolicy()"


__all__ = ["NoOpPolicy", "PolicyBase", "PolicyWrap"]
