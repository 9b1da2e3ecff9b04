"""
Adapter whose every send runs inside a resilience policy.

The default policy is retry (outer) around a per-attempt timeout (inner),
built from the adapter config at call time. Each attempt builds a fresh
request on the exchange's client. Anything that escapes the policy becomes
ServiceError(INTERNAL_ERROR_STATUS), except caller cancellation, which
propagates as asyncio.CancelledError.

Example:
    config = build_adapter_config(
        "https://api.example.com/v1",
        timeout_seconds=10,
        retry_count=2,
    )
    adapter = ResilientApiAdapter(config, factory)
    widget = await adapter.get("widgets/5", Widget)
"""

from apiadapter.http.adapter import ApiAdapter
from apiadapter.http.client import HttpClient
from apiadapter.http.headers import HeaderEntry
from apiadapter.http.models import ApiResponse
from apiadapter.resilience.policies import default_retry_policy
from apiadapter.types import Policy


class ResilientApiAdapter(ApiAdapter):
    """ApiAdapter with timeout and retry around each send."""

    wrapped_exceptions = (Exception,)
    applies_client_timeout = False

    @property
    def policy(self) -> Policy:
        """The configured policy, or the default retry-around-timeout policy."""
        if self.config.policy is not None:
            return self.config.policy
        return default_retry_policy(
            timeout_seconds=self.config.timeout_seconds,
            retry_count=self.config.retry_count,
        )

    async def _exchange(
        self,
        client: HttpClient,
        method: str,
        path: str | None,
        payload: tuple[bytes, str] | None,
        headers: tuple[HeaderEntry, ...],
    ) -> ApiResponse:
        async def attempt() -> ApiResponse:
            return await client.send(
                self.build_request(method, path, payload, headers)
            )

        return await self.policy.execute(attempt)


__all__ = ["ResilientApiAdapter"]
