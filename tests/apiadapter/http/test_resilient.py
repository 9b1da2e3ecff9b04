"""
Tests for apiadapter.http.resilient.

Tests cover:
- Default policy construction from config
- Retry on 5xx, success after retry, exhaustion returns last status
- Per-attempt timeout surfaces as ServiceError, not a hang
- Exceptions escaping the policy normalized into ServiceError
- Caller cancellation during an attempt and during backoff
"""

import asyncio
from unittest.mock import AsyncMock

import pytest
from pydantic import BaseModel

from apiadapter.config import build_adapter_config
from apiadapter.errors import INTERNAL_ERROR_STATUS, InvalidUsageError, ServiceError
from apiadapter.http.headers import HeaderEntry
from apiadapter.http.models import ApiResponse
from apiadapter.http.resilient import ResilientApiAdapter
from apiadapter.resilience import (
    NoOpPolicy,
    PolicyWrap,
    RetryPolicy,
    TimeoutPolicy,
    default_retry_policy,
)
from conftest import ScriptedResponse


class Widget(BaseModel):
    id: int
    name: str


def fast_policy(retry_count=1, timeout_seconds=5.0, retry_result=None):
    """Default composition with millisecond backoff."""
    return default_retry_policy(
        timeout_seconds=timeout_seconds,
        retry_count=retry_count,
        retry_result=retry_result,
        base_delay=0.001,
    )


@pytest.fixture
def make_adapter(scripted_server, client_factory):
    def _make(**overrides):
        config = build_adapter_config(scripted_server.base_url, **overrides)
        return ResilientApiAdapter(config, client_factory)

    return _make


class TestPolicy:
    """Tests for policy selection."""

    def test_default_policy_from_config(self, make_adapter):
        adapter = make_adapter(timeout_seconds=12, retry_count=3)
        policy = adapter.policy

        assert isinstance(policy, PolicyWrap)
        assert isinstance(policy.outer, RetryPolicy)
        assert isinstance(policy.inner, TimeoutPolicy)
        assert policy.outer.config.retry_count == 3
        assert policy.inner.timeout_seconds == 12.0

    def test_default_policy_defaults(self, make_adapter):
        policy = make_adapter().policy

        assert policy.outer.config.retry_count == 1
        assert policy.inner.timeout_seconds == 30.0

    def test_configured_policy_overrides_default(self, make_adapter):
        custom = NoOpPolicy()
        assert make_adapter(policy=custom).policy is custom

    @pytest.mark.asyncio
    async def test_client_timeout_left_to_policy(self, make_adapter):
        client = make_adapter(client_timeout_seconds=5).get_http_client()

        assert client.timeout is None


class TestRetry:
    """Tests for retry through the adapter."""

    @pytest.mark.asyncio
    async def test_500_then_200_retries_once(self, make_adapter, scripted_server):
        scripted_server.enqueue(
            ScriptedResponse(status=500, body="busy"),
            ScriptedResponse(status=200, body='{"id": 1, "name": "a"}'),
        )
        adapter = make_adapter(policy=fast_policy())

        widget = await adapter.get("widgets/1", Widget)

        assert widget == Widget(id=1, name="a")
        assert len(scripted_server.requests) == 2

    @pytest.mark.asyncio
    async def test_500_500_exhausts_with_last_status(self, make_adapter, scripted_server):
        scripted_server.enqueue(
            ScriptedResponse(status=500, body="first"),
            ScriptedResponse(status=503, body="second"),
        )
        adapter = make_adapter(policy=fast_policy(retry_count=1))

        with pytest.raises(ServiceError) as exc_info:
            await adapter.get("widgets/1", Widget)

        assert exc_info.value.status_code == 503
        assert exc_info.value.response_message == "second"
        assert len(scripted_server.requests) == 2

    @pytest.mark.asyncio
    async def test_raw_form_returns_last_response(self, make_adapter, scripted_server):
        scripted_server.enqueue(ScriptedResponse(status=500), ScriptedResponse(status=500))
        adapter = make_adapter(policy=fast_policy(retry_count=1))

        response = await adapter.get_raw("widgets/1")

        assert isinstance(response, ApiResponse)
        assert response.status_code == 500

    @pytest.mark.asyncio
    async def test_each_attempt_resends_headers_and_body(
        self, make_adapter, scripted_server
    ):
        scripted_server.enqueue(ScriptedResponse(status=502), ScriptedResponse(status=201))
        adapter = make_adapter(policy=fast_policy())

        await adapter.post_raw("widgets", {"name": "a"}, HeaderEntry("X-Key", "k"))

        first, second = scripted_server.requests
        assert first.body == second.body == b'{"name": "a"}'
        assert first.header_values("X-Key") == second.header_values("X-Key") == ["k"]

    @pytest.mark.asyncio
    async def test_429_not_retried_by_default(self, make_adapter, scripted_server):
        scripted_server.enqueue(ScriptedResponse(status=429), ScriptedResponse(status=200))
        adapter = make_adapter(policy=fast_policy())

        with pytest.raises(ServiceError) as exc_info:
            await adapter.get("widgets", dict)

        assert exc_info.value.status_code == 429
        assert len(scripted_server.requests) == 1

    @pytest.mark.asyncio
    async def test_custom_retry_predicate(self, make_adapter, scripted_server):
        scripted_server.enqueue(ScriptedResponse(status=429), ScriptedResponse(status=200))
        adapter = make_adapter(
            policy=fast_policy(retry_result=lambda r: r.status_code in (429, 503))
        )

        assert await adapter.get("widgets", dict) == {}
        assert len(scripted_server.requests) == 2

    @pytest.mark.asyncio
    async def test_4xx_not_retried(self, make_adapter, scripted_server):
        scripted_server.enqueue(ScriptedResponse(status=404))
        adapter = make_adapter(policy=fast_policy(retry_count=3))

        response = await adapter.get_raw("widgets")

        assert response.status_code == 404
        assert len(scripted_server.requests) == 1


class TestTimeout:
    """Tests for per-attempt timeouts through the adapter."""

    @pytest.mark.asyncio
    async def test_timeout_without_retry_is_service_error(
        self, make_adapter, scripted_server
    ):
        scripted_server.enqueue(ScriptedResponse(delay=10))
        adapter = make_adapter(timeout_seconds=0.2, retry_count=0)

        with pytest.raises(ServiceError) as exc_info:
            await asyncio.wait_for(adapter.get("slow", dict), timeout=5)

        error = exc_info.value
        assert error.status_code == INTERNAL_ERROR_STATUS
        assert error.response_headers is None
        assert "timed out" in error.response_message

    @pytest.mark.asyncio
    async def test_each_attempt_gets_fresh_timeout(self, make_adapter, scripted_server):
        scripted_server.enqueue(
            ScriptedResponse(delay=10),
            ScriptedResponse(status=200, body='{"id": 2, "name": "b"}'),
        )
        adapter = make_adapter(policy=fast_policy(retry_count=1, timeout_seconds=0.3))

        widget = await asyncio.wait_for(adapter.get("widgets/2", Widget), timeout=5)

        assert widget.id == 2
        assert len(scripted_server.requests) == 2


class TestExceptionTranslation:
    """Tests for normalization of failures escaping the policy."""

    @pytest.mark.asyncio
    async def test_policy_exception_wrapped(self, make_adapter):
        policy = AsyncMock()
        policy.execute.side_effect = RuntimeError("policy exploded")
        adapter = make_adapter(policy=policy)

        with pytest.raises(ServiceError) as exc_info:
            await adapter.get_raw("widgets")

        error = exc_info.value
        assert error.status_code == INTERNAL_ERROR_STATUS
        assert error.response_message == "policy exploded"
        assert isinstance(error.cause, RuntimeError)

    @pytest.mark.asyncio
    async def test_connection_failure_after_retries(self, client_factory):
        config = build_adapter_config(
            "http://127.0.0.1:1", policy=fast_policy(retry_count=2)
        )
        adapter = ResilientApiAdapter(config, client_factory)

        with pytest.raises(ServiceError) as exc_info:
            await adapter.get_raw("widgets")

        assert exc_info.value.status_code == INTERNAL_ERROR_STATUS
        assert exc_info.value.is_internal

    @pytest.mark.asyncio
    async def test_raw_type_rejected_before_policy(self, make_adapter):
        policy = AsyncMock()
        adapter = make_adapter(policy=policy)

        with pytest.raises(InvalidUsageError):
            await adapter.get("widgets", ApiResponse)

        policy.execute.assert_not_called()


class TestCancellation:
    """Tests for caller cancellation through the policy."""

    @pytest.mark.asyncio
    async def test_pre_cancelled_event_fails_fast(self, make_adapter, scripted_server):
        event = asyncio.Event()
        event.set()
        adapter = make_adapter()

        with pytest.raises(asyncio.CancelledError):
            await adapter.get("widgets", dict, cancel_event=event)

        assert scripted_server.requests == []

    @pytest.mark.asyncio
    async def test_cancel_event_during_attempt(self, make_adapter, scripted_server):
        scripted_server.enqueue(ScriptedResponse(delay=10))
        adapter = make_adapter(timeout_seconds=5, retry_count=3)
        event = asyncio.Event()
        asyncio.get_running_loop().call_later(0.2, event.set)

        with pytest.raises(asyncio.CancelledError):
            await asyncio.wait_for(
                adapter.get("slow", dict, cancel_event=event), timeout=5
            )

    @pytest.mark.asyncio
    async def test_cancel_event_during_backoff(self, make_adapter, scripted_server):
        scripted_server.enqueue(ScriptedResponse(status=500))
        # First backoff would be 2s
        adapter = make_adapter(retry_count=1)
        event = asyncio.Event()
        asyncio.get_running_loop().call_later(0.2, event.set)

        with pytest.raises(asyncio.CancelledError):
            await asyncio.wait_for(
                adapter.get_raw("widgets", cancel_event=event), timeout=1.5
            )

        assert len(scripted_server.requests) == 1

    @pytest.mark.asyncio
    async def test_task_cancel_during_attempt(self, make_adapter, scripted_server):
        scripted_server.enqueue(ScriptedResponse(delay=10))
        adapter = make_adapter(timeout_seconds=5, retry_count=3)

        task = asyncio.create_task(adapter.get("slow", dict))
        await asyncio.sleep(0.2)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
