"""
Typed HTTP adapter over a client factory.

An ApiAdapter turns a verb, a path, an optional body and request headers
into exactly one HTTP exchange against the configured service, then either
hands back the raw ApiResponse or classifies it into a typed value.

Every operation comes in two forms:
    - typed: ``get(path, Widget)`` returns a Widget or raises ServiceError
    - raw:   ``get_raw(path)`` returns the ApiResponse untouched

Example:
    config = build_adapter_config("https://api.example.com/v1", bearer_token=token)
    async with SessionClientFactory() as factory:
        adapter = ApiAdapter(config, factory)
        widget = await adapter.get("widgets/5", Widget)
        created = await adapter.post("widgets", new_widget, Widget)
"""

import asyncio
import logging
from typing import Any, TypeVar

import aiohttp
from aiohttp import hdrs

from apiadapter.config import AdapterConfig
from apiadapter.errors.exceptions import AdapterError, InvalidUsageError, ServiceError
from apiadapter.http.cancellation import raise_if_cancelled, run_cancellable
from apiadapter.http.client import HttpClient
from apiadapter.http.headers import HeaderEntry
from apiadapter.http.models import ApiResponse, ApiResult, HttpRequest
from apiadapter.logging.context_managers import LogContext
from apiadapter.logging.utilities import log_exception
from apiadapter.serialization import JsonSerializer, default_instance, encode_body
from apiadapter.types import ClientFactory

logger = logging.getLogger(__name__)

T = TypeVar("T")

API_MANAGER_HEADER = "Ocp-Apim-Subscription-Key"

# Raw response types that typed operations refuse
RAW_RESPONSE_TYPES: tuple[type, ...] = (ApiResponse, aiohttp.ClientResponse)


def parse_path(path: str | None) -> str:
    """Drop one leading '/' and surrounding whitespace; nothing else is normalized."""
    if not path:
        return ""
    if path.startswith("/"):
        path = path[1:]
    return path.strip()


def ensure_trailing_separator(address: str) -> str:
    return address.strip().rstrip("/") + "/"


def is_raw_response_type(result_type: Any) -> bool:
    return isinstance(result_type, type) and issubclass(result_type, RAW_RESPONSE_TYPES)


class ApiAdapter:
    """
    Adapter for one service.

    Configuration is read-only after construction. Each exchange acquires
    its own client from the factory and releases it afterwards, so one
    adapter can serve any number of concurrent calls.

    Transport failures (connection errors, client timeouts) are normalized
    into ServiceError with INTERNAL_ERROR_STATUS. Caller cancellation, by
    task cancel or by setting ``cancel_event``, always surfaces as
    asyncio.CancelledError.
    """

    # Exceptions from the exchange that are normalized into ServiceError
    wrapped_exceptions: tuple[type[BaseException], ...] = (
        aiohttp.ClientError,
        OSError,
        TimeoutError,
    )
    # Resilient subclasses bound attempts through their policy instead
    applies_client_timeout = True

    def __init__(
        self,
        config: AdapterConfig,
        client_factory: ClientFactory,
        serializer: JsonSerializer | None = None,
    ):
        self.config = config
        self.client_factory = client_factory
        self.serializer = serializer or JsonSerializer()

    @property
    def name(self) -> str:
        return self.config.display_name

    def get_http_client(self) -> HttpClient:
        """
        Acquire and configure a client for one exchange.

        Sets the base address (one trailing '/'), replaces Accept with the
        configured media type unless it is blank, and adds the bearer and
        API-management credentials when configured. The whole-exchange
        timeout is set only when applies_client_timeout is true.
        """
        config = self.config
        client = self.client_factory.create_client()
        client.base_url = ensure_trailing_separator(config.base_address)

        client.headers.popall(hdrs.ACCEPT, None)
        if config.accept and config.accept.strip():
            client.headers[hdrs.ACCEPT] = config.accept

        if config.bearer_token:
            client.headers[hdrs.AUTHORIZATION] = f"Bearer {config.bearer_token}"
        if config.api_manager_token:
            client.headers.add(API_MANAGER_HEADER, config.api_manager_token)

        if self.applies_client_timeout and config.client_timeout_seconds is not None:
            client.timeout = config.client_timeout_seconds
        return client

    def encode(self, body: Any) -> tuple[bytes, str] | None:
        """Encode a request body, or None when there is no body."""
        if body is None:
            return None
        return encode_body(
            body,
            self.serializer,
            self.config.serializer_settings,
            self.config.content_type,
            self.config.encoding,
        )

    def build_request(
        self,
        method: str,
        path: str | None,
        payload: tuple[bytes, str] | None,
        headers: tuple[HeaderEntry, ...] = (),
    ) -> HttpRequest:
        request = HttpRequest(method=method.upper(), url=parse_path(path))
        for header in headers:
            request.headers.add(header.key, header.value)
        if payload is not None:
            content, content_type = payload
            request.content = content
            request.headers[hdrs.CONTENT_TYPE] = content_type
        return request

    async def _exchange(
        self,
        client: HttpClient,
        method: str,
        path: str | None,
        payload: tuple[bytes, str] | None,
        headers: tuple[HeaderEntry, ...],
    ) -> ApiResponse:
        return await client.send(self.build_request(method, path, payload, headers))

    # =========================================================================
    # Raw operations
    # =========================================================================

    async def send_raw(
        self,
        method: str,
        path: str | None,
        body: Any = None,
        *headers: HeaderEntry,
        cancel_event: asyncio.Event | None = None,
    ) -> ApiResponse:
        """
        Send one request and return the response without interpreting it.

        Raises:
            asyncio.CancelledError: Caller cancelled
            InvalidUsageError: Body cannot be serialized (nothing is sent)
            ServiceError: Transport failure (INTERNAL_ERROR_STATUS)
        """
        raise_if_cancelled(cancel_event)
        payload = self.encode(body)
        operation = f"{method.upper()} {parse_path(path)}"

        with LogContext(adapter=self.name, operation=operation):
            try:
                async with self.get_http_client() as client:
                    return await run_cancellable(
                        self._exchange(client, method, path, payload, headers),
                        cancel_event,
                    )
            except self.wrapped_exceptions as e:
                error = ServiceError.from_exception(e)
                log_exception(
                    logger,
                    e,
                    "Service call failed without a response",
                    level=logging.WARNING,
                    include_traceback=False,
                    status_code=error.status_code,
                    http_method=method.upper(),
                )
                raise error from e

    async def get_raw(
        self, path: str, *headers: HeaderEntry, cancel_event: asyncio.Event | None = None
    ) -> ApiResponse:
        return await self.send_raw("GET", path, None, *headers, cancel_event=cancel_event)

    async def post_raw(
        self,
        path: str,
        body: Any,
        *headers: HeaderEntry,
        cancel_event: asyncio.Event | None = None,
    ) -> ApiResponse:
        return await self.send_raw("POST", path, body, *headers, cancel_event=cancel_event)

    async def put_raw(
        self,
        path: str,
        body: Any,
        *headers: HeaderEntry,
        cancel_event: asyncio.Event | None = None,
    ) -> ApiResponse:
        return await self.send_raw("PUT", path, body, *headers, cancel_event=cancel_event)

    async def patch_raw(
        self,
        path: str,
        body: Any,
        *headers: HeaderEntry,
        cancel_event: asyncio.Event | None = None,
    ) -> ApiResponse:
        return await self.send_raw("PATCH", path, body, *headers, cancel_event=cancel_event)

    async def delete_raw(
        self, path: str, *headers: HeaderEntry, cancel_event: asyncio.Event | None = None
    ) -> ApiResponse:
        return await self.send_raw("DELETE", path, None, *headers, cancel_event=cancel_event)

    # =========================================================================
    # Typed operations
    # =========================================================================

    def process_response(self, response: ApiResponse, result_type: type[T]) -> T:
        """
        Classify a response into a value of ``result_type``.

        Non-2xx responses raise ServiceError carrying the status, headers and
        body text; the body is never deserialized in that case. ``str`` gets
        the body text, ``bytes`` the body bytes, and an empty or whitespace
        body gives a default instance.

        Raises:
            ServiceError: Non-2xx status
            DeserializationError: Body does not parse into result_type
        """
        text = response.text
        if not response.is_success:
            error = ServiceError(response.status_code, response.headers, text)
            log_exception(
                logger,
                error,
                "Service returned an error status",
                level=logging.WARNING,
                include_traceback=False,
                status_code=response.status_code,
                http_url=response.url,
            )
            raise error

        if result_type is str:
            return text  # type: ignore[return-value]
        if result_type is bytes:
            return response.content  # type: ignore[return-value]
        if not text.strip():
            return default_instance(result_type)
        return self.serializer.deserialize(
            text, result_type, self.config.deserializer_settings
        )

    async def send(
        self,
        method: str,
        path: str | None,
        body: Any,
        result_type: type[T],
        *headers: HeaderEntry,
        cancel_event: asyncio.Event | None = None,
    ) -> T:
        """
        Send one request and classify the response into ``result_type``.

        Raises:
            InvalidUsageError: result_type is a raw response type (nothing is sent)
            ServiceError: Non-2xx status or transport failure
            DeserializationError: 2xx body does not parse into result_type
            asyncio.CancelledError: Caller cancelled
        """
        if is_raw_response_type(result_type):
            raise InvalidUsageError(
                f"{result_type.__name__} is a raw response type; "
                f"use {method.lower()}_raw() / send_raw() instead"
            )
        response = await self.send_raw(
            method, path, body, *headers, cancel_event=cancel_event
        )
        return self.process_response(response, result_type)

    async def send_result(
        self,
        method: str,
        path: str | None,
        body: Any,
        result_type: type[T],
        *headers: HeaderEntry,
        cancel_event: asyncio.Event | None = None,
    ) -> ApiResult[T]:
        """Like send(), but returns adapter errors in an ApiResult instead of raising."""
        try:
            value = await self.send(
                method, path, body, result_type, *headers, cancel_event=cancel_event
            )
        except AdapterError as e:
            return ApiResult(error=e)
        return ApiResult(value=value)

    async def get(
        self,
        path: str,
        result_type: type[T],
        *headers: HeaderEntry,
        cancel_event: asyncio.Event | None = None,
    ) -> T:
        return await self.send(
            "GET", path, None, result_type, *headers, cancel_event=cancel_event
        )

    async def post(
        self,
        path: str,
        body: Any,
        result_type: type[T],
        *headers: HeaderEntry,
        cancel_event: asyncio.Event | None = None,
    ) -> T:
        return await self.send(
            "POST", path, body, result_type, *headers, cancel_event=cancel_event
        )

    async def put(
        self,
        path: str,
        body: Any,
        result_type: type[T],
        *headers: HeaderEntry,
        cancel_event: asyncio.Event | None = None,
    ) -> T:
        return await self.send(
            "PUT", path, body, result_type, *headers, cancel_event=cancel_event
        )

    async def patch(
        self,
        path: str,
        body: Any,
        result_type: type[T],
        *headers: HeaderEntry,
        cancel_event: asyncio.Event | None = None,
    ) -> T:
        return await self.send(
            "PATCH", path, body, result_type, *headers, cancel_event=cancel_event
        )

    async def delete(
        self,
        path: str,
        result_type: type[T],
        *headers: HeaderEntry,
        cancel_event: asyncio.Event | None = None,
    ) -> T:
        return await self.send(
            "DELETE", path, None, result_type, *headers, cancel_event=cancel_event
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, base_address={self.config.base_address!r})"


__all__ = [
    "API_MANAGER_HEADER",
    "ApiAdapter",
    "ensure_trailing_separator",
    "is_raw_response_type",
    "parse_path",
]
