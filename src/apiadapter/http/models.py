"""HTTP request/response data models used by adapters and clients."""

from dataclasses import dataclass, field
from typing import Generic, TypeVar

from multidict import CIMultiDict

from apiadapter.errors.exceptions import AdapterError
from apiadapter.http.headers import ResponseHeaderMap

T = TypeVar("T")


@dataclass
class HttpRequest:
    """One outgoing request. Built per attempt and discarded after it."""

    method: str
    url: str
    headers: CIMultiDict = field(default_factory=CIMultiDict)
    content: bytes | None = None


@dataclass
class ApiResponse:
    """
    Fully read HTTP response.

    The transport response is released before this object is handed out, so
    it stays usable after the exchange's client is gone. This is the raw
    result type of the *_raw operations.
    """

    status_code: int
    headers: ResponseHeaderMap = field(default_factory=ResponseHeaderMap)
    content: bytes = b""
    reason: str | None = None
    url: str | None = None
    charset: str | None = None

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def text(self) -> str:
        encoding = self.charset or "utf-8"
        try:
            return self.content.decode(encoding, errors="replace")
        except LookupError:
            return self.content.decode("utf-8", errors="replace")


@dataclass
class ApiResult(Generic[T]):
    """
    Value-or-error outcome of a typed call.

    Unpacks as ``value, error = result``. Cancellation is never captured here.
    """

    value: T | None = None
    error: AdapterError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value or raise the captured error."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]

    def __iter__(self):
        return iter((self.value, self.error))


__all__ = ["ApiResponse", "ApiResult", "HttpRequest"]
