"""
HTTP layer: headers, request/response models, client factory and adapters.
"""

from apiadapter.http.adapter import (
    API_MANAGER_HEADER,
    ApiAdapter,
    ensure_trailing_separator,
    is_raw_response_type,
    parse_path,
)
from apiadapter.http.cancellation import (
    CANCELLED_MESSAGE,
    raise_if_cancelled,
    run_cancellable,
)
from apiadapter.http.client import HttpClient, SessionClientFactory
from apiadapter.http.headers import HeaderEntry, ResponseHeaderMap
from apiadapter.http.models import ApiResponse, ApiResult, HttpRequest
from apiadapter.http.resilient import ResilientApiAdapter

__all__ = [
    # Adapters
    "ApiAdapter",
    "ResilientApiAdapter",
    "API_MANAGER_HEADER",
    "ensure_trailing_separator",
    "is_raw_response_type",
    "parse_path",
    # Client
    "HttpClient",
    "SessionClientFactory",
    # Models
    "ApiResponse",
    "ApiResult",
    "HttpRequest",
    "HeaderEntry",
    "ResponseHeaderMap",
    # Cancellation
    "CANCELLED_MESSAGE",
    "raise_if_cancelled",
    "run_cancellable",
]
