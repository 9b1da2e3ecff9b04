"""
apiadapter: typed, resilient async HTTP adapters.

Modules:
    http        - ApiAdapter / ResilientApiAdapter, client factory, header types
    resilience  - Per-attempt timeout, retry with exponential backoff, composition
    errors      - ServiceError and the adapter exception hierarchy
    config      - AdapterConfig, builder and YAML loader
    logging     - Structured JSON logging with adapter/operation context

Design Principles:
    - One exchange per call, one client per exchange
    - Retry wraps timeout so each attempt gets its own budget
    - Caller cancellation always surfaces as asyncio.CancelledError
"""

from .http import (
    ApiAdapter,
    ApiResponse,
    ApiResult,
    HeaderEntry,
    HttpClient,
    HttpRequest,
    ResilientApiAdapter,
    ResponseHeaderMap,
    SessionClientFactory,
)
from .config import AdapterConfig, build_adapter_config, load_adapter_config
from .errors import (
    INTERNAL_ERROR_STATUS,
    AdapterError,
    AttemptTimeoutError,
    DeserializationError,
    InvalidUsageError,
    ServiceError,
)
from .resilience import (
    NoOpPolicy,
    default_retry_policy,
    timeout_policy,
    wait_and_retry_policy,
)
from .serialization import DeserializerSettings, JsonSerializer, SerializerSettings
from .types import ClientFactory, ErrorCategory, Policy

__version__ = "0.1.0"

__all__ = [
    # Adapters
    "ApiAdapter",
    "ResilientApiAdapter",
    # HTTP
    "ApiResponse",
    "ApiResult",
    "HeaderEntry",
    "HttpClient",
    "HttpRequest",
    "ResponseHeaderMap",
    "SessionClientFactory",
    # Config
    "AdapterConfig",
    "build_adapter_config",
    "load_adapter_config",
    # Errors
    "INTERNAL_ERROR_STATUS",
    "AdapterError",
    "AttemptTimeoutError",
    "DeserializationError",
    "InvalidUsageError",
    "ServiceError",
    "ErrorCategory",
    # Resilience
    "NoOpPolicy",
    "default_retry_policy",
    "timeout_policy",
    "wait_and_retry_policy",
    # Serialization
    "JsonSerializer",
    "SerializerSettings",
    "DeserializerSettings",
    # Protocols
    "ClientFactory",
    "Policy",
]
