"""Context variables for structured logging."""

from contextvars import ContextVar
from typing import Dict, Optional

_adapter: ContextVar[str] = ContextVar("adapter", default="")
_operation: ContextVar[str] = ContextVar("operation", default="")
_trace_id: ContextVar[str] = ContextVar("trace_id", default="")


def set_log_context(
    adapter: Optional[str] = None,
    operation: Optional[str] = None,
    trace_id: Optional[str] = None,
) -> None:
    if adapter is not None:
        _adapter.set(adapter)
    if operation is not None:
        _operation.set(operation)
    if trace_id is not None:
        _trace_id.set(trace_id)


def get_log_context() -> Dict[str, str]:
    return {
        "adapter": _adapter.get(),
        "operation": _operation.get(),
        "trace_id": _trace_id.get(),
    }


def clear_log_context() -> None:
    _adapter.set("")
    _operation.set("")
    _trace_id.set("")
