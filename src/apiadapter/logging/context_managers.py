"""Context managers for structured logging."""

from typing import Dict, Optional

from apiadapter.logging.context import get_log_context, set_log_context


class LogContext:
    """
    Context manager for temporary log context.

    Usage:
        with LogContext(adapter="widgets", operation="GET widgets/5"):
            # All logs in this block carry adapter and operation
            await do_work()

    Context variables are task-local, so concurrent calls on one adapter
    don't see each other's context.
    """

    def __init__(
        self,
        adapter: Optional[str] = None,
        operation: Optional[str] = None,
        trace_id: Optional[str] = None,
    ):
        self.new_context = {
            "adapter": adapter,
            "operation": operation,
            "trace_id": trace_id,
        }
        self.old_context: Dict[str, str] = {}

    def __enter__(self) -> "LogContext":
        self.old_context = get_log_context()
        set_log_context(**self.new_context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        # Restore old context
        set_log_context(
            adapter=self.old_context.get("adapter", ""),
            operation=self.old_context.get("operation", ""),
            trace_id=self.old_context.get("trace_id", ""),
        )
        return False
