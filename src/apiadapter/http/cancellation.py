"""
Caller cancellation helpers.

Callers cancel either by cancelling their task or by setting an
asyncio.Event passed as ``cancel_event``. Both surface as
asyncio.CancelledError and are never converted into ServiceError.
"""

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

T = TypeVar("T")

CANCELLED_MESSAGE = "Operation cancelled by caller"


def raise_if_cancelled(cancel_event: asyncio.Event | None) -> None:
    """Fail fast when the caller already cancelled."""
    if cancel_event is not None and cancel_event.is_set():
        raise asyncio.CancelledError(CANCELLED_MESSAGE)


async def run_cancellable(
    awaitable: Awaitable[T], cancel_event: asyncio.Event | None
) -> T:
    """
    Await ``awaitable`` unless the caller's event fires first.

    When the event wins, the in-flight work is cancelled and drained before
    CancelledError is raised.
    """
    if cancel_event is None:
        return await awaitable

    work = asyncio.ensure_future(awaitable)
    if cancel_event.is_set():
        work.cancel()
        await asyncio.gather(work, return_exceptions=True)
        raise asyncio.CancelledError(CANCELLED_MESSAGE)

    waiter = asyncio.ensure_future(cancel_event.wait())
    try:
        done, _ = await asyncio.wait(
            {work, waiter}, return_when=asyncio.FIRST_COMPLETED
        )
    except asyncio.CancelledError:
        work.cancel()
        raise
    finally:
        waiter.cancel()

    if work in done:
        return work.result()

    work.cancel()
    await asyncio.gather(work, return_exceptions=True)
    raise asyncio.CancelledError(CANCELLED_MESSAGE)


__all__ = ["CANCELLED_MESSAGE", "raise_if_cancelled", "run_cancellable"]
