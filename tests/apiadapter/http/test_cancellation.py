"""Tests for caller cancellation helpers."""

import asyncio

import pytest

from apiadapter.http.cancellation import (
    CANCELLED_MESSAGE,
    raise_if_cancelled,
    run_cancellable,
)


class TestRaiseIfCancelled:
    """Tests for raise_if_cancelled."""

    def test_no_event(self):
        raise_if_cancelled(None)

    def test_unset_event(self):
        raise_if_cancelled(asyncio.Event())

    def test_set_event_raises(self):
        event = asyncio.Event()
        event.set()
        with pytest.raises(asyncio.CancelledError, match=CANCELLED_MESSAGE):
            raise_if_cancelled(event)


class TestRunCancellable:
    """Tests for run_cancellable."""

    @pytest.mark.asyncio
    async def test_without_event_awaits_directly(self):
        async def work():
            return 42

        assert await run_cancellable(work(), None) == 42

    @pytest.mark.asyncio
    async def test_work_finishes_first(self):
        async def work():
            await asyncio.sleep(0.01)
            return "done"

        assert await run_cancellable(work(), asyncio.Event()) == "done"

    @pytest.mark.asyncio
    async def test_work_exception_propagates(self):
        async def work():
            raise ValueError("bad")

        with pytest.raises(ValueError, match="bad"):
            await run_cancellable(work(), asyncio.Event())

    @pytest.mark.asyncio
    async def test_event_cancels_inflight_work(self):
        started = asyncio.Event()
        observed = []

        async def work():
            started.set()
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                observed.append("cancelled")
                raise

        event = asyncio.Event()

        async def trigger():
            await started.wait()
            event.set()

        trigger_task = asyncio.create_task(trigger())
        with pytest.raises(asyncio.CancelledError):
            await run_cancellable(work(), event)
        await trigger_task

        assert observed == ["cancelled"]

    @pytest.mark.asyncio
    async def test_already_set_event_never_runs_work(self):
        ran = []

        async def work():
            ran.append(True)

        event = asyncio.Event()
        event.set()
        with pytest.raises(asyncio.CancelledError):
            await run_cancellable(work(), event)

        assert ran == []

    @pytest.mark.asyncio
    async def test_outer_cancel_cancels_work(self):
        observed = []

        async def work():
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                observed.append("cancelled")
                raise

        task = asyncio.create_task(run_cancellable(work(), asyncio.Event()))
        await asyncio.sleep(0.05)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        await asyncio.sleep(0)

        assert observed == ["cancelled"]
