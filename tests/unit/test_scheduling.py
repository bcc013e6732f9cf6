"""Tests for cancellable timers."""

import asyncio

import pytest

from scenewright.scheduling import RecurringTask, ScheduledTask


class TestScheduledTask:
    """Test one-shot delayed callbacks."""

    @pytest.mark.asyncio
    async def test_fires_after_delay(self):
        """The callback runs once the delay has passed."""
        calls = []

        async def callback():
            calls.append("fired")

        task = ScheduledTask(0.01, callback, name="test")
        await task.wait()
        assert calls == ["fired"]
        assert task.fired
        assert task.done()

    @pytest.mark.asyncio
    async def test_cancel_before_delay(self):
        """Cancelling a pending task prevents the callback."""
        calls = []

        async def callback():
            calls.append("fired")

        task = ScheduledTask(0.05, callback)
        assert task.cancel() is True
        await task.wait()
        assert calls == []
        assert not task.fired

    @pytest.mark.asyncio
    async def test_cancel_after_fire(self):
        """A callback that already started is left to finish."""
        finished = asyncio.Event()

        async def callback():
            await asyncio.sleep(0.02)
            finished.set()

        task = ScheduledTask(0.0, callback)
        await asyncio.sleep(0.01)
        assert task.cancel() is False
        await task.wait()
        assert finished.is_set()

    @pytest.mark.asyncio
    async def test_callback_errors_are_contained(self):
        """Failures are logged rather than raised from the task."""

        async def callback():
            raise RuntimeError("boom")

        task = ScheduledTask(0.0, callback)
        await task.wait()
        assert task.done()


class TestRecurringTask:
    """Test periodic callbacks."""

    @pytest.mark.asyncio
    async def test_repeats_until_false(self):
        """Returning False ends the loop."""
        calls = []

        async def callback():
            calls.append(len(calls))
            return len(calls) < 3

        task = RecurringTask(0.01, callback)
        await asyncio.sleep(0.1)
        assert calls == [0, 1, 2]
        assert task.done()

    @pytest.mark.asyncio
    async def test_cancel(self):
        """Cancelling stops further calls."""
        calls = []

        async def callback():
            calls.append(1)

        task = RecurringTask(0.01, callback)
        await asyncio.sleep(0.035)
        task.cancel()
        count = len(calls)
        await asyncio.sleep(0.05)
        assert len(calls) == count
        assert task.done()
