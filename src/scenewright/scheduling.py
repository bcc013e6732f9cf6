"""Cancellable timers on the running asyncio event loop.

Debounced autosaves and lease renewals are the only cancellable work in
SceneWright; both run through the handles defined here.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

from scenewright.config import get_logger

logger = get_logger(__name__)

Callback = Callable[[], Awaitable[bool | None]]


class ScheduledTask:
    """Run a coroutine function once after a delay unless cancelled first."""

    def __init__(self, delay: float, callback: Callback, name: str = "") -> None:
        self.delay = delay
        self.name = name
        self._callback = callback
        self._fired = False
        self._task: asyncio.Task[None] = asyncio.get_running_loop().create_task(
            self._run(), name=name or None
        )

    async def _run(self) -> None:
        await asyncio.sleep(self.delay)
        self._fired = True
        try:
            await self._callback()
        except Exception as e:
            logger.error(f"Scheduled task {self.name} failed: {e}")

    @property
    def fired(self) -> bool:
        """Whether the delay elapsed and the callback started."""
        return self._fired

    def done(self) -> bool:
        return self._task.done()

    def cancel(self) -> bool:
        """Cancel the task if its callback has not started yet.

        A callback that is already running (a save in flight) is left to
        finish.

        Returns:
            True if the pending callback was prevented from running
        """
        if self._fired or self._task.done():
            return False
        return self._task.cancel()

    async def wait(self) -> None:
        """Wait for the task to finish, ignoring cancellation."""
        try:
            await self._task
        except asyncio.CancelledError:
            pass


class RecurringTask:
    """Run a coroutine function every ``interval`` seconds.

    Stops when cancelled or when the callback returns False.
    """

    def __init__(self, interval: float, callback: Callback, name: str = "") -> None:
        self.interval = interval
        self.name = name
        self._callback = callback
        self._task: asyncio.Task[None] = asyncio.get_running_loop().create_task(
            self._run(), name=name or None
        )

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            if await self._callback() is False:
                break

    def done(self) -> bool:
        return self._task.done()

    def cancel(self) -> None:
        self._task.cancel()
