"""
Scheduled-task abstraction for recurring poll ticks.

The polling engine never touches timers directly; it asks a Scheduler
for a repeating task and cancels it through the returned handle. Tests
swap in a scheduler whose ticks are fired by hand.
"""

import asyncio
from typing import Awaitable, Callable, Optional, Protocol

TickCallback = Callable[[], Awaitable[object]]


class ScheduledTask(Protocol):
    """Handle to a repeating task."""

    @property
    def cancelled(self) -> bool:
        ...

    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    """Creates repeating tasks."""

    def schedule_repeating(
        self, interval: float, callback: TickCallback
    ) -> ScheduledTask:
        """
        Run `callback` every `interval` seconds until cancelled.

        The first run happens one interval after scheduling.
        """
        ...


class AsyncioTask:
    """Repeating task backed by an asyncio.Task."""

    def __init__(self, interval: float, callback: TickCallback):
        self.interval = interval
        self._callback = callback
        self._cancelled = False
        self._task: Optional[asyncio.Task] = asyncio.create_task(self._run())

    async def _run(self) -> None:
        while not self._cancelled:
            await asyncio.sleep(self.interval)
            if self._cancelled:
                break
            # Runs inline, so ticks of one task never overlap.
            await self._callback()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True
        if self._task is not None:
            self._task.cancel()
            self._task = None


class AsyncioScheduler:
    """
    Scheduler running on the current asyncio event loop.

    Must be used from inside a running loop.
    """

    def schedule_repeating(self, interval: float, callback: TickCallback) -> AsyncioTask:
        return AsyncioTask(interval, callback)
