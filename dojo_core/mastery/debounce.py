"""
Trailing-edge debounce for snapshot writes.

Every schedule() call restarts the timer; the save coroutine runs once the
caller has been quiet for `delay` seconds. flush() forces a pending save to
run now (used at session end and shutdown).
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional


class DebouncedSave:
    """Coalesces bursts of changes into a single save on the owning loop."""

    def __init__(
        self,
        save: Callable[[], Awaitable[None]],
        delay: float,
        loop: asyncio.AbstractEventLoop
    ):
        self._save = save
        self._delay = delay
        self._loop = loop
        self._handle: Optional[asyncio.TimerHandle] = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> bool:
        """True while a save is waiting on the timer or running."""
        return self._handle is not None or bool(self._tasks)

    def schedule(self) -> None:
        """Restart the timer. Safe to call from any thread."""
        if self._on_loop_thread():
            self._arm()
        else:
            self._loop.call_soon_threadsafe(self._arm)

    def cancel(self) -> None:
        """Drop a pending timer without saving."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    async def flush(self) -> None:
        """Run a pending save immediately and wait for in-flight saves."""
        if self._handle is not None:
            self.cancel()
            await self._save()
        if self._tasks:
            await asyncio.gather(*list(self._tasks))

    def _on_loop_thread(self) -> bool:
        try:
            return asyncio.get_running_loop() is self._loop
        except RuntimeError:
            return False

    def _arm(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
        self._handle = self._loop.call_later(self._delay, self._fire)

    def _fire(self) -> None:
        self._handle = None
        task = self._loop.create_task(self._save())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
