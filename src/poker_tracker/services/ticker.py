"""Periodic elapsed-time ticks for the live session display."""

import asyncio
import contextlib
import logging
from collections.abc import Callable
from dataclasses import dataclass, field

_logger = logging.getLogger(__name__)


@dataclass
class ElapsedTicker:
    """Calls ``on_tick`` with the elapsed seconds once per period."""

    on_tick: Callable[[float], None]
    period_seconds: float = 1.0
    _task: asyncio.Task | None = field(default=None, init=False, repr=False)

    @property
    def running(self) -> bool:
        """Whether a tick task is scheduled."""
        return self._task is not None and not self._task.done()

    def start(self, read_elapsed: Callable[[], float]) -> None:
        """Begin ticking on the running event loop.

        No-op if already ticking or if called outside an event loop; the
        application lifespan re-arms the ticker once its loop is up.
        """
        if self.running:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            _logger.debug("No running event loop; elapsed ticker not started")
            return
        self._task = loop.create_task(self._run(read_elapsed))

    def stop(self) -> None:
        """Cancel the tick task."""
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def aclose(self) -> None:
        """Cancel the tick task and wait for it to finish."""
        task = self._task
        self.stop()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def _run(self, read_elapsed: Callable[[], float]) -> None:
        while True:
            self.on_tick(read_elapsed())
            await asyncio.sleep(self.period_seconds)


@dataclass
class LiveDisplay:
    """Latest elapsed value published by the ticker."""

    elapsed_seconds: float = 0.0

    def update(self, elapsed_seconds: float) -> None:
        """Store the most recent tick."""
        self.elapsed_seconds = elapsed_seconds

    def reset(self) -> None:
        """Clear the display after the session ends."""
        self.elapsed_seconds = 0.0
