"""Background loop that runs an async action on a fixed interval."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

DEFAULT_STOP_TIMEOUT_SECONDS = 2.0


class PeriodicTask:
    """Runs ``action`` every ``interval_seconds`` until stopped."""

    def __init__(
        self,
        name: str,
        action: Callable[[], Awaitable[Any]],
        interval_seconds: float,
        *,
        initial_delay: float = 0.0,
    ):
        """
        Initialize the periodic task.

        Args:
            name: Label used in log lines
            action: Zero-argument coroutine function run on each iteration
            interval_seconds: Time between iterations
            initial_delay: Time before the first iteration
        """
        self.name = name
        self.action = action
        self.interval_seconds = interval_seconds
        self.initial_delay = initial_delay
        self.iterations = 0
        self._task: Optional[asyncio.Task] = None
        self._stop_event = asyncio.Event()

    def start(self) -> None:
        if self._task is not None:
            logger.warning("%s loop already started", self.name)
            return

        self._stop_event.clear()
        self._task = asyncio.create_task(self._run(), name=f"periodic:{self.name}")
        logger.info("Started %s loop (interval: %ss)", self.name, self.interval_seconds)

    async def stop(self, timeout: float = DEFAULT_STOP_TIMEOUT_SECONDS) -> None:
        """Signal the loop to exit, cancelling it if the current iteration overruns ``timeout``."""
        if self._task is None:
            return

        logger.info("Stopping %s loop", self.name)
        self._stop_event.set()
        try:
            await asyncio.wait_for(self._task, timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("%s loop did not stop within %.1fs; cancelled", self.name, timeout)
        except asyncio.CancelledError:
            logger.debug("%s loop cancelled during shutdown", self.name)
        self._task = None

    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _wait(self, seconds: float) -> bool:
        """Sleep up to ``seconds``; True if a stop was requested meanwhile."""
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return False
        return True

    async def _run(self) -> None:
        if self.initial_delay > 0 and await self._wait(self.initial_delay):
            return

        while not self._stop_event.is_set():
            try:
                await self.action()
            except asyncio.CancelledError:
                logger.info("%s loop cancelled", self.name)
                raise
            except Exception:
                # A failed iteration never ends the loop
                logger.exception("%s iteration failed", self.name)
            self.iterations += 1

            if await self._wait(self.interval_seconds):
                break

        logger.info("%s loop ended", self.name)


__all__ = ["DEFAULT_STOP_TIMEOUT_SECONDS", "PeriodicTask"]
