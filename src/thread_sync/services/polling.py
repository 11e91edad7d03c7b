"""Polling lifecycle manager for thread_sync.

This module provides a bounded, restartable refresh loop. Each manager
is owned by one synchronization controller; nothing is shared between
instances.
"""

import asyncio
import inspect
import time
from collections.abc import Awaitable, Callable
from enum import StrEnum
from typing import Any

from thread_sync.config import PollingSettings
from thread_sync.logging import get_logger

__all__ = [
    "FetchCallback",
    "PollingManager",
    "PollingState",
]

logger = get_logger(__name__)

FetchCallback = Callable[[str, bool], Awaitable[Any] | None]
"""Called as ``fetch(key, is_polling)``; may be sync or async."""


class PollingState(StrEnum):
    """Lifecycle states of a PollingManager."""

    IDLE = "idle"
    POLLING = "polling"


class PollingManager:
    """Timer-driven loop that invokes a fetch callback on a fixed cadence.

    A polling window opened by ``start`` ends on its own once
    ``max_ticks`` invocations have happened or ``max_duration`` seconds
    have elapsed. The first invocation always waits one interval, so a
    poll started right after a fetch does not repeat it.

    Async callback results run as background tasks and are not awaited
    by the loop. A failing callback is logged and the loop keeps going.

    Example:
        poller = PollingManager(controller.poll_callback, interval=5.0, max_ticks=24)
        poller.start(thread_id)
        ...
        await poller.close()
    """

    def __init__(
        self,
        fetch: FetchCallback,
        *,
        interval: float = 5.0,
        max_ticks: int | None = 24,
        max_duration: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize manager.

        Args:
            fetch: Callback invoked as ``fetch(key, True)`` on every tick
            interval: Seconds between ticks
            max_ticks: Invocations per window (None for no tick bound)
            max_duration: Seconds per window (None for no time bound)
            clock: Monotonic clock used for the duration bound

        Raises:
            ValueError: If interval is not positive or no bound is given
        """
        if interval <= 0:
            raise ValueError("interval must be positive")
        if max_ticks is None and max_duration is None:
            raise ValueError("Polling needs max_ticks or max_duration")

        self._fetch = fetch
        self._interval = interval
        self._max_ticks = max_ticks
        self._max_duration = max_duration
        self._clock = clock

        self._task: asyncio.Task[None] | None = None
        self._pending: set[asyncio.Task[Any]] = set()
        self._key: str | None = None
        self._tick_count = 0
        self._started_at = 0.0

    @classmethod
    def from_settings(cls, fetch: FetchCallback, settings: PollingSettings) -> "PollingManager":
        """Create a manager from PollingSettings."""
        return cls(
            fetch,
            interval=settings.interval,
            max_ticks=settings.max_ticks,
            max_duration=settings.max_duration,
        )

    @property
    def state(self) -> PollingState:
        if self._task is not None and not self._task.done():
            return PollingState.POLLING
        return PollingState.IDLE

    @property
    def is_polling(self) -> bool:
        return self.state is PollingState.POLLING

    @property
    def key(self) -> str | None:
        """Key of the current (or last) polling window."""
        return self._key

    @property
    def tick_count(self) -> int:
        """Ticks counted in the current (or last) polling window."""
        return self._tick_count

    def start(self, key: str | None) -> None:
        """Open a new polling window for ``key``, replacing any running one.

        Must be called from a running event loop.
        """
        self.stop()
        self._key = key
        self._tick_count = 0
        self._started_at = self._clock()
        self._task = asyncio.get_running_loop().create_task(
            self._run(key), name=f"thread-sync-poll:{key}"
        )
        logger.info(
            "polling_started",
            key=key,
            interval=self._interval,
            max_ticks=self._max_ticks,
            max_duration=self._max_duration,
        )

    def stop(self) -> None:
        """Stop the loop. Safe to call when idle and from inside the callback."""
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        logger.info("polling_stopped", key=self._key, ticks=self._tick_count)

    def trigger(self, key: str | None) -> None:
        """Restart the window immediately, e.g. right after sending a message."""
        self.stop()
        self.start(key)

    async def close(self) -> None:
        """Stop the loop and cancel outstanding callback work."""
        self.stop()
        pending = list(self._pending)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._pending.clear()

    def _exhausted(self) -> bool:
        if self._max_ticks is not None and self._tick_count > self._max_ticks:
            return True
        if self._max_duration is not None:
            return self._clock() - self._started_at > self._max_duration
        return False

    async def _run(self, key: str | None) -> None:
        try:
            while True:
                await asyncio.sleep(self._interval)
                self._tick_count += 1

                if self._exhausted():
                    logger.info("polling_completed", key=key, ticks=self._tick_count - 1)
                    return

                # Stale or cleared key
                if not key:
                    logger.debug("polling_without_key")
                    return

                self._invoke(key)
        finally:
            if self._task is asyncio.current_task():
                self._task = None

    def _invoke(self, key: str) -> None:
        try:
            result = self._fetch(key, True)
        except Exception as e:
            logger.error("polling_tick_failed", key=key, error=str(e), exc_info=e)
            return

        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._pending.add(task)
            task.add_done_callback(self._on_fetch_done)

    def _on_fetch_done(self, task: asyncio.Future[Any]) -> None:
        self._pending.discard(task)  # type: ignore[arg-type]
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("polling_tick_failed", key=self._key, error=str(error), exc_info=error)
