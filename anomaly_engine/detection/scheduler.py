"""
Periodic sweep scheduler.

This module provides the SweepScheduler class which drives the detection
sweep on a fixed cadence as a single asyncio task.

Key Features:
    - Fixed cadence: ticks are aligned to start + k * interval
    - Skip-if-running: ticks that elapse while a sweep is still running are
      skipped, never queued, so sweeps never overlap
    - A failing sweep is logged and the next tick runs as usual
    - Graceful stop: the in-flight sweep finishes, no new sweep starts

Example:
    >>> scheduler = SweepScheduler(engine.run_detection, interval_seconds=30)
    >>> scheduler.start()
    >>> ...
    >>> await scheduler.stop()
"""

import asyncio
import math
from typing import Any, Awaitable, Callable, Optional

import structlog

logger = structlog.get_logger(__name__)


# Default seconds between sweep ticks
DEFAULT_INTERVAL_SECONDS = 30.0


class SweepScheduler:
    """
    Runs an async sweep callable periodically.

    Attributes:
        sweep: Coroutine function run on every tick.
        interval_seconds: Seconds between ticks.
        ticks_run: Number of sweeps started.
        ticks_skipped: Number of ticks skipped because a sweep overran.
    """

    def __init__(
        self,
        sweep: Callable[[], Awaitable[Any]],
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
    ) -> None:
        """
        Initialize the scheduler.

        Args:
            sweep: Coroutine function run on every tick.
            interval_seconds: Seconds between ticks (default: 30).

        Raises:
            ValueError: If interval_seconds is not positive.
        """
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be > 0, got {interval_seconds}")

        self.sweep = sweep
        self.interval_seconds = interval_seconds
        self.ticks_run = 0
        self.ticks_skipped = 0

        self._task: Optional[asyncio.Task] = None
        self._stop_event: Optional[asyncio.Event] = None

    @property
    def is_running(self) -> bool:
        """True while the periodic task is alive."""
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """
        Start the periodic task on the running event loop.

        Calling start() on a running scheduler does nothing.

        Raises:
            RuntimeError: If called outside a running event loop.
        """
        if self.is_running:
            return

        self._stop_event = asyncio.Event()
        self._task = asyncio.get_running_loop().create_task(self._loop())

        logger.info("sweep_scheduler_started", interval_seconds=self.interval_seconds)

    async def stop(self) -> None:
        """
        Stop the periodic task.

        An in-flight sweep is allowed to finish; no mid-sweep cancellation.
        """
        if self._task is None:
            return

        if self._stop_event is not None:
            self._stop_event.set()

        try:
            await self._task
        except asyncio.CancelledError:
            pass
        finally:
            self._task = None

        logger.info(
            "sweep_scheduler_stopped",
            ticks_run=self.ticks_run,
            ticks_skipped=self.ticks_skipped,
        )

    async def _loop(self) -> None:
        """Tick loop: wait for the next deadline, then sweep."""
        if self._stop_event is None:
            return

        loop = asyncio.get_running_loop()
        next_tick = loop.time() + self.interval_seconds

        while not self._stop_event.is_set():
            delay = max(next_tick - loop.time(), 0.0)
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=delay)
                break
            except asyncio.TimeoutError:
                pass

            self.ticks_run += 1
            try:
                await self.sweep()
            except Exception as e:
                logger.error("sweep_failed", error=str(e))

            # Keep the cadence; drop ticks missed while the sweep ran
            now = loop.time()
            next_tick += self.interval_seconds
            if next_tick <= now:
                missed = math.floor((now - next_tick) / self.interval_seconds) + 1
                self.ticks_skipped += missed
                next_tick += missed * self.interval_seconds
                logger.warning(
                    "sweep_ticks_skipped",
                    skipped=missed,
                    interval_seconds=self.interval_seconds,
                )
