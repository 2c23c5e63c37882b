from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Literal, Optional, Protocol

from application.ports.clock_port import ClockPort
from domain.movies.calendar import next_top_of_hour

logger = logging.getLogger(__name__)

SchedulerState = Literal["idle", "running"]

# asyncio sleeps on the monotonic clock, so a wake-up can land just before the
# wall-clock hour; anything shorter than this rolls over to the following hour.
MIN_DELAY_S = 1.0


class _RunsOnce(Protocol):
    async def run_once(self) -> Any:
        ...


class ReminderScheduler:
    """Process-wide hourly trigger for the release-day reminder job.

    `start()` moves idle -> running exactly once; later calls are no-ops.
    The first firing happens immediately, then one at the top of every hour.
    A firing that comes due while the previous one is still in flight is
    skipped, so two scans never mail the same movie concurrently.
    """

    def __init__(
        self,
        *,
        job: _RunsOnce,
        clock: ClockPort,
        run_on_startup: bool = True,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._job = job
        self._clock = clock
        self._run_on_startup = run_on_startup
        self._sleep = sleep
        self._state: SchedulerState = "idle"
        self._timer: Optional[asyncio.Task[Any]] = None
        self._firing: Optional[asyncio.Task[Any]] = None

    @property
    def state(self) -> SchedulerState:
        return self._state

    def start(self) -> bool:
        """Register the recurring trigger. Must be called from a running event loop."""
        if self._state == "running":
            return False
        self._state = "running"
        self._timer = asyncio.create_task(self._loop(), name="reminder-scheduler")
        logger.info("reminder scheduler started (hourly, run_on_startup=%s)", self._run_on_startup)
        return True

    def trigger(self) -> Optional[asyncio.Task[Any]]:
        if self._firing is not None and not self._firing.done():
            logger.warning("previous reminder run still in flight; skipping this firing")
            return None
        self._firing = asyncio.create_task(self._fire(), name="reminder-firing")
        return self._firing

    async def _fire(self) -> None:
        try:
            await self._job.run_once()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("reminder job crashed")

    async def _loop(self) -> None:
        if self._run_on_startup:
            self.trigger()
        while True:
            now = self._clock.now()
            delay = (next_top_of_hour(now) - now).total_seconds()
            if delay < MIN_DELAY_S:
                delay += 3600.0
            await self._sleep(delay)
            self.trigger()

    async def shutdown(self) -> None:
        """Cancel the timer and any in-flight firing (process teardown)."""
        tasks = [t for t in (self._timer, self._firing) if t is not None]
        self._timer = None
        self._firing = None
        for t in tasks:
            t.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
