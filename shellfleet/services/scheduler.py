"""Minute-resolution periodic trigger.

Fires on the same wall-clock minutes as a cron ``*/N * * * *`` entry. Each
firing runs the callback in its own task, so a slow run never delays the
next tick; overlap protection is the callback's job.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from contextlib import suppress
from datetime import datetime, timedelta
from typing import Any

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
Sleep = Callable[[float], Awaitable[Any]]


def next_fire_time(now: datetime, interval_minutes: int) -> datetime:
    """First minute strictly after ``now`` matching ``*/interval_minutes``.

    Matching minutes restart from 0 every hour, as cron does.
    """
    if not 1 <= interval_minutes <= 59:
        raise ValueError(f"interval_minutes must be between 1 and 59, got {interval_minutes}")

    base = now.replace(second=0, microsecond=0)
    minute = (base.minute // interval_minutes + 1) * interval_minutes
    if minute < 60:
        return base.replace(minute=minute)
    return base.replace(minute=0) + timedelta(hours=1)


class PeriodicTrigger:
    """Invokes an async callback every N minutes until stopped."""

    def __init__(
        self,
        callback: Callable[[], Awaitable[Any]],
        interval_minutes: int,
        clock: Clock = datetime.now,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        """Initialize the trigger.

        Args:
            callback: Coroutine function run on every tick
            interval_minutes: Cadence, 1-59
            clock: Source of the current time
            sleep: Coroutine used to wait until the next tick
        """
        if not 1 <= interval_minutes <= 59:
            raise ValueError(
                f"interval_minutes must be between 1 and 59, got {interval_minutes}"
            )
        self.interval_minutes = interval_minutes
        self._callback = callback
        self._clock = clock
        self._sleep = sleep
        self._task: asyncio.Task[None] | None = None
        self._inflight: set[asyncio.Task[None]] = set()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start ticking. Must be called from a running event loop."""
        if self.running:
            return
        self._task = asyncio.create_task(self._loop())
        logger.debug("Trigger started (every %d minute(s))", self.interval_minutes)

    async def stop(self) -> None:
        """Stop ticking. Runs already fired are left to finish."""
        if self._task is None:
            return
        self._task.cancel()
        with suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.debug("Trigger stopped")

    async def drain(self) -> None:
        """Wait for every fired run to finish."""
        while self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)

    async def _loop(self) -> None:
        last_fire: datetime | None = None
        while True:
            now = self._clock()
            # A clock reading just short of the last tick must not repeat it
            base = now if last_fire is None else max(now, last_fire)
            fire_at = next_fire_time(base, self.interval_minutes)
            await self._sleep(max((fire_at - now).total_seconds(), 0.0))
            last_fire = fire_at
            self._fire()

    def _fire(self) -> None:
        task = asyncio.create_task(self._invoke())
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def _invoke(self) -> None:
        try:
            await self._callback()
        except Exception:
            # A failed run must not stop the schedule
            logger.exception("Scheduled run failed")
