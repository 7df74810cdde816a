"""Tests for the minute-resolution periodic trigger."""

import asyncio
from datetime import datetime
from unittest.mock import AsyncMock

import pytest

from shellfleet.services.scheduler import PeriodicTrigger, next_fire_time


class TestNextFireTime:
    def test_next_matching_minute(self):
        assert next_fire_time(datetime(2025, 3, 1, 10, 7, 30), 5) == datetime(2025, 3, 1, 10, 10)

    def test_strictly_after_now(self):
        assert next_fire_time(datetime(2025, 3, 1, 10, 10), 5) == datetime(2025, 3, 1, 10, 15)

    def test_rolls_over_to_next_hour(self):
        assert next_fire_time(datetime(2025, 3, 1, 10, 56), 7) == datetime(2025, 3, 1, 11, 0)

    def test_rolls_over_to_next_day(self):
        assert next_fire_time(datetime(2025, 3, 1, 23, 59, 59), 1) == datetime(2025, 3, 2, 0, 0)

    @pytest.mark.parametrize("interval", [0, 60, -5])
    def test_interval_out_of_range(self, interval):
        with pytest.raises(ValueError):
            next_fire_time(datetime(2025, 3, 1), interval)


def _fake_sleep(ticks: int, delays: list[float]):
    """Sleep that returns at once for ``ticks`` calls, then blocks forever."""

    async def sleep(seconds: float) -> None:
        delays.append(seconds)
        if len(delays) > ticks:
            await asyncio.Event().wait()

    return sleep


async def _settle() -> None:
    for _ in range(5):
        await asyncio.sleep(0)


@pytest.mark.asyncio
async def test_trigger_fires_on_schedule():
    callback = AsyncMock()
    delays: list[float] = []
    trigger = PeriodicTrigger(
        callback,
        5,
        clock=lambda: datetime(2025, 3, 1, 10, 7, 30),
        sleep=_fake_sleep(2, delays),
    )

    trigger.start()
    await _settle()
    await trigger.drain()

    assert trigger.running
    assert callback.await_count == 2
    assert delays[0] == 150.0

    await trigger.stop()
    assert not trigger.running


@pytest.mark.asyncio
async def test_failed_run_does_not_stop_schedule():
    callback = AsyncMock(side_effect=RuntimeError("boom"))
    trigger = PeriodicTrigger(
        callback,
        1,
        clock=lambda: datetime(2025, 3, 1, 10, 0),
        sleep=_fake_sleep(3, []),
    )

    trigger.start()
    await _settle()
    await trigger.drain()

    assert callback.await_count == 3
    assert trigger.running
    await trigger.stop()


@pytest.mark.asyncio
async def test_slow_run_does_not_delay_next_tick():
    """Each firing runs in its own task."""
    release = asyncio.Event()
    started = 0

    async def slow() -> None:
        nonlocal started
        started += 1
        await release.wait()

    trigger = PeriodicTrigger(
        slow,
        1,
        clock=lambda: datetime(2025, 3, 1, 10, 0),
        sleep=_fake_sleep(2, []),
    )

    trigger.start()
    await _settle()

    assert started == 2

    release.set()
    await trigger.drain()
    await trigger.stop()


@pytest.mark.asyncio
async def test_stop_without_start_is_noop():
    trigger = PeriodicTrigger(AsyncMock(), 5)
    await trigger.stop()
    assert not trigger.running


def test_invalid_interval_rejected():
    with pytest.raises(ValueError):
        PeriodicTrigger(AsyncMock(), 60)


@pytest.mark.asyncio
async def test_early_wakeup_does_not_repeat_tick():
    """A clock reading just before the fired minute schedules the next one."""
    callback = AsyncMock()
    delays: list[float] = []
    readings = iter(
        [
            datetime(2025, 3, 1, 10, 7, 30),
            datetime(2025, 3, 1, 10, 9, 59, 999000),
            datetime(2025, 3, 1, 10, 15),
        ]
    )
    trigger = PeriodicTrigger(
        callback,
        5,
        clock=lambda: next(readings),
        sleep=_fake_sleep(2, delays),
    )

    trigger.start()
    await _settle()
    await trigger.drain()

    assert callback.await_count == 2
    assert delays[:2] == [150.0, 300.001]
    assert delays[2] == 300.0

    await trigger.stop()
