import asyncio

import pytest

from anomaly_engine.detection import SweepScheduler


@pytest.mark.asyncio
async def test_scheduler_runs_sweeps_periodically():
    calls = []

    async def sweep():
        calls.append(1)

    scheduler = SweepScheduler(sweep, interval_seconds=0.01)
    scheduler.start()
    assert scheduler.is_running
    await asyncio.sleep(0.1)
    await scheduler.stop()

    assert not scheduler.is_running
    assert len(calls) >= 2
    assert scheduler.ticks_run == len(calls)


@pytest.mark.asyncio
async def test_failing_sweep_does_not_stop_scheduler():
    calls = []

    async def sweep():
        calls.append(1)
        raise RuntimeError("boom")

    scheduler = SweepScheduler(sweep, interval_seconds=0.01)
    scheduler.start()
    await asyncio.sleep(0.1)
    await scheduler.stop()

    assert len(calls) >= 2


@pytest.mark.asyncio
async def test_overrunning_sweep_skips_ticks_and_never_overlaps():
    in_flight = 0
    max_in_flight = 0

    async def sweep():
        nonlocal in_flight, max_in_flight
        in_flight += 1
        max_in_flight = max(max_in_flight, in_flight)
        await asyncio.sleep(0.05)
        in_flight -= 1

    scheduler = SweepScheduler(sweep, interval_seconds=0.01)
    scheduler.start()
    await asyncio.sleep(0.2)
    await scheduler.stop()

    assert max_in_flight == 1
    assert scheduler.ticks_skipped > 0


@pytest.mark.asyncio
async def test_stop_lets_in_flight_sweep_finish():
    started = asyncio.Event()
    finished = []

    async def sweep():
        started.set()
        await asyncio.sleep(0.05)
        finished.append(1)

    scheduler = SweepScheduler(sweep, interval_seconds=0.01)
    scheduler.start()
    await asyncio.wait_for(started.wait(), timeout=1)
    await scheduler.stop()

    assert finished == [1]
    assert scheduler.ticks_run == 1


@pytest.mark.asyncio
async def test_stop_before_first_tick():
    calls = []

    async def sweep():
        calls.append(1)

    scheduler = SweepScheduler(sweep, interval_seconds=60)
    scheduler.start()
    scheduler.start()
    await scheduler.stop()
    await scheduler.stop()

    assert calls == []


def test_interval_must_be_positive():
    async def sweep():
        pass

    with pytest.raises(ValueError):
        SweepScheduler(sweep, interval_seconds=0)
