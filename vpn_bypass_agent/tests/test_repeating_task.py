import asyncio

import pytest
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from vpn_bypass_agent.lib.tasker.repeating_task import RepeatingTask
from vpn_bypass_agent.monitors.runner import MonitorRunner


@pytest.mark.asyncio
async def test_run_once_awaits_coroutines():
    ticks = []

    async def tick():
        ticks.append(1)

    task = RepeatingTask(AsyncIOScheduler(), "Test", "coro", tick, interval=60)
    await task.run_once()
    assert ticks == [1]


@pytest.mark.asyncio
async def test_run_once_contains_exceptions():
    def tick():
        raise RuntimeError("boom")

    task = RepeatingTask(AsyncIOScheduler(), "Test", "failing", tick, interval=60)
    await task.run_once()


def test_job_never_overlaps():
    task = RepeatingTask(AsyncIOScheduler(), "Test", "opts", lambda: None, interval=5)
    assert task.job.max_instances == 1
    assert task.job.coalesce is True


@pytest.mark.asyncio
async def test_first_tick_runs_immediately():
    ticks = []

    async def tick():
        ticks.append(1)

    scheduler = AsyncIOScheduler()
    scheduler.start()
    try:
        RepeatingTask(scheduler, "Test", "immediate", tick, interval=3600)
        await asyncio.sleep(0.3)
    finally:
        scheduler.shutdown(wait=False)
    assert ticks == [1]


@pytest.mark.asyncio
async def test_runner_stops_on_request():
    ticks = []

    async def tick():
        ticks.append(1)

    runner = MonitorRunner("test-monitor", tick, interval=3600)

    async def stop_soon():
        await asyncio.sleep(0.3)
        runner.request_stop()

    stopper = asyncio.create_task(stop_soon())
    await asyncio.wait_for(runner.run(), timeout=5)
    await stopper
    assert ticks == [1]
