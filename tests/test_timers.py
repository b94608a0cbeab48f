import asyncio

import pytest

from newsroom.core.timers import Debouncer, SchedulerTimers, VirtualTimers


@pytest.mark.asyncio
async def test_virtual_timers_run_due_calls_in_order():
    timers = VirtualTimers()
    calls = []
    timers.call_later(2, lambda: calls.append("late"))
    timers.call_later(1, lambda: calls.append("early"))

    await timers.advance(1.5)
    assert calls == ["early"]
    assert timers.pending == 1

    await timers.advance(1)
    assert calls == ["early", "late"]
    assert timers.pending == 0


@pytest.mark.asyncio
async def test_virtual_timers_cancel_and_async_callbacks():
    timers = VirtualTimers()
    calls = []

    async def job():
        calls.append("async")

    handle = timers.call_later(1, lambda: calls.append("cancelled"))
    timers.call_later(1, job)
    handle.cancel()

    await timers.advance(5)
    assert calls == ["async"]


@pytest.mark.asyncio
async def test_virtual_timers_run_calls_scheduled_by_callbacks():
    timers = VirtualTimers()
    calls = []

    def first():
        calls.append(timers.now())
        timers.call_later(1, lambda: calls.append(timers.now()))

    start = timers.now()
    timers.call_later(1, first)
    await timers.advance(3)
    assert [(t - start).total_seconds() for t in calls] == [1, 2]


@pytest.mark.asyncio
async def test_debouncer_fires_once_after_quiet_period():
    timers = VirtualTimers()
    calls = []
    d = Debouncer(timers, 1.2, lambda: calls.append(1))

    d.trigger()
    await timers.advance(1)
    d.trigger()
    await timers.advance(1)
    assert calls == []
    assert d.pending

    await timers.advance(0.5)
    assert calls == [1]
    assert not d.pending


@pytest.mark.asyncio
async def test_debouncer_flush_and_cancel():
    timers = VirtualTimers()
    calls = []
    d = Debouncer(timers, 0.4, lambda: calls.append(1))

    await d.flush()
    assert calls == []

    d.trigger()
    await d.flush()
    assert calls == [1]
    await timers.advance(1)
    assert calls == [1]

    d.trigger()
    d.cancel()
    await timers.advance(1)
    assert calls == [1]


@pytest.mark.asyncio
async def test_scheduler_timers_run_and_cancel():
    timers = SchedulerTimers()
    timers.start()
    calls = []
    try:
        timers.call_later(0.05, lambda: calls.append("ran"))
        handle = timers.call_later(0.05, lambda: calls.append("cancelled"))
        handle.cancel()
        await asyncio.sleep(0.5)
        assert calls == ["ran"]
        # Cancelling a job that already ran is harmless
        handle.cancel()
    finally:
        timers.shutdown()
