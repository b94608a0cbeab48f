"""
Cancellable scheduled tasks.

``Timers.call_later(delay, fn)`` schedules ``fn`` (sync or coroutine function)
and returns a handle whose ``cancel()`` drops the call if it has not run yet.
``SchedulerTimers`` runs on an APScheduler ``AsyncIOScheduler``;
``VirtualTimers`` keeps a manual clock so callers can step time explicitly.
``Debouncer`` builds the "run once after things go quiet" pattern on top.
"""
from __future__ import annotations

import datetime as dt
import inspect
import itertools
from typing import Any, Callable, Optional, Protocol

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger

Callback = Callable[[], Any]

class TimerHandle(Protocol):
    def cancel(self) -> None: ...

class Timers(Protocol):
    def call_later(self, delay: float, fn: Callback) -> TimerHandle: ...
    def now(self) -> dt.datetime: ...

async def _invoke(fn: Callback) -> None:
    result = fn()
    if inspect.isawaitable(result):
        await result

class _JobHandle:
    def __init__(self, job):
        self._job = job

    def cancel(self) -> None:
        try:
            self._job.remove()
        except JobLookupError:
            # Already ran (date jobs are dropped after firing) or already removed
            pass

class SchedulerTimers:
    def __init__(self, scheduler: Optional[AsyncIOScheduler] = None):
        self._scheduler = scheduler or AsyncIOScheduler(timezone=dt.timezone.utc)

    def start(self) -> None:
        if not self._scheduler.running:
            self._scheduler.start()

    def shutdown(self) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)

    def now(self) -> dt.datetime:
        return dt.datetime.now(dt.timezone.utc)

    def call_later(self, delay: float, fn: Callback) -> TimerHandle:
        job = self._scheduler.add_job(
            _invoke,
            DateTrigger(run_date=self.now() + dt.timedelta(seconds=delay)),
            args=[fn],
            misfire_grace_time=None,
        )
        return _JobHandle(job)

class _VirtualHandle:
    __slots__ = ("when", "seq", "fn", "cancelled")

    def __init__(self, when: dt.datetime, seq: int, fn: Callback):
        self.when = when
        self.seq = seq
        self.fn = fn
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

class VirtualTimers:
    def __init__(self, start: Optional[dt.datetime] = None):
        self._now = start or dt.datetime(2024, 1, 1, tzinfo=dt.timezone.utc)
        self._queue: list[_VirtualHandle] = []
        self._seq = itertools.count()

    def now(self) -> dt.datetime:
        return self._now

    def call_later(self, delay: float, fn: Callback) -> TimerHandle:
        handle = _VirtualHandle(self._now + dt.timedelta(seconds=delay), next(self._seq), fn)
        self._queue.append(handle)
        return handle

    @property
    def pending(self) -> int:
        return sum(1 for h in self._queue if not h.cancelled)

    async def advance(self, seconds: float) -> None:
        """Move the clock forward, running every call that falls due on the way."""
        target = self._now + dt.timedelta(seconds=seconds)
        while True:
            due = [h for h in self._queue if not h.cancelled and h.when <= target]
            if not due:
                break
            handle = min(due, key=lambda h: (h.when, h.seq))
            self._queue.remove(handle)
            self._now = max(self._now, handle.when)
            await _invoke(handle.fn)
        self._now = target
        self._queue = [h for h in self._queue if not h.cancelled]

class Debouncer:
    def __init__(self, timers: Timers, delay: float, fn: Callback):
        self._timers = timers
        self._delay = delay
        self._fn = fn
        self._handle: Optional[TimerHandle] = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def trigger(self) -> None:
        self.cancel()
        self._handle = self._timers.call_later(self._delay, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    async def flush(self) -> None:
        if self._handle is None:
            return
        self.cancel()
        await _invoke(self._fn)

    async def _fire(self) -> None:
        self._handle = None
        await _invoke(self._fn)
