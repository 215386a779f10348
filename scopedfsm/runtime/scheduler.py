# scopedfsm/runtime/scheduler.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import asyncio
import heapq
import itertools
from collections import deque
from typing import Any, Callable, Deque, List, Optional, Tuple

from scopedfsm.interfaces.types import Milliseconds


def _check_delay(delay_ms: Milliseconds) -> None:
    if delay_ms < 0:
        raise ValueError("Delay must not be negative")


def _check_interval(interval_ms: Milliseconds) -> None:
    if interval_ms <= 0:
        raise ValueError("Interval must be positive")


class _RepeatingCall:
    """
    Internal handle for a callback re-armed on an asyncio loop after every run.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop, interval: float, callback: Callable[..., None], args: tuple) -> None:
        self._loop = loop
        self._interval = interval
        self._callback = callback
        self._args = args
        self._cancelled = False
        self._timer: Optional[asyncio.TimerHandle] = None

    def start(self) -> "_RepeatingCall":
        self._timer = self._loop.call_later(self._interval, self._run)
        return self

    def _run(self) -> None:
        if self._cancelled:
            return
        self._timer = self._loop.call_later(self._interval, self._run)
        self._callback(*self._args)

    def cancel(self) -> None:
        self._cancelled = True
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def cancelled(self) -> bool:
        return self._cancelled


class AsyncioScheduler:
    """
    Scheduler backed by an asyncio event loop. Without an explicit loop, the
    loop running at call time is used.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        """
        :param loop: Loop to schedule on; defaults to the running loop.
        """
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop if self._loop is not None else asyncio.get_running_loop()

    def call_soon(self, callback: Callable[..., None], *args: Any) -> asyncio.Handle:
        return self.loop.call_soon(callback, *args)

    def call_later(self, delay_ms: Milliseconds, callback: Callable[..., None], *args: Any) -> asyncio.TimerHandle:
        _check_delay(delay_ms)
        return self.loop.call_later(delay_ms / 1000.0, callback, *args)

    def call_every(self, interval_ms: Milliseconds, callback: Callable[..., None], *args: Any) -> _RepeatingCall:
        _check_interval(interval_ms)
        return _RepeatingCall(self.loop, interval_ms / 1000.0, callback, args).start()


class _ManualEntry:
    """
    Internal record of one call scheduled on a ManualScheduler.
    """

    def __init__(self, callback: Callable[..., None], args: tuple, deadline: float = 0.0, interval: Optional[float] = None) -> None:
        self.callback = callback
        self.args = args
        self.deadline = deadline
        self.interval = interval
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """
    Deterministic scheduler driven by a virtual millisecond clock. Nothing runs
    until ``run_ready`` or ``advance`` is called, which makes it suitable for
    tests and for simulations that step time explicitly.
    """

    def __init__(self) -> None:
        self._now = 0.0
        self._ready: Deque[_ManualEntry] = deque()
        self._timers: List[Tuple[float, int, _ManualEntry]] = []
        self._counter = itertools.count()

    @property
    def now(self) -> float:
        """Current virtual time in milliseconds."""
        return self._now

    @property
    def pending(self) -> int:
        """Number of scheduled calls that have neither run nor been cancelled."""
        ready = sum(1 for e in self._ready if not e.cancelled)
        timers = sum(1 for _, _, e in self._timers if not e.cancelled)
        return ready + timers

    def call_soon(self, callback: Callable[..., None], *args: Any) -> _ManualEntry:
        entry = _ManualEntry(callback, args, deadline=self._now)
        self._ready.append(entry)
        return entry

    def call_later(self, delay_ms: Milliseconds, callback: Callable[..., None], *args: Any) -> _ManualEntry:
        _check_delay(delay_ms)
        entry = _ManualEntry(callback, args, deadline=self._now + delay_ms)
        self._push(entry)
        return entry

    def call_every(self, interval_ms: Milliseconds, callback: Callable[..., None], *args: Any) -> _ManualEntry:
        _check_interval(interval_ms)
        entry = _ManualEntry(callback, args, deadline=self._now + interval_ms, interval=interval_ms)
        self._push(entry)
        return entry

    def run_ready(self) -> int:
        """
        Run deferred calls until none are left, including ones scheduled by
        the calls being run.

        :return: Number of callbacks executed.
        """
        count = 0
        while self._ready:
            entry = self._ready.popleft()
            if entry.cancelled:
                continue
            entry.cancelled = True
            entry.callback(*entry.args)
            count += 1
        return count

    def advance(self, ms: Milliseconds) -> int:
        """
        Move the clock forward by ``ms``, firing due timers in deadline order
        and draining deferred calls after each one.

        :return: Number of callbacks executed.
        """
        _check_delay(ms)
        target = self._now + ms
        count = self.run_ready()
        while self._timers and self._timers[0][0] <= target:
            deadline, _, entry = heapq.heappop(self._timers)
            if entry.cancelled:
                continue
            self._now = deadline
            if entry.interval is not None:
                entry.deadline = deadline + entry.interval
                self._push(entry)
            else:
                entry.cancelled = True
            entry.callback(*entry.args)
            count += 1
            count += self.run_ready()
        self._now = target
        return count

    def _push(self, entry: _ManualEntry) -> None:
        heapq.heappush(self._timers, (entry.deadline, next(self._counter), entry))
