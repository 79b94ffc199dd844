"""
Scheduler - Repeating timers with explicit cancellation handles.

The state machine never touches a clock directly. It asks an injected
Scheduler for the current time and for repeating timers, and keeps the
returned TimerHandle so it can cancel the timer before starting another.

Two implementations:
- ManualScheduler: virtual clock advanced by the caller (tests, replays,
  hosts that deliver their own ticks)
- AsyncioScheduler: call_later on a single asyncio event loop
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Callable
import asyncio
import logging


logger = logging.getLogger(__name__)

TimerCallback = Callable[[], None]


class TimerHandle:
    """Cancellation token for a repeating timer."""

    def __init__(self, interval: float, callback: TimerCallback):
        self.interval = interval
        self.callback = callback
        self.cancelled = False
        self._native: Any = None  # Backend-specific handle

    def cancel(self):
        """Stop the timer. Safe to call more than once."""
        if self.cancelled:
            return
        self.cancelled = True
        if self._native is not None:
            self._native.cancel()
            self._native = None

    @property
    def active(self) -> bool:
        return not self.cancelled


class Scheduler(ABC):
    """Clock and timer service."""

    @abstractmethod
    def now(self) -> float:
        """Current time in seconds (monotonic)."""
        pass

    @abstractmethod
    def schedule_repeating(
        self,
        interval: float,
        callback: TimerCallback,
        delay: float | None = None,
    ) -> TimerHandle:
        """
        Call `callback` every `interval` seconds until the handle is cancelled.

        The first call comes after `delay` seconds (default: one interval).
        """
        pass


def _check_timing(interval: float, delay: float | None) -> float:
    if interval <= 0:
        raise ValueError("interval must be positive")
    if delay is None:
        return interval
    if delay < 0:
        raise ValueError("delay must not be negative")
    return delay


class _ManualTimer:
    def __init__(self, handle: TimerHandle, next_fire: float):
        self.handle = handle
        self.next_fire = next_fire


class ManualScheduler(Scheduler):
    """
    Scheduler driven by explicit `advance()` calls.

    Usage:
        scheduler = ManualScheduler()
        machine = SessionStateMachine(scheduler)
        machine.start_countdown()
        scheduler.advance(3)  # countdown ticks 3 -> 0, game starts
    """

    def __init__(self, start: float = 0.0):
        self._now = start
        self._timers: list[_ManualTimer] = []

    def now(self) -> float:
        return self._now

    def schedule_repeating(
        self,
        interval: float,
        callback: TimerCallback,
        delay: float | None = None,
    ) -> TimerHandle:
        first = _check_timing(interval, delay)
        handle = TimerHandle(interval, callback)
        self._timers.append(_ManualTimer(handle, self._now + first))
        return handle

    @property
    def active_timers(self) -> list[TimerHandle]:
        return [t.handle for t in self._timers if t.handle.active]

    def advance(self, seconds: float):
        """Move the clock forward, firing due timers in time order."""
        target = self._now + seconds
        while True:
            self._timers = [t for t in self._timers if t.handle.active]
            due = [t for t in self._timers if t.next_fire <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.next_fire)
            self._now = timer.next_fire
            timer.next_fire += timer.handle.interval
            timer.handle.callback()
        self._now = target

    def set_time(self, now: float):
        """Jump the clock without firing timers (for scoring tests)."""
        self._now = now


class AsyncioScheduler(Scheduler):
    """
    Scheduler backed by one asyncio event loop.

    All callbacks run on the loop's thread, so the engine stays
    single-threaded.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now(self) -> float:
        return self.loop.time()

    def schedule_repeating(
        self,
        interval: float,
        callback: TimerCallback,
        delay: float | None = None,
    ) -> TimerHandle:
        first = _check_timing(interval, delay)
        handle = TimerHandle(interval, callback)

        def fire():
            if handle.cancelled:
                return
            # Re-arm first so a cancel() inside the callback sticks
            handle._native = self.loop.call_later(interval, fire)
            callback()

        handle._native = self.loop.call_later(first, fire)
        logger.debug("Scheduled repeating timer every %.3fs", interval)
        return handle
