"""
Scheduling - Repeating callbacks for the countdown tick

Two drivers:
- AsyncioScheduler runs on the service's asyncio event loop
- ManualScheduler is a virtual clock for tests and offline replay
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

# Receives the number of whole intervals elapsed since the previous call
TickCallback = Callable[[int], None]


class ScheduledHandle(ABC):
    """Handle for a repeating callback."""

    @abstractmethod
    def cancel(self) -> None:
        ...

    @property
    @abstractmethod
    def cancelled(self) -> bool:
        ...


class Scheduler(ABC):
    """Source of repeating callbacks."""

    @abstractmethod
    def call_every(self, interval_seconds: float, callback: TickCallback) -> ScheduledHandle:
        """
        Call `callback` once per interval until the handle is cancelled.

        The callback receives how many intervals elapsed since it last
        ran, which is more than 1 when the driver fell behind.
        """


# ============== asyncio ==============

class _AsyncioRepeating(ScheduledHandle):
    def __init__(self, loop: asyncio.AbstractEventLoop, interval: float, callback: TickCallback):
        self._loop = loop
        self._interval = interval
        self._callback = callback
        self._origin = loop.time()
        self._fired = 0
        self._cancelled = False
        self._timer: Optional[asyncio.TimerHandle] = None
        self._schedule_next()

    def _schedule_next(self):
        due_at = self._origin + (self._fired + 1) * self._interval
        self._timer = self._loop.call_at(due_at, self._run)

    def _run(self):
        if self._cancelled:
            return
        due = int((self._loop.time() - self._origin) // self._interval) - self._fired
        due = max(1, due)
        self._fired += due
        try:
            self._callback(due)
        except Exception as e:
            logger.error(f"Scheduled callback failed: {e}", exc_info=True)
        if not self._cancelled:
            self._schedule_next()

    def cancel(self) -> None:
        self._cancelled = True
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class AsyncioScheduler(Scheduler):
    """Schedules ticks on an asyncio event loop (the running loop by default)."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def call_every(self, interval_seconds: float, callback: TickCallback) -> ScheduledHandle:
        loop = self._loop or asyncio.get_running_loop()
        return _AsyncioRepeating(loop, interval_seconds, callback)


# ============== virtual clock ==============

class _ManualRepeating(ScheduledHandle):
    def __init__(self, interval_ms: int, callback: TickCallback, start_ms: int):
        self.interval_ms = interval_ms
        self.callback = callback
        self.next_due_ms = start_ms + interval_ms
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class ManualScheduler(Scheduler):
    """
    Deterministic virtual clock.

    Time only moves when advance() is called; repeating callbacks
    fire once per elapsed interval, in due order. Also usable as a
    session clock via now_ms().
    """

    def __init__(self, start_ms: int = 0):
        self._now_ms = start_ms
        self._handles: List[_ManualRepeating] = []

    def now_ms(self) -> int:
        return self._now_ms

    def call_every(self, interval_seconds: float, callback: TickCallback) -> ScheduledHandle:
        interval_ms = int(round(interval_seconds * 1000))
        if interval_ms <= 0:
            raise ValueError("interval must be positive")
        handle = _ManualRepeating(interval_ms, callback, self._now_ms)
        self._handles.append(handle)
        return handle

    def advance(self, ms: int) -> None:
        """Move the clock forward by `ms`, firing every callback that comes due."""
        if ms < 0:
            raise ValueError("cannot move the clock backwards")
        target = self._now_ms + ms
        while True:
            live = [h for h in self._handles if not h.cancelled and h.next_due_ms <= target]
            if not live:
                break
            handle = min(live, key=lambda h: h.next_due_ms)
            self._now_ms = handle.next_due_ms
            handle.next_due_ms += handle.interval_ms
            handle.callback(1)
        self._now_ms = target
        self._handles = [h for h in self._handles if not h.cancelled]

    @property
    def pending(self) -> int:
        """Number of live repeating callbacks."""
        return sum(1 for h in self._handles if not h.cancelled)
