"""
Countdown Timer - Quiz clock that force-submits at zero
"""

import logging
from enum import Enum
from typing import Callable, Optional

from .scheduling import ScheduledHandle, Scheduler

logger = logging.getLogger(__name__)


class TimerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    EXPIRED = "expired"
    STOPPED = "stopped"


def format_time(seconds: int) -> str:
    """Render seconds as m:ss."""
    seconds = max(0, int(seconds))
    mins, secs = divmod(seconds, 60)
    return f"{mins}:{secs:02d}"


class CountdownTimer:
    """
    Counts down from the quiz duration to zero.

    RUNNING -> EXPIRED on the tick that reaches zero (expiry fires once),
    RUNNING -> STOPPED on an external stop (no expiry). Both are terminal.

    Ticks come from the scheduler when one is given; otherwise the
    owner calls tick() itself.
    """

    def __init__(
        self,
        on_expire: Callable[[], None],
        on_tick: Optional[Callable[[int], None]] = None,
        scheduler: Optional[Scheduler] = None,
        tick_interval_ms: int = 1000,
        low_time_warning_seconds: int = 60
    ):
        self._on_expire = on_expire
        self._on_tick = on_tick
        self._scheduler = scheduler
        self.tick_interval_ms = tick_interval_ms
        self.low_time_warning_seconds = low_time_warning_seconds

        self.state = TimerState.IDLE
        self.duration_seconds = 0
        self.remaining_seconds = 0
        self._handle: Optional[ScheduledHandle] = None

    @property
    def is_running(self) -> bool:
        return self.state == TimerState.RUNNING

    @property
    def elapsed_seconds(self) -> int:
        return self.duration_seconds - self.remaining_seconds

    @property
    def display(self) -> str:
        return format_time(self.remaining_seconds)

    @property
    def is_low_time(self) -> bool:
        return self.is_running and self.remaining_seconds < self.low_time_warning_seconds

    def start(self, duration_seconds: int) -> None:
        """
        Start counting down.

        Raises:
            RuntimeError: If the timer was already started
            ValueError: If the duration is negative
        """
        if self.state != TimerState.IDLE:
            raise RuntimeError(f"Timer cannot start from state {self.state.value}")
        if duration_seconds < 0:
            raise ValueError("duration_seconds must not be negative")

        self.duration_seconds = int(duration_seconds)
        self.remaining_seconds = int(duration_seconds)
        self.state = TimerState.RUNNING
        logger.debug(f"Countdown started: {self.display}")

        if self.remaining_seconds <= 0:
            self._expire()
            return

        if self._scheduler is not None:
            self._handle = self._scheduler.call_every(self.tick_interval_ms / 1000, self.tick)

    def tick(self, elapsed: int = 1) -> None:
        """
        Advance the countdown by `elapsed` intervals.

        Late drivers pass elapsed > 1 to catch up. Remaining time is
        clamped at zero and expiry fires the first time it is reached.
        Ticks outside RUNNING are ignored.
        """
        if self.state != TimerState.RUNNING:
            return

        self.remaining_seconds = max(0, self.remaining_seconds - max(1, int(elapsed)))

        if self._on_tick is not None:
            self._on_tick(self.remaining_seconds)

        if self.remaining_seconds <= 0:
            self._expire()

    def stop(self) -> None:
        """Stop without expiring. No-op unless running."""
        if self.state != TimerState.RUNNING:
            return
        self.state = TimerState.STOPPED
        self._cancel()
        logger.debug(f"Countdown stopped with {self.display} remaining")

    def _expire(self):
        self.state = TimerState.EXPIRED
        self._cancel()
        logger.info("Countdown expired")
        self._on_expire()

    def _cancel(self):
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
