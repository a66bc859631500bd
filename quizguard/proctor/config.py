"""
Monitoring Config - Tunable windows and thresholds for a monitoring session
"""

from dataclasses import dataclass

from .debounce import DEFAULT_SUPPRESSION_WINDOW_MS
from .fast_answer import DEFAULT_FAST_ANSWER_THRESHOLD, DEFAULT_FAST_ANSWER_WINDOW_MS


@dataclass(frozen=True)
class MonitoringConfig:
    """
    Timing policy for one monitoring session.

    Attributes:
        suppression_window_ms: Same-kind violations closer than this are dropped
        fast_answer_window_ms: Lookback window for fast-answer detection
        fast_answer_threshold: Answers within the window that raise a violation
        tick_interval_ms: Countdown tick period
        low_time_warning_seconds: Remaining time below which the timer warns
    """

    suppression_window_ms: int = DEFAULT_SUPPRESSION_WINDOW_MS
    fast_answer_window_ms: int = DEFAULT_FAST_ANSWER_WINDOW_MS
    fast_answer_threshold: int = DEFAULT_FAST_ANSWER_THRESHOLD
    tick_interval_ms: int = 1000
    low_time_warning_seconds: int = 60

    def __post_init__(self):
        for name in ("suppression_window_ms", "fast_answer_window_ms", "tick_interval_ms"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        if self.fast_answer_threshold < 1:
            raise ValueError("fast_answer_threshold must be at least 1")
        if self.low_time_warning_seconds < 0:
            raise ValueError("low_time_warning_seconds must not be negative")

    @classmethod
    def from_settings(cls, settings) -> "MonitoringConfig":
        """Build a config from service settings."""
        return cls(
            suppression_window_ms=settings.SUPPRESSION_WINDOW_MS,
            fast_answer_window_ms=settings.FAST_ANSWER_WINDOW_MS,
            fast_answer_threshold=settings.FAST_ANSWER_THRESHOLD,
            tick_interval_ms=settings.TICK_INTERVAL_MS,
            low_time_warning_seconds=settings.LOW_TIME_WARNING_SECONDS,
        )
