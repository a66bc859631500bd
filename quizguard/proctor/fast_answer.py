"""
Fast-Answer Detector - Flags answers submitted in tight clusters
"""

import logging
from typing import List, Optional

logger = logging.getLogger(__name__)

DEFAULT_FAST_ANSWER_WINDOW_MS = 5000
DEFAULT_FAST_ANSWER_THRESHOLD = 3


class FastAnswerDetector:
    """
    Sliding window over answer-submission timestamps.

    Every call re-evaluates the window, so a student who keeps
    changing answers inside the window is flagged again on each
    change (the caller's debounce decides what gets recorded).
    """

    def __init__(
        self,
        window_ms: int = DEFAULT_FAST_ANSWER_WINDOW_MS,
        threshold: int = DEFAULT_FAST_ANSWER_THRESHOLD
    ):
        self.window_ms = window_ms
        self.threshold = threshold
        self._timestamps: List[int] = []

    @property
    def timestamps(self) -> List[int]:
        return list(self._timestamps)

    def recent_count(self, now: int) -> int:
        """Number of answers strictly less than window_ms before `now`."""
        return sum(1 for ts in self._timestamps if now - ts < self.window_ms)

    def record(self, now: int) -> Optional[int]:
        """
        Record an answer event.

        Args:
            now: Milliseconds timestamp of the answer

        Returns:
            The recent answer count if it reached the threshold, else None
        """
        self._timestamps.append(now)
        # Decayed entries can never count again
        self._timestamps = [ts for ts in self._timestamps if now - ts < self.window_ms]

        count = len(self._timestamps)
        if count >= self.threshold:
            logger.debug(f"Fast answering: {count} answers within {self.window_ms}ms")
            return count
        return None

    def describe(self, count: int) -> str:
        return f"{count} answers in less than {self.window_ms / 1000:g} seconds"

    def reset(self):
        self._timestamps = []
