"""
Flag Generator - Generates review flags from violation counts
"""

import logging
from typing import Dict, List, Mapping

from ..violations import ViolationKind, coerce_summary, require_every_kind

logger = logging.getLogger(__name__)


class FlagGenerator:
    """
    Generates flags for human review based on a violation summary.

    A flag is raised when a kind's count reaches its threshold.
    Flags are reported by wire type (e.g. "tab-switch").
    """

    THRESHOLDS: Dict[ViolationKind, int] = require_every_kind({
        ViolationKind.TAB_SWITCH: 3,
        ViolationKind.WINDOW_BLUR: 5,
        ViolationKind.RIGHT_CLICK: 5,
        ViolationKind.COPY_PASTE: 2,
        ViolationKind.FAST_ANSWERING: 2,
    }, "FlagGenerator.THRESHOLDS")

    # Flags that always require review
    CRITICAL_FLAGS = [ViolationKind.COPY_PASTE.value]

    # Score threshold below which review is required
    REVIEW_SCORE_THRESHOLD = 60

    # Minimum flags for review
    MIN_FLAGS_FOR_REVIEW = 2

    def __init__(self, thresholds: Dict[ViolationKind, int] = None):
        self.thresholds = self.THRESHOLDS.copy()
        if thresholds:
            self.thresholds.update(thresholds)

    def generate(self, summary: Mapping[str, int]) -> List[str]:
        """
        Generate flags based on violation counts.

        Args:
            summary: Violation counts keyed by kind

        Returns:
            List of flag names that were triggered
        """
        counts = coerce_summary(summary)
        flags = []

        for kind, threshold in self.thresholds.items():
            count = counts.get(kind, 0)

            if count >= threshold:
                flags.append(kind.value)
                logger.info(f"Flag triggered: {kind.value} ({count} >= {threshold})")

        return flags

    def requires_review(self, flags: List[str], score: int) -> bool:
        """
        Determine if manual review is required.

        Args:
            flags: List of triggered flags
            score: Integrity score

        Returns:
            True if human review is required
        """
        if any(f in self.CRITICAL_FLAGS for f in flags):
            return True

        if score < self.REVIEW_SCORE_THRESHOLD:
            return True

        if len(flags) >= self.MIN_FLAGS_FOR_REVIEW:
            return True

        return False

    def get_review_priority(self, flags: List[str], score: int) -> str:
        """
        Get review priority level.

        Returns:
            'urgent', 'high', 'normal', or 'low'
        """
        if any(f in self.CRITICAL_FLAGS for f in flags):
            return "urgent"

        if score < 40:
            return "urgent"

        if score < 60:
            return "high"

        if len(flags) >= 3:
            return "high"

        if len(flags) >= 1:
            return "normal"

        return "low"
