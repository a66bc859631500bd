"""
Integrity Scorer - Computes an integrity score from violation counts
"""

import logging
from typing import Dict, Any, Mapping

from ..violations import ViolationKind, coerce_summary, require_every_kind

logger = logging.getLogger(__name__)


class IntegrityScorer:
    """
    Computes integrity score from a per-kind violation summary.

    Formula:
        integrity_score = 100
            - (0.30 * tab_switch_normalized)
            - (0.30 * copy_paste_normalized)
            - (0.15 * window_blur_normalized)
            - (0.15 * fast_answering_normalized)
            - (0.10 * right_click_normalized)

    Each count is normalized to 0-100 against the count at which its
    penalty maxes out.
    """

    WEIGHTS: Dict[ViolationKind, float] = require_every_kind({
        ViolationKind.TAB_SWITCH: 0.30,
        ViolationKind.COPY_PASTE: 0.30,
        ViolationKind.WINDOW_BLUR: 0.15,
        ViolationKind.FAST_ANSWERING: 0.15,
        ViolationKind.RIGHT_CLICK: 0.10,
    }, "IntegrityScorer.WEIGHTS")

    # Occurrences at which each kind's penalty is maxed out
    MAX_COUNTS: Dict[ViolationKind, int] = require_every_kind({
        ViolationKind.TAB_SWITCH: 5,
        ViolationKind.COPY_PASTE: 5,
        ViolationKind.WINDOW_BLUR: 10,
        ViolationKind.FAST_ANSWERING: 5,
        ViolationKind.RIGHT_CLICK: 10,
    }, "IntegrityScorer.MAX_COUNTS")

    def __init__(self, weights: Dict[ViolationKind, float] = None):
        """
        Initialize scorer with optional custom weights.

        Args:
            weights: Optional dict overriding default weights
        """
        self.weights = self.WEIGHTS.copy()
        if weights:
            self.weights.update(weights)

        total = sum(self.weights.values())
        if abs(total - 1.0) > 0.01:
            logger.warning(f"Weights sum to {total}, expected 1.0")

    def normalize(self, kind: ViolationKind, count: int) -> float:
        limit = self.MAX_COUNTS[kind]
        return min(count, limit) / limit * 100

    def compute(self, summary: Mapping[str, int]) -> int:
        """
        Compute integrity score from violation counts.

        Args:
            summary: Violation counts keyed by kind (missing kinds count as 0)

        Returns:
            Integrity score (0-100, higher is better)
        """
        counts = coerce_summary(summary)
        score = 100.0

        for kind, weight in self.weights.items():
            value = self.normalize(kind, counts.get(kind, 0))
            penalty = weight * value
            score -= penalty

            logger.debug(f"Kind {kind.value}: value={value:.2f}, weight={weight}, penalty={penalty:.2f}")

        return max(0, min(100, int(round(score))))

    def compute_breakdown(self, summary: Mapping[str, int]) -> Dict[str, Any]:
        """
        Compute integrity score with detailed breakdown.

        Args:
            summary: Violation counts keyed by kind

        Returns:
            Dict with score and breakdown of penalties
        """
        counts = coerce_summary(summary)
        score = 100.0
        penalties = {}

        for kind, weight in self.weights.items():
            count = counts.get(kind, 0)
            value = self.normalize(kind, count)
            penalty = weight * value
            penalties[kind.value] = {
                "count": count,
                "value": round(value, 2),
                "weight": weight,
                "penalty": round(penalty, 2)
            }
            score -= penalty

        final_score = max(0, min(100, int(round(score))))

        return {
            "integrity_score": final_score,
            "raw_score": round(score, 2),
            "penalties": penalties,
            "total_penalty": round(100 - score, 2)
        }

    def get_grade(self, score: int) -> str:
        """
        Convert score to letter grade.

        Returns:
            Grade: 'A' (excellent), 'B' (good), 'C' (warning), 'D' (concerning), 'F' (failed)
        """
        if score >= 90:
            return "A"
        elif score >= 80:
            return "B"
        elif score >= 70:
            return "C"
        elif score >= 60:
            return "D"
        else:
            return "F"
