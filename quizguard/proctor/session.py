"""
Monitoring Session - Owns integrity monitoring for a single quiz attempt
"""

import time
import uuid
import logging
from typing import Any, Callable, Dict, Optional, Tuple

from .config import MonitoringConfig
from .debounce import DebouncePolicy
from .fast_answer import FastAnswerDetector
from .signals import SignalCollector, SignalSource
from .violations import Violation, ViolationKind, ViolationLog, iso_timestamp
from .scoring import IntegrityScorer, FlagGenerator
from .utils.logging import (
    log_session_start,
    log_session_end,
    log_violation_recorded,
    log_violation_suppressed,
    log_flag_triggered,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], int]


def wall_clock_ms() -> int:
    return int(time.time() * 1000)


class SessionStateError(RuntimeError):
    """A session was driven out of order (e.g. started twice)."""


class MonitoringSession:
    """
    Manages integrity monitoring for one quiz attempt.

    Idle -> start() -> Active -> stop() -> Idle. While active, the
    session owns the violation log and the answer window, and is the
    only thing the signal handlers and the fast-answer check consult
    to decide whether monitoring is on.
    """

    def __init__(
        self,
        source: SignalSource,
        config: Optional[MonitoringConfig] = None,
        clock: Optional[Clock] = None,
        session_id: Optional[str] = None
    ):
        """
        Initialize an idle monitoring session.

        Args:
            source: Environment the signal handlers attach to
            config: Timing policy (documented defaults when omitted)
            clock: Millisecond clock for events without their own timestamp
            session_id: Optional custom session ID (auto-generated if not provided)
        """
        self.id = session_id or f"MON_{uuid.uuid4().hex[:6].upper()}"
        self.source = source
        self.config = config or MonitoringConfig()
        self.clock = clock or wall_clock_ms

        self.is_active = False
        self.started_at: Optional[int] = None
        self.stopped_at: Optional[int] = None

        self.log = ViolationLog()
        self.debounce = DebouncePolicy(self.config.suppression_window_ms)
        self.answers = FastAnswerDetector(
            window_ms=self.config.fast_answer_window_ms,
            threshold=self.config.fast_answer_threshold
        )
        self.collector = SignalCollector(
            source,
            sink=self._record,
            is_active=lambda: self.is_active,
            session_id=self.id
        )

        self.scorer = IntegrityScorer()
        self.flagger = FlagGenerator()

        self._final: Tuple[Violation, ...] = ()

    def start(self) -> None:
        """
        Begin monitoring with an empty log and answer window.

        Raises:
            SessionStateError: If the session is already active. This is a
                defect in the caller, not a condition to recover from.
        """
        if self.is_active:
            raise SessionStateError(f"Monitoring session {self.id} is already active")

        self.log = ViolationLog()
        self.answers.reset()
        self._final = ()
        self.started_at = self.clock()
        self.stopped_at = None

        self.collector.register()
        self.is_active = True

        log_session_start(self.id, {
            "signals": ",".join(t.value for t in self.collector.registered_types) or "none",
            "suppression_ms": self.config.suppression_window_ms,
            "fast_answer_ms": self.config.fast_answer_window_ms,
            "fast_answer_threshold": self.config.fast_answer_threshold,
        })

    def stop(self) -> Tuple[Violation, ...]:
        """
        Stop monitoring and return the frozen violation log.

        Safe to call when idle or repeatedly; returns the last snapshot
        (empty if the session never started).
        """
        if not self.is_active:
            self.collector.unregister()
            return self._final

        self.is_active = False
        self.collector.unregister()
        self.stopped_at = self.clock()
        self._final = self.log.snapshot()

        summary = self.summary()
        log_session_end(self.id, len(self._final), {k.value: v for k, v in summary.items()})
        for flag in self.flagger.generate(summary):
            log_flag_triggered(
                self.id,
                flag,
                summary.get(ViolationKind(flag), 0),
                self.flagger.thresholds[ViolationKind(flag)]
            )

        return self._final

    def record_answer(self, now: Optional[int] = None) -> bool:
        """
        Feed an answer selection/change to the fast-answer check.

        Args:
            now: Milliseconds timestamp (session clock when None)

        Returns:
            True if a fast-answering violation was recorded
        """
        if not self.is_active:
            return False

        now = self._timestamp(now)
        count = self.answers.record(now)
        if count is None:
            return False
        return self._record(ViolationKind.FAST_ANSWERING, self.answers.describe(count), now)

    @property
    def violations(self) -> Tuple[Violation, ...]:
        """Current violations (the frozen log once stopped)."""
        if self.is_active:
            return self.log.snapshot()
        return self._final

    def summary(self) -> Dict[ViolationKind, int]:
        # Nothing is appended after stop, so the log matches the frozen snapshot
        return self.log.summary()

    def report(self) -> Dict[str, Any]:
        """
        Build the integrity report for this session.

        Returns:
            Dict with violations, per-kind summary, integrity score and flags
        """
        violations = self.violations
        summary = self.summary()
        score = self.scorer.compute(summary)
        flags = self.flagger.generate(summary)

        return {
            "session_id": self.id,
            "is_active": self.is_active,
            "started_at": iso_timestamp(self.started_at) if self.started_at is not None else None,
            "stopped_at": iso_timestamp(self.stopped_at) if self.stopped_at is not None else None,
            "violations": [v.to_dict() for v in violations],
            "summary": {k.value: v for k, v in summary.items()},
            "total_violations": len(violations),
            "integrity_score": score,
            "grade": self.scorer.get_grade(score),
            "flags": flags,
            "review_required": self.flagger.requires_review(flags, score),
            "review_priority": self.flagger.get_review_priority(flags, score),
        }

    def _record(self, kind: ViolationKind, details: Optional[str], now: Optional[int] = None) -> bool:
        """Debounce-gated append. Returns whether the violation was recorded."""
        if not self.is_active:
            return False

        now = self._timestamp(now)
        if not self.debounce.should_record(kind, now, self.log):
            log_violation_suppressed(self.id, kind.value)
            return False

        self.log.append(Violation(kind=kind, occurred_at=now, details=details))
        log_violation_recorded(self.id, kind.value, details)
        return True

    def _timestamp(self, now: Optional[int]) -> int:
        if now is None:
            now = self.clock()
        last = self.log.last()
        # The log must stay non-decreasing even if the clock steps back
        if last is not None and now < last.occurred_at:
            return last.occurred_at
        return int(now)
