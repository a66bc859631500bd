"""
Quiz Attempt Flow - Drives one timed, monitored quiz attempt

INSTRUCTIONS -> begin() -> ACTIVE -> submit() / timer expiry -> SUBMITTED

The monitoring session and the countdown are started and stopped
together here; submission is one-shot per attempt.
"""

import uuid
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .config import MonitoringConfig
from .scheduling import Scheduler
from .session import Clock, MonitoringSession
from .signals import SignalSource
from .timer import CountdownTimer
from .violations import iso_timestamp, summarize
from .utils.logging import log_proctor_event, log_timer_expired

logger = logging.getLogger(__name__)


class AttemptState(str, Enum):
    INSTRUCTIONS = "instructions"
    ACTIVE = "active"
    SUBMITTED = "submitted"


class AlreadyAttemptedError(Exception):
    """The student already has a stored attempt for this quiz."""


class AttemptIncompleteError(ValueError):
    """Manual submission with unanswered questions."""


class AttemptStateError(RuntimeError):
    """Flow operation called in the wrong state."""


@dataclass
class Question:
    id: str
    text: str
    options: List[str]
    correct_answer: int


@dataclass
class Quiz:
    id: str
    code: str
    title: str
    duration_minutes: int
    questions: List[Question]
    description: str = ""

    def __post_init__(self):
        if self.duration_minutes < 0:
            raise ValueError("duration_minutes must not be negative")

    @property
    def duration_seconds(self) -> int:
        return self.duration_minutes * 60

    def question(self, question_id: str) -> Optional[Question]:
        for question in self.questions:
            if question.id == question_id:
                return question
        return None


@dataclass
class AttemptRecord:
    """A submitted attempt, ready for persistence."""

    quiz_id: str
    student_id: str
    student_name: str
    answers: Dict[str, int]
    score: int
    total_questions: int
    started_at: str
    submitted_at: str
    violations: List[Dict[str, Any]]
    forced: bool = False
    id: str = field(default_factory=lambda: f"attempt-{uuid.uuid4().hex[:12]}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "quizId": self.quiz_id,
            "studentId": self.student_id,
            "studentName": self.student_name,
            "answers": dict(self.answers),
            "score": self.score,
            "totalQuestions": self.total_questions,
            "startedAt": self.started_at,
            "submittedAt": self.submitted_at,
            "violations": list(self.violations),
        }

    def violation_summary(self) -> Dict[str, int]:
        """Per-type violation counts for review screens."""
        return summarize(self.violations)


class AttemptStore(ABC):
    """Persistence collaborator for submitted attempts."""

    @abstractmethod
    def save(self, record: AttemptRecord) -> None:
        ...

    @abstractmethod
    def has_attempted(self, quiz_id: str, student_id: str) -> bool:
        ...


class InMemoryAttemptStore(AttemptStore):
    def __init__(self):
        self.records: List[AttemptRecord] = []

    def save(self, record: AttemptRecord) -> None:
        self.records.append(record)

    def has_attempted(self, quiz_id: str, student_id: str) -> bool:
        return any(r.quiz_id == quiz_id and r.student_id == student_id for r in self.records)


def score_answers(quiz: Quiz, answers: Dict[str, int]) -> int:
    """Count answers matching the correct option."""
    return sum(1 for q in quiz.questions if answers.get(q.id) == q.correct_answer)


class QuizAttemptFlow:
    """
    Coordinates a quiz attempt with its monitoring session and countdown.

    The countdown force-submits on expiry through the same submit()
    path as a manual submission, and submit() returns the already
    stored record on any later call.
    """

    def __init__(
        self,
        quiz: Quiz,
        student_id: str,
        student_name: str,
        store: AttemptStore,
        source: SignalSource,
        scheduler: Optional[Scheduler] = None,
        config: Optional[MonitoringConfig] = None,
        clock: Optional[Clock] = None
    ):
        self.quiz = quiz
        self.student_id = student_id
        self.student_name = student_name
        self.store = store
        self.config = config or MonitoringConfig()

        self.session = MonitoringSession(source, config=self.config, clock=clock)
        self.timer = CountdownTimer(
            on_expire=self._on_expire,
            scheduler=scheduler,
            tick_interval_ms=self.config.tick_interval_ms,
            low_time_warning_seconds=self.config.low_time_warning_seconds
        )

        self.state = AttemptState.INSTRUCTIONS
        self.answers: Dict[str, int] = {}
        self.record: Optional[AttemptRecord] = None

    @property
    def can_submit(self) -> bool:
        return self.state == AttemptState.ACTIVE and len(self.answers) == len(self.quiz.questions)

    @property
    def progress(self) -> float:
        if not self.quiz.questions:
            return 100.0
        return len(self.answers) / len(self.quiz.questions) * 100

    def begin(self) -> None:
        """
        Acknowledge the instructions and start the attempt.

        Raises:
            AlreadyAttemptedError: If the store already holds an attempt
            AttemptStateError: If the attempt was already begun
            ValueError: If the quiz duration is negative
        """
        if self.state != AttemptState.INSTRUCTIONS:
            raise AttemptStateError(f"Cannot begin attempt in state {self.state.value}")
        if self.store.has_attempted(self.quiz.id, self.student_id):
            raise AlreadyAttemptedError(
                f"Student {self.student_id} already attempted quiz {self.quiz.code}"
            )
        if self.quiz.duration_seconds < 0:
            raise ValueError(f"Quiz {self.quiz.code} has a negative duration")

        self.session.start()
        self.state = AttemptState.ACTIVE
        log_proctor_event(self.session.id, "attempt_begin", {
            "quiz": self.quiz.code,
            "student_id": self.student_id,
            "duration_seconds": self.quiz.duration_seconds,
        })
        try:
            self.timer.start(self.quiz.duration_seconds)
        except Exception:
            # Monitoring never outlives an attempt that failed to start
            self.session.stop()
            self.state = AttemptState.INSTRUCTIONS
            raise

    def select_answer(self, question_id: str, option_index: int, now: Optional[int] = None) -> None:
        """
        Record or change an answer.

        Raises:
            AttemptStateError: If the attempt is not active
            ValueError: For an unknown question or option
        """
        if self.state != AttemptState.ACTIVE:
            raise AttemptStateError(f"Cannot answer in state {self.state.value}")

        question = self.quiz.question(question_id)
        if question is None:
            raise ValueError(f"Unknown question: {question_id}")
        if not 0 <= option_index < len(question.options):
            raise ValueError(f"Option {option_index} out of range for question {question_id}")

        self.answers[question_id] = option_index
        self.session.record_answer(now)

    def submit(self, forced: bool = False) -> AttemptRecord:
        """
        Submit the attempt once.

        Args:
            forced: Submission triggered by timer expiry (skips the
                all-questions-answered check)

        Returns:
            The stored attempt record (the same one on repeated calls)

        Raises:
            AttemptStateError: If the attempt was never begun
            AttemptIncompleteError: On manual submit with unanswered questions
        """
        if self.record is not None:
            return self.record
        if self.state != AttemptState.ACTIVE:
            raise AttemptStateError(f"Cannot submit in state {self.state.value}")
        if not forced and not self.can_submit:
            unanswered = len(self.quiz.questions) - len(self.answers)
            raise AttemptIncompleteError(f"{unanswered} question(s) unanswered")

        self.state = AttemptState.SUBMITTED
        self.timer.stop()
        violations = self.session.stop()

        submitted_at = self.session.clock()
        started_at = submitted_at - self.timer.elapsed_seconds * 1000
        score = score_answers(self.quiz, self.answers)

        self.record = AttemptRecord(
            quiz_id=self.quiz.id,
            student_id=self.student_id,
            student_name=self.student_name,
            answers=dict(self.answers),
            score=score,
            total_questions=len(self.quiz.questions),
            started_at=iso_timestamp(started_at),
            submitted_at=iso_timestamp(submitted_at),
            violations=[v.to_dict() for v in violations],
            forced=forced
        )
        self.store.save(self.record)

        log_proctor_event(self.session.id, "attempt_submitted", {
            "quiz": self.quiz.code,
            "score": f"{score}/{len(self.quiz.questions)}",
            "violations": len(violations),
            "forced": forced,
        })
        return self.record

    def _on_expire(self):
        log_timer_expired(self.session.id, self.timer.duration_seconds)
        self.submit(forced=True)
