"""
quizguard Proctoring Module

Monitors exam integrity while a student takes a timed quiz by detecting:
- Tab switches
- Window focus loss
- Right-click attempts
- Copy/paste attempts (events and keyboard shortcuts)
- Fast answering

Same-kind events are debounced, and the resulting violation log is
attached to the submitted attempt.
"""

from .api import router
from .attempt import QuizAttemptFlow, Quiz, Question, AttemptRecord, InMemoryAttemptStore
from .config import MonitoringConfig
from .session import MonitoringSession, SessionStateError
from .signals import EnvironmentEvent, EventType, SyntheticSignalSource
from .timer import CountdownTimer
from .violations import Violation, ViolationKind, ViolationLog

__all__ = [
    "router",
    "QuizAttemptFlow",
    "Quiz",
    "Question",
    "AttemptRecord",
    "InMemoryAttemptStore",
    "MonitoringConfig",
    "MonitoringSession",
    "SessionStateError",
    "EnvironmentEvent",
    "EventType",
    "SyntheticSignalSource",
    "CountdownTimer",
    "Violation",
    "ViolationKind",
    "ViolationLog",
]
