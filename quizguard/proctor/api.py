"""
Monitoring API - FastAPI endpoints for headless integrity monitoring

Endpoints:
- POST /api/monitor/start - Start a monitoring session (optionally timed)
- POST /api/monitor/signal - Deliver a raw environment event
- POST /api/monitor/answer - Record an answer selection/change
- POST /api/monitor/stop - Stop session and get the integrity report
- GET /api/monitor/status/{session_id} - Get session status
- GET /api/monitor/health - Module health
"""

import time
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Any

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from ..config import settings
from .config import MonitoringConfig
from .scheduling import AsyncioScheduler
from .session import MonitoringSession
from .signals import EnvironmentEvent, EventType, SyntheticSignalSource
from .timer import CountdownTimer
from .utils.logging import log_timer_expired

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/monitor", tags=["Monitoring"])


@dataclass
class LiveSession:
    session: MonitoringSession
    source: SyntheticSignalSource
    assessment_id: str
    student_id: str
    timer: Optional[CountdownTimer] = None
    expired: bool = False
    stopped_at: Optional[float] = None


# In-memory session storage
_sessions: Dict[str, LiveSession] = {}


# ============== Request/Response Models ==============

class StartSessionRequest(BaseModel):
    """Request to start a monitoring session"""
    assessment_id: str = Field(..., description="ID of the assessment")
    student_id: str = Field(..., description="ID of the student")
    session_id: Optional[str] = Field(None, description="Custom session ID")
    duration_seconds: Optional[int] = Field(None, ge=0, description="Countdown length; untimed when omitted")


class StartSessionResponse(BaseModel):
    """Response after starting a session"""
    session_id: str
    status: str
    message: str


class SignalRequest(BaseModel):
    """A raw environment event observed by the client"""
    session_id: str
    type: EventType
    hidden: bool = False
    key: Optional[str] = None
    ctrl_key: bool = False
    meta_key: bool = False
    timestamp: Optional[int] = Field(None, description="Milliseconds since epoch")


class SignalResponse(BaseModel):
    """Outcome of delivering an event"""
    recorded: bool
    default_prevented: bool
    violation_count: int


class AnswerRequest(BaseModel):
    """An answer selection/change"""
    session_id: str
    timestamp: Optional[int] = Field(None, description="Milliseconds since epoch")


class AnswerResponse(BaseModel):
    recorded: bool
    violation_count: int


class StopSessionRequest(BaseModel):
    """Request to stop a monitoring session"""
    session_id: str


class ViolationModel(BaseModel):
    type: str
    timestamp: str
    details: Optional[str] = None


class StopSessionResponse(BaseModel):
    """Final integrity report"""
    session_id: str
    violations: List[ViolationModel]
    summary: Dict[str, int]
    total_violations: int
    integrity_score: int
    grade: str
    flags: List[str]
    review_required: bool
    review_priority: str
    expired: bool


class SessionStatusResponse(BaseModel):
    """Current session status"""
    session_id: str
    is_active: bool
    violation_count: int
    summary: Dict[str, int]
    remaining_seconds: Optional[int] = None
    time_display: Optional[str] = None
    low_time: bool = False


# ============== Helpers ==============

def _get_session(session_id: str) -> LiveSession:
    live = _sessions.get(session_id)
    if not live:
        raise HTTPException(status_code=404, detail="Session not found")
    return live


def _require_active(live: LiveSession):
    if not live.session.is_active:
        raise HTTPException(status_code=400, detail="Session is not active")


def _check_timestamp(live: LiveSession, timestamp: Optional[int]):
    """Reject client timestamps outside the session's lifetime."""
    if timestamp is None:
        return
    session = live.session
    tolerance = settings.TIMESTAMP_TOLERANCE_MS
    earliest = session.started_at - tolerance
    latest = session.clock() + tolerance
    if not earliest <= timestamp <= latest:
        logger.warning(
            f"Rejected timestamp {timestamp} for session {session.id} "
            f"(accepted {earliest}..{latest})"
        )
        raise HTTPException(status_code=400, detail="Timestamp outside session window")


def _finish(live: LiveSession):
    if live.timer is not None:
        live.timer.stop()
    live.session.stop()
    if live.stopped_at is None:
        live.stopped_at = time.monotonic()


def _prune_finished():
    """Forget stopped sessions older than the retention period."""
    now = time.monotonic()
    expired = [
        sid for sid, live in _sessions.items()
        if live.stopped_at is not None and now - live.stopped_at > settings.SESSION_RETENTION_SECONDS
    ]
    for sid in expired:
        del _sessions[sid]
        logger.info(f"Cleaned up session: {sid}")


# ============== API Endpoints ==============

@router.post("/start", response_model=StartSessionResponse)
async def start_session(request: StartSessionRequest):
    """
    Start a new monitoring session.

    Signals and answers posted for this session are classified,
    debounced and logged until it is stopped or its countdown expires.
    """
    _prune_finished()

    if request.session_id:
        existing = _sessions.get(request.session_id)
        if existing and existing.session.is_active:
            raise HTTPException(status_code=409, detail="Session is already active")

    source = SyntheticSignalSource()
    session = MonitoringSession(
        source,
        config=MonitoringConfig.from_settings(settings),
        session_id=request.session_id
    )
    live = LiveSession(
        session=session,
        source=source,
        assessment_id=request.assessment_id,
        student_id=request.student_id
    )

    session.start()
    _sessions[session.id] = live

    if request.duration_seconds is not None:
        def on_expire():
            live.expired = True
            log_timer_expired(session.id, request.duration_seconds)
            _finish(live)

        live.timer = CountdownTimer(
            on_expire=on_expire,
            scheduler=AsyncioScheduler(),
            tick_interval_ms=session.config.tick_interval_ms,
            low_time_warning_seconds=session.config.low_time_warning_seconds
        )
        live.timer.start(request.duration_seconds)

    logger.info(f"Started monitoring session: {session.id}")

    return StartSessionResponse(
        session_id=session.id,
        status="active" if session.is_active else "stopped",
        message="Monitoring session started successfully"
    )


@router.post("/signal", response_model=SignalResponse)
async def deliver_signal(request: SignalRequest):
    """
    Deliver a raw environment event to a session.

    `default_prevented` tells the client whether to cancel the
    event's default action (context menu, copy, paste, shortcuts).
    """
    live = _get_session(request.session_id)
    _require_active(live)
    _check_timestamp(live, request.timestamp)

    before = len(live.session.violations)
    event = live.source.dispatch(EnvironmentEvent(
        type=request.type,
        hidden=request.hidden,
        key=request.key,
        ctrl_key=request.ctrl_key,
        meta_key=request.meta_key,
        timestamp=request.timestamp
    ))
    after = len(live.session.violations)

    return SignalResponse(
        recorded=after > before,
        default_prevented=event.default_prevented,
        violation_count=after
    )


@router.post("/answer", response_model=AnswerResponse)
async def record_answer(request: AnswerRequest):
    """Record an answer selection for fast-answer detection."""
    live = _get_session(request.session_id)
    _require_active(live)
    _check_timestamp(live, request.timestamp)

    recorded = live.session.record_answer(request.timestamp)

    return AnswerResponse(
        recorded=recorded,
        violation_count=len(live.session.violations)
    )


@router.post("/stop", response_model=StopSessionResponse)
async def stop_session(request: StopSessionRequest):
    """
    Stop a monitoring session and get its integrity report.

    Stopping an already stopped session returns the same report.
    """
    live = _get_session(request.session_id)
    _finish(live)

    report = live.session.report()
    return StopSessionResponse(
        session_id=report["session_id"],
        violations=report["violations"],
        summary=report["summary"],
        total_violations=report["total_violations"],
        integrity_score=report["integrity_score"],
        grade=report["grade"],
        flags=report["flags"],
        review_required=report["review_required"],
        review_priority=report["review_priority"],
        expired=live.expired
    )


@router.get("/status/{session_id}", response_model=SessionStatusResponse)
async def get_session_status(session_id: str):
    """
    Get current status of a monitoring session.
    """
    live = _get_session(session_id)
    summary = live.session.summary()
    timer = live.timer

    return SessionStatusResponse(
        session_id=live.session.id,
        is_active=live.session.is_active,
        violation_count=len(live.session.violations),
        summary={k.value: v for k, v in summary.items()},
        remaining_seconds=timer.remaining_seconds if timer else None,
        time_display=timer.display if timer else None,
        low_time=timer.is_low_time if timer else False
    )


# ============== Health Check ==============

@router.get("/health")
async def health_check() -> Dict[str, Any]:
    """Health check for monitoring module"""
    return {
        "status": "healthy",
        "active_sessions": sum(1 for live in _sessions.values() if live.session.is_active),
        "module": "monitoring"
    }
