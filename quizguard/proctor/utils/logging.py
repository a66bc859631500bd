"""
Proctoring Logger - Logs monitoring lifecycle and violation events
"""

import logging
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)


def log_proctor_event(
    session_id: str,
    event_type: str,
    details: Optional[Dict[str, Any]] = None,
    level: str = "info"
):
    """
    Log a proctoring event.

    Args:
        session_id: Monitoring session ID
        event_type: Type of event (session_start, violation, session_end, etc.)
        details: Optional event details
        level: Log level (debug, info, warning, error)
    """
    message = f"[PROCTOR] session={session_id} event={event_type}"

    if details:
        detail_str = " ".join(f"{k}={v}" for k, v in details.items())
        message += f" {detail_str}"

    if level == "debug":
        logger.debug(message)
    elif level == "warning":
        logger.warning(message)
    elif level == "error":
        logger.error(message)
    else:
        logger.info(message)


def log_session_start(session_id: str, config: Optional[Dict[str, Any]] = None):
    """Log session start event"""
    log_proctor_event(session_id=session_id, event_type="session_start", details=config)


def log_session_end(session_id: str, total_violations: int, summary: Dict[str, int]):
    """Log session end event"""
    log_proctor_event(
        session_id=session_id,
        event_type="session_end",
        details={
            "violations": total_violations,
            "summary": ",".join(f"{k}:{v}" for k, v in summary.items()) or "none"
        }
    )


def log_violation_recorded(session_id: str, kind: str, details: Optional[str]):
    """Log a violation appended to the session log"""
    log_proctor_event(
        session_id=session_id,
        event_type="violation",
        details={"type": kind, "details": repr(details)}
    )


def log_violation_suppressed(session_id: str, kind: str):
    """Log a duplicate violation dropped by debounce"""
    log_proctor_event(
        session_id=session_id,
        event_type="violation_suppressed",
        details={"type": kind},
        level="debug"
    )


def log_timer_expired(session_id: str, duration_seconds: int):
    """Log a countdown reaching zero"""
    log_proctor_event(
        session_id=session_id,
        event_type="timer_expired",
        details={"duration_seconds": duration_seconds},
        level="warning"
    )


def log_signal_unavailable(session_id: str, event_type: str, reason: str):
    """Log an environment signal category that could not be monitored"""
    log_proctor_event(
        session_id=session_id,
        event_type="signal_unavailable",
        details={"signal": event_type, "reason": repr(reason)},
        level="warning"
    )


def log_flag_triggered(session_id: str, flag: str, value: float, threshold: float):
    """Log when a flag is triggered"""
    log_proctor_event(
        session_id=session_id,
        event_type="flag_triggered",
        details={
            "flag": flag,
            "value": round(value, 2),
            "threshold": threshold
        },
        level="warning"
    )
