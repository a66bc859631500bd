"""
Debounce Policy - Suppresses bursts of the same violation kind
"""

from .violations import ViolationKind, ViolationLog

DEFAULT_SUPPRESSION_WINDOW_MS = 2000


def should_record(
    kind: ViolationKind,
    now: int,
    log: ViolationLog,
    window_ms: int = DEFAULT_SUPPRESSION_WINDOW_MS
) -> bool:
    """
    Decide whether a new signal of `kind` observed at `now` is recorded.

    A signal is suppressed when the log holds an entry of the same kind
    strictly less than `window_ms` old. An entry exactly `window_ms` old
    does not suppress.

    The log is only read; the caller appends when this returns True.
    """
    for entry in log.recent_first():
        # Timestamps are non-decreasing, so nothing older can be in the window
        if now - entry.occurred_at >= window_ms:
            break
        if entry.kind == kind:
            return False
    return True


class DebouncePolicy:
    """Debounce decision bound to a configured suppression window."""

    def __init__(self, window_ms: int = DEFAULT_SUPPRESSION_WINDOW_MS):
        self.window_ms = window_ms

    def should_record(self, kind: ViolationKind, now: int, log: ViolationLog) -> bool:
        return should_record(kind, now, log, self.window_ms)
