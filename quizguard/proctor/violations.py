"""
Violations - Classified integrity events and the per-session violation log
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)


def iso_timestamp(ms: int) -> str:
    """Render a millisecond epoch timestamp as ISO-8601 UTC."""
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).isoformat().replace("+00:00", "Z")


class ViolationKind(str, Enum):
    """Closed set of integrity events recorded during a quiz attempt."""

    TAB_SWITCH = "tab-switch"
    WINDOW_BLUR = "window-blur"
    RIGHT_CLICK = "right-click"
    COPY_PASTE = "copy-paste"
    FAST_ANSWERING = "fast-answering"


def require_every_kind(table: Dict[ViolationKind, Any], name: str) -> Dict[ViolationKind, Any]:
    """
    Check that a policy table covers every ViolationKind.

    Tables keyed by kind have no fallback entry, so a new kind
    must be given an explicit policy wherever kinds are handled.

    Raises:
        ValueError: If any kind is missing from the table
    """
    missing = [kind.value for kind in ViolationKind if kind not in table]
    if missing:
        raise ValueError(f"{name} has no entry for: {', '.join(missing)}")
    return table


@dataclass(frozen=True)
class Violation:
    """
    A single classified integrity event.

    Attributes:
        kind: What was observed
        occurred_at: Milliseconds timestamp from the session clock
        details: Optional human-readable description
    """

    kind: ViolationKind
    occurred_at: int
    details: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the record format stored with an attempt."""
        return {
            "type": self.kind.value,
            "timestamp": iso_timestamp(self.occurred_at),
            "details": self.details,
        }


class ViolationLog:
    """
    Ordered, append-only record of violations for one session.

    Insertion order is chronological order; entries are never
    reordered or removed.
    """

    def __init__(self):
        self._entries: List[Violation] = []

    def append(self, violation: Violation) -> None:
        self._entries.append(violation)

    def snapshot(self) -> Tuple[Violation, ...]:
        """Return an immutable copy of the log in order."""
        return tuple(self._entries)

    def summary(self) -> Dict[ViolationKind, int]:
        """
        Count violations per kind.

        Kinds with zero occurrences are absent from the result.
        """
        counts: Dict[ViolationKind, int] = {}
        for violation in self._entries:
            counts[violation.kind] = counts.get(violation.kind, 0) + 1
        return counts

    def last(self) -> Optional[Violation]:
        return self._entries[-1] if self._entries else None

    def recent_first(self) -> Iterator[Violation]:
        return reversed(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Violation]:
        return iter(self.snapshot())


def summarize(violations) -> Dict[str, int]:
    """
    Count serialized or typed violations by their wire type.

    Accepts either Violation objects or dicts produced by
    Violation.to_dict(), as stored with persisted attempts.
    """
    counts: Dict[str, int] = {}
    for violation in violations:
        if isinstance(violation, Violation):
            key = violation.kind.value
        else:
            key = violation["type"]
        counts[key] = counts.get(key, 0) + 1
    return counts


def coerce_summary(summary: Mapping[Any, int]) -> Dict[ViolationKind, int]:
    """Key a summary by ViolationKind, accepting kinds or wire type strings."""
    return {ViolationKind(kind): count for kind, count in summary.items()}
