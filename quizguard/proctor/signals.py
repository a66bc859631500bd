"""
Signal Collector - Turns raw environment events into classified violations

The host environment (a browser page, a test double, a headless
harness) is reached only through the SignalSource interface.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .violations import ViolationKind, require_every_kind
from .utils.logging import log_signal_unavailable

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Raw environment notifications the collector listens for."""

    VISIBILITY_CHANGE = "visibilitychange"
    BLUR = "blur"
    CONTEXT_MENU = "contextmenu"
    COPY = "copy"
    PASTE = "paste"
    KEYDOWN = "keydown"


SHORTCUT_KEYS = frozenset({"c", "v", "x", "a"})

DEFAULT_DETAILS: Dict[ViolationKind, str] = require_every_kind({
    ViolationKind.TAB_SWITCH: "User switched to another tab",
    ViolationKind.WINDOW_BLUR: "Window lost focus",
    ViolationKind.RIGHT_CLICK: "Right-click attempted",
    ViolationKind.COPY_PASTE: "Copy or paste attempted",
    ViolationKind.FAST_ANSWERING: "Answers submitted too quickly",
}, "DEFAULT_DETAILS")


@dataclass
class EnvironmentEvent:
    """
    A raw notification from the host environment.

    Attributes:
        type: Which notification this is
        hidden: For visibility changes, whether the page is now hidden
        key: For key presses, the key value
        ctrl_key: Control modifier held
        meta_key: Command/meta modifier held
        timestamp: Milliseconds timestamp; the session clock is used when None
    """

    type: EventType
    hidden: bool = False
    key: Optional[str] = None
    ctrl_key: bool = False
    meta_key: bool = False
    timestamp: Optional[int] = None
    default_prevented: bool = field(default=False, init=False)

    def prevent_default(self) -> None:
        self.default_prevented = True


Handler = Callable[[EnvironmentEvent], None]

# (kind, details, timestamp) -> whether a violation was recorded
ViolationSink = Callable[[ViolationKind, Optional[str], Optional[int]], bool]


class SignalUnavailableError(Exception):
    """Raised by a source that cannot deliver an event category."""


class SignalSource(ABC):
    """Capability interface over the host environment's event system."""

    @abstractmethod
    def add_listener(self, event_type: EventType, handler: Handler) -> None:
        """
        Subscribe `handler` to `event_type`.

        Raises:
            SignalUnavailableError: If the environment cannot deliver it
        """

    @abstractmethod
    def remove_listener(self, event_type: EventType, handler: Handler) -> None:
        ...


class SyntheticSignalSource(SignalSource):
    """
    In-process event source.

    Serves as the test double and as the headless harness behind the
    HTTP API: events are pushed in with dispatch() and delivered to
    every registered handler in registration order.
    """

    def __init__(self, unsupported: Iterable[EventType] = ()):
        self.unsupported = frozenset(unsupported)
        self._handlers: Dict[EventType, List[Handler]] = {}

    def add_listener(self, event_type: EventType, handler: Handler) -> None:
        if event_type in self.unsupported:
            raise SignalUnavailableError(f"{event_type.value} is not supported")
        self._handlers.setdefault(event_type, []).append(handler)

    def remove_listener(self, event_type: EventType, handler: Handler) -> None:
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def dispatch(self, event: EnvironmentEvent) -> EnvironmentEvent:
        """Deliver an event to its listeners and return it."""
        for handler in list(self._handlers.get(event.type, [])):
            handler(event)
        return event

    def listener_count(self, event_type: Optional[EventType] = None) -> int:
        if event_type is not None:
            return len(self._handlers.get(event_type, []))
        return sum(len(handlers) for handlers in self._handlers.values())


class SignalCollector:
    """
    Bridges environment events to the session's violation sink.

    All six handlers are installed by register() and removed by
    unregister(). Each handler checks `is_active` before doing
    anything, so a stale delivery after stop records nothing.
    """

    def __init__(
        self,
        source: SignalSource,
        sink: ViolationSink,
        is_active: Callable[[], bool],
        session_id: str = "-"
    ):
        self.source = source
        self._sink = sink
        self._is_active = is_active
        self._session_id = session_id
        self._registered: List[Tuple[EventType, Handler]] = []
        self._is_registered = False

    @property
    def is_registered(self) -> bool:
        return self._is_registered

    @property
    def registered_types(self) -> List[EventType]:
        return [event_type for event_type, _ in self._registered]

    def register(self) -> None:
        """
        Install all handlers.

        Categories the source cannot deliver, or fails to attach, are
        skipped with a warning.

        Raises:
            RuntimeError: If handlers are already installed
        """
        if self._is_registered:
            raise RuntimeError("Signal handlers are already registered")
        self._is_registered = True

        handlers = {
            EventType.VISIBILITY_CHANGE: self._on_visibility_change,
            EventType.BLUR: self._on_blur,
            EventType.CONTEXT_MENU: self._on_context_menu,
            EventType.COPY: self._on_copy,
            EventType.PASTE: self._on_paste,
            EventType.KEYDOWN: self._on_keydown,
        }
        for event_type, handler in handlers.items():
            try:
                self.source.add_listener(event_type, handler)
            except SignalUnavailableError as e:
                log_signal_unavailable(self._session_id, event_type.value, str(e))
                continue
            except Exception as e:
                logger.error(f"Failed to attach {event_type.value} handler: {e}", exc_info=True)
                log_signal_unavailable(self._session_id, event_type.value, str(e))
                continue
            self._registered.append((event_type, handler))

    def unregister(self) -> None:
        """Remove every installed handler. Safe to call repeatedly."""
        while self._registered:
            event_type, handler = self._registered.pop()
            self.source.remove_listener(event_type, handler)
        self._is_registered = False

    # ============== Handlers ==============

    def _on_visibility_change(self, event: EnvironmentEvent):
        if event.hidden and self._is_active():
            self._sink(ViolationKind.TAB_SWITCH, DEFAULT_DETAILS[ViolationKind.TAB_SWITCH], event.timestamp)

    def _on_blur(self, event: EnvironmentEvent):
        if self._is_active():
            self._sink(ViolationKind.WINDOW_BLUR, DEFAULT_DETAILS[ViolationKind.WINDOW_BLUR], event.timestamp)

    def _on_context_menu(self, event: EnvironmentEvent):
        if self._is_active():
            event.prevent_default()
            self._sink(ViolationKind.RIGHT_CLICK, DEFAULT_DETAILS[ViolationKind.RIGHT_CLICK], event.timestamp)

    def _on_copy(self, event: EnvironmentEvent):
        if self._is_active():
            event.prevent_default()
            self._sink(ViolationKind.COPY_PASTE, "Copy attempted", event.timestamp)

    def _on_paste(self, event: EnvironmentEvent):
        if self._is_active():
            event.prevent_default()
            self._sink(ViolationKind.COPY_PASTE, "Paste attempted", event.timestamp)

    def _on_keydown(self, event: EnvironmentEvent):
        if not self._is_active() or not (event.ctrl_key or event.meta_key):
            return
        key = (event.key or "").lower()
        if key in SHORTCUT_KEYS:
            event.prevent_default()
            self._sink(
                ViolationKind.COPY_PASTE,
                f"Keyboard shortcut Ctrl+{key.upper()} attempted",
                event.timestamp
            )
