"""
Tests for the Signal Collector and signal sources

Covers the six triggers, default-action suppression, registration
hygiene and degradation when a signal category is unavailable.
"""
import logging

import pytest
from unittest.mock import Mock

from quizguard.proctor.session import MonitoringSession
from quizguard.proctor.signals import (
    EnvironmentEvent,
    EventType,
    SignalCollector,
    SignalUnavailableError,
    SyntheticSignalSource,
)
from quizguard.proctor.violations import ViolationKind


class TestTriggers:
    """Each environment event maps to the right violation"""

    def test_visibility_hidden_records_tab_switch(self, session, emit):
        """Page hidden -> TabSwitch"""
        session.start()

        emit(EventType.VISIBILITY_CHANGE, hidden=True)

        (violation,) = session.violations
        assert violation.kind == ViolationKind.TAB_SWITCH
        assert violation.details == "User switched to another tab"

    def test_visibility_shown_is_ignored(self, session, emit):
        """Page becoming visible again records nothing"""
        session.start()

        emit(EventType.VISIBILITY_CHANGE, hidden=False)

        assert session.violations == ()

    def test_blur_records_window_blur(self, session, emit):
        """Focus loss -> WindowBlur"""
        session.start()

        event = emit(EventType.BLUR)

        assert [v.kind for v in session.violations] == [ViolationKind.WINDOW_BLUR]
        assert event.default_prevented is False

    def test_context_menu_is_suppressed(self, session, emit):
        """Right-click -> RightClick and default action prevented"""
        session.start()

        event = emit(EventType.CONTEXT_MENU)

        assert event.default_prevented is True
        assert [v.kind for v in session.violations] == [ViolationKind.RIGHT_CLICK]

    def test_copy_is_suppressed(self, session, emit):
        """Copy -> CopyPaste with copy details"""
        session.start()

        event = emit(EventType.COPY)

        assert event.default_prevented is True
        assert session.violations[0].details == "Copy attempted"

    def test_paste_is_suppressed(self, session, emit):
        """Paste -> CopyPaste with paste details"""
        session.start()

        event = emit(EventType.PASTE)

        assert event.default_prevented is True
        assert session.violations[0].kind == ViolationKind.COPY_PASTE
        assert session.violations[0].details == "Paste attempted"

    @pytest.mark.parametrize("key,ctrl,meta", [
        ("c", True, False),
        ("V", True, False),
        ("x", False, True),
        ("A", False, True),
    ])
    def test_shortcut_with_modifier_is_suppressed(self, session, emit, key, ctrl, meta):
        """Ctrl/Cmd + c/v/x/a, any case -> CopyPaste naming the key"""
        session.start()

        event = emit(EventType.KEYDOWN, key=key, ctrl_key=ctrl, meta_key=meta)

        assert event.default_prevented is True
        (violation,) = session.violations
        assert violation.kind == ViolationKind.COPY_PASTE
        assert violation.details == f"Keyboard shortcut Ctrl+{key.upper()} attempted"

    def test_shortcut_without_modifier_is_ignored(self, session, emit):
        """Plain 'c' is just typing"""
        session.start()

        event = emit(EventType.KEYDOWN, key="c")

        assert event.default_prevented is False
        assert session.violations == ()

    def test_other_shortcuts_are_ignored(self, session, emit):
        """Ctrl+Z is not a clipboard shortcut"""
        session.start()

        event = emit(EventType.KEYDOWN, key="z", ctrl_key=True)

        assert event.default_prevented is False
        assert session.violations == ()

    def test_event_timestamp_is_used(self, session, emit, scheduler):
        """An event's own timestamp wins over the session clock"""
        session.start()

        emit(EventType.BLUR, timestamp=scheduler.now_ms() + 750)

        assert session.violations[0].occurred_at == scheduler.now_ms() + 750

    def test_copy_and_shortcut_share_debounce(self, session, emit):
        """Copy event and Ctrl+C in one gesture record a single CopyPaste"""
        session.start()

        emit(EventType.KEYDOWN, key="c", ctrl_key=True)
        copy_event = emit(EventType.COPY)

        assert len(session.violations) == 1
        assert copy_event.default_prevented is True


class TestRegistration:
    """Handlers are installed and removed as a unit"""

    def test_start_registers_six_handlers(self, session, source):
        """One handler per event category"""
        session.start()

        assert source.listener_count() == 6
        for event_type in EventType:
            assert source.listener_count(event_type) == 1

    def test_stop_removes_all_handlers(self, session, source):
        """Nothing is left attached after stop"""
        session.start()
        session.stop()

        assert source.listener_count() == 0

    def test_restart_does_not_leak_handlers(self, session, source):
        """Start/stop cycles never accumulate handlers"""
        for _ in range(3):
            session.start()
            session.stop()
        session.start()

        assert source.listener_count() == 6

    def test_register_twice_raises(self, source):
        """Double registration is a defect"""
        collector = SignalCollector(source, sink=Mock(), is_active=lambda: True)
        collector.register()

        with pytest.raises(RuntimeError):
            collector.register()

        assert source.listener_count() == 6

    def test_unregister_is_idempotent(self, source):
        """Unregistering repeatedly is safe"""
        collector = SignalCollector(source, sink=Mock(), is_active=lambda: True)
        collector.register()

        collector.unregister()
        collector.unregister()

        assert source.listener_count() == 0
        assert collector.is_registered is False

    def test_inactive_gate_blocks_delivery(self, source):
        """Handlers do nothing while the session is inactive"""
        sink = Mock()
        collector = SignalCollector(source, sink=sink, is_active=lambda: False)
        collector.register()

        event = source.dispatch(EnvironmentEvent(type=EventType.CONTEXT_MENU))

        sink.assert_not_called()
        assert event.default_prevented is False

    def test_sessions_on_separate_sources_are_isolated(self, scheduler):
        """Two sessions never see each other's events"""
        source_a, source_b = SyntheticSignalSource(), SyntheticSignalSource()
        session_a = MonitoringSession(source_a, clock=scheduler.now_ms)
        session_b = MonitoringSession(source_b, clock=scheduler.now_ms)
        session_a.start()
        session_b.start()

        source_a.dispatch(EnvironmentEvent(type=EventType.BLUR))

        assert len(session_a.violations) == 1
        assert session_b.violations == ()


class TestUnavailableSignals:
    """Monitoring degrades instead of failing"""

    def test_unsupported_category_is_skipped(self, scheduler):
        """A source without visibility support still monitors the rest"""
        source = SyntheticSignalSource(unsupported=[EventType.VISIBILITY_CHANGE])
        session = MonitoringSession(source, clock=scheduler.now_ms)

        session.start()
        source.dispatch(EnvironmentEvent(type=EventType.VISIBILITY_CHANGE, hidden=True))
        source.dispatch(EnvironmentEvent(type=EventType.BLUR))

        assert session.is_active
        assert source.listener_count() == 5
        assert [v.kind for v in session.violations] == [ViolationKind.WINDOW_BLUR]

    def test_unsupported_category_is_logged(self, scheduler, caplog):
        """Skipped categories are reported as warnings"""
        source = SyntheticSignalSource(unsupported=[EventType.COPY, EventType.PASTE])
        session = MonitoringSession(source, clock=scheduler.now_ms, session_id="MON_DEGRADED")

        with caplog.at_level(logging.WARNING):
            session.start()

        messages = [r.getMessage() for r in caplog.records if "signal_unavailable" in r.getMessage()]
        assert len(messages) == 2
        assert all("session=MON_DEGRADED" in m for m in messages)

    def test_source_raises_for_unsupported(self):
        """The synthetic source reports unsupported categories"""
        source = SyntheticSignalSource(unsupported=[EventType.KEYDOWN])

        with pytest.raises(SignalUnavailableError):
            source.add_listener(EventType.KEYDOWN, Mock())

    def test_stop_after_degraded_start(self, scheduler):
        """Only installed handlers are removed"""
        source = SyntheticSignalSource(unsupported=[EventType.BLUR])
        session = MonitoringSession(source, clock=scheduler.now_ms)
        session.start()

        session.stop()

        assert source.listener_count() == 0

    def test_source_failure_does_not_block_start(self, scheduler, caplog):
        """An unexpected error attaching one handler degrades that category only"""
        class BrokenBlurSource(SyntheticSignalSource):
            def add_listener(self, event_type, handler):
                if event_type == EventType.BLUR:
                    raise OSError("focus events unavailable")
                super().add_listener(event_type, handler)

        source = BrokenBlurSource()
        session = MonitoringSession(source, clock=scheduler.now_ms)

        with caplog.at_level(logging.WARNING):
            session.start()
        source.dispatch(EnvironmentEvent(type=EventType.CONTEXT_MENU))

        assert session.is_active
        assert source.listener_count() == 5
        assert source.listener_count(EventType.BLUR) == 0
        assert [v.kind for v in session.violations] == [ViolationKind.RIGHT_CLICK]
        assert any("signal_unavailable" in r.getMessage() for r in caplog.records)
