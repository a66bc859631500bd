"""
Tests for service logging setup
"""
import logging

import pytest

from quizguard.proctor.utils.logging import log_proctor_event
from quizguard.utils import ProctorEventFilter, setup_logging


@pytest.fixture
def restore_root_logger():
    """Put the root logger back the way pytest configured it"""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


class TestSetupLogging:
    """Root logger configuration"""

    def test_console_only(self, restore_root_logger, tmp_path):
        """Default setup writes no files"""
        setup_logging(level="DEBUG", log_dir=str(tmp_path))

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert list(tmp_path.iterdir()) == []

    def test_repeated_setup_does_not_stack_handlers(self, restore_root_logger):
        """Handlers are replaced on each call"""
        setup_logging()
        setup_logging()

        assert len(logging.getLogger().handlers) == 1

    def test_audit_file_keeps_only_monitoring_events(self, restore_root_logger, tmp_path):
        """The audit file receives [PROCTOR] lines and nothing else"""
        setup_logging(
            service_name="qg",
            log_to_file=True,
            log_to_console=False,
            log_dir=str(tmp_path)
        )

        log_proctor_event("MON_LOG", "violation", {"type": "tab-switch"})
        logging.getLogger("quizguard.other").info("unrelated message")
        logging.getLogger("quizguard.other").error("something failed")
        for handler in logging.getLogger().handlers:
            handler.flush()

        audit = (tmp_path / "qg_audit.log").read_text(encoding="utf-8")
        errors = (tmp_path / "qg_errors.log").read_text(encoding="utf-8")
        assert "[PROCTOR] session=MON_LOG event=violation type=tab-switch" in audit
        assert "unrelated message" not in audit
        assert "something failed" in errors
        assert "unrelated message" not in errors


class TestProctorEventFilter:
    """Audit filter"""

    def test_filter(self):
        """Only [PROCTOR]-prefixed messages pass"""
        event_filter = ProctorEventFilter()

        def record(msg):
            return logging.LogRecord("x", logging.INFO, __file__, 1, msg, None, None)

        assert event_filter.filter(record("[PROCTOR] session=A event=session_start"))
        assert not event_filter.filter(record("GET /health -> 200"))
