"""
Pytest Configuration for quizguard Tests
"""
import pytest
from fastapi.testclient import TestClient

from quizguard.proctor.scheduling import ManualScheduler
from quizguard.proctor.session import MonitoringSession
from quizguard.proctor.signals import EnvironmentEvent, SyntheticSignalSource

# 2023-11-14T22:13:20Z
T0 = 1_700_000_000_000


@pytest.fixture
def scheduler():
    """Virtual clock starting at T0"""
    return ManualScheduler(start_ms=T0)


@pytest.fixture
def source():
    """Synthetic environment with every signal category available"""
    return SyntheticSignalSource()


@pytest.fixture
def session(source, scheduler):
    """Idle monitoring session on the synthetic source"""
    return MonitoringSession(source, clock=scheduler.now_ms, session_id="MON_TEST")


@pytest.fixture
def emit(source):
    """Dispatch a raw environment event into the synthetic source"""
    def _emit(event_type, **kwargs):
        return source.dispatch(EnvironmentEvent(type=event_type, **kwargs))
    return _emit


@pytest.fixture
def client():
    """FastAPI test client"""
    from quizguard.main import app
    return TestClient(app)
