"""Shared pytest fixtures for stint tests."""

import logging

import pytest
from fakes import FakeClock, MemoryStore, RecordingFeedback, RecordingScheduler

from stint.core.controller import SessionController


@pytest.fixture(autouse=True)
def reset_stint_logging():
    """Drop handlers the CLI installs so they don't outlive CliRunner's streams."""
    yield
    logger = logging.getLogger("stint")
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def scheduler():
    return RecordingScheduler()


@pytest.fixture
def feedback():
    return RecordingFeedback()


@pytest.fixture
def make_controller(store, scheduler, clock, feedback):
    """Build a controller over the shared fakes, as a cold start would."""

    def make(**kwargs) -> SessionController:
        kwargs.setdefault("clock", clock)
        kwargs.setdefault("feedback", feedback)
        return SessionController.open(store, scheduler, **kwargs)

    return make


@pytest.fixture
def mock_stint_base(tmp_path, monkeypatch):
    """Point STINT_HOME at tmp_path for test isolation.

    This ensures tests don't write to the real ~/.stint/ directory. The
    configured scheduler is replaced with a RecordingScheduler so no
    background notification processes are spawned.
    """
    monkeypatch.setenv("STINT_HOME", str(tmp_path))
    recorder = RecordingScheduler()
    monkeypatch.setattr("stint.core.runtime.get_scheduler", lambda: recorder)
    return tmp_path


@pytest.fixture
def cli_clock(monkeypatch):
    """Make controllers built by the CLI use a shared FakeClock."""
    fake = FakeClock()
    monkeypatch.setattr("stint.core.controller.SystemClock", lambda: fake)
    return fake
