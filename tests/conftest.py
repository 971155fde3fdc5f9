"""Pytest fixtures for resilient_ui tests."""

import pytest

from resilient_ui.config import TimeoutConfig
from resilient_ui.events import RecordingObserver

from tests.fakes import FakeBrowser, FakeClock


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def browser(clock) -> FakeBrowser:
    return FakeBrowser(clock)


@pytest.fixture
def timeouts() -> TimeoutConfig:
    return TimeoutConfig(
        default_timeout=6,
        short_timeout=2,
        open_page_timeout=3,
        close_dialog_timeout=3,
        pause_ms=100,
        purge_alerts=False,
    )


@pytest.fixture
def observer() -> RecordingObserver:
    return RecordingObserver()
