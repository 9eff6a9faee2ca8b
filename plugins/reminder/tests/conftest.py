"""
tests/conftest.py

Shared fixtures for reminder plugin tests.
"""

from datetime import datetime, timedelta

import pytest

from lib.scheduler import TaskScheduler


class FakeClock:
    """Manually advanced wall clock."""

    def __init__(self, start):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    """Clock fixed at 19:00 local time."""
    return FakeClock(datetime(2024, 3, 1, 19, 0, 0))


@pytest.fixture
def scheduler(clock):
    return TaskScheduler(clock=clock)


@pytest.fixture
def stream_config():
    return {
        "name": "Stream",
        "repeat": "daily",
        "time": "20:00",
        "alert": [[1, "hours"], [30, "minutes"]],
    }
