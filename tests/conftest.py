"""
Pytest fixtures for formprobe tests.

This module provides common fixtures used across test modules.
"""

import os
import sys

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from formprobe.credentials import Credential  # noqa: E402
from formprobe.polling import RecordingPollObserver  # noqa: E402


class FakeClock:
    """Monotonic clock that only moves when the fake sleep is awaited."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    """Provide a FakeClock instance."""
    return FakeClock()


@pytest.fixture
def observer():
    """Provide an observer that records poll events."""
    return RecordingPollObserver()


@pytest.fixture
def credential():
    """Provide a mailbox credential for tests."""
    return Credential("ya29.test-access-token")
