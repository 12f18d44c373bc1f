"""
Shared primitives for bounded polling loops.

Both the readiness gate and the mailbox verifier run the same shape of
loop: attempt, sleep a fixed step, check the deadline, repeat. The mailbox
verifier cuts its last sleep short at the deadline. This module holds the
pieces they share: a deadline measured against an injectable monotonic
clock, and observer hooks that report progress without tying the loops to
a logging sink.
"""

import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[None]]


@dataclass
class Deadline:
    """A timeout window starting at construction, measured in seconds."""

    timeout: float
    clock: Clock = time.monotonic

    def __post_init__(self) -> None:
        self.started = self.clock()

    @property
    def elapsed(self) -> float:
        """Seconds since the window opened."""
        return self.clock() - self.started

    @property
    def elapsed_ms(self) -> float:
        return self.elapsed * 1000.0

    @property
    def remaining(self) -> float:
        """Seconds left in the window, never negative."""
        return max(0.0, self.timeout - self.elapsed)

    @property
    def expired(self) -> bool:
        return self.elapsed >= self.timeout


class PollObserver:
    """
    Hooks called by polling loops.

    Subclass and override the hooks you care about; the base class ignores
    every event.
    """

    def on_attempt(self, name: str, attempt: int, elapsed_ms: float) -> None:
        """Called before each attempt."""

    def on_miss(self, name: str, attempt: int, reason: str) -> None:
        """Called when an attempt did not succeed."""

    def on_success(self, name: str, attempt: int, elapsed_ms: float) -> None:
        """Called once when the loop succeeds."""

    def on_timeout(self, name: str, attempts: int, elapsed_ms: float) -> None:
        """Called once when the timeout window closes without success."""


class LoggingPollObserver(PollObserver):
    """Default observer writing poll progress to a logger."""

    def __init__(self, log: Optional[logging.Logger] = None):
        self.log = log or logger

    def on_attempt(self, name: str, attempt: int, elapsed_ms: float) -> None:
        self.log.debug("%s: attempt %d at %.0fms", name, attempt, elapsed_ms)

    def on_miss(self, name: str, attempt: int, reason: str) -> None:
        self.log.debug("%s: attempt %d not successful: %s", name, attempt, reason)

    def on_success(self, name: str, attempt: int, elapsed_ms: float) -> None:
        self.log.info(
            "%s: succeeded on attempt %d after %.0fms", name, attempt, elapsed_ms
        )

    def on_timeout(self, name: str, attempts: int, elapsed_ms: float) -> None:
        self.log.warning(
            "%s: gave up after %d attempts in %.0fms", name, attempts, elapsed_ms
        )


class RecordingPollObserver(PollObserver):
    """Observer that keeps every event in memory, in order."""

    def __init__(self):
        self.events: list[tuple] = []

    def on_attempt(self, name: str, attempt: int, elapsed_ms: float) -> None:
        self.events.append(("attempt", name, attempt))

    def on_miss(self, name: str, attempt: int, reason: str) -> None:
        self.events.append(("miss", name, attempt, reason))

    def on_success(self, name: str, attempt: int, elapsed_ms: float) -> None:
        self.events.append(("success", name, attempt))

    def on_timeout(self, name: str, attempts: int, elapsed_ms: float) -> None:
        self.events.append(("timeout", name, attempts))

    def count(self, kind: str) -> int:
        """Number of recorded events of the given kind."""
        return sum(1 for event in self.events if event[0] == kind)


def ms_to_seconds(value_ms: float) -> float:
    return value_ms / 1000.0
