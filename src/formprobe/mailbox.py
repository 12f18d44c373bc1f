"""
Mailbox verification.

Confirms that an action taken in the browser produced an email by polling
a mail-search capability until a matching message shows up or the timeout
window closes. A clean timeout is a legitimate negative result and yields
``None``; anything else the search capability raises is fatal and is not
retried.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from .credentials import Credential
from .decoding import decode_payload
from .polling import (
    Clock,
    Deadline,
    LoggingPollObserver,
    PollObserver,
    Sleep,
    ms_to_seconds,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 15000
DEFAULT_STEP_MS = 1500


class SelectionPolicy(str, Enum):
    """Which message to return when the search reports several."""

    # Whatever the search API lists first (Gmail lists newest first)
    FIRST_RETURNED = "first_returned"
    MOST_RECENT = "most_recent"


@dataclass(frozen=True)
class MailMessage:
    """A message reported by the mail-search capability."""

    id: str
    encoded_body: str
    thread_id: Optional[str] = None
    subject: Optional[str] = None
    # Epoch milliseconds, as reported by the mail API
    internal_date: Optional[int] = None

    def decoded_body(self) -> str:
        """Decode the transport-safe body. Raises MalformedPayloadError."""
        return decode_payload(self.encoded_body)


@dataclass(frozen=True)
class MailSearchQuery:
    """A single mailbox wait: who asks, what to search for and for how long."""

    credential: Credential
    query: str
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    step_ms: int = DEFAULT_STEP_MS
    selection: SelectionPolicy = SelectionPolicy.FIRST_RETURNED

    def __post_init__(self) -> None:
        if not self.query.strip():
            raise ValueError("query must not be empty")
        if self.timeout_ms <= 0:
            raise ValueError("timeout_ms must be positive")
        if self.step_ms <= 0:
            raise ValueError("step_ms must be positive")
        if self.step_ms >= self.timeout_ms:
            raise ValueError("step_ms must be smaller than timeout_ms")


class MailSearch(ABC):
    """A read-only mail-search capability."""

    @abstractmethod
    async def search(
        self, credential: Credential, query: str
    ) -> Sequence[MailMessage]:
        """
        Run one search.

        Returns:
            Matching messages in the capability's own order. An empty
            sequence means "no match yet".

        Raises:
            MailSearchError: For any failure other than "no match".
        """


def select_message(
    messages: Sequence[MailMessage], policy: SelectionPolicy
) -> MailMessage:
    """Pick one message from a non-empty search result."""
    if policy is SelectionPolicy.MOST_RECENT:
        dated = [m for m in messages if m.internal_date is not None]
        if dated:
            # max() keeps the first of equal dates, so ties follow API order
            return max(dated, key=lambda m: m.internal_date)
    return messages[0]


def build_query(
    sender: Optional[str] = None, subject: Optional[str] = None
) -> str:
    """Build a search expression filtering on sender and subject."""
    terms = []
    if sender:
        terms.append(f"from:{sender}")
    if subject:
        terms.append(f"subject:{subject}")
    if not terms:
        raise ValueError("At least one of sender or subject is required")
    return " ".join(terms)


async def await_matching_message(
    query: MailSearchQuery,
    search: MailSearch,
    *,
    observer: Optional[PollObserver] = None,
    clock: Clock = time.monotonic,
    sleep: Sleep = asyncio.sleep,
) -> Optional[MailMessage]:
    """
    Poll ``search`` until it reports a match for ``query``.

    Args:
        query: Credential, search expression, timeout window and step.
        search: The mail-search capability.
        observer: Receives attempt/miss/success/timeout events.
        clock: Monotonic clock in seconds.
        sleep: Coroutine used to pause between searches.

    Returns:
        The selected matching message, or None if nothing matched before
        the window closed.

    Raises:
        MailSearchError: Propagated from the search capability unchanged.
    """
    observer = observer or LoggingPollObserver(logger)
    name = f"mailbox '{query.query}'"
    deadline = Deadline(ms_to_seconds(query.timeout_ms), clock)
    step = ms_to_seconds(query.step_ms)
    attempt = 0

    while True:
        attempt += 1
        observer.on_attempt(name, attempt, deadline.elapsed_ms)

        messages = await search.search(query.credential, query.query)
        if messages:
            observer.on_success(name, attempt, deadline.elapsed_ms)
            return select_message(messages, query.selection)

        observer.on_miss(name, attempt, "no match")
        remaining = deadline.remaining
        if remaining <= step:
            # The last pause ends at the deadline, not past it
            if remaining > 0:
                await sleep(remaining)
            break
        await sleep(step)

    observer.on_timeout(name, attempt, deadline.elapsed_ms)
    return None


class MailboxVerifier:
    """Mailbox waits bound to one search capability."""

    def __init__(self, search: MailSearch,
                 observer: Optional[PollObserver] = None):
        self.search = search
        self.observer = observer

    async def await_message(self, query: MailSearchQuery) -> Optional[MailMessage]:
        """Wait for a message matching ``query``; None when nothing arrives."""
        return await await_matching_message(
            query, self.search, observer=self.observer
        )
