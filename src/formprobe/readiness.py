"""
Readiness gate for the site under test.

Deployments behind a cold-starting container can take tens of seconds to
answer their first request. ``wait_for_ready`` polls a URL until it answers
with a 2xx status, treating every non-2xx status and every failed request
(a refused connection or a redirect loop) as "not ready yet", and fails
hard once the timeout window closes.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Optional

import httpx

from .exceptions import ReadinessTimeoutError
from .polling import (
    Clock,
    Deadline,
    LoggingPollObserver,
    PollObserver,
    Sleep,
    ms_to_seconds,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 40000
DEFAULT_INTERVAL_MS = 500

# Upper bound for a single probe, in seconds
DEFAULT_REQUEST_TIMEOUT = 10.0

# Lower bound so the final probe is not issued with a zero timeout
MIN_REQUEST_TIMEOUT = 0.05


@dataclass(frozen=True)
class ReadinessQuery:
    """A single readiness wait: what to probe and for how long."""

    target_url: str
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    interval_ms: int = DEFAULT_INTERVAL_MS

    def __post_init__(self) -> None:
        if not self.target_url:
            raise ValueError("target_url must not be empty")
        if self.timeout_ms <= 0:
            raise ValueError("timeout_ms must be positive")
        if self.interval_ms <= 0:
            raise ValueError("interval_ms must be positive")
        if self.interval_ms >= self.timeout_ms:
            raise ValueError("interval_ms must be smaller than timeout_ms")


def resolve_target(base_url: str, path: str = "/") -> str:
    """Join a site base URL and a path."""
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


async def _probe(
    client: httpx.AsyncClient, url: str, timeout: float
) -> tuple[bool, str]:
    """
    Issue one GET and classify the outcome.

    Returns:
        Tuple of (ready, description of the outcome).
    """
    try:
        response = await client.get(url, timeout=timeout)
    except httpx.RequestError as e:
        return False, f"{type(e).__name__}: {e}"

    if response.is_success:
        return True, f"HTTP {response.status_code}"
    return False, f"HTTP {response.status_code}"


async def _poll(
    query: ReadinessQuery,
    client: httpx.AsyncClient,
    observer: PollObserver,
    clock: Clock,
    sleep: Sleep,
    request_timeout: float,
) -> None:
    name = f"readiness {query.target_url}"
    deadline = Deadline(ms_to_seconds(query.timeout_ms), clock)
    interval = ms_to_seconds(query.interval_ms)
    attempt = 0
    outcome: Optional[str] = None

    while True:
        attempt += 1
        observer.on_attempt(name, attempt, deadline.elapsed_ms)

        probe_timeout = min(
            request_timeout, max(deadline.remaining, MIN_REQUEST_TIMEOUT)
        )
        ready, outcome = await _probe(client, query.target_url, probe_timeout)
        if ready:
            observer.on_success(name, attempt, deadline.elapsed_ms)
            return

        observer.on_miss(name, attempt, outcome)
        await sleep(interval)
        if deadline.expired:
            break

    observer.on_timeout(name, attempt, deadline.elapsed_ms)
    raise ReadinessTimeoutError(
        target_url=query.target_url,
        elapsed_ms=deadline.elapsed_ms,
        attempts=attempt,
        last_error=outcome,
    )


async def wait_for_ready(
    target_url: str,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
    interval_ms: int = DEFAULT_INTERVAL_MS,
    *,
    client: Optional[httpx.AsyncClient] = None,
    observer: Optional[PollObserver] = None,
    clock: Clock = time.monotonic,
    sleep: Sleep = asyncio.sleep,
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
) -> None:
    """
    Poll ``target_url`` until it answers with a 2xx status.

    Args:
        target_url: URL to probe with GET requests.
        timeout_ms: Length of the timeout window in milliseconds.
        interval_ms: Fixed pause between probes in milliseconds.
        client: HTTP client to use. A short-lived client is created when omitted.
        observer: Receives attempt/miss/success/timeout events.
        clock: Monotonic clock in seconds.
        sleep: Coroutine used to pause between probes.
        request_timeout: Upper bound for a single probe, in seconds.

    Raises:
        ReadinessTimeoutError: If the target is not ready when the window closes.
        ValueError: If the timing parameters are inconsistent.
    """
    query = ReadinessQuery(target_url, timeout_ms, interval_ms)
    observer = observer or LoggingPollObserver(logger)

    if client is not None:
        await _poll(query, client, observer, clock, sleep, request_timeout)
        return

    async with httpx.AsyncClient(follow_redirects=True) as owned_client:
        await _poll(query, owned_client, observer, clock, sleep, request_timeout)


class ReadinessPoller:
    """
    Reusable readiness gate bound to one query.

    Used by the test harness to gate every scenario on the same target
    without rebuilding the query each time.
    """

    def __init__(
        self,
        query: ReadinessQuery,
        client: Optional[httpx.AsyncClient] = None,
        observer: Optional[PollObserver] = None,
    ):
        self.query = query
        self.client = client
        self.observer = observer

    @classmethod
    def for_site(
        cls,
        base_url: str,
        path: str = "/",
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        interval_ms: int = DEFAULT_INTERVAL_MS,
        **kwargs,
    ) -> "ReadinessPoller":
        """Build a poller for a path on a site."""
        query = ReadinessQuery(resolve_target(base_url, path), timeout_ms, interval_ms)
        return cls(query, **kwargs)

    async def wait(self) -> None:
        """Block until the target is ready, or raise ReadinessTimeoutError."""
        await wait_for_ready(
            self.query.target_url,
            self.query.timeout_ms,
            self.query.interval_ms,
            client=self.client,
            observer=self.observer,
        )
