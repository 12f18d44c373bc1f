"""Tests for the readiness gate."""

import time

import httpx
import pytest

from formprobe.exceptions import ReadinessError, ReadinessTimeoutError
from formprobe.readiness import (
    ReadinessPoller,
    ReadinessQuery,
    resolve_target,
    wait_for_ready,
)

TARGET = "http://web:5000/"


class ScriptedTarget:
    """MockTransport handler answering from a script of statuses or exceptions."""

    def __init__(self, script, default=200):
        self.script = list(script)
        self.default = default
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        outcome = self.script.pop(0) if self.script else self.default
        if isinstance(outcome, type) and issubclass(outcome, Exception):
            raise outcome("scripted failure", request=request)
        return httpx.Response(outcome)

    @property
    def attempts(self) -> int:
        return len(self.requests)


def client_for(target: ScriptedTarget) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(target))


# =============================================================================
# ReadinessQuery
# =============================================================================

class TestReadinessQuery:
    """Validation of readiness parameters."""

    def test_defaults(self):
        query = ReadinessQuery(TARGET)
        assert query.timeout_ms == 40000
        assert query.interval_ms == 500

    @pytest.mark.parametrize(
        "timeout_ms, interval_ms",
        [(0, 100), (-1, 100), (1000, 0), (1000, -5), (1000, 1000), (500, 1000)],
    )
    def test_rejects_inconsistent_timing(self, timeout_ms, interval_ms):
        with pytest.raises(ValueError):
            ReadinessQuery(TARGET, timeout_ms, interval_ms)

    def test_rejects_empty_target(self):
        with pytest.raises(ValueError):
            ReadinessQuery("")


def test_resolve_target_joins_base_and_path():
    assert resolve_target("https://dohertyalex.cc/", "/projects") == "https://dohertyalex.cc/projects"
    assert resolve_target("http://web:5000", "/") == "http://web:5000/"


# =============================================================================
# wait_for_ready
# =============================================================================

class TestWaitForReady:
    """Polling behaviour against scripted targets."""

    @pytest.mark.asyncio
    async def test_ready_on_first_attempt(self, clock, observer):
        target = ScriptedTarget([200])
        async with client_for(target) as client:
            await wait_for_ready(
                TARGET, client=client, observer=observer,
                clock=clock, sleep=clock.sleep,
            )

        assert target.attempts == 1
        assert clock.sleeps == []
        assert observer.count("success") == 1

    @pytest.mark.asyncio
    async def test_resolves_on_first_success_after_failures(self, clock, observer):
        target = ScriptedTarget([503, 502, 404, 204, 200])
        async with client_for(target) as client:
            await wait_for_ready(
                TARGET, 10000, 250, client=client, observer=observer,
                clock=clock, sleep=clock.sleep,
            )

        # 204 is already a success status
        assert target.attempts == 4
        assert clock.sleeps == [0.25, 0.25, 0.25]
        assert observer.count("miss") == 3
        assert observer.count("timeout") == 0

    @pytest.mark.asyncio
    async def test_transport_errors_are_retried(self, clock):
        target = ScriptedTarget([httpx.ConnectError, httpx.ReadTimeout, 200])
        async with client_for(target) as client:
            await wait_for_ready(
                TARGET, 5000, 500, client=client, clock=clock, sleep=clock.sleep,
            )

        assert target.attempts == 3

    @pytest.mark.asyncio
    async def test_times_out_when_never_ready(self, clock, observer):
        target = ScriptedTarget([], default=503)
        async with client_for(target) as client:
            with pytest.raises(ReadinessTimeoutError) as exc_info:
                await wait_for_ready(
                    TARGET, 1000, 300, client=client, observer=observer,
                    clock=clock, sleep=clock.sleep,
                )

        error = exc_info.value
        assert error.target_url == TARGET
        assert error.attempts == target.attempts
        assert 1000 <= error.elapsed_ms <= 1000 + 300
        assert error.last_error == "HTTP 503"
        assert TARGET in str(error)
        assert observer.count("timeout") == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "timeout_ms, interval_ms",
        [(40000, 500), (1000, 300), (1000, 500), (700, 100), (1500, 1400)],
    )
    async def test_attempt_count_when_never_ready(self, clock, timeout_ms, interval_ms):
        target = ScriptedTarget([], default=503)
        async with client_for(target) as client:
            with pytest.raises(ReadinessTimeoutError):
                await wait_for_ready(
                    TARGET, timeout_ms, interval_ms, client=client,
                    clock=clock, sleep=clock.sleep,
                )

        expected = timeout_ms // interval_ms
        assert expected - 1 <= target.attempts <= expected + 1
        assert all(pause == interval_ms / 1000 for pause in clock.sleeps)

    @pytest.mark.asyncio
    async def test_transport_error_surfaces_as_timeout(self, clock):
        target = ScriptedTarget([], default=httpx.ConnectError)
        async with client_for(target) as client:
            with pytest.raises(ReadinessTimeoutError) as exc_info:
                await wait_for_ready(
                    TARGET, 2000, 500, client=client, clock=clock, sleep=clock.sleep,
                )

        assert "ConnectError" in exc_info.value.last_error
        assert isinstance(exc_info.value, ReadinessError)

    @pytest.mark.asyncio
    async def test_redirect_loop_surfaces_as_timeout(self, clock, observer):
        def redirect_to_self(request: httpx.Request) -> httpx.Response:
            return httpx.Response(302, headers={"Location": str(request.url)})

        transport = httpx.MockTransport(redirect_to_self)
        async with httpx.AsyncClient(transport=transport, follow_redirects=True) as client:
            with pytest.raises(ReadinessTimeoutError) as exc_info:
                await wait_for_ready(
                    TARGET, 1000, 100, client=client, observer=observer,
                    clock=clock, sleep=clock.sleep,
                )

        assert "TooManyRedirects" in exc_info.value.last_error
        assert observer.count("miss") == exc_info.value.attempts

    @pytest.mark.asyncio
    async def test_caller_client_is_left_open(self, clock):
        target = ScriptedTarget([200])
        client = client_for(target)
        await wait_for_ready(TARGET, client=client, clock=clock, sleep=clock.sleep)

        assert not client.is_closed
        await client.aclose()

    @pytest.mark.asyncio
    async def test_cold_start_with_real_timing(self):
        target = ScriptedTarget([503] * 5, default=200)
        started = time.monotonic()
        async with client_for(target) as client:
            await wait_for_ready(TARGET, 5000, 100, client=client)
        elapsed = time.monotonic() - started

        assert target.attempts == 6
        assert elapsed < 0.7


# =============================================================================
# ReadinessPoller
# =============================================================================

class TestReadinessPoller:
    """The reusable gate used by the E2E harness."""

    def test_for_site_builds_query(self):
        poller = ReadinessPoller.for_site("https://dohertyalex.cc", "/", 20000, 250)
        assert poller.query == ReadinessQuery("https://dohertyalex.cc/", 20000, 250)

    @pytest.mark.asyncio
    async def test_wait_uses_bound_client(self, observer):
        target = ScriptedTarget([200])
        async with client_for(target) as client:
            poller = ReadinessPoller.for_site(
                "http://web:5000", client=client, observer=observer
            )
            await poller.wait()
            await poller.wait()

        # Each wait is independent
        assert target.attempts == 2
        assert observer.count("success") == 2
        assert str(target.requests[0].url) == "http://web:5000/"
