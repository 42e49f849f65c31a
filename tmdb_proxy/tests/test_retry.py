import asyncio

import httpx
import pytest

from tmdb_proxy.core.exceptions import NetworkError, RetryExhaustedError, UpstreamError
from tmdb_proxy.models.upstream import UpstreamRequest, UpstreamResult
from tmdb_proxy.services.retry import RetryController, RetryPolicy, RetryState


class ScriptedUpstream:
    """Replays a list of results/exceptions, one per call."""

    def __init__(self, script):
        self.script = list(script)
        self.requests = []

    async def send(self, upstream_request: UpstreamRequest) -> UpstreamResult:
        self.requests.append(upstream_request)
        step = self.script.pop(0)
        if isinstance(step, Exception):
            raise step
        return step


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def build_request(attempt: int, timeout: float) -> UpstreamRequest:
    return UpstreamRequest(method="GET", url="https://image.tmdb.org/t/p/w500/a.jpg", timeout=timeout)


def ok(body=b"img"):
    return UpstreamResult(status_code=200, headers=[("content-type", "image/jpeg")], content=body)


def status(code, body=b"upstream detail"):
    return UpstreamResult(status_code=code, content=body)


def network_error():
    return NetworkError(httpx.ConnectTimeout("timed out"))


class TestRetryPolicy:
    def test_exponential_delay_is_capped(self):
        policy = RetryPolicy(base_delay=1.0, max_delay=5.0)
        assert [policy.delay_for(k) for k in range(1, 6)] == [1.0, 2.0, 4.0, 5.0, 5.0]

    def test_fixed_timeout_by_default(self):
        policy = RetryPolicy(attempt_timeout=10.0)
        assert [policy.timeout_for(k) for k in (1, 2, 3)] == [10.0, 10.0, 10.0]

    def test_increasing_timeout(self):
        policy = RetryPolicy(attempt_timeout=5.0, timeout_step=2.0)
        assert [policy.timeout_for(k) for k in (1, 2, 3)] == [5.0, 7.0, 9.0]


class TestRetryController:
    @pytest.mark.asyncio
    async def test_fail_twice_then_succeed(self):
        upstream = ScriptedUpstream([status(500), network_error(), ok(b"payload")])
        sleep = RecordingSleep()
        controller = RetryController(RetryPolicy(max_attempts=3, base_delay=0.5), sleep=sleep)

        outcome = await controller.run(build_request, upstream.send)

        assert outcome.state == RetryState.SUCCESS
        assert outcome.result.content == b"payload"
        assert len(outcome.attempts) == 3
        assert len(upstream.requests) == 3
        assert [a.status_code for a in outcome.attempts] == [500, None, 200]
        assert outcome.attempts[1].error == "ConnectTimeout"
        assert sleep.delays == [0.5, 1.0]

    @pytest.mark.asyncio
    async def test_404_is_terminal(self):
        upstream = ScriptedUpstream([status(404)])
        sleep = RecordingSleep()
        controller = RetryController(RetryPolicy(max_attempts=3), sleep=sleep)

        outcome = await controller.run(build_request, upstream.send)

        assert outcome.state == RetryState.NOT_FOUND
        assert len(outcome.attempts) == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_first_attempt_success_does_not_sleep(self):
        upstream = ScriptedUpstream([ok()])
        sleep = RecordingSleep()
        controller = RetryController(RetryPolicy(), sleep=sleep)

        outcome = await controller.run(build_request, upstream.send)

        assert outcome.state == RetryState.SUCCESS
        assert len(outcome.attempts) == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_exhaustion_after_status_failures(self):
        upstream = ScriptedUpstream([status(500), status(503), status(502)])
        sleep = RecordingSleep()
        controller = RetryController(RetryPolicy(max_attempts=3), sleep=sleep)

        with pytest.raises(RetryExhaustedError) as excinfo:
            await controller.run(build_request, upstream.send)

        assert len(excinfo.value.attempts) == 3
        assert isinstance(excinfo.value.last_error, UpstreamError)
        assert excinfo.value.last_error.status_code == 502
        assert excinfo.value.network_failure is False
        # No sleep after the final attempt.
        assert len(sleep.delays) == 2

    @pytest.mark.asyncio
    async def test_exhaustion_after_network_failures(self):
        upstream = ScriptedUpstream([network_error(), network_error()])
        controller = RetryController(RetryPolicy(max_attempts=2), sleep=RecordingSleep())

        with pytest.raises(RetryExhaustedError) as excinfo:
            await controller.run(build_request, upstream.send)

        assert excinfo.value.network_failure is True
        assert len(upstream.requests) == 2

    @pytest.mark.asyncio
    async def test_each_attempt_gets_a_fresh_request_with_its_timeout(self):
        upstream = ScriptedUpstream([status(500), status(500), ok()])
        controller = RetryController(
            RetryPolicy(attempt_timeout=5.0, timeout_step=2.0), sleep=RecordingSleep()
        )
        seen = []

        def factory(attempt, timeout):
            seen.append((attempt, timeout))
            return build_request(attempt, timeout)

        await controller.run(factory, upstream.send)

        assert seen == [(1, 5.0), (2, 7.0), (3, 9.0)]
        assert len({id(r) for r in upstream.requests}) == 3
        assert [r.timeout for r in upstream.requests] == [5.0, 7.0, 9.0]

    @pytest.mark.asyncio
    async def test_single_attempt_policy(self):
        upstream = ScriptedUpstream([status(500)])
        controller = RetryController(RetryPolicy(max_attempts=1), sleep=RecordingSleep())

        with pytest.raises(RetryExhaustedError) as excinfo:
            await controller.run(build_request, upstream.send)

        assert len(excinfo.value.attempts) == 1

    @pytest.mark.asyncio
    async def test_deadline_bounds_the_whole_run(self):
        async def hang(upstream_request):
            await asyncio.sleep(10)

        controller = RetryController(RetryPolicy(deadline=0.05))

        with pytest.raises(RetryExhaustedError) as excinfo:
            await controller.run(build_request, hang)

        assert excinfo.value.network_failure is True
        assert len(excinfo.value.attempts) == 1

    @pytest.mark.asyncio
    async def test_unexpected_errors_are_not_retried(self):
        upstream = ScriptedUpstream([ValueError("bug")])
        controller = RetryController(RetryPolicy(), sleep=RecordingSleep())

        with pytest.raises(ValueError):
            await controller.run(build_request, upstream.send)

        assert len(upstream.requests) == 1


def test_retry_states_are_terminal():
    assert {state.value for state in RetryState} == {"SUCCESS", "NOT_FOUND", "EXHAUSTED"}
