"""Tests for the shared retry policy."""

import pytest

from pn_filer.errors import (
    RateLimitedError,
    RetryExhaustedError,
    TransientUpstreamError,
    UpstreamError,
)
from pn_filer.services.retry import RetryPolicy


def scripted(*outcomes):
    """Operation that raises or returns each outcome in turn, counting calls."""
    remaining = list(outcomes)

    async def operation():
        operation.calls += 1
        outcome = remaining.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    operation.calls = 0
    return operation


class TestBackoff:
    def test_backoff_doubles(self):
        policy = RetryPolicy(backoff_base=0.5)
        assert [policy.backoff_delay(i) for i in range(4)] == [0.5, 1.0, 2.0, 4.0]


class TestRateLimiting:
    @pytest.mark.asyncio
    async def test_waits_for_retry_after_then_succeeds(self, sleeper):
        policy = RetryPolicy(sleep=sleeper)
        op = scripted(RateLimitedError("slow down", "shopify", retry_after=3.0), "ok")

        assert await policy.run(op) == "ok"
        assert op.calls == 2
        assert sleeper.calls == [3.0]

    @pytest.mark.asyncio
    async def test_uses_default_when_no_hint(self, sleeper):
        policy = RetryPolicy(default_retry_after=2.0, sleep=sleeper)
        op = scripted(RateLimitedError("slow down", "shopify"), "ok")

        await policy.run(op)
        assert sleeper.calls == [2.0]

    @pytest.mark.asyncio
    async def test_rate_limit_waits_do_not_consume_attempts(self, sleeper):
        policy = RetryPolicy(max_attempts=2, sleep=sleeper)
        op = scripted(
            RateLimitedError("slow down", "shopify", retry_after=1.0),
            RateLimitedError("slow down", "shopify", retry_after=1.0),
            TransientUpstreamError("bad gateway", "shopify", 502),
            "ok",
        )

        assert await policy.run(op) == "ok"
        assert op.calls == 4

    @pytest.mark.asyncio
    async def test_gives_up_after_max_waits(self, sleeper):
        policy = RetryPolicy(max_rate_limit_waits=2, sleep=sleeper)
        op = scripted(*[RateLimitedError("slow down", "shopify", retry_after=1.0)] * 3)

        with pytest.raises(RetryExhaustedError):
            await policy.run(op)
        assert op.calls == 3
        assert sleeper.calls == [1.0, 1.0]


class TestTransientFailures:
    @pytest.mark.asyncio
    async def test_retries_with_exponential_backoff(self, sleeper):
        policy = RetryPolicy(max_attempts=3, backoff_base=1.0, sleep=sleeper)
        op = scripted(
            TransientUpstreamError("unavailable", "customscity", 503),
            TransientUpstreamError("unavailable", "customscity", 503),
            {"id": "doc-1"},
        )

        assert await policy.run(op) == {"id": "doc-1"}
        assert sleeper.calls == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_exhaustion_raises_with_service(self, sleeper):
        policy = RetryPolicy(max_attempts=3, sleep=sleeper)
        op = scripted(*[TransientUpstreamError("unavailable", "customscity", 503)] * 3)

        with pytest.raises(RetryExhaustedError) as exc_info:
            await policy.run(op, description="status check")
        assert exc_info.value.service == "customscity"
        assert "status check" in exc_info.value.message
        assert op.calls == 3

    @pytest.mark.asyncio
    async def test_single_attempt_policy_does_not_retry(self, sleeper):
        policy = RetryPolicy(max_attempts=1, sleep=sleeper)
        op = scripted(TransientUpstreamError("unavailable", "customscity", 503), "ok")

        with pytest.raises(RetryExhaustedError):
            await policy.run(op)
        assert op.calls == 1
        assert sleeper.calls == []


class TestNonRetryable:
    @pytest.mark.asyncio
    async def test_client_errors_propagate_immediately(self, sleeper):
        policy = RetryPolicy(sleep=sleeper)
        op = scripted(UpstreamError("unauthorized", "shopify", 401), "ok")

        with pytest.raises(UpstreamError) as exc_info:
            await policy.run(op)
        assert not isinstance(exc_info.value, RetryExhaustedError)
        assert exc_info.value.status_code == 401
        assert op.calls == 1

    @pytest.mark.asyncio
    async def test_unrelated_exceptions_propagate(self, sleeper):
        policy = RetryPolicy(sleep=sleeper)
        op = scripted(KeyError("boom"))

        with pytest.raises(KeyError):
            await policy.run(op)
        assert sleeper.calls == []
