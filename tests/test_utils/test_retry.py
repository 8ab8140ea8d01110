"""Tests for the shared retry policy."""

from __future__ import annotations

import asyncio

import pytest

from devdose.utils.retry import RetryPolicy


class _Flaky:
    """Fails ``failures`` times with ``error`` before returning ``value``."""

    def __init__(self, failures: int, error: Exception, value: str = "ok"):
        self.failures = failures
        self.error = error
        self.value = value
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return self.value


def _policy(delays: list, **kwargs) -> RetryPolicy:
    async def record(seconds: float) -> None:
        delays.append(seconds)

    return RetryPolicy(sleep_func=record, **kwargs)


def test_succeeds_after_transient_failures():
    delays: list = []
    op = _Flaky(failures=2, error=ConnectionError("boom"))
    result = asyncio.run(_policy(delays, max_attempts=3, base_delay=1.0).run(op))

    assert result == "ok"
    assert op.calls == 3
    assert delays == [1.0, 2.0]


def test_exhausted_attempts_raise_last_error():
    delays: list = []
    op = _Flaky(failures=5, error=ConnectionError("down"))

    with pytest.raises(ConnectionError, match="down"):
        asyncio.run(_policy(delays, max_attempts=3).run(op))
    assert op.calls == 3
    assert len(delays) == 2


def test_non_retryable_error_propagates_immediately():
    delays: list = []
    op = _Flaky(failures=1, error=KeyError("nope"))
    policy = _policy(delays, is_retryable=lambda exc: isinstance(exc, ConnectionError))

    with pytest.raises(KeyError):
        asyncio.run(policy.run(op))
    assert op.calls == 1
    assert delays == []


def test_backoff_is_capped():
    policy = RetryPolicy(base_delay=2.0, max_delay=30.0)
    assert [policy.backoff(n) for n in range(6)] == [2.0, 4.0, 8.0, 16.0, 30.0, 30.0]


def test_rejects_zero_attempts():
    with pytest.raises(ValueError):
        RetryPolicy(max_attempts=0)


class TestRunSync:
    def test_retries_blocking_calls(self):
        delays: list = []
        calls = []

        def op():
            calls.append(1)
            if len(calls) < 3:
                raise TimeoutError("slow")
            return "done"

        policy = RetryPolicy(max_attempts=3, base_delay=0.5, blocking_sleep=delays.append)

        assert policy.run_sync(op) == "done"
        assert delays == [0.5, 1.0]

    def test_non_retryable_error_is_raised_at_once(self):
        delays: list = []

        def op():
            raise KeyError("missing")

        policy = RetryPolicy(
            is_retryable=lambda exc: isinstance(exc, TimeoutError),
            blocking_sleep=delays.append,
        )

        with pytest.raises(KeyError):
            policy.run_sync(op)
        assert delays == []
