"""Unit tests for InvocationRateLimiter."""

import threading
import time
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from codeql_distribution.state.rate_limiter import (
    InvocationRateLimiter,
    Invoked,
    RateLimited,
)
from codeql_distribution.state.store import MemoryStateStore


STATE_KEY = "updateCheck_invocationRateLimiter_lastInvocationDate"
START = datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock():
    return FakeClock(START)


@pytest.fixture
def func():
    return MagicMock(return_value="result")


@pytest.fixture
def limiter(memory_state, func, clock):
    return InvocationRateLimiter(memory_state, "updateCheck", func, clock=clock)


class TestInvocationRateLimiter:
    """Tests for InvocationRateLimiter."""

    def test_first_invocation_runs(self, limiter, func, memory_state):
        """Test that the function runs when it never ran before."""
        result = limiter.invoke_function_if_interval_elapsed(60)

        assert result == Invoked("result")
        func.assert_called_once()
        assert memory_state.get(STATE_KEY) == START.isoformat()

    def test_within_interval_is_rate_limited(self, limiter, func, clock):
        """Test that a second call inside the interval does not run."""
        limiter.invoke_function_if_interval_elapsed(60)
        clock.advance(30)

        result = limiter.invoke_function_if_interval_elapsed(60)

        assert isinstance(result, RateLimited)
        assert func.call_count == 1

    def test_after_interval_runs_again(self, limiter, func, clock):
        """Test that the function runs once the interval has elapsed."""
        limiter.invoke_function_if_interval_elapsed(60)
        clock.advance(61)

        result = limiter.invoke_function_if_interval_elapsed(60)

        assert isinstance(result, Invoked)
        assert func.call_count == 2
        assert limiter.get_last_invocation_date() == START + timedelta(seconds=61)

    def test_zero_interval_always_runs(self, limiter, func):
        """Test that a zero interval disables rate limiting."""
        limiter.invoke_function_if_interval_elapsed(0)
        limiter.invoke_function_if_interval_elapsed(0)

        assert func.call_count == 2

    def test_failure_is_not_recorded(self, limiter, func, memory_state):
        """Test that a failed invocation does not start the cooldown."""
        func.side_effect = RuntimeError("registry down")

        with pytest.raises(RuntimeError):
            limiter.invoke_function_if_interval_elapsed(60)

        assert memory_state.get(STATE_KEY) is None
        func.side_effect = None
        assert isinstance(limiter.invoke_function_if_interval_elapsed(60), Invoked)

    def test_future_timestamp_does_not_block(self, limiter, func, memory_state):
        """Test that a last invocation after now (clock moved back) is ignored."""
        memory_state.update(STATE_KEY, (START + timedelta(days=1)).isoformat())

        result = limiter.invoke_function_if_interval_elapsed(60)

        assert isinstance(result, Invoked)

    def test_survives_restart(self, func, clock):
        """Test that the last invocation date is read from the state store."""
        state = MemoryStateStore()
        InvocationRateLimiter(state, "updateCheck", func, clock=clock).invoke_function_if_interval_elapsed(60)
        clock.advance(10)

        result = InvocationRateLimiter(
            state, "updateCheck", func, clock=clock
        ).invoke_function_if_interval_elapsed(60)

        assert isinstance(result, RateLimited)

    def test_malformed_timestamp(self, limiter, memory_state):
        """Test that an unparseable timestamp is treated as never run."""
        memory_state.update(STATE_KEY, "yesterday")

        assert limiter.get_last_invocation_date() is None
        assert isinstance(limiter.invoke_function_if_interval_elapsed(60), Invoked)

    def test_concurrent_calls_invoke_once(self, memory_state):
        """Test that overlapping callers share one cooldown."""
        started = threading.Event()
        calls = []

        def slow_check():
            calls.append(1)
            started.set()
            time.sleep(0.3)
            return "ok"

        limiter = InvocationRateLimiter(memory_state, "updateCheck", slow_check)
        results = []

        def invoke():
            results.append(limiter.invoke_function_if_interval_elapsed(3600))

        first = threading.Thread(target=invoke)
        second = threading.Thread(target=invoke)
        first.start()
        assert started.wait(timeout=5)
        second.start()
        first.join(timeout=5)
        second.join(timeout=5)

        assert len(calls) == 1
        assert Invoked("ok") in results
        assert RateLimited() in results
        assert len(results) == 2
