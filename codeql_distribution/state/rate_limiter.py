"""Invocation rate limiting backed by the persistent state store."""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Generic, Optional, TypeVar, Union

from codeql_distribution.state.store import StateStore

logger = logging.getLogger("codeql_distribution.rate_limiter")

T = TypeVar("T")


@dataclass(frozen=True)
class Invoked(Generic[T]):
    """The function ran and produced ``result``."""
    result: T


@dataclass(frozen=True)
class RateLimited:
    """The function was not run because it ran too recently."""
    pass


InvocationRateLimiterResult = Union[Invoked[T], RateLimited]


class InvocationRateLimiter(Generic[T]):
    """
    Runs a function at most once per interval.

    The time of the last successful invocation is persisted, so a process
    restart does not reset the cooldown. A failed invocation does not
    count.
    """

    def __init__(
        self,
        state: StateStore,
        func_identifier: str,
        func: Callable[[], T],
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Args:
            state: Persistent key-value store
            func_identifier: Unique name used to build the state key
            func: Function to rate limit
            clock: Returns the current time (defaults to UTC now)
        """
        self._state = state
        self._func = func
        self._state_key = f"{func_identifier}_invocationRateLimiter_lastInvocationDate"
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._lock = threading.Lock()

    def invoke_function_if_interval_elapsed(
        self,
        min_seconds_since_last_invocation: float
    ) -> InvocationRateLimiterResult:
        """
        Run the function unless it last ran less than the given number of
        seconds ago.

        A last invocation date in the future (clock moved backwards) does
        not block the call. Concurrent callers are serialized, so a call
        that waited for another invocation sees its timestamp.
        """
        with self._lock:
            now = self._clock()
            last = self.get_last_invocation_date()
            if (
                min_seconds_since_last_invocation
                and last is not None
                # A future timestamp means the clock went backwards; it would
                # otherwise block for however far the clock jumped.
                and last <= now
                and last + timedelta(seconds=min_seconds_since_last_invocation) > now
            ):
                logger.debug(f"Skipping {self._state_key}: last ran at {last.isoformat()}")
                return RateLimited()

            result = self._func()
            self._state.update(self._state_key, now.isoformat())
            return Invoked(result)

    def get_last_invocation_date(self) -> Optional[datetime]:
        value = self._state.get(self._state_key)
        if not value:
            return None
        try:
            date = datetime.fromisoformat(value)
        except (TypeError, ValueError):
            logger.warning(f"Ignoring malformed timestamp for {self._state_key}: {value}")
            return None
        if date.tzinfo is None:
            date = date.replace(tzinfo=timezone.utc)
        return date
