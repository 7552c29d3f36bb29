# src/batch_graphql/engine/clock.py
"""Clock abstraction for testable expiry and throughput logic.

Token expiry and progress rates are measured on a monotonic clock.
Production code uses SystemClock (the default); tests inject MockClock
to move time forward without sleeping.
"""

from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    """Abstract monotonic clock."""

    def monotonic(self) -> float:
        """Return monotonic time in seconds."""
        ...


class SystemClock:
    """Production clock using time.monotonic()."""

    def monotonic(self) -> float:
        return time.monotonic()


class MockClock:
    """Controllable clock for deterministic testing.

    Example:
        clock = MockClock(start=0.0)
        authority = TokenAuthority.dynamic(http_client, oauth, clock=clock)

        authority.current_token()  # logs in, token lives 100s -> cached for 90s
        clock.advance(50.0)
        authority.current_token()  # cached
        clock.advance(45.0)
        authority.current_token()  # past 90% of lifetime -> logs in again
    """

    def __init__(self, start: float = 0.0) -> None:
        self._current = start

    def monotonic(self) -> float:
        return self._current

    def advance(self, seconds: float) -> None:
        """Advance mock time by specified seconds.

        Raises:
            ValueError: If seconds is negative.
        """
        if seconds < 0:
            raise ValueError(f"Cannot advance time by negative amount: {seconds}")
        self._current += seconds


# Default clock for production use
DEFAULT_CLOCK: Clock = SystemClock()
