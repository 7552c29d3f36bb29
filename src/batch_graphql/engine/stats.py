# src/batch_graphql/engine/stats.py
"""Processed/error counters and the periodic progress reporter.

Counters are only maintained when verbose reporting is on. Otherwise
SilentStats turns every increment into a no-op.
"""

from __future__ import annotations

import threading
from typing import Protocol

import structlog

from batch_graphql.engine.clock import DEFAULT_CLOCK, Clock

logger = structlog.get_logger(__name__)


class Stats(Protocol):
    """Counts processed and erroneous rows."""

    def add_processed(self) -> None: ...

    def add_error(self) -> None: ...

    def values(self) -> tuple[int, int]:
        """Return (processed, errors)."""
        ...


class CountingStats:
    """Thread-safe counters for processed and erroneous rows.

    Increments are serialized by a lock. values() reads without the lock,
    so the pair may be momentarily inconsistent (each value was correct
    when it was read). That is acceptable for progress reporting.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._processed = 0
        self._errors = 0

    def add_processed(self) -> None:
        with self._lock:
            self._processed += 1

    def add_error(self) -> None:
        with self._lock:
            self._errors += 1

    def values(self) -> tuple[int, int]:
        return self._processed, self._errors


class SilentStats:
    """Stats implementation used when statistics are not collected."""

    def add_processed(self) -> None:
        pass

    def add_error(self) -> None:
        pass

    def values(self) -> tuple[int, int]:
        return 0, 0


class ProgressReporter:
    """Logs throughput of a Stats instance on a fixed interval.

    Runs on a daemon thread so it can never keep the process alive, and
    only ever reads the counters. stop() logs one final line.

    Example:
        stats = CountingStats()
        with ProgressReporter(stats, interval=5.0):
            dispatcher.run(source)
    """

    def __init__(
        self,
        stats: Stats,
        *,
        interval: float = 5.0,
        clock: Clock | None = None,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be > 0, got {interval}")
        self._stats = stats
        self._interval = interval
        self._clock = clock if clock is not None else DEFAULT_CLOCK
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._start = 0.0

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("ProgressReporter already started")
        self._start = self._clock.monotonic()
        self._thread = threading.Thread(target=self._loop, name="batch-graphql-progress", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        if self._thread is None:
            return
        self._stop_event.set()
        self._thread.join()
        self._thread = None
        self.report()

    def __enter__(self) -> ProgressReporter:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    def snapshot(self) -> tuple[int, float, int]:
        """Return (processed, processed per second, errors) since start()."""
        processed, errors = self._stats.values()
        elapsed = self._clock.monotonic() - self._start
        per_second = processed / elapsed if elapsed > 0 else 0.0
        return processed, per_second, errors

    def report(self) -> None:
        processed, per_second, errors = self.snapshot()
        logger.info(
            "progress",
            processed=processed,
            per_second=round(per_second, 1),
            errors=errors,
        )

    def _loop(self) -> None:
        while not self._stop_event.wait(self._interval):
            self.report()


def create_stats(verbose: bool) -> Stats:
    """Counting stats when verbose reporting is on, no-op stats otherwise."""
    if verbose:
        return CountingStats()
    return SilentStats()
