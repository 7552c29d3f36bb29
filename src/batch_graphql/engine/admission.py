# src/batch_graphql/engine/admission.py
"""Admission control: bounds how many rows are in flight at once.

A permit is taken before a row's call starts and returned when the row's
result has been written, so the limit caps open connections rather than
queued work. Waiting for a permit can be interrupted by cancel().
"""

from __future__ import annotations

from threading import Condition

from batch_graphql.contracts.errors import AdmissionCancelled, ConfigurationError


class AdmissionController:
    """Counting permit primitive with cancellable acquire.

    Permit order under contention is whatever Condition wake-up order
    gives; it is not guaranteed FIFO.

    Thread Safety:
        All state is guarded by a single Condition. acquire() may be called
        from any thread; release() is normally called from worker threads.
    """

    def __init__(self, max_concurrency: int) -> None:
        """Initialize with the concurrency ceiling.

        Args:
            max_concurrency: Maximum permits held at once (must be >= 1)

        Raises:
            ConfigurationError: If max_concurrency is not a positive integer
        """
        if isinstance(max_concurrency, bool) or not isinstance(max_concurrency, int) or max_concurrency < 1:
            raise ConfigurationError(f"max_concurrency must be a positive integer, got {max_concurrency!r}")
        self._max_concurrency = max_concurrency
        self._cond = Condition()
        self._in_use = 0
        self._peak = 0
        self._cancelled = False

    @property
    def max_concurrency(self) -> int:
        return self._max_concurrency

    @property
    def in_use(self) -> int:
        """Permits currently held."""
        with self._cond:
            return self._in_use

    @property
    def peak(self) -> int:
        """Highest number of permits ever held at once."""
        with self._cond:
            return self._peak

    @property
    def cancelled(self) -> bool:
        with self._cond:
            return self._cancelled

    def acquire(self) -> None:
        """Block until a permit is free, then take it.

        Raises:
            AdmissionCancelled: If cancel() was called before or while waiting.
                No permit is held when this is raised.
        """
        with self._cond:
            while not self._cancelled and self._in_use >= self._max_concurrency:
                self._cond.wait()
            if self._cancelled:
                raise AdmissionCancelled()
            self._in_use += 1
            if self._in_use > self._peak:
                self._peak = self._in_use

    def release(self) -> None:
        """Return a permit.

        Raises:
            RuntimeError: If no permit is held (release without acquire is a bug)
        """
        with self._cond:
            if self._in_use == 0:
                raise RuntimeError("release() called with no permit held")
            self._in_use -= 1
            self._cond.notify_all()

    def cancel(self) -> None:
        """Fail every current and future acquire() with AdmissionCancelled.

        Permits already held are unaffected; their holders still release them.
        """
        with self._cond:
            self._cancelled = True
            self._cond.notify_all()

    def drain(self, timeout: float | None = None) -> bool:
        """Wait until every held permit has been released.

        Args:
            timeout: Seconds to wait, or None to wait indefinitely

        Returns:
            True if no permits are held, False if the timeout expired first
        """
        with self._cond:
            return self._cond.wait_for(lambda: self._in_use == 0, timeout=timeout)
