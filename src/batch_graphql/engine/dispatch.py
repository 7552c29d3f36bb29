# src/batch_graphql/engine/dispatch.py
"""Dispatch loop: reads rows, admits them, runs calls concurrently.

Control flow for one run:
1. Read the next record and assign it the next row number
2. Malformed record -> failure record, no permit taken, continue
3. Acquire a permit (blocks while max_concurrency rows are in flight)
4. Hand the row to the thread pool and go back to 1 without waiting
5. At end of input, wait until every admitted row has released its permit

A cancelled admission gets a failure record for the row that was waiting,
then the loop stops reading. Rows already in flight still finish.
"""

from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Protocol

import structlog

from batch_graphql.contracts.errors import AdmissionCancelled, CallError, InputReadError
from batch_graphql.contracts.results import CallFailure, CallOutcome, CallSuccess, DispatchSummary, VariableSet
from batch_graphql.engine.admission import AdmissionController
from batch_graphql.engine.sink import ResultSink
from batch_graphql.plugins.sources.jsonl import RecordSource

logger = structlog.get_logger(__name__)


class CallExecutor(Protocol):
    """Performs one remote call (GraphQLClient satisfies this)."""

    def execute(self, variables: VariableSet) -> Any: ...


class BatchDispatcher:
    """Bounded concurrent dispatcher for one batch run.

    Example:
        dispatcher = BatchDispatcher(client, sink, max_concurrency=10)
        summary = dispatcher.run(JsonLinesSource(sys.stdin))
        print(summary.rows, summary.max_in_flight)

    A dispatcher runs once. cancel() may be called from any thread (or a
    signal handler) while run() is in progress.
    """

    def __init__(self, executor: CallExecutor, sink: ResultSink, max_concurrency: int) -> None:
        """Initialize dispatcher.

        Raises:
            ConfigurationError: If max_concurrency is not a positive integer
        """
        self._executor = executor
        self._sink = sink
        self._admission = AdmissionController(max_concurrency)
        self._errors_lock = threading.Lock()
        self._worker_errors: list[BaseException] = []
        self._started = False

    @property
    def admission(self) -> AdmissionController:
        return self._admission

    def cancel(self) -> None:
        """Stop admitting rows. Rows already admitted run to completion."""
        self._admission.cancel()

    def run(self, source: RecordSource) -> DispatchSummary:
        """Dispatch every record from source and wait for all of them.

        Returns:
            DispatchSummary with the number of rows assigned

        Raises:
            Exception: The first error raised inside a worker that was not a
                per-row call failure (e.g. an output write error). It is
                raised only after every admitted row has finished.
        """
        if self._started:
            raise RuntimeError("BatchDispatcher.run() can only be called once")
        self._started = True

        rows = 0
        pool = ThreadPoolExecutor(
            max_workers=self._admission.max_concurrency,
            thread_name_prefix="batch-graphql",
        )
        try:
            while True:
                row = rows + 1
                try:
                    variables = source.read_next()
                except InputReadError as e:
                    rows = row
                    self._sink.record_failure(row, None, None, str(e))
                    continue
                if variables is None:
                    break
                rows = row

                try:
                    self._admission.acquire()
                except AdmissionCancelled as e:
                    logger.warning("admission_cancelled", row=row)
                    self._sink.record_failure(row, variables, None, str(e))
                    break

                try:
                    future = pool.submit(self._process_row, row, variables)
                except BaseException:
                    self._admission.release()
                    raise
                future.add_done_callback(self._on_row_done)
        finally:
            # Drain: every admitted row releases its permit as its last step
            self._admission.drain()
            pool.shutdown(wait=True)

        if self._worker_errors:
            raise self._worker_errors[0]

        # Cancellation may also arrive after the last admission, during the drain
        return DispatchSummary(rows=rows, cancelled=self._admission.cancelled, max_in_flight=self._admission.peak)

    def call(self, variables: VariableSet) -> CallOutcome:
        """Run one call and fold per-row failures into a CallFailure."""
        try:
            response = self._executor.execute(variables)
        except CallError as e:
            return CallFailure(error=str(e), response=e.response)
        return CallSuccess(response=response)

    def _process_row(self, row: int, variables: VariableSet) -> None:
        try:
            outcome = self.call(variables)
            match outcome:
                case CallSuccess(response=response):
                    self._sink.record_success(row, variables, response)
                case CallFailure(error=error, response=response):
                    logger.debug("row_failed", row=row, error=error)
                    self._sink.record_failure(row, variables, response, error)
        finally:
            self._admission.release()

    def _on_row_done(self, future: Future[None]) -> None:
        error = future.exception()
        if error is not None:
            with self._errors_lock:
                self._worker_errors.append(error)
            logger.error("row_worker_crashed", error=str(error), error_type=type(error).__name__)
            # Output is no longer trustworthy; stop admitting new rows
            self._admission.cancel()
