# src/batch_graphql/engine/sink.py
"""Result sink: routes each row's outcome to the success or error stream.

Each stream has its own lock, so a success write never waits on an error
write, and no two records on the same stream interleave. Records appear
in completion order; the row field correlates them back to the input.
"""

from __future__ import annotations

import threading
from typing import Any

from batch_graphql.contracts.results import ResultRecord, VariableSet
from batch_graphql.engine.stats import SilentStats, Stats
from batch_graphql.plugins.sinks.jsonl import RecordWriter


class ResultSink:
    """Writes exactly one ResultRecord per outcome and updates counters."""

    def __init__(
        self,
        output: RecordWriter,
        errors: RecordWriter,
        stats: Stats | None = None,
    ) -> None:
        self._output = output
        self._errors = errors
        self._stats: Stats = stats if stats is not None else SilentStats()
        self._output_lock = threading.Lock()
        self._errors_lock = threading.Lock()

    @property
    def stats(self) -> Stats:
        return self._stats

    def record_success(self, row: int, input: VariableSet, output: Any) -> None:
        record = ResultRecord.success(row, input, output)
        self._stats.add_processed()
        with self._output_lock:
            self._output.write(record.to_dict())

    def record_failure(self, row: int, input: VariableSet | None, output: Any, error: str) -> None:
        record = ResultRecord.failure(row, input, output, error)
        # Keeps errors <= processed for unsynchronised readers
        self._stats.add_processed()
        self._stats.add_error()
        with self._errors_lock:
            self._errors.write(record.to_dict())
