# src/batch_graphql/engine/__init__.py
"""Batch engine: bounded concurrent dispatch of GraphQL calls.

This module provides the execution engine for batch runs:
- BatchDispatcher: reads rows, admits them, runs calls concurrently
- AdmissionController: cancellable counting permits
- ResultSink: one record per row onto the success or error stream
- Stats / ProgressReporter: optional throughput reporting

Example:
    from batch_graphql.engine import BatchDispatcher, ResultSink

    sink = ResultSink(output_writer, error_writer)
    summary = BatchDispatcher(client, sink, max_concurrency=10).run(source)
"""

from batch_graphql.engine.admission import AdmissionController
from batch_graphql.engine.clock import DEFAULT_CLOCK, Clock, MockClock, SystemClock
from batch_graphql.engine.dispatch import BatchDispatcher, CallExecutor
from batch_graphql.engine.sink import ResultSink
from batch_graphql.engine.stats import CountingStats, ProgressReporter, SilentStats, Stats, create_stats

__all__ = [
    "DEFAULT_CLOCK",
    "AdmissionController",
    "BatchDispatcher",
    "CallExecutor",
    "Clock",
    "CountingStats",
    "MockClock",
    "ProgressReporter",
    "ResultSink",
    "SilentStats",
    "Stats",
    "SystemClock",
    "create_stats",
]
