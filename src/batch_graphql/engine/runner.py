# src/batch_graphql/engine/runner.py
"""Run wiring: opens streams, builds the client, runs the dispatcher.

run() performs every pre-flight step (query, headers, files) before the
first row is read, so fatal misconfiguration never produces partial
output. run_with() takes already-built collaborators and is what tests
and embedding callers use.
"""

from __future__ import annotations

import io
import signal
import sys
import threading
from collections.abc import Callable, Iterator
from contextlib import ExitStack, contextmanager
from pathlib import Path
from typing import IO, Any, TextIO

import structlog

from batch_graphql.contracts.errors import ConfigurationError
from batch_graphql.contracts.results import DispatchSummary
from batch_graphql.core.config import BatchSettings, parse_headers, read_query
from batch_graphql.engine.clock import Clock
from batch_graphql.engine.dispatch import BatchDispatcher, CallExecutor
from batch_graphql.engine.sink import ResultSink
from batch_graphql.engine.stats import ProgressReporter, Stats, create_stats
from batch_graphql.plugins.clients.auth import TokenAuthority
from batch_graphql.plugins.clients.graphql import GraphQLClient, create_http_client
from batch_graphql.plugins.sinks.jsonl import JsonLinesWriter
from batch_graphql.plugins.sources.jsonl import JsonLinesSource, RecordSource

logger = structlog.get_logger(__name__)


def _open(path: Path, mode: str, stack: ExitStack, *, errors: str = "strict") -> IO[str]:
    try:
        handle = open(path, mode, encoding="utf-8", errors=errors)  # noqa: SIM115
    except OSError as e:
        raise ConfigurationError(f"cannot open {path}: {e}") from e
    return stack.enter_context(handle)


def open_input(path: Path | None, stack: ExitStack) -> TextIO:
    """Open the input file, or return stdin when path is None.

    Undecodable bytes are surrogate-escaped so the source can reject the
    line they are on and keep reading.
    """
    if path is None:
        if isinstance(sys.stdin, io.TextIOWrapper):
            sys.stdin.reconfigure(errors="surrogateescape")
        return sys.stdin
    return _open(path, "r", stack, errors="surrogateescape")


def open_output(path: Path | None, default: TextIO, stack: ExitStack) -> TextIO:
    """Create (truncate) the output file, or return default when path is None."""
    if path is None:
        return default
    return _open(path, "w", stack)


@contextmanager
def cancel_on_signals(cancel: Callable[[], None]) -> Iterator[None]:
    """Route SIGINT/SIGTERM to cancel() for the duration of the block.

    Only installs handlers on the main thread; elsewhere it is a no-op.
    """
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def handler(signum: int, frame: Any) -> None:
        logger.warning("cancel_requested", signal=signal.Signals(signum).name)
        cancel()

    previous = {sig: signal.signal(sig, handler) for sig in (signal.SIGINT, signal.SIGTERM)}
    try:
        yield
    finally:
        for sig, old in previous.items():
            signal.signal(sig, old)


def build_client(settings: BatchSettings, query: str, *, clock: Clock | None = None) -> GraphQLClient:
    """Build the GraphQL client and its token authority from settings.

    The httpx client is shared with the token authority for logins; the
    caller closes it via client.http_client.close().
    """
    headers = parse_headers(settings.headers)
    http_client = create_http_client(settings.connections, settings.timeout)
    if settings.oauth is not None:
        authority = TokenAuthority.dynamic(http_client, settings.oauth, clock=clock)
    elif settings.token is not None:
        authority = TokenAuthority.static(settings.token)
    else:
        authority = TokenAuthority.none()

    return GraphQLClient(
        url=settings.url,
        query=query,
        connections=settings.connections,
        headers=headers,
        authority=authority,
        timeout=settings.timeout,
        http_client=http_client,
    )


def run_with(
    executor: CallExecutor,
    source: RecordSource,
    sink: ResultSink,
    max_concurrency: int,
    *,
    progress: ProgressReporter | None = None,
    install_signal_handlers: bool = False,
) -> DispatchSummary:
    """Dispatch every record from source using the given collaborators."""
    dispatcher = BatchDispatcher(executor, sink, max_concurrency)
    with ExitStack() as stack:
        if install_signal_handlers:
            stack.enter_context(cancel_on_signals(dispatcher.cancel))
        if progress is not None:
            stack.enter_context(progress)
        summary = dispatcher.run(source)

    logger.info(
        "run_completed",
        rows=summary.rows,
        cancelled=summary.cancelled,
        max_in_flight=summary.max_in_flight,
    )
    return summary


def run(settings: BatchSettings, *, stats: Stats | None = None) -> DispatchSummary:
    """Execute a full batch run described by settings.

    Raises:
        ConfigurationError: For any fatal pre-flight condition
    """
    query = read_query(settings.query)
    stats = stats if stats is not None else create_stats(settings.verbose)

    with ExitStack() as stack:
        input_stream = open_input(settings.input, stack)
        output_stream = open_output(settings.output, sys.stdout, stack)
        error_stream = open_output(settings.error, sys.stderr, stack)

        client = build_client(settings, query)
        stack.callback(client.http_client.close)
        sink = ResultSink(JsonLinesWriter(output_stream), JsonLinesWriter(error_stream), stats)
        progress = ProgressReporter(stats, interval=settings.progress_interval) if settings.verbose else None

        return run_with(
            client,
            JsonLinesSource(input_stream),
            sink,
            settings.connections,
            progress=progress,
            install_signal_handlers=True,
        )
