# src/batch_graphql/plugins/sinks/jsonl.py
"""JSON lines writer for result records."""

from __future__ import annotations

import json
from typing import Any, Protocol, TextIO


class RecordWriter(Protocol):
    """Abstract "write record" capability consumed by the result sink."""

    def write(self, record: dict[str, Any]) -> None: ...


class JsonLinesWriter:
    """Writes one compact JSON object per line and flushes after each.

    Not thread-safe on its own: ResultSink serializes access per stream.
    The stream is not closed by this class.
    """

    def __init__(self, stream: TextIO) -> None:
        self._stream = stream

    def write(self, record: dict[str, Any]) -> None:
        # Serialize fully before touching the stream so a failing record
        # never leaves a partial line behind
        line = json.dumps(record, ensure_ascii=False, separators=(",", ":"))
        self._stream.write(line + "\n")
        self._stream.flush()
