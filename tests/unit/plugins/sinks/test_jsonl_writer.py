# tests/unit/plugins/sinks/test_jsonl_writer.py
"""Tests for JsonLinesWriter output format."""

import io
import json

import pytest

from batch_graphql.plugins.sinks.jsonl import JsonLinesWriter


class FlushCountingStream(io.StringIO):
    def __init__(self) -> None:
        super().__init__()
        self.flushes = 0

    def flush(self) -> None:
        self.flushes += 1
        super().flush()


class TestJsonLinesWriter:
    def test_one_compact_line_per_record(self) -> None:
        stream = io.StringIO()
        writer = JsonLinesWriter(stream)
        writer.write({"row": 1, "input": {"x": 1}, "output": {"data": None}, "error": None})
        writer.write({"row": 2, "input": None, "output": None, "error": "bad"})

        assert stream.getvalue() == (
            '{"row":1,"input":{"x":1},"output":{"data":null},"error":null}\n'
            '{"row":2,"input":null,"output":null,"error":"bad"}\n'
        )

    def test_flushes_after_each_record(self) -> None:
        stream = FlushCountingStream()
        writer = JsonLinesWriter(stream)
        writer.write({"row": 1})
        writer.write({"row": 2})
        assert stream.flushes == 2

    def test_non_ascii_written_verbatim(self) -> None:
        stream = io.StringIO()
        JsonLinesWriter(stream).write({"name": "Zoë"})
        assert "Zoë" in stream.getvalue()
        assert json.loads(stream.getvalue()) == {"name": "Zoë"}

    def test_unserializable_record_writes_nothing(self) -> None:
        stream = io.StringIO()
        with pytest.raises(TypeError):
            JsonLinesWriter(stream).write({"row": 1, "output": object()})
        assert stream.getvalue() == ""
