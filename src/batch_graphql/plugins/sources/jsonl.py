# src/batch_graphql/plugins/sources/jsonl.py
"""JSON lines input source.

Each non-blank line is one record and must hold a JSON object: the
variables for one call. A line that fails to parse is reported as an
InputReadError for that record only; the next read continues with the
following line.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from typing import Protocol, TextIO

from batch_graphql.contracts.errors import InputReadError
from batch_graphql.contracts.results import VariableSet


def _reject_nonfinite_constant(value: str) -> None:
    """Reject NaN/Infinity constants, which are not valid JSON."""
    raise ValueError(f"non-standard JSON constant '{value}' is not allowed")


def _contains_surrogateescape_chars(value: str) -> bool:
    """Return True when value holds bytes that were not valid UTF-8."""
    return any(0xDC80 <= ord(char) <= 0xDCFF for char in value)


class RecordSource(Protocol):
    """Abstract "read next record" capability consumed by the dispatch loop."""

    def read_next(self) -> VariableSet | None:
        """Return the next variable set, or None at end of input.

        Raises:
            InputReadError: If the next record is malformed. The record is
                consumed; calling read_next() again moves on.
        """
        ...


class JsonLinesSource:
    """Reads variable sets from a text stream, one JSON object per line.

    The stream is not closed by this class; whoever opened it closes it.
    """

    def __init__(self, stream: TextIO) -> None:
        self._stream = stream
        self._line_number = 0

    @property
    def line_number(self) -> int:
        """Physical line number of the last line read."""
        return self._line_number

    def read_next(self) -> VariableSet | None:
        while True:
            raw_line = self._stream.readline()
            if raw_line == "":
                return None
            self._line_number += 1
            line = raw_line.strip()
            if line:
                return self._parse(line)

    def _parse(self, line: str) -> VariableSet:
        if _contains_surrogateescape_chars(line):
            raise InputReadError(
                f"invalid UTF-8 at line {self._line_number}",
                line_number=self._line_number,
            )
        try:
            value = json.loads(line, parse_constant=_reject_nonfinite_constant)
        except ValueError as e:
            # JSONDecodeError is a ValueError subclass
            raise InputReadError(
                f"JSON parse error at line {self._line_number}: {e}",
                line_number=self._line_number,
            ) from e
        if not isinstance(value, dict):
            raise InputReadError(
                f"expected JSON object at line {self._line_number}, got {type(value).__name__}",
                line_number=self._line_number,
            )
        return value

    def __iter__(self) -> Iterator[VariableSet]:
        """Iterate over valid records, raising on the first malformed one."""
        while (record := self.read_next()) is not None:
            yield record
