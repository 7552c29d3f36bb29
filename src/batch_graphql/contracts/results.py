# src/batch_graphql/contracts/results.py
"""Per-row outcome and result record contracts.

CallOutcome is what a single call produced. ResultRecord is what gets
written to the success or error stream for that row. Both are immutable.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

# One input row's variables for the shared query document
VariableSet = dict[str, Any]


@dataclass(frozen=True, slots=True)
class CallSuccess:
    """Decoded response body of a successful call."""

    response: Any


@dataclass(frozen=True, slots=True)
class CallFailure:
    """Failed call.

    Attributes:
        error: Human-readable failure message
        response: Raw response text when the endpoint supplied one, else None
    """

    error: str
    response: Any = None


CallOutcome = CallSuccess | CallFailure


@dataclass(frozen=True, slots=True)
class ResultRecord:
    """One line of output, correlated to its input by row number.

    Exactly one of output/error is meaningful: success records carry
    error=None, failure records always carry an error message.
    """

    row: int
    input: VariableSet | None
    output: Any
    error: str | None

    @classmethod
    def success(cls, row: int, input: VariableSet, output: Any) -> ResultRecord:
        return cls(row=row, input=input, output=output, error=None)

    @classmethod
    def failure(cls, row: int, input: VariableSet | None, output: Any, error: str) -> ResultRecord:
        if not error:
            raise ValueError(f"failure record for row {row} must carry an error message")
        return cls(row=row, input=input, output=output, error=error)

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def to_dict(self) -> dict[str, Any]:
        """Serializable form with the keys in output order."""
        return {
            "row": self.row,
            "input": self.input,
            "output": self.output,
            "error": self.error,
        }


@dataclass(frozen=True, slots=True)
class DispatchSummary:
    """Final accounting of one dispatch loop run.

    Attributes:
        rows: Number of row numbers assigned (input records read)
        cancelled: True if the run stopped early because it was cancelled
        max_in_flight: Peak number of simultaneously admitted rows
    """

    rows: int
    cancelled: bool
    max_in_flight: int
