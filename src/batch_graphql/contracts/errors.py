# src/batch_graphql/contracts/errors.py
"""Error taxonomy for batch runs.

Two families:
- Fatal errors (ConfigurationError) abort the run before any row is read.
- Per-row errors never leave the row they belong to. They are turned into
  failure records on the error stream and the run continues.
"""

from __future__ import annotations

from typing import Any


class BatchGraphQLError(Exception):
    """Base class for all batch-graphql errors."""


class ConfigurationError(BatchGraphQLError):
    """Raised for fatal misconfiguration detected before any row is processed."""


class InputReadError(BatchGraphQLError):
    """Raised when an input record cannot be decoded into a variable set.

    Attributes:
        line_number: Physical line in the input stream (1-based), when known
    """

    def __init__(self, message: str, *, line_number: int | None = None) -> None:
        super().__init__(message)
        self.line_number = line_number


class AdmissionCancelled(BatchGraphQLError):
    """Raised by the admission controller when the run is cancelled while waiting."""

    def __init__(self, message: str = "run cancelled while waiting for a free connection") -> None:
        super().__init__(message)


class CallError(BatchGraphQLError):
    """Failure of a single remote call.

    Attributes:
        response: Raw response text kept for diagnostics, or None when the
            remote side supplied nothing usable
    """

    def __init__(self, message: str, *, response: Any = None) -> None:
        super().__init__(message)
        self.response = response


class AuthFailure(CallError):
    """Credential exchange failed or returned an unusable token."""


class TransportFailure(CallError):
    """The endpoint could not be reached or the connection broke mid-call."""


class RemoteStatusFailure(CallError):
    """The endpoint answered with a non-2xx status.

    Attributes:
        status_code: HTTP status code returned by the endpoint
    """

    def __init__(self, status_code: int, *, response: Any = None) -> None:
        super().__init__(f"invalid status code {status_code}", response=response)
        self.status_code = status_code


class ResponseDecodeFailure(CallError):
    """A 2xx response body was not valid JSON."""
