"""Shared contracts: data model and error taxonomy."""

from batch_graphql.contracts.errors import (
    AdmissionCancelled,
    AuthFailure,
    BatchGraphQLError,
    CallError,
    ConfigurationError,
    InputReadError,
    RemoteStatusFailure,
    ResponseDecodeFailure,
    TransportFailure,
)
from batch_graphql.contracts.results import (
    CallFailure,
    CallOutcome,
    CallSuccess,
    DispatchSummary,
    ResultRecord,
    VariableSet,
)

__all__ = [
    "AdmissionCancelled",
    "AuthFailure",
    "BatchGraphQLError",
    "CallError",
    "CallFailure",
    "CallOutcome",
    "CallSuccess",
    "ConfigurationError",
    "DispatchSummary",
    "InputReadError",
    "RemoteStatusFailure",
    "ResponseDecodeFailure",
    "ResultRecord",
    "TransportFailure",
    "VariableSet",
]
