# src/batch_graphql/core/logging.py
"""Structured logging for batch-graphql.

structlog is routed through the stdlib logging module: a single
ProcessorFormatter handler renders both structlog events and plain
logging.getLogger(__name__) records (httpx, dotenv), console or JSON.

The handler writes to stderr. stdout is the default result stream and
carries nothing but result records.
"""

import logging
import sys
from collections.abc import MutableMapping
from typing import Any, TextIO

import structlog
from structlog.stdlib import ProcessorFormatter

# httpx/httpcore log one line per request and per pooled connection.
# Clamped to WARNING even under --debug.
_NOISY_LOGGERS: tuple[str, ...] = ("httpx", "httpcore")

# Event keys whose values are credentials
_SECRET_KEYS = frozenset({"token", "access_token", "client_secret", "authorization", "password"})

REDACTED = "***"

_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def redact_secrets(
    logger: logging.Logger | None,
    method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Mask credential values that were bound to an event by mistake."""
    for key in event_dict.keys() & _SECRET_KEYS:
        event_dict[key] = REDACTED
    return event_dict


def _drop_formatter_bookkeeping(
    logger: logging.Logger | None,
    method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    # ProcessorFormatter always sets both keys
    del event_dict["_record"]
    del event_dict["_from_structlog"]
    return event_dict


def _pre_chain() -> list[Any]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        redact_secrets,
    ]


def _render_chain(json_output: bool) -> list[Any]:
    if json_output:
        return [
            _drop_formatter_bookkeeping,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    # No colours: stderr is often redirected to the error file
    return [_drop_formatter_bookkeeping, structlog.dev.ConsoleRenderer(colors=False)]


def configure_logging(
    *,
    json_output: bool = False,
    level: str = "INFO",
    stream: TextIO | None = None,
) -> None:
    """Configure structlog and stdlib logging for a CLI run.

    Safe to call more than once; each call replaces the root handler.

    Args:
        json_output: Render one JSON object per event instead of console text.
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL (case-insensitive).
        stream: Destination stream (default sys.stderr).

    Raises:
        ValueError: If level is not a known level name.
    """
    level_name = level.upper()
    if level_name not in _LEVELS:
        raise ValueError(f"unknown log level {level!r}")
    log_level = logging.getLevelName(level_name)

    pre_chain = _pre_chain()
    structlog.configure(
        processors=[*pre_chain, ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr if stream is None else stream)
    handler.setFormatter(ProcessorFormatter(processors=_render_chain(json_output), foreign_pre_chain=pre_chain))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(log_level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger bound to the given module name."""
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger
