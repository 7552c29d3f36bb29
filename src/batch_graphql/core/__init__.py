# src/batch_graphql/core/__init__.py
"""Core infrastructure: configuration and logging."""

from batch_graphql.core.config import BatchSettings, OAuthSettings, load_settings, parse_headers
from batch_graphql.core.logging import configure_logging, get_logger

__all__ = [
    "BatchSettings",
    "OAuthSettings",
    "configure_logging",
    "get_logger",
    "load_settings",
    "parse_headers",
]
