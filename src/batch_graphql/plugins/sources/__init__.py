# src/batch_graphql/plugins/sources/__init__.py
"""Input sources that yield one variable set per record."""

from batch_graphql.plugins.sources.jsonl import JsonLinesSource, RecordSource

__all__ = ["JsonLinesSource", "RecordSource"]
