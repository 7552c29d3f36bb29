# src/batch_graphql/plugins/sinks/__init__.py
"""Output sinks that persist result records."""

from batch_graphql.plugins.sinks.jsonl import JsonLinesWriter, RecordWriter

__all__ = ["JsonLinesWriter", "RecordWriter"]
