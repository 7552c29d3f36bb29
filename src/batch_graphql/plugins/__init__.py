# src/batch_graphql/plugins/__init__.py
"""Pluggable edges of a run: remote clients, input sources, output sinks."""
