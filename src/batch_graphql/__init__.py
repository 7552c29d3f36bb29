"""
batch-graphql: run high volumes of GraphQL queries or mutations with varying data.

A single query document is sent once per input record, with bounded
concurrency, and every record yields exactly one row-numbered result line.
"""

__version__ = "0.1.0"
