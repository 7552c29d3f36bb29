# tests/conftest.py
"""Shared test fixtures and helpers.

Test doubles:
- ListWriter: in-memory RecordWriter that keeps every record written
- FakeExecutor: CallExecutor driven by a plain function, tracking how many
  calls are running at once

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/property/
"""

import io
import os
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from hypothesis import Phase, Verbosity, settings

from batch_graphql.plugins.sources.jsonl import JsonLinesSource

GRAPHQL_URL = "https://api.example.com/graphql"
TOKEN_URL = "https://auth.example.com/oauth2/token"
DOUBLE_QUERY = "query Q($x:Int!){double(x:$x)}"


class ListWriter:
    """RecordWriter that appends records to a list (thread-safe)."""

    def __init__(self) -> None:
        self.records: list[dict[str, Any]] = []
        self._lock = threading.Lock()

    def write(self, record: dict[str, Any]) -> None:
        with self._lock:
            self.records.append(record)

    @property
    def rows(self) -> list[int]:
        return sorted(r["row"] for r in self.records)

    def by_row(self) -> dict[int, dict[str, Any]]:
        return {r["row"]: r for r in self.records}


class FakeExecutor:
    """CallExecutor backed by a function, with in-flight tracking."""

    def __init__(self, fn: Callable[[dict[str, Any]], Any]) -> None:
        self._fn = fn
        self._lock = threading.Lock()
        self.calls: list[dict[str, Any]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    def execute(self, variables: dict[str, Any]) -> Any:
        with self._lock:
            self.calls.append(variables)
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            return self._fn(variables)
        finally:
            with self._lock:
                self.in_flight -= 1


def double(variables: dict[str, Any]) -> Any:
    return {"data": {"double": variables["x"] * 2}}


def jsonl_source(text: str) -> JsonLinesSource:
    return JsonLinesSource(io.StringIO(text))


@pytest.fixture
def list_writers() -> tuple[ListWriter, ListWriter]:
    """(success writer, error writer) pair."""
    return ListWriter(), ListWriter()


@pytest.fixture
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point HOME at an empty directory and clear BATCH_GRAPHQL_* env vars.

    Keeps a developer's ~/.batch-graphql.json and shell environment out of
    configuration tests.
    """
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    for key in list(os.environ):
        if key.startswith("BATCH_GRAPHQL_"):
            monkeypatch.delenv(key)
    return home


# =============================================================================
# Hypothesis Configuration
# =============================================================================

settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,  # Thread scheduling makes timing vary
)

settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))
