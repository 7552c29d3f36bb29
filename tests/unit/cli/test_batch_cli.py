# tests/unit/cli/test_batch_cli.py
"""Tests for the batch-graphql command line."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from pathlib import Path

import httpx
import pytest
import respx
import structlog
from typer.testing import CliRunner

from batch_graphql import __version__
from batch_graphql.cli import EXIT_CANCELLED, app
from batch_graphql.contracts.results import DispatchSummary
from tests.conftest import DOUBLE_QUERY, GRAPHQL_URL

runner = CliRunner()


@pytest.fixture(autouse=True)
def restore_logging(isolated_home: Path) -> Iterator[None]:
    """The CLI callback reconfigures logging against the runner's streams."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
    structlog.reset_defaults()


@pytest.fixture
def workdir(tmp_path: Path) -> Path:
    (tmp_path / "query.graphql").write_text(DOUBLE_QUERY)
    (tmp_path / "input.jsonl").write_text('{"x":1}\n{"x":2}\n')
    return tmp_path


def run_args(workdir: Path, *extra: str) -> list[str]:
    return [
        "--no-dotenv",
        "run",
        "--url",
        GRAPHQL_URL,
        "--query",
        str(workdir / "query.graphql"),
        "--input",
        str(workdir / "input.jsonl"),
        "--output",
        str(workdir / "out.jsonl"),
        "--error",
        str(workdir / "err.jsonl"),
        *extra,
    ]


class TestBasics:
    def test_version_flag(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"batch-graphql version {__version__}" in result.output

    def test_version_command(self) -> None:
        result = runner.invoke(app, ["--no-dotenv", "version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_lists_run_options(self) -> None:
        result = runner.invoke(app, ["--no-dotenv", "run", "--help"])
        assert result.exit_code == 0
        for option in ("--url", "--connections", "--header", "--token", "--oauth-url", "--query"):
            assert option in result.output


class TestRunCommand:
    @respx.mock
    def test_successful_run_exits_zero(self, workdir: Path) -> None:
        respx.post(GRAPHQL_URL).mock(return_value=httpx.Response(200, json={"data": {"double": 0}}))

        result = runner.invoke(app, run_args(workdir, "--connections", "2"))

        assert result.exit_code == 0, result.output
        rows = sorted(json.loads(line)["row"] for line in (workdir / "out.jsonl").read_text().splitlines())
        assert rows == [1, 2]

    @respx.mock
    def test_row_failures_do_not_change_exit_code(self, workdir: Path) -> None:
        respx.post(GRAPHQL_URL).mock(return_value=httpx.Response(503))

        result = runner.invoke(app, run_args(workdir))

        assert result.exit_code == 0, result.output
        errors = [json.loads(line) for line in (workdir / "err.jsonl").read_text().splitlines()]
        assert {e["error"] for e in errors} == {"invalid status code 503"}

    @respx.mock
    def test_repeated_header_option(self, workdir: Path) -> None:
        route = respx.post(GRAPHQL_URL).mock(return_value=httpx.Response(200, json={}))

        result = runner.invoke(app, run_args(workdir, "-H", "X-Tag: a", "-H", "X-Tag: b", "--token", "tok"))

        assert result.exit_code == 0, result.output
        request = route.calls.last.request
        assert request.headers.get_list("X-Tag") == ["a", "b"]
        assert request.headers["Authorization"] == "Bearer tok"

    def test_token_and_oauth_conflict(self, workdir: Path) -> None:
        result = runner.invoke(
            app,
            run_args(
                workdir,
                "--token",
                "tok",
                "--oauth-url",
                "https://auth.example.com/token",
                "--oauth-client-id",
                "id",
                "--oauth-client-secret",
                "secret",
                "--oauth-scope",
                "api",
            ),
        )
        assert result.exit_code == 1
        assert "Configuration errors" in result.output
        assert "mutually exclusive" in result.output

    def test_partial_oauth_options_rejected(self, workdir: Path) -> None:
        result = runner.invoke(app, run_args(workdir, "--oauth-url", "https://auth.example.com/token"))
        assert result.exit_code == 1
        assert "oauth" in result.output

    def test_missing_url(self, workdir: Path) -> None:
        args = run_args(workdir)
        del args[2:4]
        result = runner.invoke(app, args)
        assert result.exit_code == 1
        assert "url" in result.output

    def test_malformed_header(self, workdir: Path) -> None:
        result = runner.invoke(app, run_args(workdir, "--header", "no-colon"))
        assert result.exit_code == 1
        assert "malformed header" in result.output

    def test_missing_query_file(self, workdir: Path) -> None:
        (workdir / "query.graphql").unlink()
        result = runner.invoke(app, run_args(workdir))
        assert result.exit_code == 1
        assert "cannot read query file" in result.output

    def test_missing_config_file(self, workdir: Path) -> None:
        result = runner.invoke(app, run_args(workdir, "--config", str(workdir / "nope.json")))
        assert result.exit_code == 1
        assert "Config file not found" in result.output

    def test_config_file_supplies_url(self, workdir: Path) -> None:
        config = workdir / "settings.json"
        config.write_text(json.dumps({"url": GRAPHQL_URL, "connections": 1}))
        args = run_args(workdir, "--config", str(config))
        del args[2:4]

        with respx.mock:
            respx.post(GRAPHQL_URL).mock(return_value=httpx.Response(200, json={}))
            result = runner.invoke(app, args)

        assert result.exit_code == 0, result.output

    def test_cancelled_run_exits_130(self, workdir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(
            "batch_graphql.engine.runner.run",
            lambda settings: DispatchSummary(rows=1, cancelled=True, max_in_flight=1),
        )
        result = runner.invoke(app, run_args(workdir))
        assert result.exit_code == EXIT_CANCELLED

    def test_missing_env_file(self, workdir: Path) -> None:
        result = runner.invoke(app, ["--env-file", str(workdir / "missing.env"), "version"])
        assert result.exit_code == 1
        assert ".env file not found" in result.output
