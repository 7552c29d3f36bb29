# src/batch_graphql/cli.py
"""batch-graphql Command Line Interface.

Entry point for the batch-graphql CLI tool.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import typer
from pydantic import ValidationError

from batch_graphql import __version__
from batch_graphql.contracts.errors import ConfigurationError

__all__ = ["app"]

# Exit code for a run stopped by SIGINT/SIGTERM (128 + SIGINT)
EXIT_CANCELLED = 130

app = typer.Typer(
    name="batch-graphql",
    help="Run a batch of GraphQL queries or mutations with varying data.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"batch-graphql version {__version__}")
        raise typer.Exit()


def _load_dotenv(env_file: Path | None = None) -> bool:
    """Load environment variables from .env file.

    Args:
        env_file: Explicit path to .env file. If None, searches for .env
                 in current directory and parent directories.

    Returns:
        True if .env was found and loaded, False otherwise.

    Raises:
        typer.Exit: If explicit env_file path doesn't exist.
    """
    from dotenv import load_dotenv

    if env_file is not None:
        if not env_file.exists():
            typer.secho(
                f"Error: .env file not found: {env_file}",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(1)
        return load_dotenv(env_file, override=False)

    # Don't override existing env vars
    return load_dotenv(override=False)


def _fail(message: str) -> typer.Exit:
    typer.secho(f"Error: {message}", fg=typer.colors.RED, err=True)
    return typer.Exit(1)


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    no_dotenv: bool = typer.Option(
        False,
        "--no-dotenv",
        help="Skip loading .env file.",
    ),
    env_file: Path | None = typer.Option(
        None,
        "--env-file",
        help="Path to .env file (skips automatic search).",
        exists=False,  # Existence is checked in _load_dotenv for a better message
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug logging.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output structured JSON logs (for machine processing).",
    ),
) -> None:
    """Run a batch of GraphQL queries or mutations with varying data."""
    from batch_graphql.core.logging import configure_logging

    configure_logging(json_output=json_logs, level="DEBUG" if debug else "INFO")

    if not no_dotenv:
        _load_dotenv(env_file=env_file)
    elif env_file is not None:
        typer.secho(
            "Warning: --env-file ignored because --no-dotenv is set.",
            fg=typer.colors.YELLOW,
            err=True,
        )


@app.command()
def run(
    url: str | None = typer.Option(None, "--url", "-u", help="URL of the GraphQL service."),
    connections: int | None = typer.Option(
        None,
        "--connections",
        "-c",
        help="Maximum number of open connections and parallel requests [default: 10].",
    ),
    verbose: bool | None = typer.Option(None, "--verbose", "-v", help="Report progress every few seconds."),
    header: list[str] | None = typer.Option(
        None,
        "--header",
        "-H",
        help="Additional header to include in every request ('Name: value'). Repeatable.",
    ),
    token: str | None = typer.Option(
        None,
        "--token",
        "-t",
        help="Bearer token (conflicts with all oauth options).",
    ),
    oauth_url: str | None = typer.Option(None, "--oauth-url", help="URL of the OAuth 2.0 token endpoint."),
    oauth_client_id: str | None = typer.Option(None, "--oauth-client-id", help="OAuth 2.0 client ID."),
    oauth_client_secret: str | None = typer.Option(None, "--oauth-client-secret", help="OAuth 2.0 client secret."),
    oauth_scope: str | None = typer.Option(None, "--oauth-scope", help="OAuth 2.0 requested scope."),
    query: Path | None = typer.Option(None, "--query", "-q", help="File that contains the GraphQL query."),
    input: Path | None = typer.Option(
        None,
        "--input",
        "-i",
        help="Input file with one JSON object of variables per line [default: stdin].",
    ),
    output: Path | None = typer.Option(None, "--output", "-o", help="Output file for responses [default: stdout]."),
    error: Path | None = typer.Option(None, "--error", "-e", help="Output file for error responses [default: stderr]."),
    timeout: float | None = typer.Option(None, "--timeout", help="Per-request timeout in seconds [default: 30]."),
    config: Path | None = typer.Option(
        None,
        "--config",
        help="Settings file (default ~/.batch-graphql.json).",
    ),
) -> None:
    """Send the query once per input record and write one result line per record.

    Successful responses go to the output stream, failures to the error
    stream. Each line carries the row number of the input record it
    belongs to. Per-row failures never change the exit code.
    """
    from batch_graphql.core.config import load_settings
    from batch_graphql.engine.runner import run as run_batch

    oauth: dict[str, Any] = {
        "url": oauth_url,
        "client_id": oauth_client_id,
        "client_secret": oauth_client_secret,
        "scope": oauth_scope,
    }
    overrides: dict[str, Any] = {
        "url": url,
        "connections": connections,
        "verbose": verbose or None,
        "headers": header or None,
        "token": token,
        "oauth": {k: v for k, v in oauth.items() if v is not None} or None,
        "query": _expand(query),
        "input": _expand(input),
        "output": _expand(output),
        "error": _expand(error),
        "timeout": timeout,
    }

    try:
        settings = load_settings(_expand(config), overrides)
    except FileNotFoundError as e:
        raise _fail(str(e)) from None
    except ValidationError as e:
        typer.secho("Configuration errors:", fg=typer.colors.RED, err=True)
        for err in e.errors():
            loc = ".".join(str(part) for part in err["loc"]) or "settings"
            typer.secho(f"  - {loc}: {err['msg']}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from None

    try:
        summary = run_batch(settings)
    except ConfigurationError as e:
        raise _fail(str(e)) from None

    if summary.cancelled:
        raise typer.Exit(EXIT_CANCELLED)


@app.command()
def version() -> None:
    """Show version."""
    typer.echo(f"batch-graphql version {__version__}")


def _expand(path: Path | None) -> Path | None:
    """Expand ~ in user-supplied paths."""
    return path.expanduser() if path is not None else None
