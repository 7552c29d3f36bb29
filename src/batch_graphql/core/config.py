# src/batch_graphql/core/config.py
"""
Configuration schema and loading for batch runs.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction.
"""

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from batch_graphql.contracts.errors import ConfigurationError

ENVVAR_PREFIX = "BATCH_GRAPHQL"

# Looked up in the home directory when no --config is given
DEFAULT_CONFIG_NAME = ".batch-graphql.json"


def _scalar_to_str(v: Any) -> Any:
    """Turn TOML-parsed env scalars back into strings.

    Dynaconf parses BATCH_GRAPHQL_TOKEN=12345 as an int and "true" as a bool.
    """
    if isinstance(v, bool):
        return "true" if v else "false"
    if isinstance(v, (int, float)):
        return str(v)
    return v


class OAuthSettings(BaseModel):
    """Credentials for the OAuth 2.0 client credentials flow.

    All four fields are required together.

    Example YAML:
        oauth:
          url: https://auth.example.com/oauth2/token
          client_id: my-client
          client_secret: ${CLIENT_SECRET}
          scope: api/write
    """

    model_config = {"frozen": True, "extra": "forbid"}

    url: str = Field(min_length=1, description="Token endpoint of the OAuth 2.0 service")
    client_id: str = Field(min_length=1, description="Client ID")
    client_secret: str = Field(min_length=1, description="Client secret")
    scope: str = Field(min_length=1, description="Requested scope")

    @field_validator("url", "client_id", "client_secret", "scope", mode="before")
    @classmethod
    def coerce_env_scalars(cls, v: Any) -> Any:
        return _scalar_to_str(v)


class BatchSettings(BaseModel):
    """Settings for one batch run.

    Example YAML:
        url: https://api.example.com/graphql
        connections: 20
        query: mutation.graphql
        input: variables.jsonl
        headers:
          - "X-Tenant: acme"
    """

    model_config = {"frozen": True, "extra": "forbid"}

    url: str = Field(min_length=1, description="URL of the GraphQL service")
    connections: int = Field(10, ge=1, description="Maximum open connections and parallel requests")
    verbose: bool = Field(False, description="Report progress while running")
    headers: tuple[str, ...] = Field(default=(), description="Additional headers ('Name: value')")
    token: str | None = Field(default=None, description="Static bearer token")
    oauth: OAuthSettings | None = Field(default=None, description="OAuth 2.0 client credentials")
    query: Path = Field(description="File containing the GraphQL query")
    input: Path | None = Field(default=None, description="Input file with variables (default stdin)")
    output: Path | None = Field(default=None, description="Output file for responses (default stdout)")
    error: Path | None = Field(default=None, description="Output file for error responses (default stderr)")
    timeout: float = Field(30.0, gt=0, description="Per-request timeout in seconds")
    progress_interval: float = Field(5.0, gt=0, description="Seconds between progress reports")

    @field_validator("headers", mode="before")
    @classmethod
    def coerce_single_header(cls, v: Any) -> Any:
        """Accept a single header string from env vars or config files."""
        if isinstance(v, str):
            return (v,) if v else ()
        return v

    @field_validator("token", mode="before")
    @classmethod
    def coerce_env_token(cls, v: Any) -> Any:
        return _scalar_to_str(v)

    @field_validator("token")
    @classmethod
    def empty_token_is_none(cls, v: str | None) -> str | None:
        return v or None

    @model_validator(mode="after")
    def validate_single_auth_mode(self) -> "BatchSettings":
        """A static token and OAuth credentials are mutually exclusive."""
        if self.token is not None and self.oauth is not None:
            raise ValueError("token and oauth are mutually exclusive; configure only one")
        return self

    @model_validator(mode="after")
    def validate_headers(self) -> "BatchSettings":
        """Reject malformed header strings at config time."""
        try:
            parse_headers(self.headers)
        except ConfigurationError as e:
            raise ValueError(str(e)) from e
        return self


def _canonical_header_name(name: str) -> str:
    """Canonicalise a header name: 'x-tenant-id' -> 'X-Tenant-Id'."""
    return "-".join(part[:1].upper() + part[1:].lower() for part in name.split("-"))


def parse_headers(lines: tuple[str, ...] | list[str]) -> list[tuple[str, str]]:
    """Parse 'Name: value' strings into (name, value) pairs.

    Names are canonicalised; repeated names keep every value in order.

    Raises:
        ConfigurationError: If a line has no colon or an empty name
    """
    result: list[tuple[str, str]] = []
    for line in lines:
        name, sep, value = line.partition(":")
        name = name.strip()
        if not sep:
            raise ConfigurationError(f"malformed header {line!r}: expected 'Name: value'")
        if not name or any(c.isspace() for c in name):
            raise ConfigurationError(f"malformed header {line!r}: invalid header name")
        result.append((_canonical_header_name(name), value.strip()))
    return result


def _lowercase_keys(value: Any) -> Any:
    """Lowercase dict keys recursively (Dynaconf returns uppercase keys)."""
    if isinstance(value, dict):
        return {str(k).lower(): _lowercase_keys(v) for k, v in value.items()}
    return value


def _merge(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge overrides into base, ignoring None override values."""
    merged = dict(base)
    for key, value in overrides.items():
        if value is None:
            continue
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_settings(
    config_path: Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> BatchSettings:
    """Load settings from file, environment and explicit overrides.

    Uses Dynaconf for multi-source loading with precedence:
    1. overrides (command-line flags) - highest priority
    2. Environment variables (BATCH_GRAPHQL_*)
    3. Config file (--config, else ~/.batch-graphql.json if present)
    4. Defaults from Pydantic schema - lowest priority

    Environment variable format: BATCH_GRAPHQL_OAUTH__URL for nested keys.

    Args:
        config_path: Explicit settings file; must exist when given
        overrides: Values that win over every other source; None values
            are treated as "not set"

    Returns:
        Validated BatchSettings instance

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If an explicit config file doesn't exist
    """
    from dynaconf import Dynaconf

    settings_files: list[str] = []
    if config_path is not None:
        # Dynaconf silently accepts missing files
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        settings_files.append(str(config_path))
    else:
        default_path = Path.home() / DEFAULT_CONFIG_NAME
        if default_path.exists():
            settings_files.append(str(default_path))

    dynaconf_settings = Dynaconf(
        envvar_prefix=ENVVAR_PREFIX,
        settings_files=settings_files,
        environments=False,
        load_dotenv=False,  # .env is loaded by the CLI
        merge_enabled=True,
    )

    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config = {k: v for k, v in dynaconf_settings.as_dict().items() if k not in internal_keys}
    raw_config = _lowercase_keys(raw_config)

    return BatchSettings(**_merge(raw_config, overrides or {}))


def read_query(path: Path) -> str:
    """Read the query document.

    Raises:
        ConfigurationError: If the file cannot be read or is empty
    """
    try:
        query = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"cannot read query file {path}: {e}") from e
    if not query.strip():
        raise ConfigurationError(f"query file {path} is empty")
    return query
