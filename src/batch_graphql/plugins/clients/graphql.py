# src/batch_graphql/plugins/clients/graphql.py
"""GraphQL client: performs one call per variable set.

The query document is fixed for the client's lifetime; each call sends
{"query": ..., "variables": ...} to the configured endpoint. The
connection pool is sized to the run's concurrency limit so the transport
never queues requests ahead of the admission controller.
"""

from __future__ import annotations

import math
from json import JSONDecodeError
from typing import Any

import httpx
import structlog

from batch_graphql.contracts.errors import (
    RemoteStatusFailure,
    ResponseDecodeFailure,
    TransportFailure,
)
from batch_graphql.contracts.results import VariableSet
from batch_graphql.plugins.clients.auth import TokenAuthority

logger = structlog.get_logger(__name__)


def _contains_non_finite(obj: Any) -> bool:
    """Recursively check if a parsed JSON value holds NaN or Infinity."""
    if isinstance(obj, float):
        return math.isnan(obj) or math.isinf(obj)
    if isinstance(obj, dict):
        return any(_contains_non_finite(v) for v in obj.values())
    if isinstance(obj, list):
        return any(_contains_non_finite(v) for v in obj)
    return False


class GraphQLClient:
    """Thread-safe client for sending one query document with varying variables.

    Example:
        client = GraphQLClient(
            url="https://api.example.com/graphql",
            query="query Q($x: Int!) { double(x: $x) }",
            connections=10,
            headers=[("X-Tenant", "acme")],
            authority=TokenAuthority.static("secret"),
        )
        response = client.execute({"x": 21})   # {"data": {"double": 42}}
        client.close()
    """

    def __init__(
        self,
        *,
        url: str,
        query: str,
        connections: int,
        headers: list[tuple[str, str]] | None = None,
        authority: TokenAuthority | None = None,
        timeout: float = 30.0,
        http_client: httpx.Client | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            url: GraphQL endpoint
            query: Query document sent with every call
            connections: Pool size (max connections and max idle connections)
            headers: Extra headers sent with every call; names may repeat
            authority: Source of the bearer token (no auth when None)
            timeout: Per-request timeout in seconds
            http_client: Pre-built httpx client to share (owned by the caller)
        """
        self._url = url
        self._query = query
        self._headers = list(headers or [])
        self._authority = authority if authority is not None else TokenAuthority.none()
        self._owns_client = http_client is None
        self._client = http_client if http_client is not None else create_http_client(connections, timeout)

    @property
    def http_client(self) -> httpx.Client:
        """Underlying httpx client (shared with the token authority for logins)."""
        return self._client

    @property
    def authority(self) -> TokenAuthority:
        return self._authority

    @property
    def query(self) -> str:
        return self._query

    def build_headers(self, token: str) -> httpx.Headers:
        headers = httpx.Headers(self._headers)
        headers["Content-Type"] = "application/json"
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def execute(self, variables: VariableSet) -> Any:
        """Send the query with the given variables.

        Args:
            variables: Variables for this call

        Returns:
            Decoded JSON response body (2xx responses only)

        Raises:
            AuthFailure: If no valid token could be obtained
            TransportFailure: If the endpoint could not be reached
            RemoteStatusFailure: On non-2xx status; response holds the raw
                body text when the endpoint sent one
            ResponseDecodeFailure: If a 2xx body is not valid JSON
        """
        token = self._authority.current_token()
        headers = self.build_headers(token)

        try:
            response = self._client.post(
                self._url,
                json={"query": self._query, "variables": variables},
                headers=headers,
            )
        except httpx.HTTPError as e:
            raise TransportFailure(f"request failed: {e}") from e

        if not response.is_success:
            raw = response.text
            raise RemoteStatusFailure(response.status_code, response=raw if raw else None)

        try:
            parsed = response.json()
        except (JSONDecodeError, UnicodeDecodeError) as e:
            raise ResponseDecodeFailure(f"could not decode response: {e}") from e
        if _contains_non_finite(parsed):
            raise ResponseDecodeFailure("could not decode response: JSON contains non-finite values (NaN or Infinity)")
        return parsed

    def close(self) -> None:
        """Close the underlying httpx client if this instance created it."""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> GraphQLClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def create_http_client(connections: int, timeout: float) -> httpx.Client:
    """Build an httpx client whose pool matches the concurrency limit.

    httpx.Client is thread-safe; its pool handles concurrent requests.
    Redirects are not followed: a 3xx from a GraphQL endpoint is a failure.
    """
    limits = httpx.Limits(max_connections=connections, max_keepalive_connections=connections)
    return httpx.Client(limits=limits, timeout=timeout, follow_redirects=False)
