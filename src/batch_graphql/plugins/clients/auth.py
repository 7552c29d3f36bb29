# src/batch_graphql/plugins/clients/auth.py
"""Token authority: owns the bearer credential shared by all calls.

Three modes:
- NONE: no credential, calls carry no Authorization header
- STATIC: a fixed token supplied once
- OAUTH: OAuth 2.0 client credentials flow, token cached until 90% of its
  advertised lifetime has passed, then fetched again by the next caller

Refresh is single-flight: callers read the cache without locking; on a
miss they take the lock, check again, and only then log in. Concurrent
callers that miss together wait on the lock and reuse the new token.
"""

from __future__ import annotations

import math
import threading
from dataclasses import dataclass
from enum import Enum
from json import JSONDecodeError
from typing import TYPE_CHECKING

import httpx
import structlog

from batch_graphql.contracts.errors import AuthFailure
from batch_graphql.engine.clock import DEFAULT_CLOCK, Clock

if TYPE_CHECKING:
    from batch_graphql.core.config import OAuthSettings

logger = structlog.get_logger(__name__)

# Fraction of the advertised lifetime after which a cached token is dropped
TOKEN_LIFETIME_FRACTION = 0.9


class AuthMode(str, Enum):
    NONE = "none"
    STATIC = "static"
    OAUTH = "oauth"


@dataclass(frozen=True, slots=True)
class CachedToken:
    """Access token with the monotonic instant after which it is not reused."""

    value: str
    expires_at: float


class TokenAuthority:
    """Provides a valid bearer token to concurrent callers.

    Use the factory methods to create instances.

    Thread Safety:
        current_token() may be called from any number of threads. The cached
        token is replaced as a single reference, so the unlocked fast path
        never observes a half-written value.
    """

    def __init__(
        self,
        mode: AuthMode,
        *,
        static_token: str | None = None,
        http_client: httpx.Client | None = None,
        oauth: OAuthSettings | None = None,
        clock: Clock | None = None,
    ) -> None:
        if mode is AuthMode.STATIC and not static_token:
            raise ValueError("static mode requires a non-empty token")
        if mode is AuthMode.OAUTH and (http_client is None or oauth is None):
            raise ValueError("oauth mode requires an http client and oauth settings")
        self._mode = mode
        self._static_token = static_token
        self._http_client = http_client
        self._oauth = oauth
        self._clock = clock if clock is not None else DEFAULT_CLOCK
        self._lock = threading.Lock()
        self._cached: CachedToken | None = None
        self._login_count = 0

    @classmethod
    def none(cls) -> TokenAuthority:
        return cls(AuthMode.NONE)

    @classmethod
    def static(cls, token: str) -> TokenAuthority:
        return cls(AuthMode.STATIC, static_token=token)

    @classmethod
    def dynamic(
        cls,
        http_client: httpx.Client,
        oauth: OAuthSettings,
        *,
        clock: Clock | None = None,
    ) -> TokenAuthority:
        return cls(AuthMode.OAUTH, http_client=http_client, oauth=oauth, clock=clock)

    @property
    def mode(self) -> AuthMode:
        return self._mode

    @property
    def login_count(self) -> int:
        """Number of login exchanges performed so far."""
        return self._login_count

    def current_token(self) -> str:
        """Return a token valid for at least the next call, or "" in NONE mode.

        Raises:
            AuthFailure: If a login exchange was needed and failed
        """
        if self._mode is AuthMode.NONE:
            return ""
        if self._mode is AuthMode.STATIC:
            assert self._static_token is not None
            return self._static_token

        cached = self._cached
        if cached is not None and self._is_fresh(cached):
            return cached.value

        with self._lock:
            # Another caller may have logged in while we waited for the lock
            cached = self._cached
            if cached is not None and self._is_fresh(cached):
                return cached.value
            self._cached = None
            cached = self._login()
            self._cached = cached
            return cached.value

    def invalidate(self) -> None:
        """Drop the cached token so the next caller logs in again."""
        with self._lock:
            self._cached = None

    def _is_fresh(self, token: CachedToken) -> bool:
        return self._clock.monotonic() < token.expires_at

    def _login(self) -> CachedToken:
        """Run the client credentials exchange (caller holds the lock)."""
        assert self._http_client is not None
        assert self._oauth is not None
        oauth = self._oauth

        try:
            response = self._http_client.post(
                oauth.url,
                data={"grant_type": "client_credentials", "scope": oauth.scope},
                auth=(oauth.client_id, oauth.client_secret),
            )
        except httpx.HTTPError as e:
            logger.warning("login_failed", reason="transport", error=str(e), error_type=type(e).__name__)
            raise AuthFailure(f"login request failed: {e}") from e

        if not response.is_success:
            logger.warning("login_failed", reason="status", status_code=response.status_code)
            raise AuthFailure(f"invalid status code {response.status_code} during login")

        try:
            payload = response.json()
        except (JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning("login_failed", reason="decode", error=str(e))
            raise AuthFailure(f"could not decode login response: {e}") from e

        if not isinstance(payload, dict):
            raise AuthFailure(f"login response must be a JSON object, got {type(payload).__name__}")

        access_token = payload.get("access_token")
        if not isinstance(access_token, str) or not access_token:
            logger.warning("login_failed", reason="missing_token")
            raise AuthFailure("login response did not include access token")

        expires_in = payload.get("expires_in", 0)
        if isinstance(expires_in, bool) or not isinstance(expires_in, (int, float)) or expires_in < 0:
            raise AuthFailure(f"login response has invalid expires_in: {expires_in!r}")

        lifetime = math.floor(expires_in * TOKEN_LIFETIME_FRACTION)
        self._login_count += 1
        logger.info("login_completed", expires_in=expires_in, cached_for_seconds=lifetime)
        return CachedToken(value=access_token, expires_at=self._clock.monotonic() + lifetime)
