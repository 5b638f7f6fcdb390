"""Spotify client-credentials token provider with in-process caching."""

import asyncio
import base64
import logging
import time
from collections.abc import Callable

import httpx

from friendbeats.config.settings import SpotifySettings
from friendbeats.domain.exceptions import (
    AuthServiceError,
    ConfigurationError,
    RateLimitError,
)
from friendbeats.domain.ports import ITokenProvider

logger = logging.getLogger(__name__)

# Refresh this long before Spotify's own expiry so an in-flight request never carries a dead token
EXPIRY_SAFETY_MARGIN_SECONDS = 60


def parse_retry_after(value: str | None) -> int | None:
    """Parse a Retry-After header given in seconds. HTTP-date values are ignored."""
    if not value:
        return None
    try:
        return max(0, int(value.strip()))
    except ValueError:
        return None


class SpotifyTokenProvider(ITokenProvider):
    """App access tokens via the client credentials grant.

    The token is cached for min(token_cache_seconds, expires_in - 60s). One
    asyncio.Lock guards the refresh so concurrent aggregations that find an
    expired token trigger a single token request instead of a stampede.
    """

    def __init__(
        self,
        settings: SpotifySettings,
        http_client: httpx.AsyncClient | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize token provider.

        Args:
            settings: Spotify configuration settings
            http_client: Shared HTTP client (created lazily when omitted)
            clock: Monotonic clock, injectable for tests
        """
        self.settings = settings
        self._client = http_client
        self._owns_client = http_client is None
        self._clock = clock
        self._token: str | None = None
        self._expires_at = 0.0
        self._lock = asyncio.Lock()

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.settings.request_timeout)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if we created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def invalidate(self) -> None:
        """Forget the cached token; the next call fetches a new one."""
        self._token = None
        self._expires_at = 0.0

    def _cached_token(self) -> str | None:
        if self._token is not None and self._clock() < self._expires_at:
            return self._token
        return None

    async def get_access_token(self) -> str:
        """Return a cached token or fetch a fresh one.

        Raises:
            ConfigurationError: If SPOTIFY_CLIENT_ID / SPOTIFY_CLIENT_SECRET are unset
            RateLimitError: If the accounts service answered 429
            AuthServiceError: For any other non-2xx, network failure or bad body
        """
        token = self._cached_token()
        if token is not None:
            return token

        async with self._lock:
            # Another task may have refreshed while we waited for the lock
            token = self._cached_token()
            if token is not None:
                return token

            token, expires_in = await self._request_token()
            lifetime = min(
                self.settings.token_cache_seconds,
                max(0, expires_in - EXPIRY_SAFETY_MARGIN_SECONDS),
            )
            self._token = token
            self._expires_at = self._clock() + lifetime
            logger.debug("Spotify access token refreshed, cached for %ds", lifetime)
            return token

    async def _request_token(self) -> tuple[str, int]:
        """POST the client credentials grant and return (token, expires_in)."""
        client_id = self.settings.client_id.strip()
        client_secret = self.settings.client_secret.strip()
        if not client_id or not client_secret:
            logger.error(
                "Spotify API credentials (SPOTIFY_CLIENT_ID, SPOTIFY_CLIENT_SECRET) are not configured"
            )
            raise ConfigurationError(
                "Spotify API credentials missing. "
                "Set SPOTIFY_CLIENT_ID and SPOTIFY_CLIENT_SECRET in the environment or .env. "
                "Get credentials at https://developer.spotify.com/dashboard"
            )

        basic = base64.b64encode(f"{client_id}:{client_secret}".encode()).decode("ascii")
        client = await self._get_client()

        try:
            response = await client.post(
                self.settings.token_url,
                data={"grant_type": "client_credentials"},
                headers={
                    "Authorization": f"Basic {basic}",
                    "Content-Type": "application/x-www-form-urlencoded",
                },
            )
        except httpx.HTTPError as e:
            logger.error("Could not reach Spotify accounts service: %s", e)
            raise AuthServiceError(
                "Could not connect to Spotify authentication service"
            ) from e

        if response.status_code == 429:
            retry_after = parse_retry_after(response.headers.get("Retry-After"))
            logger.warning(
                "Spotify token endpoint rate limited (Retry-After: %s)",
                retry_after if retry_after is not None else "not provided",
            )
            raise RateLimitError(
                "Spotify token endpoint rate limited", retry_after=retry_after
            )

        if not response.is_success:
            logger.error(
                "Spotify token request failed: %d %s",
                response.status_code,
                response.text[:500],
            )
            raise AuthServiceError(
                f"Failed to obtain Spotify access token (status {response.status_code})",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise AuthServiceError(
                "Invalid JSON from Spotify token endpoint",
                status_code=response.status_code,
                body=response.text,
            ) from e

        token = data.get("access_token") if isinstance(data, dict) else None
        if not token:
            logger.error("Spotify token response did not contain access_token")
            raise AuthServiceError(
                "Invalid response from Spotify token endpoint",
                status_code=response.status_code,
            )

        try:
            expires_in = int(data.get("expires_in", 3600))
        except (TypeError, ValueError):
            expires_in = 3600
        return token, expires_in
