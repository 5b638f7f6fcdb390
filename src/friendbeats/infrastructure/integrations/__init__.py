"""Spotify Web API integrations."""

from friendbeats.infrastructure.integrations.spotify_client import Page, SpotifyClient
from friendbeats.infrastructure.integrations.spotify_token_provider import (
    SpotifyTokenProvider,
    parse_retry_after,
)

__all__ = ["Page", "SpotifyClient", "SpotifyTokenProvider", "parse_retry_after"]
