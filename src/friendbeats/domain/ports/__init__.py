"""Domain ports (interfaces) for dependency inversion."""

from abc import ABC, abstractmethod
from typing import Any

from friendbeats.domain.dtos import PlaylistDTO, UserProfileDTO


class ITokenProvider(ABC):
    """Port for obtaining a Spotify app access token (client credentials)."""

    @abstractmethod
    async def get_access_token(self) -> str:
        """
        Get a valid bearer token, refreshing it if the cached one expired.

        Raises:
            ConfigurationError: If client credentials are not configured
            RateLimitError: If the accounts service answered 429
            AuthServiceError: For any other failure
        """
        pass

    @abstractmethod
    def invalidate(self) -> None:
        """Drop the cached token so the next get_access_token() fetches a new one."""
        pass


# Hey future me, ISpotifyClient is only the READ side we need for public profiles. No OAuth
# user flow here - client credentials can't see private data anyway. Services depend on this
# port so tests can hand in a fake instead of patching httpx.
class ISpotifyClient(ABC):
    """Port for read-only Spotify Web API operations."""

    @abstractmethod
    async def get_user_profile(self, user_id: str, access_token: str) -> UserProfileDTO:
        """
        Get a user's public profile.

        Raises:
            NotFoundError: If the user does not exist
        """
        pass

    @abstractmethod
    async def get_user_playlists(
        self, user_id: str, access_token: str
    ) -> list[PlaylistDTO]:
        """Get every public playlist listed on a user's profile (all pages)."""
        pass

    @abstractmethod
    async def get_playlist_tracks(
        self,
        playlist_id: str,
        access_token: str,
        limit: int,
        total: int | None = None,
    ) -> list[dict[str, Any]]:
        """
        Get up to `limit` raw playlist items, from the tail when `total` is known.

        Returns:
            Raw Spotify playlist item dicts (added_at + track)
        """
        pass


class ISitemapRecorder(ABC):
    """Port for recording visited pages for sitemap generation."""

    @abstractmethod
    async def record_path(self, path: str, image_url: str | None = None) -> None:
        """Record a visit. Must never raise."""
        pass


__all__ = ["ISitemapRecorder", "ISpotifyClient", "ITokenProvider"]
