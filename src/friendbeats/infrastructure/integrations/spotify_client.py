"""Spotify Web API client: paginated, cached, typed errors."""

import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import httpx

from friendbeats.application.cache import BaseCache
from friendbeats.config.settings import SpotifySettings
from friendbeats.domain.dtos import ImageDTO, PlaylistDTO, UserProfileDTO
from friendbeats.domain.exceptions import (
    NotFoundError,
    RateLimitError,
    UpstreamError,
    ValidationError,
)
from friendbeats.domain.ports import ISpotifyClient
from friendbeats.infrastructure.integrations.spotify_token_provider import (
    parse_retry_after,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Page:
    """One page of a paginated Spotify listing."""

    items: list[Any]
    next_url: str | None


class SpotifyClient(ISpotifyClient):
    """HTTP client for the read-only Spotify Web API endpoints we use."""

    # `next` MUST stay in both field selections or fetch_all stops after the first page
    PLAYLIST_FIELDS = "items(id,name,owner(id),external_urls,tracks(total)),next"
    TRACK_FIELDS = (
        "items(added_at,track(id,name,duration_ms,preview_url,external_urls,"
        "artists(id,name),album(name,images))),next"
    )
    PLAYLISTS_PAGE_SIZE = 50
    MAX_TRACKS_PAGE_SIZE = 100

    # Hey future me, the HTTP client is lazy unless one is injected. The app lifespan injects ONE
    # shared AsyncClient into both this and the token provider so they share a connection pool.
    def __init__(
        self,
        settings: SpotifySettings,
        http_client: httpx.AsyncClient | None = None,
        cache: BaseCache[str, Any] | None = None,
    ) -> None:
        """
        Initialize Spotify client.

        Args:
            settings: Spotify configuration settings
            http_client: Shared HTTP client (created lazily when omitted)
            cache: Response cache keyed by full request URL (None disables caching)
        """
        self.settings = settings
        self._client = http_client
        self._owns_client = http_client is None
        self._cache = cache

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

    def build_url(self, path_or_url: str, params: dict[str, Any] | None = None) -> str:
        """Resolve a path against the API base (absolute `next` URLs pass through)."""
        if path_or_url.startswith(("http://", "https://")):
            url = httpx.URL(path_or_url)
        else:
            base = self.settings.api_base_url.rstrip("/")
            url = httpx.URL(f"{base}/{path_or_url.lstrip('/')}")
        if params:
            url = url.copy_merge_params(params)
        return str(url)

    # Listen up: this is the ONE place that turns HTTP status codes into domain errors.
    # 404 → NotFoundError, 429 → RateLimitError (Retry-After kept), anything else non-2xx →
    # UpstreamError with code + body. Callers never look at status codes or messages again.
    def _raise_for_status(self, response: httpx.Response, url: str) -> None:
        if response.is_success:
            return

        if response.status_code == 404:
            raise NotFoundError(
                resource=httpx.URL(url).path,
                message=f"Spotify resource not found at {httpx.URL(url).path}",
            )

        if response.status_code == 429:
            retry_after = parse_retry_after(response.headers.get("Retry-After"))
            logger.warning(
                "Spotify API rate limited (429) for %s. Retry-After: %s",
                url,
                retry_after if retry_after is not None else "not provided",
            )
            raise RateLimitError("Spotify API rate limited", retry_after=retry_after)

        logger.error(
            "Spotify API request failed: %d for %s: %s",
            response.status_code,
            url,
            response.text[:500],
        )
        raise UpstreamError(
            f"Spotify API error (status {response.status_code})",
            status_code=response.status_code,
            body=response.text,
        )

    async def get_json(
        self, url: str, access_token: str, cache_ttl: float = 0
    ) -> Any:
        """GET a fully built URL and return the decoded body, consulting the cache.

        Raises:
            NotFoundError: On 404
            RateLimitError: On 429
            UpstreamError: On other non-2xx, transport failures or invalid JSON
        """
        if self._cache is not None and cache_ttl > 0:
            cached = await self._cache.get(url)
            if cached is not None:
                logger.debug("Cache hit for %s", url)
                return cached

        client = await self._get_client()
        try:
            response = await client.get(
                url, headers={"Authorization": f"Bearer {access_token}"}
            )
        except httpx.HTTPError as e:
            logger.error("Error during Spotify API call to %s: %s", url, e)
            raise UpstreamError(f"Failed to communicate with Spotify API: {e}") from e

        self._raise_for_status(response, url)

        if response.status_code == 204 or not response.content:
            return None

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError(
                "Spotify API returned invalid JSON",
                status_code=response.status_code,
                body=response.text,
            ) from e

        if self._cache is not None and cache_ttl > 0:
            await self._cache.set(url, data, cache_ttl)
        return data

    async def fetch_page(
        self,
        path_or_url: str,
        access_token: str,
        params: dict[str, Any] | None = None,
        cache_ttl: float = 0,
    ) -> Page:
        """Fetch one page of a paginated listing."""
        url = self.build_url(path_or_url, params)
        data = await self.get_json(url, access_token, cache_ttl)
        if not isinstance(data, dict):
            return Page(items=[], next_url=None)
        return Page(items=list(data.get("items") or []), next_url=data.get("next"))

    # Hey future me - fetch_all follows `next` until Spotify says null. Any page error propagates
    # immediately and the items gathered so far are thrown away with the stack frame. No partial
    # results: a caller either gets the whole listing (or max_items of it) or an exception.
    async def fetch_all(
        self,
        path_or_url: str,
        access_token: str,
        params: dict[str, Any] | None = None,
        cache_ttl: float = 0,
        max_items: int | None = None,
    ) -> list[Any]:
        """Fetch every page of a listing, optionally stopping after max_items."""
        items: list[Any] = []
        next_url: str | None = path_or_url
        page_params = params
        seen: set[str] = set()

        while next_url:
            if next_url in seen:
                logger.warning("Spotify pagination loop detected at %s", next_url)
                break
            seen.add(next_url)

            page = await self.fetch_page(next_url, access_token, page_params, cache_ttl)
            items.extend(page.items)
            if max_items is not None and len(items) >= max_items:
                return items[:max_items]

            next_url = page.next_url
            # `next` URLs already carry limit/offset/fields
            page_params = None

        return items

    async def get_user_profile(self, user_id: str, access_token: str) -> UserProfileDTO:
        """
        Get a user's public profile.

        Args:
            user_id: Spotify user ID
            access_token: Bearer token

        Returns:
            UserProfileDTO with default (zeroed) stats

        Raises:
            ValidationError: If user_id is empty
            NotFoundError: If the user does not exist
        """
        if not user_id or not user_id.strip():
            raise ValidationError("User ID must be provided to fetch profile")

        url = self.build_url(f"/users/{quote(user_id, safe='')}")
        data = await self.get_json(url, access_token, self.settings.metadata_cache_seconds)
        if not isinstance(data, dict):
            raise UpstreamError("Spotify returned an empty profile response")
        return convert_profile(data, fallback_id=user_id)

    async def get_user_playlists(
        self, user_id: str, access_token: str
    ) -> list[PlaylistDTO]:
        """Get all playlists listed on a user's public profile."""
        if not user_id or not user_id.strip():
            raise ValidationError("User ID must be provided to fetch playlists")

        items = await self.fetch_all(
            f"/users/{quote(user_id, safe='')}/playlists",
            access_token,
            params={"limit": self.PLAYLISTS_PAGE_SIZE, "fields": self.PLAYLIST_FIELDS},
            cache_ttl=self.settings.metadata_cache_seconds,
        )
        playlists = []
        for item in items:
            playlist = convert_playlist(item)
            if playlist is not None:
                playlists.append(playlist)
        return playlists

    # Yo, the offset trick: Spotify returns playlist items in insertion order, so the most
    # recently ADDED tracks sit at the END. When we know the total we jump straight to
    # total - limit and read only the tail. If a user manually reorders a playlist this
    # heuristic silently picks the wrong tracks.
    async def get_playlist_tracks(
        self,
        playlist_id: str,
        access_token: str,
        limit: int,
        total: int | None = None,
    ) -> list[dict[str, Any]]:
        """
        Get up to `limit` raw playlist items, reading the tail when `total` is known.

        Args:
            playlist_id: Spotify playlist ID
            access_token: Bearer token
            limit: Max items to return
            total: Reported track count of the playlist, if known

        Returns:
            Raw playlist item dicts ({"added_at": ..., "track": {...}})
        """
        if not playlist_id:
            raise ValidationError("Playlist ID must be provided to fetch tracks")
        if limit <= 0:
            return []

        offset = total - limit if total is not None and total > limit else 0
        params = {
            "limit": min(limit, self.MAX_TRACKS_PAGE_SIZE),
            "offset": offset,
            "fields": self.TRACK_FIELDS,
        }
        return await self.fetch_all(
            f"/playlists/{quote(playlist_id, safe='')}/tracks",
            access_token,
            params=params,
            cache_ttl=self.settings.track_cache_seconds,
            max_items=limit,
        )


def convert_images(data: Any) -> tuple[ImageDTO, ...]:
    """Convert a Spotify images array, skipping entries without URL."""
    if not isinstance(data, list):
        return ()
    return tuple(
        ImageDTO(url=image["url"], height=image.get("height"), width=image.get("width"))
        for image in data
        if isinstance(image, dict) and image.get("url")
    )


def convert_profile(data: dict[str, Any], fallback_id: str) -> UserProfileDTO:
    """Convert Spotify user JSON to UserProfileDTO."""
    followers = data.get("followers")
    follower_total = followers.get("total") if isinstance(followers, dict) else None

    return UserProfileDTO(
        id=data.get("id") or fallback_id,
        display_name=data.get("display_name"),
        external_url=(data.get("external_urls") or {}).get("spotify"),
        images=convert_images(data.get("images")),
        followers=follower_total if isinstance(follower_total, int) else None,
    )


def convert_playlist(data: Any) -> PlaylistDTO | None:
    """Convert Spotify playlist JSON to PlaylistDTO (None for unusable items)."""
    if not isinstance(data, dict) or not data.get("id"):
        return None

    owner = data.get("owner") or {}
    tracks = data.get("tracks") or {}
    total = tracks.get("total") if isinstance(tracks, dict) else None

    return PlaylistDTO(
        id=data["id"],
        name=data.get("name") or "Untitled playlist",
        owner_id=owner.get("id") if isinstance(owner, dict) else None,
        external_url=(data.get("external_urls") or {}).get("spotify"),
        total_tracks=total if isinstance(total, int) else 0,
    )
