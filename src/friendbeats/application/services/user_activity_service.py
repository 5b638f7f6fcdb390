"""User activity aggregation: profile, playlist stats and recently added tracks.

Hey future me - this is the heart of the app. Given a Spotify user id we:

1. get an app token
2. fetch profile + playlist listing concurrently
3. compute stats over the playlists the user OWNS
4. fetch the tail of every owned playlist concurrently
5. merge, sort newest first and keep the top N

Only the token and the profile are mandatory. Everything after the profile degrades: a
failing playlist is skipped, a rate limit flips `rate_limited` and we render what we have.
The result is a typed variant (UserData / UserNotFound / UserDataFailed) - no exceptions
escape get_user_data().
"""

import asyncio
import logging
from dataclasses import replace
from typing import Any

from friendbeats.config.settings import AggregationSettings
from friendbeats.domain.dtos import (
    ArtistRef,
    PlaylistDTO,
    PlaylistRef,
    PlaylistTrackEntry,
    TrackDTO,
    UserData,
    UserDataFailed,
    UserDataResult,
    UserNotFound,
    UserProfileDTO,
    UserStats,
)
from friendbeats.domain.exceptions import (
    DomainException,
    InvalidDateError,
    NotFoundError,
    RateLimitError,
    UpstreamError,
)
from friendbeats.domain.ports import ISpotifyClient, ITokenProvider
from friendbeats.domain.value_objects import parse_timestamp

logger = logging.getLogger(__name__)


class UserActivityService:
    """Aggregates a user's public Spotify activity."""

    def __init__(
        self,
        spotify_client: ISpotifyClient,
        token_provider: ITokenProvider,
        settings: AggregationSettings | None = None,
    ) -> None:
        """
        Initialize the service.

        Args:
            spotify_client: Spotify Web API port
            token_provider: App token port
            settings: Aggregation limits (defaults: 30 per playlist, 20 overall)
        """
        self._spotify = spotify_client
        self._tokens = token_provider
        self._settings = settings or AggregationSettings()

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    async def get_user_data(self, user_id: str) -> UserDataResult:
        """Aggregate profile, stats and recent tracks for a user.

        Args:
            user_id: Spotify user id

        Returns:
            UserData (possibly rate_limited), UserNotFound or UserDataFailed
        """
        try:
            token = await self._tokens.get_access_token()
        except DomainException as e:
            logger.error("Could not obtain Spotify token for user %s: %s", user_id, e.message)
            return UserDataFailed(user_id=user_id, error=e)

        profile_result, playlists_result = await asyncio.gather(
            self._spotify.get_user_profile(user_id, token),
            self._spotify.get_user_playlists(user_id, token),
            return_exceptions=True,
        )

        if isinstance(profile_result, BaseException):
            return self._profile_failure(user_id, profile_result)
        profile: UserProfileDTO = profile_result

        if isinstance(playlists_result, RateLimitError):
            logger.warning(
                "Rate limited while listing playlists of %s, returning profile only", user_id
            )
            return UserData(
                profile=self._with_stats(profile, []),
                recent_tracks=(),
                rate_limited=True,
            )
        if isinstance(playlists_result, BaseException):
            self._reraise_unexpected(playlists_result)
            self._drop_rejected_token(playlists_result)
            logger.error(
                "Failed to list playlists of %s, continuing without them: %s",
                user_id,
                playlists_result,
            )
            playlists: list[PlaylistDTO] = []
        else:
            playlists = playlists_result

        owned = [p for p in playlists if p.is_owned_by(user_id)]
        profile = self._with_stats(profile, owned)

        entries, rate_limited = await self._fetch_recent_tracks(owned, token)
        recent = sorted(entries, key=lambda entry: entry.added_at, reverse=True)

        logger.info(
            "Aggregated %s: %d owned playlists, %d entries, %d shown%s",
            user_id,
            len(owned),
            len(entries),
            min(len(recent), self._settings.min_recent_tracks),
            " (rate limited)" if rate_limited else "",
        )
        return UserData(
            profile=profile,
            recent_tracks=tuple(recent[: self._settings.min_recent_tracks]),
            rate_limited=rate_limited,
        )

    async def get_profile_summary(self, user_id: str) -> UserProfileDTO | None:
        """Fetch just the profile, for page titles and link previews.

        Any failure is logged and yields None.
        """
        try:
            token = await self._tokens.get_access_token()
            profile = await self._spotify.get_user_profile(user_id, token)
        except NotFoundError:
            logger.info("Profile summary: user %s not found", user_id)
            return None
        except DomainException as e:
            self._drop_rejected_token(e)
            logger.warning("Profile summary for %s failed: %s", user_id, e.message)
            return None
        return self._with_stats(profile, [])

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _profile_failure(self, user_id: str, error: BaseException) -> UserDataResult:
        if not isinstance(error, DomainException):
            raise error
        self._drop_rejected_token(error)
        if isinstance(error, NotFoundError):
            logger.info("Spotify user %s not found", user_id)
            return UserNotFound(user_id=user_id)

        logger.error("Profile fetch for %s failed: %s", user_id, error.message)
        return UserDataFailed(user_id=user_id, error=error)

    @staticmethod
    def _reraise_unexpected(error: BaseException) -> None:
        # gather(return_exceptions=True) also hands us programming errors and cancellations;
        # only domain errors are outcomes, the rest must propagate
        if not isinstance(error, DomainException):
            raise error

    # A 401 from the Web API means Spotify revoked our cached app token before its window ran out
    def _drop_rejected_token(self, error: BaseException) -> None:
        if isinstance(error, UpstreamError) and error.status_code == 401:
            logger.warning("Spotify rejected the access token (401), dropping it")
            self._tokens.invalidate()

    @staticmethod
    def _with_stats(profile: UserProfileDTO, owned: list[PlaylistDTO]) -> UserProfileDTO:
        stats = UserStats(
            total_playlists=len(owned),
            total_tracks=sum(p.total_tracks for p in owned),
            follower_count=profile.followers or 0,
        )
        return replace(profile, stats=stats)

    # Yo, one task per owned playlist and we wait for ALL of them. A single dead playlist (deleted
    # mid-request, 500 from Spotify) must not cost us the other twenty. Results come back in task
    # order, so the final stable sort sees entries in playlist-listing order for equal timestamps.
    async def _fetch_recent_tracks(
        self, owned: list[PlaylistDTO], token: str
    ) -> tuple[list[PlaylistTrackEntry], bool]:
        if not owned:
            return [], False

        results = await asyncio.gather(
            *(self._fetch_playlist_entries(playlist, token) for playlist in owned)
        )

        entries: list[PlaylistTrackEntry] = []
        rate_limited = False
        for playlist_entries, limited in results:
            entries.extend(playlist_entries)
            rate_limited = rate_limited or limited
        return entries, rate_limited

    async def _fetch_playlist_entries(
        self, playlist: PlaylistDTO, token: str
    ) -> tuple[list[PlaylistTrackEntry], bool]:
        """Fetch and normalize one playlist's tail. Never raises domain errors."""
        try:
            items = await self._spotify.get_playlist_tracks(
                playlist.id,
                token,
                limit=self._settings.track_fetch_limit_per_playlist,
                total=playlist.total_tracks or None,
            )
        except RateLimitError:
            logger.warning("Rate limited fetching tracks of playlist %s", playlist.id)
            return [], True
        except DomainException as e:
            self._drop_rejected_token(e)
            logger.warning("Skipping playlist %s: %s", playlist.id, e.message)
            return [], False

        ref = PlaylistRef(id=playlist.id, name=playlist.name, external_url=playlist.external_url)
        entries = []
        for item in items:
            entry = to_track_entry(item, ref)
            if entry is not None:
                entries.append(entry)
        return entries, False


def to_track_entry(item: Any, playlist: PlaylistRef) -> PlaylistTrackEntry | None:
    """Normalize a raw playlist item.

    Returns None for local files without body, removed tracks (track null) and
    items whose added_at is missing or not ISO-8601.
    """
    if not isinstance(item, dict):
        return None

    track = item.get("track")
    if not isinstance(track, dict):
        return None

    added_at = item.get("added_at")
    if not added_at:
        return None
    try:
        added = parse_timestamp(added_at)
    except InvalidDateError:
        logger.debug("Dropping item with unparseable added_at %r", added_at)
        return None

    album = track.get("album") or {}
    images = album.get("images") or []
    first_image = images[0] if images and isinstance(images[0], dict) else {}
    duration = track.get("duration_ms")

    return PlaylistTrackEntry(
        track=TrackDTO(
            id=track.get("id"),
            name=track.get("name") or "Unknown track",
            artists=tuple(
                ArtistRef(id=artist.get("id"), name=artist["name"])
                for artist in track.get("artists") or []
                if isinstance(artist, dict) and artist.get("name")
            ),
            album_name=album.get("name"),
            album_image_url=first_image.get("url"),
            external_url=(track.get("external_urls") or {}).get("spotify"),
            duration_ms=duration if isinstance(duration, int) else 0,
            preview_url=track.get("preview_url"),
        ),
        added_at=added,
        playlist=playlist,
    )
