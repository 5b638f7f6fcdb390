"""
Data Transfer Objects for FriendBeats.

Hey future me, these DTOs are what the Spotify client hands to the services and what the
services hand to the API layer. Raw Spotify JSON never leaves infrastructure/integrations!

Flow: Spotify JSON → SpotifyClient converters → DTO → UserActivityService → API schema
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

from friendbeats.domain.exceptions import DomainException, ValidationError


@dataclass(frozen=True)
class ImageDTO:
    """Image reference as returned by Spotify (avatars, album art)."""

    url: str
    height: int | None = None
    width: int | None = None


@dataclass(frozen=True)
class UserStats:
    """Playlist ownership statistics for a user.

    total_tracks is the SUM of the track totals Spotify reports per owned
    playlist, not the number of tracks we actually fetched.
    """

    total_playlists: int = 0
    total_tracks: int = 0
    follower_count: int = 0


@dataclass(frozen=True)
class UserProfileDTO:
    """Public Spotify profile snapshot, optionally enriched with stats."""

    id: str
    display_name: str | None = None
    external_url: str | None = None
    images: tuple[ImageDTO, ...] = ()
    followers: int | None = None
    stats: UserStats = field(default_factory=UserStats)

    def __post_init__(self) -> None:
        """Validate essential fields."""
        if not self.id or not self.id.strip():
            raise ValidationError("User profile id cannot be empty")

    @property
    def name(self) -> str:
        """Display name with the user id as fallback."""
        return self.display_name or self.id

    @property
    def image_url(self) -> str | None:
        """First (largest) avatar URL, if any."""
        return self.images[0].url if self.images else None


@dataclass(frozen=True)
class PlaylistDTO:
    """Playlist metadata from the user's playlist listing."""

    id: str
    name: str
    owner_id: str | None = None
    external_url: str | None = None
    total_tracks: int = 0

    def is_owned_by(self, user_id: str) -> bool:
        """Check ownership, comparing ids case-insensitively."""
        if not self.owner_id:
            return False
        return self.owner_id.lower() == user_id.lower()


@dataclass(frozen=True)
class PlaylistRef:
    """Back-reference from a track entry to the playlist it was added to."""

    id: str
    name: str
    external_url: str | None = None


@dataclass(frozen=True)
class ArtistRef:
    """Minimal artist reference (id + name)."""

    id: str | None
    name: str


@dataclass(frozen=True)
class TrackDTO:
    """A playable track."""

    id: str | None
    name: str
    artists: tuple[ArtistRef, ...] = ()
    album_name: str | None = None
    album_image_url: str | None = None
    external_url: str | None = None
    duration_ms: int = 0
    preview_url: str | None = None

    @property
    def artist_names(self) -> str:
        """Comma separated artist names for display."""
        return ", ".join(artist.name for artist in self.artists)


@dataclass(frozen=True)
class PlaylistTrackEntry:
    """A track plus the instant it was added to a specific playlist."""

    track: TrackDTO
    added_at: datetime
    playlist: PlaylistRef


# =============================================================================
# Aggregation results
# Callers match on the TYPE (or .outcome), never on exception strings.
# =============================================================================

Outcome = Literal["success", "rate_limited", "not_found", "failed"]


@dataclass(frozen=True)
class UserData:
    """Successful (possibly degraded) aggregation.

    rate_limited=True means Spotify throttled us somewhere after the profile
    was fetched: stats and/or tracks may be incomplete, but the profile is
    always present.
    """

    profile: UserProfileDTO
    recent_tracks: tuple[PlaylistTrackEntry, ...] = ()
    rate_limited: bool = False

    @property
    def outcome(self) -> Outcome:
        return "rate_limited" if self.rate_limited else "success"


@dataclass(frozen=True)
class UserNotFound:
    """Spotify has no user with this id."""

    user_id: str

    @property
    def outcome(self) -> Outcome:
        return "not_found"


@dataclass(frozen=True)
class UserDataFailed:
    """A mandatory step (token or profile) failed; nothing renderable."""

    user_id: str
    error: DomainException

    @property
    def outcome(self) -> Outcome:
        return "failed"


UserDataResult = UserData | UserNotFound | UserDataFailed


__all__ = [
    "ArtistRef",
    "ImageDTO",
    "Outcome",
    "PlaylistDTO",
    "PlaylistRef",
    "PlaylistTrackEntry",
    "TrackDTO",
    "UserData",
    "UserDataFailed",
    "UserDataResult",
    "UserNotFound",
    "UserProfileDTO",
    "UserStats",
]
