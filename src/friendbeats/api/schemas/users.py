"""API schemas for user activity pages."""

from datetime import date, datetime

from pydantic import BaseModel, Field

from friendbeats.domain.dtos import PlaylistTrackEntry, UserData, UserProfileDTO, UserStats
from friendbeats.domain.value_objects import (
    DateGroup,
    format_duration,
    format_number,
    group_by_day,
)


class ImageSchema(BaseModel):
    """Image reference."""

    url: str = Field(..., description="Image URL")
    height: int | None = Field(default=None, description="Height in pixels")
    width: int | None = Field(default=None, description="Width in pixels")


class UserStatsSchema(BaseModel):
    """Owned playlist statistics, raw and formatted for display."""

    total_playlists: int = Field(..., description="Number of playlists owned by the user")
    total_tracks: int = Field(
        ..., description="Sum of track counts Spotify reports for the owned playlists"
    )
    follower_count: int = Field(..., description="Followers of the profile")
    total_playlists_display: str = Field(..., description="Compact form, e.g. 1.2K")
    total_tracks_display: str = Field(..., description="Compact form, e.g. 1.2K")
    follower_count_display: str = Field(..., description="Compact form, e.g. 1.2K")

    @classmethod
    def from_dto(cls, stats: UserStats) -> "UserStatsSchema":
        return cls(
            total_playlists=stats.total_playlists,
            total_tracks=stats.total_tracks,
            follower_count=stats.follower_count,
            total_playlists_display=format_number(stats.total_playlists),
            total_tracks_display=format_number(stats.total_tracks),
            follower_count_display=format_number(stats.follower_count),
        )


class UserProfileSchema(BaseModel):
    """Public profile of a Spotify user."""

    id: str = Field(..., description="Spotify user ID")
    display_name: str = Field(..., description="Display name (user ID if unset)")
    external_url: str | None = Field(default=None, description="open.spotify.com link")
    image_url: str | None = Field(default=None, description="First avatar image")
    images: list[ImageSchema] = Field(default_factory=list, description="All avatar images")
    stats: UserStatsSchema

    @classmethod
    def from_dto(cls, profile: UserProfileDTO) -> "UserProfileSchema":
        return cls(
            id=profile.id,
            display_name=profile.name,
            external_url=profile.external_url,
            image_url=profile.image_url,
            images=[
                ImageSchema(url=image.url, height=image.height, width=image.width)
                for image in profile.images
            ],
            stats=UserStatsSchema.from_dto(profile.stats),
        )


class PlaylistRefSchema(BaseModel):
    """Playlist a track was added to."""

    id: str
    name: str
    external_url: str | None = None


class RecentTrackSchema(BaseModel):
    """A recently added track."""

    id: str | None = Field(default=None, description="Spotify track ID")
    name: str = Field(..., description="Track title")
    artists: list[str] = Field(default_factory=list, description="Artist names")
    album_name: str | None = None
    album_image_url: str | None = None
    external_url: str | None = None
    preview_url: str | None = None
    duration_ms: int = 0
    duration: str = Field(..., description="Formatted as M:SS")
    added_at: datetime = Field(..., description="When the track was added (UTC)")
    playlist: PlaylistRefSchema

    @classmethod
    def from_entry(cls, entry: PlaylistTrackEntry) -> "RecentTrackSchema":
        track = entry.track
        return cls(
            id=track.id,
            name=track.name,
            artists=[artist.name for artist in track.artists],
            album_name=track.album_name,
            album_image_url=track.album_image_url,
            external_url=track.external_url,
            preview_url=track.preview_url,
            duration_ms=track.duration_ms,
            duration=format_duration(track.duration_ms),
            added_at=entry.added_at,
            playlist=PlaylistRefSchema(
                id=entry.playlist.id,
                name=entry.playlist.name,
                external_url=entry.playlist.external_url,
            ),
        )


class DayGroupSchema(BaseModel):
    """Tracks added on the same day."""

    display: str = Field(..., description='Bucket label: "Today", "Monday", "9 Mar 2024"')
    day: date = Field(..., description="UTC day of the bucket")
    tracks: list[RecentTrackSchema]

    @classmethod
    def from_group(cls, group: DateGroup[PlaylistTrackEntry]) -> "DayGroupSchema":
        return cls(
            display=group.display,
            day=group.sort_key.date(),
            tracks=[RecentTrackSchema.from_entry(entry) for entry in group.items],
        )


class UserDashboardResponse(BaseModel):
    """Everything needed to render a user's activity page."""

    profile: UserProfileSchema
    rate_limited: bool = Field(
        default=False,
        description="Spotify throttled us; stats and tracks may be incomplete",
    )
    track_count: int = Field(..., description="Number of tracks across all groups")
    groups: list[DayGroupSchema] = Field(default_factory=list)

    @classmethod
    def from_user_data(cls, data: UserData, now: datetime) -> "UserDashboardResponse":
        groups = group_by_day(data.recent_tracks, now, lambda entry: entry.added_at)
        return cls(
            profile=UserProfileSchema.from_dto(data.profile),
            rate_limited=data.rate_limited,
            track_count=len(data.recent_tracks),
            groups=[DayGroupSchema.from_group(group) for group in groups],
        )


class ProfileSummaryResponse(BaseModel):
    """Page metadata (title, description, preview image) for a user page."""

    user_id: str
    display_name: str
    title: str
    description: str
    image_url: str | None = None
    external_url: str | None = None

    @classmethod
    def from_dto(cls, profile: UserProfileDTO) -> "ProfileSummaryResponse":
        name = profile.name
        return cls(
            user_id=profile.id,
            display_name=name,
            title=f"{name}'s Recent Spotify Activity",
            description=(
                f"See what {name} has been adding to their Spotify playlists lately. "
                f"{format_number(profile.stats.follower_count)} followers."
            ),
            image_url=profile.image_url,
            external_url=profile.external_url,
        )


class ResolveResponse(BaseModel):
    """Spotify user ID extracted from a profile link."""

    user_id: str = Field(..., description="Spotify user ID")
