"""Unit tests for UserActivityService aggregation and degradation."""

from datetime import UTC, datetime
from typing import Any

import pytest

from friendbeats.application.services import UserActivityService
from friendbeats.application.services.user_activity_service import to_track_entry
from friendbeats.config import AggregationSettings
from friendbeats.domain.dtos import (
    PlaylistDTO,
    PlaylistRef,
    UserData,
    UserDataFailed,
    UserNotFound,
    UserProfileDTO,
)
from friendbeats.domain.exceptions import (
    AuthServiceError,
    ConfigurationError,
    NotFoundError,
    RateLimitError,
    UpstreamError,
)
from friendbeats.domain.ports import ISpotifyClient, ITokenProvider


def item(
    track_id: str,
    added_at: str | None,
    name: str | None = None,
    duration_ms: int = 200_000,
) -> dict[str, Any]:
    """Raw Spotify playlist item."""
    return {
        "added_at": added_at,
        "track": {
            "id": track_id,
            "name": name or f"Track {track_id}",
            "duration_ms": duration_ms,
            "artists": [{"id": "ar1", "name": "Artist One"}, {"id": "ar2", "name": "Two"}],
            "album": {"name": "Album", "images": [{"url": f"https://img/{track_id}.jpg"}]},
            "external_urls": {"spotify": f"https://open.spotify.com/track/{track_id}"},
        },
    }


class FakeTokenProvider(ITokenProvider):
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.invalidations = 0

    async def get_access_token(self) -> str:
        if self.error is not None:
            raise self.error
        return "tok"

    def invalidate(self) -> None:
        self.invalidations += 1


class FakeSpotifyClient(ISpotifyClient):
    """In-memory ISpotifyClient; values that are exceptions get raised."""

    def __init__(
        self,
        profile: UserProfileDTO | Exception,
        playlists: list[PlaylistDTO] | Exception,
        tracks: dict[str, list[dict[str, Any]] | Exception] | None = None,
    ) -> None:
        self.profile = profile
        self.playlists = playlists
        self.tracks = tracks or {}
        self.track_calls: list[tuple[str, int, int | None]] = []

    async def get_user_profile(self, user_id: str, access_token: str) -> UserProfileDTO:
        if isinstance(self.profile, Exception):
            raise self.profile
        return self.profile

    async def get_user_playlists(self, user_id: str, access_token: str) -> list[PlaylistDTO]:
        if isinstance(self.playlists, Exception):
            raise self.playlists
        return self.playlists

    async def get_playlist_tracks(
        self, playlist_id: str, access_token: str, limit: int, total: int | None = None
    ) -> list[dict[str, Any]]:
        self.track_calls.append((playlist_id, limit, total))
        result = self.tracks.get(playlist_id, [])
        if isinstance(result, Exception):
            raise result
        return result


PROFILE = UserProfileDTO(id="alice", display_name="Alice", followers=7)
MINE_1 = PlaylistDTO(id="p1", name="Mix 1", owner_id="alice", total_tracks=40)
MINE_2 = PlaylistDTO(id="p2", name="Mix 2", owner_id="ALICE", total_tracks=5)
MINE_3 = PlaylistDTO(id="p3", name="Mix 3", owner_id="alice", total_tracks=0)
THEIRS = PlaylistDTO(id="x1", name="Followed", owner_id="bob", total_tracks=500)


def make_service(
    client: FakeSpotifyClient,
    tokens: FakeTokenProvider | None = None,
    **settings: int,
) -> UserActivityService:
    return UserActivityService(
        client, tokens or FakeTokenProvider(), AggregationSettings(**settings)
    )


class TestGetUserData:
    """Test suite for UserActivityService.get_user_data()."""

    async def test_merges_sorts_and_computes_stats(self) -> None:
        """Test the happy path across two owned playlists."""
        client = FakeSpotifyClient(
            PROFILE,
            [MINE_1, THEIRS, MINE_2],
            {
                "p1": [item("a", "2024-03-01T10:00:00Z"), item("b", "2024-03-05T10:00:00Z")],
                "p2": [item("c", "2024-03-03T10:00:00Z")],
            },
        )

        result = await make_service(client).get_user_data("alice")

        assert isinstance(result, UserData)
        assert result.outcome == "success"
        assert [e.track.id for e in result.recent_tracks] == ["b", "c", "a"]
        assert result.profile.stats.total_playlists == 2
        assert result.profile.stats.total_tracks == 45
        assert result.profile.stats.follower_count == 7

    async def test_non_owned_playlists_are_never_fetched(self) -> None:
        """Test that followed playlists only count toward nothing."""
        client = FakeSpotifyClient(PROFILE, [THEIRS], {"x1": [item("z", "2024-03-01T10:00:00Z")]})

        result = await make_service(client).get_user_data("alice")

        assert isinstance(result, UserData)
        assert result.recent_tracks == ()
        assert client.track_calls == []
        assert result.profile.stats.total_playlists == 0

    async def test_passes_limit_and_reported_total(self) -> None:
        """Test per-playlist fetch arguments."""
        client = FakeSpotifyClient(PROFILE, [MINE_1, MINE_3])

        await make_service(client, track_fetch_limit_per_playlist=25).get_user_data("alice")

        assert sorted(client.track_calls) == [("p1", 25, 40), ("p3", 25, None)]

    async def test_truncates_after_merge(self) -> None:
        """Test that the newest N across all playlists survive, not N per playlist."""
        client = FakeSpotifyClient(
            PROFILE,
            [MINE_1, MINE_2],
            {
                "p1": [item(f"old{i}", f"2024-01-{i + 1:02d}T00:00:00Z") for i in range(10)],
                "p2": [item(f"new{i}", f"2024-02-{i + 1:02d}T00:00:00Z") for i in range(10)],
            },
        )

        result = await make_service(client, min_recent_tracks=5).get_user_data("alice")

        assert isinstance(result, UserData)
        assert [e.track.id for e in result.recent_tracks] == [
            "new9",
            "new8",
            "new7",
            "new6",
            "new5",
        ]

    async def test_equal_timestamps_keep_playlist_order(self) -> None:
        """Test that the sort is stable."""
        ts = "2024-03-01T10:00:00Z"
        client = FakeSpotifyClient(
            PROFILE, [MINE_1, MINE_2], {"p1": [item("a", ts)], "p2": [item("b", ts)]}
        )

        result = await make_service(client).get_user_data("alice")

        assert isinstance(result, UserData)
        assert [e.track.id for e in result.recent_tracks] == ["a", "b"]

    async def test_drops_unusable_items(self) -> None:
        """Test that null tracks and bad added_at values are filtered out."""
        client = FakeSpotifyClient(
            PROFILE,
            [MINE_1],
            {
                "p1": [
                    item("good", "2024-03-01T10:00:00Z"),
                    item("no-date", None),
                    item("bad-date", "last tuesday"),
                    {"added_at": "2024-03-02T10:00:00Z", "track": None},
                ]
            },
        )

        result = await make_service(client).get_user_data("alice")

        assert isinstance(result, UserData)
        assert [e.track.id for e in result.recent_tracks] == ["good"]
        assert result.recent_tracks[0].playlist == PlaylistRef(id="p1", name="Mix 1")

    async def test_token_failure_is_failed(self) -> None:
        """Test that every token error yields UserDataFailed."""
        for error in (
            ConfigurationError("no creds"),
            RateLimitError("slow"),
            AuthServiceError("down"),
        ):
            client = FakeSpotifyClient(PROFILE, [])
            result = await make_service(client, FakeTokenProvider(error)).get_user_data("alice")

            assert isinstance(result, UserDataFailed)
            assert result.error is error

    async def test_profile_not_found(self) -> None:
        """Test 404 on the profile."""
        client = FakeSpotifyClient(NotFoundError("users/ghost"), [])

        result = await make_service(client).get_user_data("ghost")

        assert result == UserNotFound(user_id="ghost")

    async def test_profile_rate_limited_is_failed(self) -> None:
        """Test that a throttled profile fetch is a hard failure."""
        error = RateLimitError("slow", retry_after=3)
        client = FakeSpotifyClient(error, [MINE_1])

        result = await make_service(client).get_user_data("alice")

        assert isinstance(result, UserDataFailed)
        assert result.error is error

    async def test_playlists_rate_limited_returns_profile_only(self) -> None:
        """Test degradation when the playlist listing is throttled."""
        client = FakeSpotifyClient(PROFILE, RateLimitError("slow"))

        result = await make_service(client).get_user_data("alice")

        assert isinstance(result, UserData)
        assert result.rate_limited is True
        assert result.outcome == "rate_limited"
        assert result.recent_tracks == ()
        assert result.profile.stats.total_playlists == 0
        assert result.profile.stats.follower_count == 7

    async def test_playlists_other_error_continues_empty(self) -> None:
        """Test that a broken playlist listing still renders the profile."""
        client = FakeSpotifyClient(PROFILE, UpstreamError("boom", status_code=500))

        result = await make_service(client).get_user_data("alice")

        assert isinstance(result, UserData)
        assert result.rate_limited is False
        assert result.recent_tracks == ()

    async def test_one_failing_playlist_is_skipped(self) -> None:
        """Test that siblings survive a failing playlist."""
        client = FakeSpotifyClient(
            PROFILE,
            [MINE_1, MINE_2, MINE_3],
            {
                "p1": [item("a", "2024-03-01T10:00:00Z")],
                "p2": UpstreamError("gone", status_code=500),
                "p3": [item("c", "2024-03-02T10:00:00Z")],
            },
        )

        result = await make_service(client).get_user_data("alice")

        assert isinstance(result, UserData)
        assert [e.track.id for e in result.recent_tracks] == ["c", "a"]
        assert result.rate_limited is False

    async def test_rate_limited_playlist_sets_flag(self) -> None:
        """Test that a throttled track fetch keeps other results and flags the outcome."""
        client = FakeSpotifyClient(
            PROFILE,
            [MINE_1, MINE_2],
            {"p1": [item("a", "2024-03-01T10:00:00Z")], "p2": RateLimitError("slow")},
        )

        result = await make_service(client).get_user_data("alice")

        assert isinstance(result, UserData)
        assert result.rate_limited is True
        assert [e.track.id for e in result.recent_tracks] == ["a"]

    async def test_unexpected_errors_propagate(self) -> None:
        """Test that programming errors are not turned into outcomes."""
        client = FakeSpotifyClient(TypeError("bug"), [])

        with pytest.raises(TypeError):
            await make_service(client).get_user_data("alice")

    async def test_rejected_token_on_profile_is_dropped(self) -> None:
        """Test that a 401 from the Web API forces a fresh token next time."""
        tokens = FakeTokenProvider()
        client = FakeSpotifyClient(UpstreamError("unauthorized", status_code=401), [])

        result = await make_service(client, tokens).get_user_data("alice")

        assert isinstance(result, UserDataFailed)
        assert tokens.invalidations == 1

    async def test_rejected_token_on_track_fetch_is_dropped(self) -> None:
        """Test that a 401 on one playlist invalidates the token but keeps siblings."""
        tokens = FakeTokenProvider()
        client = FakeSpotifyClient(
            PROFILE,
            [MINE_1, MINE_2],
            {
                "p1": [item("a", "2024-03-01T10:00:00Z")],
                "p2": UpstreamError("unauthorized", status_code=401),
            },
        )

        result = await make_service(client, tokens).get_user_data("alice")

        assert isinstance(result, UserData)
        assert [e.track.id for e in result.recent_tracks] == ["a"]
        assert tokens.invalidations == 1

    async def test_other_upstream_errors_keep_token(self) -> None:
        tokens = FakeTokenProvider()
        client = FakeSpotifyClient(UpstreamError("boom", status_code=500), [])

        await make_service(client, tokens).get_user_data("alice")

        assert tokens.invalidations == 0


class TestGetProfileSummary:
    """Test suite for get_profile_summary()."""

    async def test_returns_profile_with_follower_stats(self) -> None:
        client = FakeSpotifyClient(PROFILE, [MINE_1])

        profile = await make_service(client).get_profile_summary("alice")

        assert profile is not None
        assert profile.name == "Alice"
        assert profile.stats.follower_count == 7
        assert profile.stats.total_playlists == 0

    @pytest.mark.parametrize(
        "error",
        [NotFoundError("users/ghost"), RateLimitError("slow"), UpstreamError("boom")],
    )
    async def test_errors_yield_none(self, error: Exception) -> None:
        client = FakeSpotifyClient(error, [])

        assert await make_service(client).get_profile_summary("ghost") is None

    async def test_token_error_yields_none(self) -> None:
        client = FakeSpotifyClient(PROFILE, [])
        service = make_service(client, FakeTokenProvider(ConfigurationError("no creds")))

        assert await service.get_profile_summary("alice") is None


class TestToTrackEntry:
    """Tests for raw item normalization."""

    def test_converts_fields(self) -> None:
        ref = PlaylistRef(id="p1", name="Mix")

        entry = to_track_entry(item("a", "2024-03-01T10:00:00Z", duration_ms=225_000), ref)

        assert entry is not None
        assert entry.added_at == datetime(2024, 3, 1, 10, tzinfo=UTC)
        assert entry.track.artist_names == "Artist One, Two"
        assert entry.track.album_image_url == "https://img/a.jpg"
        assert entry.track.duration_ms == 225_000
        assert entry.playlist is ref

    def test_local_file_without_id_is_kept(self) -> None:
        """Test that local files (no id, no album art) still show up."""
        raw = {"added_at": "2024-03-01T10:00:00Z", "track": {"id": None, "name": "demo.mp3"}}

        entry = to_track_entry(raw, PlaylistRef(id="p1", name="Mix"))

        assert entry is not None
        assert entry.track.id is None
        assert entry.track.album_image_url is None
