"""Unit tests for domain DTOs and aggregation result variants."""

import pytest

from friendbeats.domain.dtos import (
    ImageDTO,
    PlaylistDTO,
    UserData,
    UserDataFailed,
    UserNotFound,
    UserProfileDTO,
)
from friendbeats.domain.exceptions import RateLimitError, ValidationError


class TestUserProfileDTO:
    """Tests for UserProfileDTO."""

    def test_empty_id_is_rejected(self) -> None:
        """Test __post_init__ validation."""
        with pytest.raises(ValidationError):
            UserProfileDTO(id="  ")

    def test_name_falls_back_to_id(self) -> None:
        """Test that a missing display name shows the user id."""
        assert UserProfileDTO(id="alice").name == "alice"
        assert UserProfileDTO(id="alice", display_name="Alice").name == "Alice"

    def test_image_url_is_first_image(self) -> None:
        """Test image_url picks the first image, or None."""
        profile = UserProfileDTO(
            id="alice", images=(ImageDTO(url="https://i/1"), ImageDTO(url="https://i/2"))
        )

        assert profile.image_url == "https://i/1"
        assert UserProfileDTO(id="alice").image_url is None


class TestPlaylistDTO:
    """Tests for PlaylistDTO.is_owned_by()."""

    def test_ownership_is_case_insensitive(self) -> None:
        """Test that owner ids are compared ignoring case."""
        playlist = PlaylistDTO(id="p1", name="Mix", owner_id="Alice")

        assert playlist.is_owned_by("alice")
        assert not playlist.is_owned_by("bob")

    def test_missing_owner_is_not_owned(self) -> None:
        """Test that a playlist without owner belongs to nobody."""
        assert not PlaylistDTO(id="p1", name="Mix").is_owned_by("alice")


class TestOutcomes:
    """Tests for the outcome of each result variant."""

    def test_outcomes(self) -> None:
        """Test the outcome tag of every variant."""
        profile = UserProfileDTO(id="alice")

        assert UserData(profile=profile).outcome == "success"
        assert UserData(profile=profile, rate_limited=True).outcome == "rate_limited"
        assert UserNotFound(user_id="alice").outcome == "not_found"
        assert (
            UserDataFailed(user_id="alice", error=RateLimitError("slow down")).outcome
            == "failed"
        )
