"""Configuration module for FriendBeats."""

from .settings import (
    AggregationSettings,
    DatabaseSettings,
    ObservabilitySettings,
    Settings,
    SpotifySettings,
    get_settings,
)

__all__ = [
    "AggregationSettings",
    "DatabaseSettings",
    "ObservabilitySettings",
    "Settings",
    "SpotifySettings",
    "get_settings",
]
