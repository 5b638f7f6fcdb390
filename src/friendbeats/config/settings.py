"""Application settings loaded from environment variables and .env."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Hey future me - client_id/client_secret default to "" so settings load without them (health
# and sitemap work without Spotify). The token provider raises ConfigurationError the moment
# someone actually needs a token.
class SpotifySettings(BaseSettings):
    """Spotify Web API credentials, endpoints and cache windows."""

    model_config = SettingsConfigDict(
        env_prefix="SPOTIFY_", env_file=".env", extra="ignore"
    )

    client_id: str = ""
    client_secret: str = ""
    accounts_base_url: str = "https://accounts.spotify.com"
    api_base_url: str = "https://api.spotify.com/v1"

    # Spotify tokens live 3600s - our window MUST stay below that
    token_cache_seconds: int = Field(default=1800, gt=0, lt=3600)
    # Profile + playlist metadata barely changes
    metadata_cache_seconds: int = Field(default=3600, ge=0)
    # Track listings churn much faster
    track_cache_seconds: int = Field(default=600, ge=0)
    request_timeout: float = Field(default=30.0, gt=0)

    @property
    def token_url(self) -> str:
        """Full URL of the client-credentials token endpoint."""
        return f"{self.accounts_base_url.rstrip('/')}/api/token"


class AggregationSettings(BaseSettings):
    """Tuning knobs for the recent-tracks aggregation."""

    model_config = SettingsConfigDict(
        env_prefix="AGGREGATION_", env_file=".env", extra="ignore"
    )

    # Should stay >= min_recent_tracks, otherwise one busy playlist can't fill the page
    track_fetch_limit_per_playlist: int = Field(default=30, ge=1, le=100)
    min_recent_tracks: int = Field(default=20, ge=1)


class DatabaseSettings(BaseSettings):
    """Database connection settings."""

    model_config = SettingsConfigDict(
        env_prefix="DATABASE_", env_file=".env", extra="ignore"
    )

    url: str = "sqlite+aiosqlite:///./friendbeats.db"
    echo: bool = False


class ObservabilitySettings(BaseSettings):
    """Logging output settings."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    log_json_format: bool = False


class Settings(BaseSettings):
    """Root settings object."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_name: str = "FriendBeats"
    log_level: str = "INFO"
    site_url: str = "http://localhost:8000"
    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=1, le=65535)

    spotify: SpotifySettings = Field(default_factory=SpotifySettings)
    aggregation: AggregationSettings = Field(default_factory=AggregationSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
