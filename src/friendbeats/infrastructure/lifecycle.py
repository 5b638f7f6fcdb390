"""Application lifecycle management for startup and shutdown tasks."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

import httpx
from fastapi import FastAPI

from friendbeats.application.cache import InMemoryCache
from friendbeats.application.services import SitemapService, UserActivityService
from friendbeats.config import Settings, get_settings
from friendbeats.infrastructure.integrations import SpotifyClient, SpotifyTokenProvider
from friendbeats.infrastructure.observability import configure_logging
from friendbeats.infrastructure.persistence import Database

logger = logging.getLogger(__name__)


# Hey future me, everything a request needs lives on app.state and is built exactly once here:
# ONE httpx.AsyncClient (connection pool shared by token provider and API client), ONE response
# cache and ONE token provider. Missing Spotify credentials do NOT stop startup; the dashboard
# endpoint answers 503 until they are set.
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown tasks including:
    - Logging configuration
    - Database initialization (tables created if missing)
    - Spotify HTTP client, token provider and response cache
    - Resource cleanup
    """
    settings: Settings = getattr(app.state, "settings", None) or get_settings()
    app.state.settings = settings

    configure_logging(
        log_level=settings.log_level,
        json_format=settings.observability.log_json_format,
        app_name=settings.app_name,
    )
    logger.info("Starting application: %s", settings.app_name)

    db = Database(settings.database)
    http_client = httpx.AsyncClient(timeout=settings.spotify.request_timeout)
    try:
        await db.create_tables()
        logger.info("Database initialized: %s", settings.database.url)

        if not settings.spotify.client_id or not settings.spotify.client_secret:
            logger.warning(
                "SPOTIFY_CLIENT_ID / SPOTIFY_CLIENT_SECRET not set - user pages will return 503"
            )

        cache: InMemoryCache[str, Any] = InMemoryCache()
        token_provider = SpotifyTokenProvider(settings.spotify, http_client=http_client)
        spotify_client = SpotifyClient(settings.spotify, http_client=http_client, cache=cache)

        app.state.db = db
        app.state.user_activity_service = UserActivityService(
            spotify_client, token_provider, settings.aggregation
        )
        app.state.sitemap_service = SitemapService(db)

        yield
    finally:
        logger.info("Shutting down application")
        await http_client.aclose()
        await db.close()
        logger.info("Application shutdown complete")
