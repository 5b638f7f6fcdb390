"""Dependency injection for API endpoints."""

from datetime import UTC, datetime

from fastapi import Request

from friendbeats.application.services import SitemapService, UserActivityService
from friendbeats.config import Settings, get_settings


# Hey future me, services are built ONCE in lifespan() and parked on app.state - these getters
# just hand them out. Tests swap them via app.dependency_overrides, so never reach into
# app.state from a route directly.
def get_user_activity_service(request: Request) -> UserActivityService:
    """Get the shared user activity service."""
    service: UserActivityService = request.app.state.user_activity_service
    return service


def get_sitemap_service(request: Request) -> SitemapService:
    """Get the shared sitemap service."""
    service: SitemapService = request.app.state.sitemap_service
    return service


def get_app_settings(request: Request) -> Settings:
    """Get settings the app was started with (falls back to the environment)."""
    settings: Settings | None = getattr(request.app.state, "settings", None)
    return settings or get_settings()


def get_now() -> datetime:
    """Reference instant for day bucketing (overridable in tests)."""
    return datetime.now(UTC)
