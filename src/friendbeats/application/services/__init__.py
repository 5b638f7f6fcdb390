"""Application services."""

from friendbeats.application.services.sitemap_service import (
    SitemapService,
    SitemapUrl,
    render_sitemap_xml,
)
from friendbeats.application.services.user_activity_service import UserActivityService

__all__ = ["SitemapService", "SitemapUrl", "UserActivityService", "render_sitemap_xml"]
