"""sitemap.xml endpoint."""

from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from friendbeats.api.dependencies import get_app_settings, get_sitemap_service
from friendbeats.application.services import SitemapService, render_sitemap_xml
from friendbeats.config import Settings

router = APIRouter(tags=["sitemap"])


@router.get("/sitemap.xml", response_class=Response)
async def sitemap_xml(
    sitemap: Annotated[SitemapService, Depends(get_sitemap_service)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> Response:
    """Root page plus every user page visited so far."""
    urls = await sitemap.build_sitemap(settings.site_url)
    return Response(content=render_sitemap_xml(urls), media_type="application/xml")
