"""Sitemap recording and rendering."""

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError

from friendbeats.domain.ports import ISitemapRecorder
from friendbeats.infrastructure.persistence import Database, SitemapRepository
from friendbeats.infrastructure.persistence.models import ensure_utc_aware, utc_now

logger = logging.getLogger(__name__)

SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"
IMAGE_NS = "http://www.google.com/schemas/sitemap-image/1.1"

ROOT_PRIORITY = 1.0
ROOT_CHANGE_FREQUENCY = "daily"
PAGE_PRIORITY = 0.7
PAGE_CHANGE_FREQUENCY = "weekly"


@dataclass(frozen=True)
class SitemapUrl:
    """One <url> entry of the sitemap."""

    loc: str
    last_modified: datetime
    change_frequency: str
    priority: float
    images: tuple[str, ...] = ()


class SitemapService(ISitemapRecorder):
    """Records visited user pages and turns them into sitemap.xml."""

    def __init__(self, database: Database, root_image_path: str | None = "/og-image.png") -> None:
        self._database = database
        self._root_image_path = root_image_path

    # Hey future me, this runs as a FastAPI background task AFTER the response went out.
    # Any error is logged and dropped here; nothing upstream is left to handle it.
    async def record_path(self, path: str, image_url: str | None = None) -> None:
        """Upsert a visited path with the current time."""
        if not path or not path.startswith("/"):
            logger.warning("Refusing to record sitemap path %r: must start with '/'", path)
            return

        try:
            async with self._database.session_scope() as session:
                await SitemapRepository(session).upsert(path, image_url=image_url)
        except Exception:
            logger.exception("Failed to record sitemap path %s", path)
            return

        logger.debug("Recorded sitemap path %s", path)

    async def build_sitemap(self, site_url: str) -> list[SitemapUrl]:
        """Root entry followed by every recorded path, most recent first.

        If the database is unavailable only the root entry is returned.
        """
        base = site_url.rstrip("/")
        now = utc_now()
        root = SitemapUrl(
            loc=base or "/",
            last_modified=now,
            change_frequency=ROOT_CHANGE_FREQUENCY,
            priority=ROOT_PRIORITY,
            images=(f"{base}{self._root_image_path}",) if self._root_image_path else (),
        )

        try:
            async with self._database.session_scope() as session:
                entries = await SitemapRepository(session).list_recent()
                pages = [
                    SitemapUrl(
                        loc=f"{base}{entry.path}",
                        last_modified=ensure_utc_aware(entry.last_visited_at),
                        change_frequency=PAGE_CHANGE_FREQUENCY,
                        priority=PAGE_PRIORITY,
                        images=(entry.image_url,) if entry.image_url else (),
                    )
                    for entry in entries
                ]
        except SQLAlchemyError:
            logger.exception("Failed to load sitemap entries, serving root only")
            return [root]

        return [root, *pages]


def render_sitemap_xml(urls: list[SitemapUrl]) -> str:
    """Render entries as a sitemap <urlset> with the image extension."""
    ET.register_namespace("", SITEMAP_NS)
    ET.register_namespace("image", IMAGE_NS)

    urlset = ET.Element(f"{{{SITEMAP_NS}}}urlset")
    for url in urls:
        node = ET.SubElement(urlset, f"{{{SITEMAP_NS}}}url")
        ET.SubElement(node, f"{{{SITEMAP_NS}}}loc").text = url.loc
        ET.SubElement(node, f"{{{SITEMAP_NS}}}lastmod").text = url.last_modified.isoformat()
        ET.SubElement(node, f"{{{SITEMAP_NS}}}changefreq").text = url.change_frequency
        ET.SubElement(node, f"{{{SITEMAP_NS}}}priority").text = f"{url.priority:.1f}"
        for image in url.images:
            image_node = ET.SubElement(node, f"{{{IMAGE_NS}}}image")
            ET.SubElement(image_node, f"{{{IMAGE_NS}}}loc").text = image

    body = ET.tostring(urlset, encoding="unicode")
    return f'<?xml version="1.0" encoding="UTF-8"?>\n{body}'
