"""Repository implementations for data persistence."""

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from friendbeats.infrastructure.persistence.models import SitemapEntryModel, utc_now


class SitemapRepository:
    """Repository for visited sitemap paths."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with session."""
        self.session = session

    # Hey future me, plain select-then-update, no dialect-specific ON CONFLICT. Two concurrent first
    # visits to one path can race; the loser gets an IntegrityError which SitemapService logs and drops.
    async def upsert(
        self,
        path: str,
        image_url: str | None = None,
        visited_at: datetime | None = None,
    ) -> SitemapEntryModel:
        """Insert or refresh the entry for path."""
        visited_at = visited_at or utc_now()

        model = await self.session.get(SitemapEntryModel, path)
        if model is None:
            model = SitemapEntryModel(
                path=path, image_url=image_url, last_visited_at=visited_at
            )
            self.session.add(model)
        else:
            model.image_url = image_url
            model.last_visited_at = visited_at

        await self.session.flush()
        return model

    async def get(self, path: str) -> SitemapEntryModel | None:
        """Get the entry for path, if recorded."""
        return await self.session.get(SitemapEntryModel, path)

    async def list_recent(self, limit: int | None = None) -> list[SitemapEntryModel]:
        """List entries, most recently visited first."""
        stmt = select(SitemapEntryModel).order_by(
            SitemapEntryModel.last_visited_at.desc(), SitemapEntryModel.path
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
