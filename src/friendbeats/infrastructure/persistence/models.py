"""SQLAlchemy ORM models for FriendBeats."""

from datetime import UTC, datetime

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utc_now() -> datetime:
    """Get current UTC time."""
    return datetime.now(UTC)


# Hey future me - SQLite drops tzinfo even for DateTime(timezone=True). Everything we write is
# UTC, so values read back naive get UTC attached here before anyone compares them.
def ensure_utc_aware(dt: datetime) -> datetime:
    """Ensure datetime is UTC-aware, assuming naive datetimes are UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


# One row per site path (e.g. "/user/alice"). Visiting a path again only bumps
# last_visited_at and replaces image_url; rows are never deleted by the app.
class SitemapEntryModel(Base):
    """Visited page recorded for sitemap generation."""

    __tablename__ = "sitemap_entries"

    path: Mapped[str] = mapped_column(String(512), primary_key=True)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_visited_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )

    __table_args__ = (Index("ix_sitemap_entries_last_visited_at", "last_visited_at"),)

    def __repr__(self) -> str:
        return f"<SitemapEntryModel(path={self.path!r}, last_visited_at={self.last_visited_at})>"
