"""Persistence layer: database engine, ORM models and repositories."""

from friendbeats.infrastructure.persistence.database import Database
from friendbeats.infrastructure.persistence.models import Base, SitemapEntryModel
from friendbeats.infrastructure.persistence.repositories import SitemapRepository

__all__ = ["Base", "Database", "SitemapEntryModel", "SitemapRepository"]
