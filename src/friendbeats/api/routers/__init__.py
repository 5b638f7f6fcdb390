"""API router initialization."""

from fastapi import APIRouter

from friendbeats.api.routers import health, sitemap, users

# Mounted at /api in main.py; health and sitemap live at the site root
api_router = APIRouter()
api_router.include_router(users.router)

__all__ = ["api_router", "health", "sitemap", "users"]
