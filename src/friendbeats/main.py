"""FastAPI application factory."""

from fastapi import FastAPI

from friendbeats import __version__
from friendbeats.api.exception_handlers import register_exception_handlers
from friendbeats.api.routers import api_router, health, sitemap
from friendbeats.config import Settings
from friendbeats.infrastructure.lifecycle import lifespan
from friendbeats.infrastructure.observability import RequestLoggingMiddleware


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to run with; read from the environment when omitted

    Returns:
        Configured application. Services are attached to app.state on startup.
    """
    app = FastAPI(
        title="FriendBeats",
        description="See what your friends have been adding to their Spotify playlists",
        version=__version__,
        lifespan=lifespan,
    )
    if settings is not None:
        app.state.settings = settings

    app.add_middleware(RequestLoggingMiddleware)
    register_exception_handlers(app)

    app.include_router(api_router, prefix="/api")
    app.include_router(health.router, prefix="/health")
    app.include_router(sitemap.router)

    return app


app = create_app()
