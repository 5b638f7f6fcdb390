"""Custom exception handlers for FastAPI application.

Routes turn aggregation outcomes back into domain exceptions; this is the one place
where those become HTTP status codes.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from friendbeats.domain.exceptions import (
    ConfigurationError,
    NotFoundError,
    RateLimitError,
    UpstreamError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def rate_limit_headers(exc: RateLimitError) -> dict[str, str]:
    """Retry-After header for a rate limit error, if Spotify told us how long."""
    if exc.retry_after is None:
        return {}
    return {"Retry-After": str(exc.retry_after)}


def register_exception_handlers(app: FastAPI) -> None:
    """Register handlers mapping domain exceptions to HTTP responses.

    ValidationError → 422, NotFoundError → 404, RateLimitError → 429,
    ConfigurationError → 503, UpstreamError → 502.

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(ValidationError)
    async def validation_exception_handler(
        request: Request, exc: ValidationError
    ) -> JSONResponse:
        logger.warning(
            "Validation error at %s: %s",
            request.url.path,
            exc.message,
            extra={"path": request.url.path, "error": exc.message},
        )
        return JSONResponse(status_code=422, content={"detail": exc.message})

    @app.exception_handler(NotFoundError)
    async def not_found_exception_handler(
        request: Request, exc: NotFoundError
    ) -> JSONResponse:
        logger.info(
            "Not found at %s: %s",
            request.url.path,
            exc.resource,
            extra={"path": request.url.path, "resource": exc.resource},
        )
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"detail": exc.message},
        )

    @app.exception_handler(RateLimitError)
    async def rate_limit_exception_handler(
        request: Request, exc: RateLimitError
    ) -> JSONResponse:
        logger.warning(
            "Rate limited at %s (retry after %s)",
            request.url.path,
            exc.retry_after,
            extra={"path": request.url.path, "retry_after": exc.retry_after},
        )
        return JSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            content={"detail": exc.message, "retry_after": exc.retry_after},
            headers=rate_limit_headers(exc),
        )

    @app.exception_handler(ConfigurationError)
    async def configuration_exception_handler(
        request: Request, exc: ConfigurationError
    ) -> JSONResponse:
        logger.error(
            "Configuration error at %s: %s",
            request.url.path,
            exc.message,
            extra={"path": request.url.path, "error": exc.message},
        )
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": exc.message},
        )

    # Catches AuthServiceError too (subclass)
    @app.exception_handler(UpstreamError)
    async def upstream_exception_handler(
        request: Request, exc: UpstreamError
    ) -> JSONResponse:
        logger.error(
            "Upstream error at %s: %s (status %s)",
            request.url.path,
            exc.message,
            exc.status_code,
            extra={"path": request.url.path, "upstream_status": exc.status_code},
        )
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"detail": exc.message},
        )
