"""User activity endpoints."""

import logging
from datetime import datetime
from typing import Annotated
from urllib.parse import quote

from fastapi import APIRouter, BackgroundTasks, Depends, Query

from friendbeats.api.dependencies import (
    get_now,
    get_sitemap_service,
    get_user_activity_service,
)
from friendbeats.api.schemas.users import (
    ProfileSummaryResponse,
    ResolveResponse,
    UserDashboardResponse,
)
from friendbeats.application.services import SitemapService, UserActivityService
from friendbeats.domain.dtos import UserDataFailed, UserNotFound
from friendbeats.domain.exceptions import NotFoundError
from friendbeats.domain.value_objects import parse_spotify_user_id

logger = logging.getLogger(__name__)

router = APIRouter(tags=["users"])


def user_page_path(user_id: str) -> str:
    """Site path of a user's activity page."""
    return f"/user/{quote(user_id, safe='')}"


# Hey future me, the aggregation never raises - it returns a variant. Failures are turned back
# into domain exceptions HERE so the registered exception handlers pick the status code
# (404 / 429 + Retry-After / 503 / 502) in one place. Only a real page (200) is worth a
# sitemap entry, and that write happens after the response is sent.
@router.get("/users/{user_id}", response_model=UserDashboardResponse)
async def get_user_dashboard(
    user_id: str,
    background_tasks: BackgroundTasks,
    service: Annotated[UserActivityService, Depends(get_user_activity_service)],
    sitemap: Annotated[SitemapService, Depends(get_sitemap_service)],
    now: Annotated[datetime, Depends(get_now)],
) -> UserDashboardResponse:
    """Profile, owned-playlist stats and recently added tracks grouped by day."""
    result = await service.get_user_data(user_id)

    if isinstance(result, UserNotFound):
        raise NotFoundError(
            resource=f"user/{user_id}", message=f"Spotify user '{user_id}' not found"
        )
    if isinstance(result, UserDataFailed):
        raise result.error

    background_tasks.add_task(
        sitemap.record_path, user_page_path(user_id), result.profile.image_url
    )
    return UserDashboardResponse.from_user_data(result, now)


@router.get("/users/{user_id}/summary", response_model=ProfileSummaryResponse)
async def get_user_summary(
    user_id: str,
    service: Annotated[UserActivityService, Depends(get_user_activity_service)],
) -> ProfileSummaryResponse:
    """Title, description and preview image for a user's page."""
    profile = await service.get_profile_summary(user_id)
    if profile is None:
        raise NotFoundError(
            resource=f"user/{user_id}", message=f"No profile summary for '{user_id}'"
        )
    return ProfileSummaryResponse.from_dto(profile)


@router.get("/resolve", response_model=ResolveResponse)
async def resolve_user(
    url: Annotated[str, Query(description="Spotify profile URL, spotify:user: URI or user ID")],
) -> ResolveResponse:
    """Extract the user ID from a pasted Spotify profile link."""
    return ResolveResponse(user_id=parse_spotify_user_id(url))
