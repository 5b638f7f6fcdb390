"""Health check endpoints for Docker/Kubernetes probes."""

from datetime import UTC, datetime

from fastapi import APIRouter
from pydantic import BaseModel, Field

from friendbeats import __version__

router = APIRouter(tags=["health"])


class LivenessStatus(BaseModel):
    """Simple liveness probe response."""

    status: str = Field(description="alive or dead")
    timestamp: str = Field(description="ISO timestamp")
    version: str = Field(default=__version__, description="Application version")


# Liveness only: neither Spotify nor the database is consulted here
@router.get("/live", response_model=LivenessStatus)
async def liveness_probe() -> LivenessStatus:
    """Liveness probe. Returns 200 while the process is serving requests."""
    return LivenessStatus(status="alive", timestamp=datetime.now(UTC).isoformat())
