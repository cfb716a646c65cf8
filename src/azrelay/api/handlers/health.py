"""Health check endpoint handler."""

from datetime import datetime, timezone

from fastapi import APIRouter

from azrelay import __version__
from azrelay.models.health import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def liveness_check() -> HealthResponse:
    """Liveness probe - checks if the process is running.

    Does not contact the backend; use GET /v1/models to check the
    credential.
    """
    return HealthResponse(
        version=__version__,
        timestamp=datetime.now(timezone.utc),
    )
