"""Health check data models."""

from datetime import datetime

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Liveness response model."""

    status: str = "alive"
    version: str
    timestamp: datetime
