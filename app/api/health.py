"""
Health check endpoint.
"""

from fastapi import APIRouter
from pydantic import BaseModel
from datetime import datetime

from app.utils.config import get_settings

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str
    timestamp: datetime
    service: str
    version: str
    port: int
    toolkit_available: bool


@router.get("/health", response_model=HealthResponse)
@router.get("/api/health", response_model=HealthResponse, include_in_schema=False)
async def health_check():
    """
    Health check endpoint.

    Verifies:
    - API is running
    - Monitor toolkit directory is present
    """
    settings = get_settings()
    toolkit_available = settings.get_monitor_dir().is_dir()

    return HealthResponse(
        status="healthy" if toolkit_available else "degraded",
        timestamp=datetime.now(),
        service="directory-monitor",
        version=settings.api_version,
        port=settings.api_port,
        toolkit_available=toolkit_available
    )
