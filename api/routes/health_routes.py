"""Health check endpoints."""

from fastapi import APIRouter, Request

from core.ratelimit import HEALTH_LIMIT, limiter
from schemas import HealthResponse

router = APIRouter(tags=["health"])

SERVICE_NAME = "certificate-renderer"


@router.get("/health", response_model=HealthResponse)
@limiter.limit(HEALTH_LIMIT)
async def health(request: Request) -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="healthy", service=SERVICE_NAME)
