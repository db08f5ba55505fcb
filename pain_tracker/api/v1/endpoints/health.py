"""Health check endpoints."""

from fastapi import APIRouter, status
from pydantic import BaseModel

from pain_tracker.config import settings
from pain_tracker.core.firebase import is_firebase_initialized
from pain_tracker.core.redis_client import check_redis_connection

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str
    environment: str


class DetailedHealthResponse(HealthResponse):
    """Health check response including backing services."""

    firebase: str
    redis: str


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Basic health check",
)
async def health_check() -> HealthResponse:
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        environment=settings.environment,
    )


@router.get(
    "/health/detailed",
    response_model=DetailedHealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Detailed health check",
)
async def detailed_health_check() -> DetailedHealthResponse:
    """
    Health check with Firebase and Redis status.

    Redis only backs the entry cache, so an unhealthy Redis reports
    ``degraded`` rather than failing.
    """
    firebase_ready = is_firebase_initialized()
    redis_healthy = await check_redis_connection()

    return DetailedHealthResponse(
        status="healthy" if firebase_ready and redis_healthy else "degraded",
        version=settings.app_version,
        environment=settings.environment,
        firebase="healthy" if firebase_ready else "unavailable",
        redis="healthy" if redis_healthy else "unhealthy",
    )


@router.get(
    "/ping",
    status_code=status.HTTP_200_OK,
    summary="Simple ping",
)
async def ping() -> dict[str, str]:
    return {"message": "pong"}
