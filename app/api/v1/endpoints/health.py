"""Health check API endpoints."""

from fastapi import APIRouter
from pydantic import BaseModel, Field

from app.core.config import settings
from app.core.database import db_client
from app.core.redis_client import RedisClientManager
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)

router = APIRouter()


class HealthCheckResponse(BaseModel):
    status: str = Field(..., description="Health check status")
    version: str = Field(..., description="Running application version")
    service: str = Field(..., description="Service name")
    database: dict = Field(default_factory=dict, description="Document store health")
    redis: dict = Field(default_factory=dict, description="Ranking cache health")


@router.get(
    "/",
    response_model=HealthCheckResponse,
    tags=["Health"],
    summary="Health check endpoint",
    description="Check if the service, its document store and its cache are healthy",
    operation_id="get_service_health_status",
)
async def health_check() -> HealthCheckResponse:
    """Health check endpoint."""
    db_health = await db_client.health_check()
    redis_health = await RedisClientManager.health_check()

    healthy = db_health["status"] == "healthy" and redis_health["status"] == "healthy"
    if not healthy:
        LOGGER.warning(
            "Service degraded",
            extra={"database": db_health["status"], "redis": redis_health["status"]},
        )

    return HealthCheckResponse(
        status="healthy" if healthy else "degraded",
        version=settings.app_version,
        service=settings.app_name,
        database=db_health,
        redis=redis_health,
    )
