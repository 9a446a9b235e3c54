"""
Service endpoints: health and metrics.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from finops.api.dependencies import get_metrics, require_role
from finops.api.schemas import HealthResponse, MetricsResponse
from finops.models.user import UserRole, UserSummary
from finops.utils.logging import get_logger
from finops.utils.monitoring import MetricsCollector

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["service"])


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Connectivity check. Does not touch the database."""
    logger.debug("Health check requested")
    return HealthResponse(
        status="OK",
        timestamp=datetime.now(timezone.utc).isoformat(),
        message="Server is running",
    )


@router.get("/metrics", response_model=MetricsResponse)
async def get_metrics_snapshot(
    _admin: UserSummary = Depends(require_role(UserRole.ADMIN)),
    metrics: MetricsCollector = Depends(get_metrics)
) -> MetricsResponse:
    """
    Get in-process counters and request timings. Admin only.
    """
    return MetricsResponse(
        metrics=metrics.get_all_metrics(),
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
