"""
Health check endpoint.
"""

import time

import structlog
from fastapi import APIRouter, Depends

from src.api.dependencies import get_database, get_scheduler, get_session_manager
from src.api.models import ComponentHealth, HealthResponse
from src.scheduling.scheduler import CrawlScheduler
from src.session.manager import SessionManager
from src.storage.database import Database

router = APIRouter()
logger = structlog.get_logger(__name__)


async def _check_database(db: Database) -> ComponentHealth:
    """Check database connectivity and measure latency."""
    start = time.perf_counter()
    try:
        healthy = await db.health_check()
        latency_ms = (time.perf_counter() - start) * 1000
        return ComponentHealth(
            status="healthy" if healthy else "unhealthy",
            latency_ms=round(latency_ms, 2),
        )
    except Exception as e:
        latency_ms = (time.perf_counter() - start) * 1000
        return ComponentHealth(
            status="unhealthy",
            latency_ms=round(latency_ms, 2),
            details={"error": str(e)},
        )


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description="Check database connectivity and session state.",
)
async def health_check(
    db: Database = Depends(get_database),
    session: SessionManager = Depends(get_session_manager),
    scheduler: CrawlScheduler | None = Depends(get_scheduler),
) -> HealthResponse:
    db_health = await _check_database(db)

    return HealthResponse(
        status=db_health.status,
        components={"database": db_health},
        session_authenticated=session.is_authenticated,
        scheduler_running=scheduler is not None and scheduler.running,
    )
