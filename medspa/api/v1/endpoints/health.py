"""
Health Check Endpoints
System health and monitoring endpoints
"""

from fastapi import APIRouter, Request
import structlog
import time
import psutil
from typing import Dict, Any

from medspa.core.database import check_database_health
from medspa.schemas.base import HealthCheck, HealthStatus

logger = structlog.get_logger()
router = APIRouter()

SERVICE_NAME = "medspa-api"
SERVICE_VERSION = "1.0.0"


def _memory_check() -> Dict[str, Any]:
    memory = psutil.virtual_memory()
    usage = memory.percent
    return {
        "status": "healthy" if usage < 90 else "degraded" if usage < 95 else "unhealthy",
        "usage_percent": usage,
        "available_gb": round(memory.available / (1024**3), 2),
    }


@router.get("", response_model=HealthCheck)
async def health_check(request: Request) -> HealthCheck:
    """
    Health check with database probe and memory usage

    Returns:
        Health status with detailed checks
    """
    checks: Dict[str, Any] = {}
    overall_status = HealthStatus.HEALTHY

    started = time.perf_counter()
    db_healthy = await check_database_health(getattr(request.app.state, "engine", None))
    checks["database"] = {
        "status": "healthy" if db_healthy else "unhealthy",
        "response_time_ms": round((time.perf_counter() - started) * 1000, 2),
    }
    if not db_healthy:
        overall_status = HealthStatus.UNHEALTHY

    memory = _memory_check()
    checks["memory"] = memory
    if memory["status"] == "unhealthy":
        overall_status = HealthStatus.UNHEALTHY
    elif memory["status"] == "degraded" and overall_status == HealthStatus.HEALTHY:
        overall_status = HealthStatus.DEGRADED

    return HealthCheck(
        status=overall_status,
        service=SERVICE_NAME,
        version=SERVICE_VERSION,
        checks=checks,
    )


@router.get("/live")
async def liveness_check() -> Dict[str, Any]:
    """Liveness probe"""
    return {"status": "alive", "timestamp": time.time()}
