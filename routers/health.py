"""Health check endpoints for orchestrator probes."""
import time

from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import JSONResponse

from dependencies import get_health_service
from health_service import HealthService
from response_helpers import create_success_response

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
def get_health(response: Response, health: HealthService = Depends(get_health_service)):
    """Aggregate status of the service and its database."""
    started = time.perf_counter()
    db_check = health.check_database_connection()

    database = {
        "status": "CONNECTED" if db_check.connected else "DISCONNECTED",
        "responseTime": round(db_check.duration, 2),
    }
    if db_check.error:
        database["error"] = db_check.error

    health_data = {
        "status": "UP",
        "timestamp": health.get_current_timestamp(),
        "uptime": health.get_uptime(),
        "database": database,
        "memory": health.get_memory_usage(),
    }

    # The process answered, so it is degraded rather than down
    if not db_check.connected:
        health_data["status"] = "DEGRADED"
        database["status"] = "ERROR"

    response.headers["X-Response-Time"] = f"{(time.perf_counter() - started) * 1000:.0f}ms"
    return create_success_response(health_data, "Health check successful")


@router.get("/readiness")
def get_readiness(health: HealthService = Depends(get_health_service)):
    """Readiness probe: UP only when the database answers."""
    db_check = health.check_database_connection()
    if not db_check.connected:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "DOWN",
                "timestamp": health.get_current_timestamp(),
                "database": {"status": "ERROR", "error": db_check.error},
            },
        )
    return {"status": "UP", "timestamp": health.get_current_timestamp()}


@router.get("/liveness")
def get_liveness(health: HealthService = Depends(get_health_service)):
    """Liveness probe."""
    return {"status": "UP", "timestamp": health.get_current_timestamp()}
