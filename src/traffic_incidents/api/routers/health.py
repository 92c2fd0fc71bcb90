"""
Health Check Router

Reports store reachability and the state of the feed sync job.
"""

import time

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ...config import get_logger
from ...container import ServiceContainer
from ...core.exceptions import StoreUnavailableError
from ..dependencies import get_container
from ..responses import HealthData, HealthResponse, create_success_response

router = APIRouter(tags=["health"])
logger = get_logger(__name__)

# Track application startup time for uptime calculation
app_startup_time = time.time()


@router.get("/health", response_model=HealthResponse)
def health_check(container: ServiceContainer = Depends(get_container)):
    """
    Service health.

    Returns 200 when the store answers, 503 with the same body otherwise.
    The sync job status is informational: a failing feed never makes the
    service unhealthy because stored data keeps being served.
    """
    store: dict = {"status": "healthy"}
    try:
        container.repository.ping()
    except StoreUnavailableError as e:
        logger.warning("Health check: store unavailable", error=e.message)
        store = {"status": "unhealthy", "error": e.message}

    healthy = store["status"] == "healthy"
    response = create_success_response(
        data=HealthData(
            service_status="healthy" if healthy else "unhealthy",
            components={"store": store, "sync_job": container.sync_job.get_status()},
            uptime_seconds=round(time.time() - app_startup_time, 1),
            version=container.settings.app_version,
        ),
        message="Service is healthy" if healthy else "Service is unhealthy",
        endpoint="/health",
    )
    if healthy:
        return response
    return JSONResponse(status_code=503, content=response.model_dump(mode="json"))
