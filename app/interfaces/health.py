"""
Health check router.

Provides a simple health endpoint for liveness/readiness probes.
No business logic. Returns application status, version and whether
the sequence model is ready.
"""

from fastapi import APIRouter, Depends

from app.core.config import settings
from app.interfaces.forecast.dependencies import get_forecast_service
from app.interfaces.forecast.schemas import HealthResponse
from forecast.inference import ForecastService

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Returns application health status, version and model status.",
)
def health_check(
    service: ForecastService = Depends(get_forecast_service),
) -> HealthResponse:
    """Return current application health status."""
    return HealthResponse(
        status="ok",
        version=settings.version,
        model_status=service.orchestrator.model_state.status.value,
    )
