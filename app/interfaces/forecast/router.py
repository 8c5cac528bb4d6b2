"""
FastAPI router for the forecast engine.

All routes delegate to the ForecastService / PredictionOrchestrator.
No business logic here. Input validation is handled by Pydantic
schemas; error mapping by the centralized error handlers.
"""

from fastapi import APIRouter, Depends, Request

from app.interfaces.forecast.dependencies import get_forecast_service
from app.interfaces.forecast.schemas import (
    ErrorResponse,
    IndicatorSetSchema,
    InvalidateResponse,
    ModelStatusResponse,
    PredictionResponse,
    PredictRequest,
    TrainingReportResponse,
    TrainRequest,
)
from app.shared.rate_limiting import HEAVY_RATE_LIMIT, limiter
from forecast.entities import PredictionResult
from forecast.inference import ForecastService

router = APIRouter(prefix="/forecast", tags=["forecast"])


def _to_response(symbol: str, result: PredictionResult) -> PredictionResponse:
    return PredictionResponse(
        symbol=symbol,
        predicted_price=result.predicted_price,
        confidence=result.confidence,
        direction=result.direction.value,
        volatility=result.volatility,
        indicators=IndicatorSetSchema(**result.indicators.to_dict()),
        method=result.method.value,
    )


@router.post(
    "/predictions",
    response_model=PredictionResponse,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
    summary="Forecast the next price",
    description=(
        "Forecast the next closing price of a ticker from inline prices or "
        "from the price store. Uses the LSTM when it is ready, the "
        "statistical fallback otherwise."
    ),
)
@limiter.limit(HEAVY_RATE_LIMIT)
async def predict(
    request: Request,
    body: PredictRequest,
    service: ForecastService = Depends(get_forecast_service),
) -> PredictionResponse:
    """Forecast the next price for a ticker."""
    if body.prices is None:
        result = await service.forecast(body.symbol, refresh=body.refresh)
    else:
        orchestrator = service.orchestrator
        if body.refresh:
            orchestrator.invalidate(body.symbol)
        result = await orchestrator.predict(body.prices, body.symbol)
    return _to_response(body.symbol, result)


@router.post(
    "/model/train",
    response_model=TrainingReportResponse,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
    summary="Train the sequence model",
    description=(
        "Train the shared LSTM on a ticker's history or on inline prices. "
        "Joins a fit already in flight instead of starting another."
    ),
)
@limiter.limit(HEAVY_RATE_LIMIT)
async def train_model(
    request: Request,
    body: TrainRequest,
    service: ForecastService = Depends(get_forecast_service),
) -> TrainingReportResponse:
    """Train the model and report the outcome."""
    if body.prices is None:
        report = await service.train(body.symbol, epochs=body.epochs)
    else:
        report = await service.orchestrator.train(body.prices, body.epochs)
    return TrainingReportResponse(**report.to_dict())


@router.get(
    "/model",
    response_model=ModelStatusResponse,
    summary="Model status",
    description="Lifecycle state of the sequence model.",
)
def model_status(
    service: ForecastService = Depends(get_forecast_service),
) -> ModelStatusResponse:
    """Return the model's lifecycle state."""
    orchestrator = service.orchestrator
    state = orchestrator.model_state
    return ModelStatusResponse(
        status=state.status.value,
        reason=state.reason,
        training_in_flight=orchestrator.trainer.in_flight,
    )


@router.delete(
    "/cache/{symbol}",
    response_model=InvalidateResponse,
    summary="Invalidate a cached forecast",
    description="Drop the cached forecast of a ticker after its data changed.",
)
def invalidate_cache(
    symbol: str,
    service: ForecastService = Depends(get_forecast_service),
) -> InvalidateResponse:
    """Forget the cached forecast for a ticker."""
    invalidated = service.orchestrator.invalidate(symbol)
    return InvalidateResponse(symbol=symbol, invalidated=invalidated)
