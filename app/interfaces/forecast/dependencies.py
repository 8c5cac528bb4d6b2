"""
Dependency injection for the forecast interface.

Builds the engine once per application (the orchestrator owns the
model and the cache, so it must outlive a request) and hands it to
routes through FastAPI dependencies.
"""

from fastapi import Request

from app.core.config import settings
from forecast.config import config
from forecast.inference import ForecastService, PredictionOrchestrator
from forecast.providers import FilePriceHistoryProvider
from forecast.storage import build_model_store


def build_forecast_service() -> ForecastService:
    """Compose the provider, model store and orchestrator from settings."""
    store = build_model_store(
        settings.model_store, config.paths.models_dir, settings.redis_url
    )
    orchestrator = PredictionOrchestrator(cfg=config, store=store)
    provider = FilePriceHistoryProvider(config.paths.price_data_dir)
    return ForecastService(provider, orchestrator)


def get_forecast_service(request: Request) -> ForecastService:
    """Return the application's ForecastService."""
    return request.app.state.forecast_service
