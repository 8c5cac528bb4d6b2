"""
Application entry point.

Creates the FastAPI application and wires together:
- Routers (health, forecast)
- Error handlers (centralized engine-error-to-HTTP mapping)
- Rate limiting
- Logging configuration
- The forecast engine, warm-started from the model store

No business logic belongs here.
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from slowapi.errors import RateLimitExceeded

from app.core.config import settings
from app.interfaces.forecast.dependencies import build_forecast_service
from app.interfaces.forecast.router import router as forecast_router
from app.interfaces.health import router as health_router
from app.shared.errors.handlers import register_error_handlers
from app.shared.logging import configure_logging
from app.shared.rate_limiting import limiter, rate_limit_exceeded_handler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: load a persisted model, wait for training on shutdown."""
    orchestrator = app.state.forecast_service.orchestrator
    await orchestrator.warm_start()

    yield

    await drain_training(orchestrator, settings.training_timeout_seconds)


async def drain_training(orchestrator, timeout: float | None) -> bool:
    """Cancel or wait out in-flight training before shutdown.

    Returns:
        False if a fit was still running when ``timeout`` expired.
    """
    if not orchestrator.trainer.in_flight:
        return True
    if orchestrator.cancel_training():
        logger.info("In-flight training cancelled before it started.")
    else:
        logger.info("Waiting up to %ss for in-flight training to finish...", timeout)
    try:
        await asyncio.wait_for(orchestrator.trainer.wait(), timeout)
    except asyncio.TimeoutError:
        logger.warning("Training still running at shutdown; abandoning it.")
        return False
    return True


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Registers routers, error handlers, and rate limiting.
    This is the composition root of the application.

    Returns:
        A fully configured FastAPI application instance.
    """
    configure_logging(level=settings.log_level, engine_level=settings.engine_log_level)

    app = FastAPI(
        title=settings.project_name,
        version=settings.version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    # --- Forecast engine ---
    app.state.forecast_service = build_forecast_service()

    # --- Rate Limiting ---
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    # --- Error Handlers ---
    register_error_handlers(app)

    # --- Routers ---
    app.include_router(health_router, prefix="/api/v1")
    app.include_router(forecast_router, prefix="/api/v1")

    return app


app = create_app()
