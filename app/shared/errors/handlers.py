"""
Centralized error handlers for FastAPI.

Maps forecast engine errors to HTTP responses.
No stack traces or internal details are exposed to clients.
All error responses use the ErrorResponse schema.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from forecast.errors import ForecastError, NoDataError, TickerNotFoundError

logger = logging.getLogger(__name__)

HTTP_404 = 404
HTTP_422 = 422
HTTP_500 = 500


def _error_response(status_code: int, error: str, detail: str | None = None) -> JSONResponse:
    """Build a consistent JSON error response."""
    body: dict[str, str | None] = {"error": error}
    if detail:
        body["detail"] = detail
    return JSONResponse(status_code=status_code, content=body)


def register_error_handlers(app: FastAPI) -> None:
    """Register all forecast error handlers on the FastAPI application.

    Args:
        app: The FastAPI application instance.
    """

    @app.exception_handler(NoDataError)
    async def handle_no_data(
        _request: Request, exc: NoDataError
    ) -> JSONResponse:
        """Handle prediction requests without any price data."""
        logger.warning("No price data: %s", exc.ticker or "<unnamed>")
        return _error_response(HTTP_422, "No price data", exc.kind)

    @app.exception_handler(TickerNotFoundError)
    async def handle_ticker_not_found(
        _request: Request, exc: TickerNotFoundError
    ) -> JSONResponse:
        """Handle tickers the price provider knows nothing about."""
        logger.warning("Ticker not found: %s", exc.ticker)
        return _error_response(HTTP_404, "Ticker not found")

    @app.exception_handler(ForecastError)
    async def handle_forecast_error(
        _request: Request, exc: ForecastError
    ) -> JSONResponse:
        """Catch-all for unhandled forecast engine errors."""
        logger.error("Unhandled forecast error [%s]: %s", exc.kind, exc.message)
        return _error_response(HTTP_500, "Internal server error")

    @app.exception_handler(Exception)
    async def handle_unexpected(
        _request: Request, exc: Exception
    ) -> JSONResponse:
        """Catch-all for unexpected errors. Never exposes internals."""
        logger.exception("Unexpected error: %s", type(exc).__name__)
        return _error_response(HTTP_500, "Internal server error")
