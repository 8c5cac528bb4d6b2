"""
Pydantic schemas for forecast API request/response validation.

These schemas enforce input validation and define the API contract.
No business logic belongs here.
"""

from typing import Literal

from pydantic import BaseModel, Field, PositiveFloat, model_validator

SYMBOL_DESCRIPTION = "Equity ticker symbol"
SYMBOL_PATTERN = r"^[A-Z0-9.\-]+$"
SYMBOL_MIN_LEN = 1
SYMBOL_MAX_LEN = 12
PRICES_DESCRIPTION = "Closing prices, oldest first. Fetched from the price store if omitted."


class PredictRequest(BaseModel):
    """Request schema for the prediction endpoint.

    Attributes:
        symbol: Ticker symbol (1-12 uppercase chars); also the cache key.
        prices: Optional inline closing prices.
        refresh: Drop the ticker's cached forecast before predicting.
    """

    symbol: str = Field(
        ...,
        min_length=SYMBOL_MIN_LEN,
        max_length=SYMBOL_MAX_LEN,
        pattern=SYMBOL_PATTERN,
        description=SYMBOL_DESCRIPTION,
    )
    prices: list[PositiveFloat] | None = Field(default=None, description=PRICES_DESCRIPTION)
    refresh: bool = Field(
        default=True, description="Invalidate the cached forecast before predicting"
    )


class IndicatorSetSchema(BaseModel):
    """Technical indicators over the input series."""

    sma5: float
    sma10: float
    sma20: float
    ema12: float
    ema26: float
    rsi: float
    macd: float
    volatility: float


class PredictionResponse(BaseModel):
    """Response schema for the prediction endpoint."""

    symbol: str
    predicted_price: float
    confidence: float = Field(..., ge=50, le=95)
    direction: Literal["up", "down", "flat"]
    volatility: float
    indicators: IndicatorSetSchema
    method: Literal["ml", "statistical", "statistical-minimal"]


class TrainRequest(BaseModel):
    """Request schema for the training endpoint.

    Exactly one source of prices: a symbol to fetch, or inline prices.
    """

    symbol: str | None = Field(
        default=None,
        min_length=SYMBOL_MIN_LEN,
        max_length=SYMBOL_MAX_LEN,
        pattern=SYMBOL_PATTERN,
        description=SYMBOL_DESCRIPTION,
    )
    prices: list[PositiveFloat] | None = Field(default=None, description=PRICES_DESCRIPTION)
    epochs: int = Field(default=30, ge=1, le=500, description="Training epochs (1-500)")

    @model_validator(mode="after")
    def _one_price_source(self) -> "TrainRequest":
        if (self.symbol is None) == (self.prices is None):
            raise ValueError("Provide either 'symbol' or 'prices'")
        return self


class TrainingReportResponse(BaseModel):
    """Outcome of a training request. Failures are reported, not raised."""

    success: bool
    sequences: int
    epochs: int
    final_loss: float | None = None
    final_val_loss: float | None = None
    final_mae: float | None = None
    error_kind: str | None = None
    error: str | None = None


class ModelStatusResponse(BaseModel):
    """Current lifecycle state of the sequence model."""

    status: Literal["untrained", "training", "ready", "failed"]
    reason: str | None = None
    training_in_flight: bool = False


class InvalidateResponse(BaseModel):
    """Response schema for cache invalidation."""

    symbol: str
    invalidated: bool


class HealthResponse(BaseModel):
    """Response schema for the health check endpoint."""

    status: str
    version: str
    model_status: str


class ErrorResponse(BaseModel):
    """Standard error response returned by all error handlers."""

    error: str
    detail: str | None = None
