"""
Quoteboard Forecast Engine
==========================

Short-horizon price forecasts for the quote dashboard.

Architecture
------------
- **Features**: SMA/EMA/RSI/MACD/volatility over growing sub-windows,
  normalized into 8-value feature vectors
- **Models**: stacked LSTM (PyTorch) with explicit readiness state,
  plus a closed-form statistical fallback
- **Serving**: per-ticker TTL cache, single-flight background training,
  file or Redis model persistence

Quick start (CLI)
-----------------
    python -m forecast.cli predict --symbol AAPL --data-dir data/prices
    python -m forecast.cli train --symbol AAPL --epochs 30
    python -m forecast.cli status

Public API
----------
    from forecast import PredictionOrchestrator, ForecastService
    result = await PredictionOrchestrator().predict(prices, "AAPL")
"""

# ── Public façade ──────────────────────────────────────────────────
from forecast.config import ForecastConfig, config
from forecast.entities import (
    Direction,
    IndicatorSet,
    Method,
    ModelState,
    ModelStatus,
    PredictionResult,
    TrainingReport,
)
from forecast.inference import ForecastService, PredictionOrchestrator

__all__ = [
    "ForecastConfig",
    "config",
    "Direction",
    "IndicatorSet",
    "Method",
    "ModelState",
    "ModelStatus",
    "PredictionResult",
    "TrainingReport",
    "ForecastService",
    "PredictionOrchestrator",
]
