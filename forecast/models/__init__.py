"""
Predictors sub-package.

- `SequenceModel`               — stacked LSTM (PyTorch), untrained → ready/failed
- `StatisticalFallbackPredictor` — trend + momentum with RSI/MACD nudges
"""

from forecast.models.fallback import StatisticalFallbackPredictor
from forecast.models.lstm import SequenceModel

__all__ = [
    "SequenceModel",
    "StatisticalFallbackPredictor",
]
