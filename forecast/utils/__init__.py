"""Utility modules: prediction cache, numeric helpers."""

from forecast.utils.cache import CacheEntry, PredictionCache

__all__ = ["CacheEntry", "PredictionCache"]
