"""
Forecast engine configuration.

Reads deployment settings (model directory, store backend, cache TTL,
training policy) from the app's central Settings object
(app.core.config), which loads from .env.

The numeric constants of the indicators, the feature vector and the
confidence heuristics are defined here and are not read from .env:
results are pinned to them, so changing one changes the output of
every prediction.
"""

from dataclasses import dataclass, field
from pathlib import Path


def _load_app_settings():
    """Lazy-load the app settings to avoid circular imports."""
    try:
        from app.core.config import settings
        return settings
    except Exception:
        return None


@dataclass(frozen=True)
class PathsConfig:
    """File system locations for persisted models and price files."""

    models_dir: Path = field(default_factory=lambda: Path(
        _s.model_dir if (_s := _load_app_settings()) else "models"
    ))
    price_data_dir: Path = field(default_factory=lambda: Path(
        _s.price_data_dir if (_s := _load_app_settings()) else "data/prices"
    ))


@dataclass(frozen=True)
class IndicatorConfig:
    """Technical indicator windows."""

    sma_windows: tuple[int, int, int] = (5, 10, 20)
    ema_fast: int = 12
    ema_slow: int = 26
    rsi_window: int = 14
    volatility_window: int = 20


@dataclass(frozen=True)
class FeatureConfig:
    """Feature vector normalization bounds."""

    rsi_bounds: tuple[float, float] = (0.0, 100.0)
    macd_bounds: tuple[float, float] = (-10.0, 10.0)
    volatility_ref_ratio: float = 0.1   # max volatility ref = maxPrice * ratio
    min_normalize_range: float = 1e-6
    min_window_range: float = 0.01


@dataclass(frozen=True)
class ModelConfig:
    """LSTM architecture and training settings."""

    model_name: str = field(default_factory=lambda: (
        _s.model_name if (_s := _load_app_settings()) else "stock-predictor"
    ))
    sequence_length: int = 30
    feature_count: int = 8
    lstm_units: tuple[int, int] = (64, 32)
    dense_units: int = 16
    dropout: float = 0.2
    learning_rate: float = 0.001
    batch_size: int = 32
    validation_split: float = 0.2
    default_epochs: int = 50
    extra_points_required: int = 20      # beyond sequence_length
    min_valid_sequences: int = 10
    log_every_epochs: int = 10
    seed: int | None = None

    @property
    def min_training_points(self) -> int:
        return self.sequence_length + self.extra_points_required


@dataclass(frozen=True)
class CacheConfig:
    """Per-ticker prediction cache."""

    ttl_seconds: float = field(default_factory=lambda: (
        _s.prediction_cache_ttl if (_s := _load_app_settings()) else 300
    ))


@dataclass(frozen=True)
class OrchestratorConfig:
    """Method selection policy and confidence heuristics."""

    ml_enabled: bool = field(default_factory=lambda: (
        _s.ml_enabled if (_s := _load_app_settings()) else True
    ))
    auto_train: bool = field(default_factory=lambda: (
        _s.auto_train if (_s := _load_app_settings()) else True
    ))
    training_timeout_seconds: float | None = field(default_factory=lambda: (
        _s.training_timeout_seconds if (_s := _load_app_settings()) else 120.0
    ))
    auto_train_min_points: int = 50
    auto_train_epochs: int = 30

    # ML confidence: clamp(base - volRatio * scale, floor, ceiling)
    ml_confidence_base: float = 85.0
    ml_confidence_scale: float = 1000.0
    ml_confidence_bounds: tuple[float, float] = (60.0, 95.0)
    extreme_move_ratio: float = 0.1
    extreme_move_penalty: float = 0.8
    result_confidence_bounds: tuple[float, float] = (50.0, 95.0)


@dataclass(frozen=True)
class FallbackConfig:
    """Statistical fallback weights."""

    min_points: int = 5
    recent_window: int = 10
    momentum_span: int = 3
    trend_weight: float = 0.3
    momentum_weight: float = 0.2
    rsi_overbought: float = 70.0
    rsi_oversold: float = 30.0
    rsi_correction: float = 0.02
    macd_weight: float = 0.1
    confidence_base: float = 70.0
    confidence_scale: float = 100.0
    confidence_bounds: tuple[float, float] = (50.0, 85.0)
    minimal_confidence: float = 50.0


@dataclass(frozen=True)
class ForecastConfig:
    """Top-level configuration aggregating all sub-configs."""

    paths: PathsConfig = field(default_factory=PathsConfig)
    indicators: IndicatorConfig = field(default_factory=IndicatorConfig)
    features: FeatureConfig = field(default_factory=FeatureConfig)
    model: ModelConfig = field(default_factory=ModelConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    orchestrator: OrchestratorConfig = field(default_factory=OrchestratorConfig)
    fallback: FallbackConfig = field(default_factory=FallbackConfig)


# Singleton instance
config = ForecastConfig()
