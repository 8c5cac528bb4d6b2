"""
Value objects produced and consumed by the forecast engine.

All records are immutable once built. They contain no framework
imports and no IO operations.
"""

from dataclasses import asdict, dataclass
from enum import Enum

from forecast.errors import ForecastError

# An ordered tuple of exactly FEATURE_COUNT normalized reals.
FeatureVector = tuple[float, ...]

FEATURE_COUNT = 8


class Direction(Enum):
    """Expected direction of the next price relative to the last one."""

    UP = "up"
    DOWN = "down"
    FLAT = "flat"

    @classmethod
    def between(cls, current: float, predicted: float) -> "Direction":
        if predicted > current:
            return cls.UP
        if predicted < current:
            return cls.DOWN
        return cls.FLAT


class Method(Enum):
    """Which predictor produced a result."""

    ML = "ml"
    STATISTICAL = "statistical"
    STATISTICAL_MINIMAL = "statistical-minimal"


class ModelStatus(Enum):
    """Lifecycle status of the sequence model."""

    UNTRAINED = "untrained"
    TRAINING = "training"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class ModelState:
    """Tagged model state. ``reason`` is only set for FAILED."""

    status: ModelStatus
    reason: str | None = None

    @classmethod
    def untrained(cls) -> "ModelState":
        return cls(ModelStatus.UNTRAINED)

    @classmethod
    def training(cls) -> "ModelState":
        return cls(ModelStatus.TRAINING)

    @classmethod
    def ready(cls) -> "ModelState":
        return cls(ModelStatus.READY)

    @classmethod
    def failed(cls, reason: str) -> "ModelState":
        return cls(ModelStatus.FAILED, reason)

    @property
    def is_ready(self) -> bool:
        return self.status is ModelStatus.READY

    def to_dict(self) -> dict:
        return {"status": self.status.value, "reason": self.reason}


@dataclass(frozen=True)
class IndicatorSet:
    """Technical indicators for a price series. Never partially filled."""

    sma5: float
    sma10: float
    sma20: float
    ema12: float
    ema26: float
    rsi: float
    macd: float
    volatility: float

    @classmethod
    def empty(cls) -> "IndicatorSet":
        """Defaults used when there is no price history at all."""
        return cls(
            sma5=0.0,
            sma10=0.0,
            sma20=0.0,
            ema12=0.0,
            ema26=0.0,
            rsi=50.0,
            macd=0.0,
            volatility=0.0,
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class TrainingExample:
    """A window of feature vectors and the normalized price that followed it."""

    sequence: tuple[FeatureVector, ...]
    target: float


@dataclass(frozen=True)
class PredictionResult:
    """A single next-price forecast.

    Attributes:
        predicted_price: Forecast price in the series' own units.
        confidence: Heuristic confidence score in [50, 95].
        direction: Forecast direction relative to the last price.
        volatility: Population std of the last 20 prices.
        indicators: Indicators over the full input series.
        method: Which predictor produced this result.
    """

    predicted_price: float
    confidence: float
    direction: Direction
    volatility: float
    indicators: IndicatorSet
    method: Method

    def to_dict(self) -> dict:
        return {
            "predicted_price": self.predicted_price,
            "confidence": self.confidence,
            "direction": self.direction.value,
            "volatility": self.volatility,
            "indicators": self.indicators.to_dict(),
            "method": self.method.value,
        }


@dataclass(frozen=True)
class TrainingReport:
    """Structured outcome of one training attempt.

    Failures are reported here rather than raised.
    """

    success: bool
    sequences: int = 0
    epochs: int = 0
    final_loss: float | None = None
    final_val_loss: float | None = None
    final_mae: float | None = None
    error: ForecastError | None = None

    @classmethod
    def failure(cls, error: ForecastError, sequences: int = 0) -> "TrainingReport":
        return cls(success=False, sequences=sequences, error=error)

    @property
    def error_kind(self) -> str | None:
        return self.error.kind if self.error is not None else None

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "sequences": self.sequences,
            "epochs": self.epochs,
            "final_loss": self.final_loss,
            "final_val_loss": self.final_val_loss,
            "final_mae": self.final_mae,
            "error_kind": self.error_kind,
            "error": self.error.message if self.error is not None else None,
        }
