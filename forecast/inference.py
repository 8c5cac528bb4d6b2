"""
Prediction inference service.

Top-level entry point of the engine. For one price series and ticker:
1. Reject an empty series (NoDataError)
2. Return a fresh cached result if there is one
3. Train the sequence model if it is not ready (auto-train policy)
4. Run the model on the last window and derive a confidence score
5. Otherwise, or on any failure in 3-4, use the statistical fallback
6. Cache the result under the ticker

Only NoDataError reaches the caller. Every other failure degrades to a
lower-fidelity method: there is always *some* prediction for at least
one price point.
"""

import asyncio
import logging
import math
import time
from typing import Callable, Sequence

from forecast.config import ForecastConfig, config
from forecast.entities import (
    Direction,
    Method,
    ModelState,
    ModelStatus,
    PredictionResult,
    TrainingReport,
)
from forecast.errors import InferenceError, NoDataError
from forecast.features.technical import IndicatorCalculator
from forecast.features.vectors import FeatureVectorBuilder
from forecast.models.fallback import StatisticalFallbackPredictor
from forecast.models.lstm import SequenceModel
from forecast.ports import ModelStore, PriceHistoryProvider
from forecast.training import TrainingCoordinator
from forecast.utils.cache import PredictionCache
from forecast.utils.numeric import clamp

logger = logging.getLogger(__name__)


class PredictionOrchestrator:
    """Chooses between the sequence model and the fallback.

    Owns the model, its training coordinator and the per-ticker cache;
    nothing is shared through module state.
    """

    def __init__(
        self,
        cfg: ForecastConfig | None = None,
        model: SequenceModel | None = None,
        store: ModelStore | None = None,
        cache: PredictionCache | None = None,
        fallback: StatisticalFallbackPredictor | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._cfg = cfg or config
        self._calculator = IndicatorCalculator(self._cfg.indicators)
        self._builder = FeatureVectorBuilder(self._cfg.features, self._calculator)
        self._model = model or SequenceModel(self._cfg.model, self._builder)
        self._store = store
        self._cache = cache or PredictionCache(self._cfg.cache.ttl_seconds, clock)
        self._fallback = fallback or StatisticalFallbackPredictor(
            self._cfg.fallback, self._calculator
        )
        self._trainer = TrainingCoordinator(
            self._model,
            store,
            timeout=self._cfg.orchestrator.training_timeout_seconds,
        )

    @property
    def model_state(self) -> ModelState:
        return self._model.state

    @property
    def cache(self) -> PredictionCache:
        return self._cache

    @property
    def trainer(self) -> TrainingCoordinator:
        return self._trainer

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def predict(self, series: Sequence[float], ticker: str = "") -> PredictionResult:
        """Forecast the next price of ``series``.

        Args:
            series: Closing prices, oldest first.
            ticker: Cache key. An empty ticker is never cached.

        Raises:
            NoDataError: If ``series`` is empty.
        """
        prices = [float(p) for p in series]
        if not prices:
            logger.warning("No price data for %s", ticker or "<unnamed>")
            raise NoDataError(ticker)

        if ticker:
            cached = self._cache.get(ticker)
            if cached is not None:
                return cached

        result = await self._compute(prices, ticker)

        if ticker:
            self._cache.set(ticker, result)
        return result

    def invalidate(self, ticker: str) -> bool:
        """Forget the cached forecast for ``ticker``."""
        return self._cache.invalidate(ticker)

    async def train(
        self, series: Sequence[float], epochs: int | None = None
    ) -> TrainingReport:
        """Explicit training request. Joins an in-flight fit if there is one."""
        return await self._trainer.train(series, epochs)

    def cancel_training(self) -> bool:
        return self._trainer.cancel()

    async def warm_start(self) -> bool:
        """Load a previously persisted model, if a store is configured."""
        if self._store is None:
            return False
        loaded = await asyncio.to_thread(self._model.load, self._store)
        if loaded:
            logger.info("Pre-trained model loaded.")
        else:
            logger.info("No pre-trained model found; will train on first use.")
        return loaded

    def ml_confidence(self, current: float, predicted: float, volatility: float) -> float:
        """Confidence of a model forecast.

        ``clamp(85 - volRatio * 1000, 60, 95)``, times 0.8 when the forecast
        moves more than 10% from the current price, kept within [50, 95].
        """
        orch = self._cfg.orchestrator
        vol_ratio = volatility / current if current else 0.0
        lo, hi = orch.ml_confidence_bounds
        confidence = clamp(orch.ml_confidence_base - vol_ratio * orch.ml_confidence_scale, lo, hi)

        if abs(predicted - current) > current * orch.extreme_move_ratio:
            confidence *= orch.extreme_move_penalty

        lo, hi = orch.result_confidence_bounds
        return round(clamp(confidence, lo, hi), 1)

    # ------------------------------------------------------------------
    # Method selection
    # ------------------------------------------------------------------

    async def _compute(self, prices: list[float], ticker: str) -> PredictionResult:
        if self._cfg.orchestrator.ml_enabled:
            await self._maybe_auto_train(prices, ticker)

            if self._model.state.is_ready and len(prices) >= self._model.sequence_length:
                try:
                    result = await self._predict_ml(prices, ticker)
                except Exception as exc:
                    reason = exc.message if isinstance(exc, InferenceError) else str(exc)
                    logger.warning(
                        "ML prediction failed for %s: %s", ticker or "<unnamed>", reason
                    )
                    result = None
                if result is not None:
                    return result

        return self._fallback.predict(prices)

    async def _maybe_auto_train(self, prices: list[float], ticker: str) -> None:
        orch = self._cfg.orchestrator
        state = self._model.state
        if state.is_ready or not orch.auto_train:
            return
        if len(prices) < orch.auto_train_min_points:
            return
        if state.status is ModelStatus.TRAINING or self._trainer.in_flight:
            # Another request is fitting; serve this one from the fallback.
            return

        logger.info("Training ML model for %s...", ticker or "<unnamed>")
        report = await self._trainer.train(prices, orch.auto_train_epochs)
        if report.success:
            logger.info("Model trained for %s", ticker or "<unnamed>")
        else:
            logger.warning(
                "Training failed for %s (%s); using statistical method.",
                ticker or "<unnamed>",
                report.error_kind,
            )

    async def _predict_ml(self, prices: list[float], ticker: str) -> PredictionResult | None:
        window = prices[-self._model.sequence_length:]
        bounds = self._builder.bounds(window)
        if self._builder.is_degenerate(bounds):
            logger.info(
                "Price range too small for %s, using statistical method",
                ticker or "<unnamed>",
            )
            return None

        sequence = self._builder.build_sequence(window, bounds)
        normalized = await asyncio.to_thread(self._model.predict, sequence)
        if not math.isfinite(normalized):
            raise InferenceError(f"non-finite model output {normalized!r}")

        predicted = bounds.denormalize(normalized)
        current = prices[-1]
        indicators = self._calculator.compute(prices)
        volatility = indicators.volatility

        return PredictionResult(
            predicted_price=predicted,
            confidence=self.ml_confidence(current, predicted, volatility),
            direction=Direction.between(current, predicted),
            volatility=volatility,
            indicators=indicators,
            method=Method.ML,
        )


class ForecastService:
    """Fetches closes from a provider and forecasts them.

    Re-selecting a ticker refreshes its data, so by default the ticker's
    cached forecast is dropped before predicting on the fresh closes.
    """

    def __init__(
        self,
        provider: PriceHistoryProvider,
        orchestrator: PredictionOrchestrator,
        lookback: int | None = None,
    ) -> None:
        self._provider = provider
        self._orchestrator = orchestrator
        self._lookback = lookback

    @property
    def orchestrator(self) -> PredictionOrchestrator:
        return self._orchestrator

    async def forecast(
        self, ticker: str, lookback: int | None = None, refresh: bool = True
    ) -> PredictionResult:
        """Predict the next close of ``ticker``.

        Raises:
            TickerNotFoundError: If the provider has no history.
            NoDataError: If the history is empty.
        """
        if refresh:
            self._orchestrator.invalidate(ticker)
        closes = await asyncio.to_thread(
            self._provider.get_closes, ticker, lookback or self._lookback
        )
        return await self._orchestrator.predict(closes, ticker)

    async def train(
        self, ticker: str, epochs: int | None = None, lookback: int | None = None
    ) -> TrainingReport:
        """Train the shared model on ``ticker``'s history."""
        closes = await asyncio.to_thread(
            self._provider.get_closes, ticker, lookback or self._lookback
        )
        return await self._orchestrator.train(closes, epochs)
