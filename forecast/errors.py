"""
Errors raised by the forecast engine.

Only NoDataError is allowed to reach callers of the orchestrator as a
hard failure. Every other kind is either carried inside a TrainingReport
or caught at the orchestrator boundary and downgraded to the
statistical fallback. No framework imports allowed.
"""


class ForecastError(Exception):
    """Base error for all forecast engine errors."""

    kind = "ForecastError"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)


class NoDataError(ForecastError):
    """Raised when a prediction is requested on an empty price series."""

    kind = "NoData"

    def __init__(self, ticker: str = "") -> None:
        label = ticker or "<unnamed>"
        super().__init__(f"No price data for {label}")
        self.ticker = ticker


class TickerNotFoundError(ForecastError):
    """Raised when a price-history provider has nothing for a ticker."""

    kind = "TickerNotFound"

    def __init__(self, ticker: str) -> None:
        super().__init__(f"No price history found for ticker: {ticker}")
        self.ticker = ticker


class TrainingError(ForecastError):
    """Base for failures of a training attempt."""

    kind = "TrainingFailure"


class InsufficientDataError(TrainingError):
    """The series is too short to build any training window."""

    kind = "InsufficientData"

    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            f"Insufficient training data: need {required} prices, got {available}"
        )
        self.required = required
        self.available = available


class InsufficientValidSequencesError(TrainingError):
    """Too many windows were skipped as flat to train on the rest."""

    kind = "InsufficientValidSequences"

    def __init__(self, required: int, found: int) -> None:
        super().__init__(
            f"Insufficient valid sequences: need {required}, found {found}"
        )
        self.required = required
        self.found = found


class TrainingCancelledError(TrainingError):
    """Training was cancelled before the fit started."""

    kind = "TrainingCancelled"

    def __init__(self) -> None:
        super().__init__("Training cancelled before start")


class TrainingTimeoutError(TrainingError):
    """The caller stopped waiting for an in-flight fit."""

    kind = "TrainingTimeout"

    def __init__(self, timeout: float) -> None:
        super().__init__(f"Training did not finish within {timeout:.1f}s")
        self.timeout = timeout


class ModelNotReadyError(ForecastError):
    """Inference was requested while the model is not Ready."""

    kind = "ModelNotReady"

    def __init__(self, status: str) -> None:
        super().__init__(f"Model is not ready (status={status})")
        self.status = status


class InferenceError(ForecastError):
    """Any failure on the model inference path."""

    kind = "InferenceFailure"

    def __init__(self, reason: str) -> None:
        super().__init__(f"Inference failed: {reason}")
        self.reason = reason


class PersistenceError(ForecastError):
    """Saving or loading a model blob failed."""

    kind = "PersistenceFailure"

    def __init__(self, name: str, reason: str) -> None:
        super().__init__(f"Persistence failed for model '{name}': {reason}")
        self.name = name
        self.reason = reason
