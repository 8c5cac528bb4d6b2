"""
LSTM-based next-price model.

Sequence-to-one regressor over windows of normalized feature vectors:
- Two stacked LSTM layers (64 → 32) with dropout
- Dense ReLU head with a sigmoid output bounded to (0, 1)
- MSE loss, Adam, shuffled mini-batches, last 20% held out for validation

The model owns an explicit lifecycle (untrained → training → ready/failed).
Training never raises: every failure is returned as a TrainingReport and
moves the model to FAILED. Inference is only valid while READY.
"""

import copy
import io
import logging
import math
import threading
from typing import Callable, Sequence

import numpy as np
import torch
import torch.nn as nn
from torch.utils.data import DataLoader, TensorDataset

from forecast.config import FeatureConfig, ModelConfig
from forecast.entities import FeatureVector, ModelState, TrainingReport
from forecast.errors import (
    InsufficientDataError,
    InsufficientValidSequencesError,
    ModelNotReadyError,
    PersistenceError,
    TrainingCancelledError,
    TrainingError,
)
from forecast.features.vectors import FeatureVectorBuilder
from forecast.ports import ModelStore

logger = logging.getLogger(__name__)


class _LSTMNetwork(nn.Module):
    """PyTorch stacked LSTM architecture."""

    def __init__(
        self,
        input_size: int = 8,
        lstm_units: Sequence[int] = (64, 32),
        dense_units: int = 16,
        dropout: float = 0.2,
    ) -> None:
        super().__init__()
        first, second = lstm_units
        self.lstm1 = nn.LSTM(input_size=input_size, hidden_size=first, batch_first=True)
        self.drop1 = nn.Dropout(dropout)
        self.lstm2 = nn.LSTM(input_size=first, hidden_size=second, batch_first=True)
        self.drop2 = nn.Dropout(dropout)
        self.dense = nn.Linear(second, dense_units)
        self.out = nn.Linear(dense_units, 1)

    def forward(self, x):
        seq_out, _ = self.lstm1(x)
        seq_out = self.drop1(seq_out)
        seq_out, _ = self.lstm2(seq_out)
        last_hidden = self.drop2(seq_out[:, -1, :])
        hidden = torch.relu(self.dense(last_hidden))
        return torch.sigmoid(self.out(hidden)).squeeze(-1)


class SequenceModel:
    """Trainable LSTM with explicit readiness state.

    Usage:
        model = SequenceModel()
        report = model.train(prices, epochs=30)
        if model.state.is_ready:
            value = model.predict(feature_sequence)   # normalized, in (0, 1)
    """

    def __init__(
        self,
        cfg: ModelConfig | None = None,
        builder: FeatureVectorBuilder | None = None,
    ) -> None:
        self._cfg = cfg or ModelConfig()
        self._builder = builder or FeatureVectorBuilder(FeatureConfig())
        self._network: _LSTMNetwork | None = None
        self._state = ModelState.untrained()
        self._lock = threading.Lock()

    @property
    def state(self) -> ModelState:
        with self._lock:
            return self._state

    @property
    def name(self) -> str:
        return self._cfg.model_name

    @property
    def sequence_length(self) -> int:
        return self._cfg.sequence_length

    # ------------------------------------------------------------------
    # Training
    # ------------------------------------------------------------------

    def train(
        self,
        series: Sequence[float],
        epochs: int | None = None,
        should_cancel: Callable[[], bool] | None = None,
    ) -> TrainingReport:
        """Fit the network on overlapping windows of ``series``.

        Args:
            series: Closing prices, oldest first.
            epochs: Passes over the training windows (default from config).
            should_cancel: Checked once, before the fit starts.

        Returns:
            A TrainingReport. Failures are reported, never raised.
        """
        if epochs is None:
            epochs = self._cfg.default_epochs
        if epochs < 1:
            logger.warning("[LSTM] Refusing to train for %d epochs.", epochs)
            return TrainingReport.failure(
                TrainingError(f"epochs must be at least 1, got {epochs}")
            )

        if should_cancel is not None and should_cancel():
            logger.info("[LSTM] Training cancelled before start.")
            return TrainingReport.failure(TrainingCancelledError())

        self._set_state(ModelState.training())
        try:
            network, report = self._fit(series, epochs)
        except TrainingError as exc:
            logger.warning("[LSTM] Training failed: %s", exc.message)
            self._set_state(ModelState.failed(exc.message))
            return TrainingReport.failure(exc)
        except Exception as exc:
            logger.exception("[LSTM] Training error.")
            error = TrainingError(f"{type(exc).__name__}: {exc}")
            self._set_state(ModelState.failed(error.message))
            return TrainingReport.failure(error)

        with self._lock:
            self._network = network
            self._state = ModelState.ready()

        logger.info(
            "[LSTM] Training complete: %d sequences, loss=%.6f, val_loss=%s",
            report.sequences,
            report.final_loss,
            f"{report.final_val_loss:.6f}" if report.final_val_loss is not None else "n/a",
        )
        return report

    def _fit(
        self, series: Sequence[float], epochs: int
    ) -> tuple[_LSTMNetwork, TrainingReport]:
        prices = [float(p) for p in series]
        required = self._cfg.min_training_points
        if len(prices) < required:
            raise InsufficientDataError(required, len(prices))

        examples = self._builder.build_training_examples(
            prices, self._cfg.sequence_length
        )
        if len(examples) < self._cfg.min_valid_sequences:
            raise InsufficientValidSequencesError(
                self._cfg.min_valid_sequences, len(examples)
            )

        logger.info("[LSTM] Training with %d samples...", len(examples))
        X, y = self._builder.to_arrays(examples)

        # Hold out the tail, shuffle the rest per epoch
        split_at = int(math.floor(len(X) * (1.0 - self._cfg.validation_split)))
        X_train, y_train = X[:split_at], y[:split_at]
        X_val, y_val = X[split_at:], y[split_at:]

        generator = torch.Generator()
        if self._cfg.seed is not None:
            torch.manual_seed(self._cfg.seed)
            generator.manual_seed(self._cfg.seed)

        with self._lock:
            current = self._network
        network = copy.deepcopy(current) if current is not None else self._build_network()

        device = torch.device("cuda" if torch.cuda.is_available() else "cpu")
        network.to(device)

        optimizer = torch.optim.Adam(network.parameters(), lr=self._cfg.learning_rate)
        criterion = nn.MSELoss()

        loader = DataLoader(
            TensorDataset(torch.from_numpy(X_train), torch.from_numpy(y_train)),
            batch_size=self._cfg.batch_size,
            shuffle=True,
            generator=generator,
        )
        X_val_t = torch.from_numpy(X_val).to(device)
        y_val_t = torch.from_numpy(y_val).to(device)

        train_loss = mae = 0.0
        val_loss: float | None = None

        for epoch in range(epochs):
            network.train()
            loss_sum = abs_sum = 0.0
            seen = 0
            for X_batch, y_batch in loader:
                X_batch, y_batch = X_batch.to(device), y_batch.to(device)
                optimizer.zero_grad()
                output = network(X_batch)
                loss = criterion(output, y_batch)
                loss.backward()
                optimizer.step()

                batch = len(y_batch)
                loss_sum += loss.item() * batch
                abs_sum += torch.abs(output.detach() - y_batch).sum().item()
                seen += batch

            train_loss = loss_sum / seen
            mae = abs_sum / seen

            if len(X_val):
                network.eval()
                with torch.no_grad():
                    val_loss = criterion(network(X_val_t), y_val_t).item()

            if epoch % self._cfg.log_every_epochs == 0:
                logger.info(
                    "[LSTM] Epoch %d/%d — loss=%.4f, mae=%.4f",
                    epoch + 1,
                    epochs,
                    train_loss,
                    mae,
                )

        network.eval()
        report = TrainingReport(
            success=True,
            sequences=len(examples),
            epochs=epochs,
            final_loss=float(train_loss),
            final_val_loss=float(val_loss) if val_loss is not None else None,
            final_mae=float(mae),
        )
        return network, report

    def _build_network(self) -> _LSTMNetwork:
        return _LSTMNetwork(
            input_size=self._cfg.feature_count,
            lstm_units=self._cfg.lstm_units,
            dense_units=self._cfg.dense_units,
            dropout=self._cfg.dropout,
        )

    # ------------------------------------------------------------------
    # Inference
    # ------------------------------------------------------------------

    def predict(self, sequence: Sequence[FeatureVector]) -> float:
        """Return the normalized next-value estimate for one window.

        Raises:
            ModelNotReadyError: If the model is not READY.
            ValueError: If the sequence is not ``sequence_length`` x 8.
        """
        with self._lock:
            state, network = self._state, self._network
        if not state.is_ready or network is None:
            raise ModelNotReadyError(state.status.value)

        inputs = np.asarray(sequence, dtype=np.float32)
        expected = (self._cfg.sequence_length, self._cfg.feature_count)
        if inputs.shape != expected:
            raise ValueError(
                f"Expected a feature sequence of shape {expected}, got {inputs.shape}"
            )

        device = next(network.parameters()).device
        with torch.no_grad():
            output = network(torch.from_numpy(inputs).unsqueeze(0).to(device))
        return float(output.item())

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, store: ModelStore) -> bool:
        """Persist weights and architecture under the model name."""
        with self._lock:
            network = self._network
        if network is None:
            logger.warning("[LSTM] Nothing to save: model has no weights.")
            return False

        buffer = io.BytesIO()
        try:
            torch.save(
                {
                    "architecture": self._architecture(),
                    "state_dict": {
                        k: v.detach().cpu() for k, v in network.state_dict().items()
                    },
                },
                buffer,
            )
            saved = store.save(self.name, buffer.getvalue())
        except Exception as exc:
            logger.error("%s", PersistenceError(self.name, str(exc)).message)
            return False

        if saved:
            logger.info("[LSTM] Model '%s' saved.", self.name)
        return saved

    def load(self, store: ModelStore) -> bool:
        """Restore a persisted model. On success the state becomes READY."""
        try:
            blob = store.load(self.name)
            if blob is None:
                logger.info("[LSTM] No saved model '%s'.", self.name)
                return False

            payload = torch.load(io.BytesIO(blob), map_location="cpu", weights_only=True)
            architecture = payload["architecture"]
            if (
                architecture["sequence_length"] != self._cfg.sequence_length
                or architecture["feature_count"] != self._cfg.feature_count
            ):
                raise ValueError(f"incompatible architecture {architecture}")

            network = _LSTMNetwork(
                input_size=architecture["feature_count"],
                lstm_units=tuple(architecture["lstm_units"]),
                dense_units=architecture["dense_units"],
                dropout=architecture["dropout"],
            )
            network.load_state_dict(payload["state_dict"])
            network.eval()
        except Exception as exc:
            logger.warning("%s", PersistenceError(self.name, str(exc)).message)
            return False

        with self._lock:
            self._network = network
            self._state = ModelState.ready()
        logger.info("[LSTM] Model '%s' loaded.", self.name)
        return True

    def _architecture(self) -> dict:
        return {
            "sequence_length": self._cfg.sequence_length,
            "feature_count": self._cfg.feature_count,
            "lstm_units": list(self._cfg.lstm_units),
            "dense_units": self._cfg.dense_units,
            "dropout": self._cfg.dropout,
        }

    def _set_state(self, state: ModelState) -> None:
        with self._lock:
            self._state = state
