"""
Background training coordination.

Training is the one long-running operation of the engine. The
coordinator runs SequenceModel.train in a worker thread so the event
loop keeps serving predictions, and guarantees single flight: while a
fit is running, further requests await the same task and receive the
same TrainingReport instead of starting a duplicate.

Cancellation is only effective before the fit starts; an epoch is never
interrupted. The start of a fit and a cancel request race under one lock:
either the cancel wins and the fit never runs, or the fit has started and
``cancel()`` reports False. A timeout stops the *caller* from
waiting, not the fit: a timed-out run keeps going in the background and
still moves the model to READY or FAILED when it ends.
"""

import asyncio
import logging
import threading
from typing import Sequence

from forecast.entities import TrainingReport
from forecast.errors import TrainingCancelledError, TrainingTimeoutError
from forecast.models.lstm import SequenceModel
from forecast.ports import ModelStore

logger = logging.getLogger(__name__)

_USE_DEFAULT = object()


class TrainingCoordinator:
    """Single-flight background trainer for one SequenceModel.

    Usage:
        coordinator = TrainingCoordinator(model, store, timeout=120)
        report = await coordinator.train(prices, epochs=30)
    """

    def __init__(
        self,
        model: SequenceModel,
        store: ModelStore | None = None,
        timeout: float | None = None,
    ) -> None:
        self._model = model
        self._store = store
        self._timeout = timeout
        self._task: asyncio.Task | None = None
        self._lock = threading.Lock()
        self._cancel_requested = False
        self._started = False

    @property
    def in_flight(self) -> bool:
        return self._task is not None and not self._task.done()

    async def train(
        self,
        series: Sequence[float],
        epochs: int | None = None,
        timeout=_USE_DEFAULT,
    ) -> TrainingReport:
        """Start a fit, or join the one already running.

        Args:
            series: Closing prices, oldest first. Ignored when joining.
            epochs: Passes over the data. Ignored when joining.
            timeout: Seconds to wait (None waits forever). Defaults to
                the coordinator's timeout.

        Returns:
            The TrainingReport of the fit, or a TrainingTimeout failure
            if the caller stopped waiting.
        """
        if timeout is _USE_DEFAULT:
            timeout = self._timeout

        task = self._task
        if task is None or task.done():
            with self._lock:
                self._cancel_requested = False
                self._started = False
            task = asyncio.create_task(
                self._run([float(p) for p in series], epochs),
                name=f"train-{self._model.name}",
            )
            task.add_done_callback(self._log_unexpected_failure)
            self._task = task
            logger.info("Training %s started in background.", self._model.name)
        else:
            logger.info("Training %s already in flight; joining it.", self._model.name)

        try:
            if timeout is None:
                return await asyncio.shield(task)
            return await asyncio.wait_for(asyncio.shield(task), timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "Training %s still running after %.1fs; continuing without it.",
                self._model.name,
                timeout,
            )
            return TrainingReport.failure(TrainingTimeoutError(timeout))

    async def wait(self) -> TrainingReport | None:
        """Await the in-flight fit, if any."""
        task = self._task
        if task is None:
            return None
        return await asyncio.shield(task)

    def cancel(self) -> bool:
        """Stop the in-flight request before it starts fitting.

        Returns:
            True if the fit will not run. False when nothing is in flight
            or the fit has already started.
        """
        if not self.in_flight:
            return False
        with self._lock:
            if self._started:
                logger.info(
                    "Training %s already started; it cannot be cancelled.",
                    self._model.name,
                )
                return False
            self._cancel_requested = True
        logger.info("Cancellation requested for training %s.", self._model.name)
        return True

    async def _run(self, prices: list[float], epochs: int | None) -> TrainingReport:
        # Start point: a cancel issued alongside train() lands before dispatch.
        await asyncio.sleep(0)
        with self._lock:
            if self._cancel_requested:
                logger.info("Training %s cancelled before start.", self._model.name)
                return TrainingReport.failure(TrainingCancelledError())

        report = await asyncio.to_thread(
            self._model.train, prices, epochs, self._claim_start
        )
        if report.success and self._store is not None:
            await asyncio.to_thread(self._model.save, self._store)
        return report

    def _claim_start(self) -> bool:
        """Passed to the model as ``should_cancel``; marks the fit as started."""
        with self._lock:
            if self._cancel_requested:
                return True
            self._started = True
            return False

    @staticmethod
    def _log_unexpected_failure(task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Training task crashed: %s", exc, exc_info=exc)
