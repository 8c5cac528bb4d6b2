"""
Tests for the forecast HTTP API.

Uses FastAPI's TestClient against an app whose ForecastService is
replaced by one over in-memory prices, so nothing touches the disk.
Covers:
- Health check and model status
- Predictions from inline prices and from the price provider
- Error mapping (422 no data, 404 unknown ticker, schema validation)
- Training reports and cache invalidation
- Rate limiting on the heavy endpoints
"""

import pytest
from fastapi.testclient import TestClient

API = "/api/v1"


@pytest.fixture(autouse=True)
def _limiter_off():
    from app.shared.rate_limiting import limiter

    limiter.reset()
    limiter.enabled = False
    yield
    limiter.enabled = True
    limiter.reset()


@pytest.fixture
def service(walk_60):
    from forecast.config import ForecastConfig, OrchestratorConfig
    from forecast.inference import ForecastService, PredictionOrchestrator
    from forecast.providers import InMemoryPriceHistoryProvider
    from forecast.storage import InMemoryModelStore

    cfg = ForecastConfig(
        orchestrator=OrchestratorConfig(ml_enabled=False, auto_train=False)
    )
    orchestrator = PredictionOrchestrator(cfg=cfg, store=InMemoryModelStore())
    provider = InMemoryPriceHistoryProvider({"AAPL": walk_60, "SHORT": walk_60[:40]})
    return ForecastService(provider, orchestrator)


@pytest.fixture
def client(service):
    from app.main import create_app

    app = create_app()
    app.state.forecast_service = service
    return TestClient(app)


class TestHealth:
    def test_health_ok(self, client):
        response = client.get(f"{API}/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["model_status"] == "untrained"

    def test_model_status(self, client):
        response = client.get(f"{API}/forecast/model")
        assert response.status_code == 200
        assert response.json() == {
            "status": "untrained",
            "reason": None,
            "training_in_flight": False,
        }


class TestPredictions:
    def test_inline_prices_minimal(self, client):
        response = client.post(
            f"{API}/forecast/predictions",
            json={"symbol": "TEST", "prices": [100, 100, 100, 100]},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["method"] == "statistical-minimal"
        assert data["predicted_price"] == 100
        assert data["confidence"] == 50
        assert data["direction"] == "flat"
        assert data["indicators"]["rsi"] == 50

    def test_symbol_from_provider(self, client):
        response = client.post(f"{API}/forecast/predictions", json={"symbol": "AAPL"})
        assert response.status_code == 200
        data = response.json()
        assert data["symbol"] == "AAPL"
        assert data["method"] == "statistical"
        assert 50 <= data["confidence"] <= 85

    def test_empty_prices_is_422(self, client):
        response = client.post(
            f"{API}/forecast/predictions", json={"symbol": "TEST", "prices": []}
        )
        assert response.status_code == 422
        assert response.json()["error"] == "No price data"

    def test_unknown_symbol_is_404(self, client):
        response = client.post(f"{API}/forecast/predictions", json={"symbol": "NOPE"})
        assert response.status_code == 404
        assert response.json() == {"error": "Ticker not found"}

    @pytest.mark.parametrize(
        "body",
        [
            {"symbol": "aapl"},
            {"symbol": ""},
            {"symbol": "AAPL", "prices": [100, -1]},
            {"prices": [100, 101]},
        ],
    )
    def test_invalid_request_is_422(self, client, body):
        response = client.post(f"{API}/forecast/predictions", json=body)
        assert response.status_code == 422

    def test_cached_forecast_without_refresh(self, client, service):
        body = {"symbol": "AAPL", "refresh": False}
        client.post(f"{API}/forecast/predictions", json=body)
        assert "AAPL" in service.orchestrator.cache
        second = client.post(f"{API}/forecast/predictions", json=body)
        assert second.status_code == 200


class TestTraining:
    def test_insufficient_inline_prices(self, client):
        response = client.post(
            f"{API}/forecast/model/train",
            json={"prices": [100.0 + i for i in range(40)], "epochs": 1},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is False
        assert data["error_kind"] == "InsufficientData"
        assert data["error"]

    def test_insufficient_symbol_history(self, client):
        response = client.post(
            f"{API}/forecast/model/train", json={"symbol": "SHORT", "epochs": 1}
        )
        assert response.status_code == 200
        assert response.json()["error_kind"] == "InsufficientData"

    def test_failed_fit_shows_in_status(self, client):
        client.post(f"{API}/forecast/model/train", json={"symbol": "SHORT", "epochs": 1})
        data = client.get(f"{API}/forecast/model").json()
        assert data["status"] == "failed"
        assert data["reason"]

    @pytest.mark.parametrize(
        "body",
        [
            {},
            {"symbol": "AAPL", "prices": [1.0, 2.0]},
            {"symbol": "AAPL", "epochs": 0},
            {"symbol": "AAPL", "epochs": 501},
        ],
    )
    def test_invalid_train_request(self, client, body):
        response = client.post(f"{API}/forecast/model/train", json=body)
        assert response.status_code == 422

    def test_unknown_symbol(self, client):
        response = client.post(f"{API}/forecast/model/train", json={"symbol": "NOPE"})
        assert response.status_code == 404


class TestCacheInvalidation:
    def test_invalidate(self, client):
        client.post(f"{API}/forecast/predictions", json={"symbol": "AAPL"})
        first = client.delete(f"{API}/forecast/cache/AAPL")
        assert first.status_code == 200
        assert first.json() == {"symbol": "AAPL", "invalidated": True}

        second = client.delete(f"{API}/forecast/cache/AAPL")
        assert second.json()["invalidated"] is False


class TestRateLimiting:
    def test_heavy_limit(self, client):
        from app.core.config import settings
        from app.shared.rate_limiting import limiter

        limiter.enabled = True
        allowed = int(settings.rate_limit_heavy.split("/")[0])
        body = {"symbol": "TEST", "prices": [100, 101, 102]}
        for _ in range(allowed):
            assert client.post(f"{API}/forecast/predictions", json=body).status_code == 200

        response = client.post(f"{API}/forecast/predictions", json=body)
        assert response.status_code == 429
        assert response.json()["error"] == "Rate limit exceeded"

    def test_forwarded_header_does_not_reset_limit(self, client):
        from app.core.config import settings
        from app.shared.rate_limiting import limiter

        limiter.enabled = True
        allowed = int(settings.rate_limit_heavy.split("/")[0])
        body = {"symbol": "TEST", "prices": [100, 101, 102]}
        for i in range(allowed):
            client.post(
                f"{API}/forecast/predictions", json=body,
                headers={"X-Forwarded-For": f"10.0.0.{i}"},
            )

        spoofed = client.post(
            f"{API}/forecast/predictions", json=body,
            headers={"X-Forwarded-For": "10.0.1.1"},
        )
        assert spoofed.status_code == 429


class StalledModel:
    """Stand-in model whose fit starts and then hangs until released."""

    name = "stalled"

    def __init__(self):
        import threading

        self.entered = threading.Event()
        self.gate = threading.Event()

    def train(self, series, epochs=None, should_cancel=None):
        from forecast.entities import TrainingReport
        from forecast.errors import TrainingCancelledError

        if should_cancel is not None and should_cancel():
            return TrainingReport.failure(TrainingCancelledError())
        self.entered.set()
        self.gate.wait(timeout=5)
        return TrainingReport(success=True, epochs=epochs or 0)


@pytest.fixture
def stalled_orchestrator():
    from forecast.config import ForecastConfig, OrchestratorConfig
    from forecast.inference import PredictionOrchestrator

    model = StalledModel()
    cfg = ForecastConfig(
        orchestrator=OrchestratorConfig(
            ml_enabled=False, auto_train=False, training_timeout_seconds=None
        )
    )
    yield PredictionOrchestrator(cfg=cfg, model=model), model
    model.gate.set()


class TestShutdown:
    @pytest.mark.asyncio
    async def test_nothing_in_flight(self, stalled_orchestrator):
        from app.main import drain_training

        orchestrator, _ = stalled_orchestrator
        assert await drain_training(orchestrator, 1.0) is True

    @pytest.mark.asyncio
    async def test_pending_fit_is_cancelled(self, stalled_orchestrator):
        import asyncio

        from app.main import drain_training

        orchestrator, model = stalled_orchestrator
        task = asyncio.create_task(orchestrator.train([1.0] * 60))
        await asyncio.sleep(0)

        assert await drain_training(orchestrator, 1.0) is True
        assert (await task).error_kind == "TrainingCancelled"
        assert not model.entered.is_set()

    @pytest.mark.asyncio
    async def test_stalled_fit_does_not_block_shutdown(self, stalled_orchestrator):
        import asyncio

        from app.main import drain_training

        orchestrator, model = stalled_orchestrator
        task = asyncio.create_task(orchestrator.train([1.0] * 60))
        for _ in range(500):
            if model.entered.is_set():
                break
            await asyncio.sleep(0.01)

        assert await drain_training(orchestrator, 0.05) is False
        model.gate.set()
        assert (await task).success is True
