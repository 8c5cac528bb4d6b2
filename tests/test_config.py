"""
Tests for engine configuration defaults.
"""

import dataclasses

import pytest


class TestForecastConfig:
    def test_model_defaults(self):
        from forecast.config import ModelConfig

        cfg = ModelConfig()
        assert cfg.sequence_length == 30
        assert cfg.feature_count == 8
        assert cfg.lstm_units == (64, 32)
        assert cfg.min_training_points == 50

    def test_cache_ttl_from_settings(self):
        from app.core.config import settings
        from forecast.config import CacheConfig

        assert CacheConfig().ttl_seconds == settings.prediction_cache_ttl

    def test_configs_are_frozen(self):
        from forecast.config import config

        with pytest.raises(dataclasses.FrozenInstanceError):
            config.model.sequence_length = 10

    def test_confidence_bounds(self):
        from forecast.config import FallbackConfig, OrchestratorConfig

        assert OrchestratorConfig().result_confidence_bounds == (50.0, 95.0)
        assert FallbackConfig().confidence_bounds == (50.0, 85.0)


class TestSettings:
    def test_env_override(self, monkeypatch):
        from app.core.config import Settings

        monkeypatch.setenv("MODEL_STORE", "memory")
        monkeypatch.setenv("PREDICTION_CACHE_TTL", "60")
        settings = Settings()
        assert settings.model_store == "memory"
        assert settings.prediction_cache_ttl == 60


class TestLogging:
    def test_engine_level_follows_root_by_default(self):
        import logging

        from app.shared.logging import configure_logging

        configure_logging("WARNING")
        assert logging.getLogger("forecast").level == logging.WARNING

    def test_engine_level_override(self):
        import logging

        from app.shared.logging import configure_logging

        configure_logging("INFO", engine_level="debug")
        assert logging.getLogger("forecast").level == logging.DEBUG
        assert logging.getLogger("uvicorn.access").level == logging.WARNING

    def test_unknown_level_falls_back(self):
        import logging

        from app.shared.logging import configure_logging

        configure_logging("LOUD", engine_level="NOPE")
        assert logging.getLogger().level == logging.INFO
        assert logging.getLogger("forecast").level == logging.INFO
