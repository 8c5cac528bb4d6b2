"""
Application configuration.

Loads settings from environment variables and .env file.
All deployment configuration is centralized here — no scattered magic strings.
"""

from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment.

    Attributes:
        project_name: Display name for the API.
        version: Current API version string.
        debug: Enable debug mode. Must be False in production.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
        engine_log_level: Level of the forecast engine loggers (defaults to log_level).
        rate_limit_default: Default rate limit for all endpoints.
        rate_limit_heavy: Rate limit for prediction and training endpoints.
        forwarded_allow_ips: Proxies whose X-Forwarded-For uvicorn trusts.
        model_dir: Directory of the file model store.
        model_store: Model store backend ("file", "redis" or "memory").
        model_name: Key the trained model is persisted under.
        redis_url: Connection URL of the redis model store.
        price_data_dir: Directory of <TICKER>.csv / .parquet price files.
        prediction_cache_ttl: Seconds a cached forecast stays fresh.
        ml_enabled: Use the sequence model at all.
        auto_train: Train the model on first use when enough history exists.
        training_timeout_seconds: How long a request waits for a fit.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", protected_namespaces=()
    )

    project_name: str = "Quoteboard Forecast"
    version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"
    engine_log_level: Optional[str] = None
    rate_limit_default: str = "60/minute"
    rate_limit_heavy: str = "10/minute"
    forwarded_allow_ips: str = "127.0.0.1"

    model_dir: str = "models"
    model_store: Literal["file", "redis", "memory"] = "file"
    model_name: str = "stock-predictor"
    redis_url: str = "redis://localhost:6379/0"
    price_data_dir: str = "data/prices"

    prediction_cache_ttl: int = 300
    ml_enabled: bool = True
    auto_train: bool = True
    training_timeout_seconds: Optional[float] = 120.0


settings = Settings()
