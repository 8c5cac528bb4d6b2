"""
CLI entry point for the forecast engine.

Usage:
    # Forecast the next close of a ticker from data/prices/<TICKER>.csv|.parquet
    python -m forecast.cli predict --symbol AAPL

    # Train (and persist) the sequence model on one ticker's history
    python -m forecast.cli train --symbol AAPL --epochs 30

    # Show whether a persisted model is available
    python -m forecast.cli status

    # Start the HTTP API
    python -m forecast.cli serve --port 8000
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
)
logger = logging.getLogger(__name__)


def _build_service(data_dir: str | None):
    from app.core.config import settings
    from forecast.config import config
    from forecast.inference import ForecastService, PredictionOrchestrator
    from forecast.providers import FilePriceHistoryProvider
    from forecast.storage import build_model_store

    store = build_model_store(
        settings.model_store, config.paths.models_dir, settings.redis_url
    )
    orchestrator = PredictionOrchestrator(cfg=config, store=store)
    provider = FilePriceHistoryProvider(Path(data_dir) if data_dir else config.paths.price_data_dir)
    return ForecastService(provider, orchestrator)


def cmd_predict(args: argparse.Namespace) -> None:
    """Run a single prediction."""
    from forecast.errors import ForecastError

    service = _build_service(args.data_dir)

    async def run():
        await service.orchestrator.warm_start()
        return await service.forecast(args.symbol, lookback=args.lookback)

    try:
        r = asyncio.run(run())
    except ForecastError as exc:
        logger.error("%s", exc.message)
        sys.exit(1)

    logger.info(
        "%s | Next=%.4f | Confidence=%.1f%% | %s | Volatility=%.4f | Method=%s",
        args.symbol,
        r.predicted_price,
        r.confidence,
        r.direction.value,
        r.volatility,
        r.method.value,
    )


def cmd_train(args: argparse.Namespace) -> None:
    """Train the sequence model on one ticker."""
    from forecast.errors import ForecastError

    service = _build_service(args.data_dir)

    try:
        report = asyncio.run(
            service.train(args.symbol, epochs=args.epochs, lookback=args.lookback)
        )
    except ForecastError as exc:
        logger.error("%s", exc.message)
        sys.exit(1)

    if not report.success:
        logger.error("Training failed [%s]: %s", report.error_kind, report.error.message)
        sys.exit(1)
    logger.info(
        "Trained on %d sequences | loss=%.6f | val_loss=%s | mae=%.6f",
        report.sequences,
        report.final_loss,
        f"{report.final_val_loss:.6f}" if report.final_val_loss is not None else "n/a",
        report.final_mae,
    )


def cmd_status(args: argparse.Namespace) -> None:
    """Report whether a persisted model can be loaded."""
    service = _build_service(None)
    loaded = asyncio.run(service.orchestrator.warm_start())
    state = service.orchestrator.model_state
    logger.info(
        "Model %s | status=%s",
        "loaded" if loaded else "not found",
        state.status.value,
    )


def cmd_serve(args: argparse.Namespace) -> None:
    """Start the FastAPI application."""
    import uvicorn

    from app.core.config import settings

    logger.info("Starting API at http://%s:%d", args.host, args.port)
    uvicorn.run(
        "app.main:app",
        host=args.host,
        port=args.port,
        reload=False,
        proxy_headers=True,
        forwarded_allow_ips=settings.forwarded_allow_ips,
    )


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Quoteboard Forecast Engine CLI"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # Predict
    predict_parser = subparsers.add_parser("predict", help="Forecast the next close")
    predict_parser.add_argument("--symbol", required=True, help="Ticker symbol")
    predict_parser.add_argument(
        "--data-dir", default=None, dest="data_dir",
        help="Directory holding <TICKER>.csv / .parquet price files",
    )
    predict_parser.add_argument(
        "--lookback", type=int, default=None,
        help="Use only the most recent N closes",
    )
    predict_parser.set_defaults(func=cmd_predict)

    # Train
    train_parser = subparsers.add_parser("train", help="Train the sequence model")
    train_parser.add_argument("--symbol", required=True, help="Ticker symbol")
    train_parser.add_argument("--epochs", type=int, default=None, help="Training epochs")
    train_parser.add_argument(
        "--data-dir", default=None, dest="data_dir",
        help="Directory holding <TICKER>.csv / .parquet price files",
    )
    train_parser.add_argument(
        "--lookback", type=int, default=None,
        help="Train on only the most recent N closes",
    )
    train_parser.set_defaults(func=cmd_train)

    # Status
    status_parser = subparsers.add_parser("status", help="Show persisted model status")
    status_parser.set_defaults(func=cmd_status)

    # Serve
    serve_parser = subparsers.add_parser("serve", help="Start the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)
    serve_parser.set_defaults(func=cmd_serve)

    args = parser.parse_args()
    args.func(args)


if __name__ == "__main__":
    main()
