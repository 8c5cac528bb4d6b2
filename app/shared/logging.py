"""
Logging configuration for the application.

One format for the service and the engine. The engine's own loggers
(``forecast.*``) can run at a different level than the rest, so epoch
progress can be silenced in production or turned up while debugging a
fit. Never logs raw price payloads or model blobs.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

ENGINE_LOGGER = "forecast"
QUIET_LOGGERS = ("uvicorn.access", "torch", "redis")


def _parse_level(level: str | None, default: int = logging.INFO) -> int:
    if not level:
        return default
    value = logging.getLevelName(level.upper())
    return value if isinstance(value, int) else default


def configure_logging(level: str = "INFO", engine_level: str | None = None) -> None:
    """Configure logging for the API process.

    Args:
        level: Root log level (DEBUG, INFO, WARNING, ERROR).
        engine_level: Level of the ``forecast`` loggers. Follows ``level``
            when unset.
    """
    root_level = _parse_level(level)
    logging.basicConfig(
        level=root_level,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        stream=sys.stdout,
        force=True,
    )
    logging.getLogger(ENGINE_LOGGER).setLevel(_parse_level(engine_level, root_level))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
