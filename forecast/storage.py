"""
Durable model stores.

Implements the ModelStore port:
- FileModelStore   — one ``<name>.pt`` file per model, written atomically
- RedisModelStore  — one ``model:<name>`` key per model
- InMemoryModelStore — process-local dict (tests, ephemeral runs)

No store raises: failures are logged as PersistenceError and reported
through the return value, and the model keeps running in memory.
"""

import logging
import os
import tempfile
import threading
from pathlib import Path

import redis

from forecast.errors import PersistenceError
from forecast.ports import ModelStore

logger = logging.getLogger(__name__)


class FileModelStore(ModelStore):
    """Stores model blobs as files under a directory."""

    def __init__(self, directory: Path) -> None:
        self._dir = Path(directory)

    def path_for(self, name: str) -> Path:
        return self._dir / f"{name}.pt"

    def save(self, name: str, blob: bytes) -> bool:
        target = self.path_for(name)
        tmp_name = None
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self._dir, suffix=".tmp")
            with os.fdopen(fd, "wb") as f:
                f.write(blob)
            os.replace(tmp_name, target)
        except OSError as exc:
            logger.error("%s", PersistenceError(name, str(exc)).message)
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            return False
        logger.info("Model blob written to %s (%d bytes)", target, len(blob))
        return True

    def load(self, name: str) -> bytes | None:
        path = self.path_for(name)
        if not path.exists():
            return None
        try:
            return path.read_bytes()
        except OSError as exc:
            logger.warning("%s", PersistenceError(name, str(exc)).message)
            return None


class RedisModelStore(ModelStore):
    """Stores model blobs in Redis.

    Key pattern: model:{name}
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379/0",
        client: "redis.Redis | None" = None,
    ) -> None:
        self._redis = client or redis.from_url(redis_url, socket_timeout=5)

    @staticmethod
    def key_for(name: str) -> str:
        return f"model:{name}"

    def save(self, name: str, blob: bytes) -> bool:
        try:
            self._redis.set(self.key_for(name), blob)
        except redis.RedisError as exc:
            logger.error("%s", PersistenceError(name, str(exc)).message)
            return False
        logger.info("Model blob stored in Redis under %s", self.key_for(name))
        return True

    def load(self, name: str) -> bytes | None:
        try:
            value = self._redis.get(self.key_for(name))
        except redis.RedisError as exc:
            logger.warning("%s", PersistenceError(name, str(exc)).message)
            return None
        if value is None:
            return None
        return bytes(value)


class InMemoryModelStore(ModelStore):
    """Keeps model blobs in a dict for the lifetime of the process."""

    def __init__(self) -> None:
        self._blobs: dict[str, bytes] = {}
        self._lock = threading.Lock()

    def save(self, name: str, blob: bytes) -> bool:
        with self._lock:
            self._blobs[name] = bytes(blob)
        return True

    def load(self, name: str) -> bytes | None:
        with self._lock:
            return self._blobs.get(name)


def build_model_store(
    backend: str, models_dir: Path, redis_url: str | None = None
) -> ModelStore:
    """Create the store selected by configuration.

    Args:
        backend: ``"file"``, ``"redis"`` or ``"memory"``.
        models_dir: Directory used by the file backend.
        redis_url: Connection URL used by the redis backend.
    """
    if backend == "redis":
        return RedisModelStore(redis_url or "redis://localhost:6379/0")
    if backend == "memory":
        return InMemoryModelStore()
    if backend != "file":
        logger.warning("Unknown model store backend '%s'. Using files.", backend)
    return FileModelStore(models_dir)
