"""
JSON File Storage Implementation

Each key is stored as `<data_dir>/<key>.json`.

Writes go to a temporary file in the same directory which then replaces
the target with os.replace, so a crash mid-write never leaves a
half-written collection behind. Transient OS errors are retried.
"""

import os
import re
import tempfile
from pathlib import Path
from typing import Optional

import structlog
from tenacity import (
    RetryError,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from expense_tracker.config import get_settings
from expense_tracker.services.storage.interface import (
    KeyValueStorage,
    StorageReadError,
    StorageWriteError,
)


_KEY_PATTERN = re.compile(r"^[a-z][a-z0-9_]*$")

logger = structlog.get_logger(__name__)


class JsonFileStorage(KeyValueStorage):
    """
    File-per-key storage under a data directory.

    The directory is created on first save.
    """

    def __init__(
        self,
        data_dir: Optional[Path] = None,
        retry_attempts: Optional[int] = None,
    ):
        settings = get_settings()
        self._data_dir = Path(data_dir) if data_dir else settings.data_dir
        self._retry_attempts = retry_attempts or settings.save_retry_attempts

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def path_for(self, key: str) -> Path:
        """Get the file path a key is stored at."""
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self._data_dir / f"{key}.json"

    def load(self, key: str) -> Optional[bytes]:
        path = self.path_for(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageReadError(f"Could not read {path}: {e}") from e

    def save(self, key: str, data: bytes) -> None:
        path = self.path_for(key)
        try:
            for attempt in Retrying(
                stop=stop_after_attempt(self._retry_attempts),
                wait=wait_exponential(multiplier=0.1, max=1),
                retry=retry_if_exception_type(OSError),
            ):
                with attempt:
                    self._write_atomic(path, data)
        except RetryError as e:
            cause = e.last_attempt.exception()
            logger.error("storage_write_failed", path=str(path), error=str(cause))
            raise StorageWriteError(f"Could not write {path}: {cause}") from cause

    def _write_atomic(self, path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_name = tempfile.mkstemp(
            prefix=path.name + "-",
            suffix=".tmp",
            dir=path.parent,
        )
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(temp_name, path)
        except OSError:
            try:
                os.unlink(temp_name)
            except FileNotFoundError:
                pass
            raise
