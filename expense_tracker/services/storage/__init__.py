"""
Storage Services Package

Provides the key-value persistence interface the ledger is built on,
plus in-memory and JSON-file implementations.
"""

from typing import Optional

from expense_tracker.config import get_settings
from expense_tracker.services.storage.interface import (
    KeyValueStorage,
    StorageError,
    StorageKey,
    StorageReadError,
    StorageWriteError,
)
from expense_tracker.services.storage.memory import InMemoryStorage
from expense_tracker.services.storage.json_file import JsonFileStorage

__all__ = [
    # Interface
    "KeyValueStorage",
    "StorageKey",
    # Exceptions
    "StorageError",
    "StorageReadError",
    "StorageWriteError",
    # Implementations
    "InMemoryStorage",
    "JsonFileStorage",
    "create_storage",
]


def create_storage(backend: Optional[str] = None) -> KeyValueStorage:
    """Build the storage backend named in settings (or `backend`)."""
    backend = backend or get_settings().storage_backend
    if backend == "memory":
        return InMemoryStorage()
    if backend == "json_file":
        return JsonFileStorage()
    raise ValueError(f"Unknown storage backend: {backend}")
