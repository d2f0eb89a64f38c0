"""Services package."""

from expense_tracker.services.storage import (
    InMemoryStorage,
    JsonFileStorage,
    KeyValueStorage,
    StorageError,
    StorageKey,
    StorageReadError,
    StorageWriteError,
    create_storage,
)

__all__ = [
    "InMemoryStorage",
    "JsonFileStorage",
    "KeyValueStorage",
    "StorageError",
    "StorageKey",
    "StorageReadError",
    "StorageWriteError",
    "create_storage",
]
