"""In-memory storage backend, used by tests and the `memory` backend setting."""

from typing import Optional

from expense_tracker.services.storage.interface import KeyValueStorage


class InMemoryStorage(KeyValueStorage):
    """Keeps every key in a dict for the lifetime of the object."""

    def __init__(self, initial: Optional[dict[str, bytes]] = None):
        self._data: dict[str, bytes] = dict(initial or {})

    def load(self, key: str) -> Optional[bytes]:
        return self._data.get(key)

    def save(self, key: str, data: bytes) -> None:
        self._data[key] = bytes(data)

    def keys(self) -> list[str]:
        return list(self._data)
