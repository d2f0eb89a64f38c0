"""
Abstract Storage Interface

DESIGN DECISION: The ledger only needs a key-value store of opaque bytes.
This allows us to:
1. Keep the ledger independent of any storage technology
2. Use in-memory storage for testing
3. Swap the file backend for anything that can load and save bytes

The ledger uses three fixed keys, one per collection.
"""

from abc import ABC, abstractmethod
from typing import Optional


class StorageKey:
    """Logical keys the ledger persists under."""
    CATEGORIES = "categories"
    EXPENSES = "expenses"
    INCOMES = "incomes"


class KeyValueStorage(ABC):
    """
    Abstract interface for ledger persistence.

    Any storage implementation must implement these methods.
    Both calls are synchronous and expected to be cheap and local.
    """

    @abstractmethod
    def load(self, key: str) -> Optional[bytes]:
        """
        Load the bytes stored under a key.

        Args:
            key: One of the StorageKey values

        Returns:
            The stored bytes, or None if nothing was ever saved under the key

        Raises:
            StorageReadError: If the backend could not be read
        """
        pass

    @abstractmethod
    def save(self, key: str, data: bytes) -> None:
        """
        Replace the bytes stored under a key.

        Args:
            key: One of the StorageKey values
            data: Serialized collection

        Raises:
            StorageWriteError: If the write did not happen
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageReadError(StorageError):
    """Stored data could not be read."""
    pass


class StorageWriteError(StorageError):
    """Data could not be written."""
    pass
