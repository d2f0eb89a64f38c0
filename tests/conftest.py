"""Shared fixtures: in-memory ledgers and a storage double that can fail."""

import pytest

from expense_tracker.audit import AuditLogger
from expense_tracker.ledger import Ledger
from expense_tracker.services.storage import InMemoryStorage, StorageWriteError


class FailingStorage(InMemoryStorage):
    """In-memory storage whose writes fail while `fail` is set."""

    def __init__(self):
        super().__init__()
        self.fail = False

    def save(self, key: str, data: bytes) -> None:
        if self.fail:
            raise StorageWriteError(f"disk full while writing {key}")
        super().save(key, data)


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def failing_storage():
    return FailingStorage()


@pytest.fixture
def audit():
    return AuditLogger()


@pytest.fixture
def ledger(storage, audit):
    return Ledger(storage, audit)


@pytest.fixture
def food(ledger):
    """The seeded Food category."""
    return ledger.categories()[0]


@pytest.fixture
def transport(ledger):
    """The seeded Transport category."""
    return ledger.categories()[1]
