"""Ledger package: category and entry stores behind one state container."""

from expense_tracker.ledger.categories import CategoryStore
from expense_tracker.ledger.errors import (
    DuplicateIdError,
    InvalidAmountError,
    InvalidOrderError,
    LedgerError,
    PersistenceError,
    UnknownCategoryError,
)
from expense_tracker.ledger.state import (
    ChangeKind,
    Ledger,
    LedgerChange,
    LedgerSnapshot,
)
from expense_tracker.ledger.store import LedgerStore

__all__ = [
    "CategoryStore",
    "ChangeKind",
    "DuplicateIdError",
    "InvalidAmountError",
    "InvalidOrderError",
    "Ledger",
    "LedgerChange",
    "LedgerError",
    "LedgerSnapshot",
    "LedgerStore",
    "PersistenceError",
    "UnknownCategoryError",
]
