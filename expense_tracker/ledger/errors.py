"""Exceptions raised by the ledger stores."""


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class InvalidAmountError(LedgerError):
    """Amount is not a positive finite number."""
    pass


class DuplicateIdError(LedgerError):
    """An entity with this id is already in the store."""
    pass


class UnknownCategoryError(LedgerError):
    """An expense references a category the store does not hold."""
    pass


class InvalidOrderError(LedgerError):
    """A reorder request is not a permutation of the current categories."""
    pass


class PersistenceError(LedgerError):
    """
    A mutation was applied in memory but could not be saved.

    Attributes:
        key: The storage key that failed
    """

    def __init__(self, key: str, message: str):
        super().__init__(message)
        self.key = key
