"""
Ledger State Container

The single owner of ledger state. It ties the CategoryStore and the
LedgerStore together and defines the mutation API a front end talks to.

DESIGN DECISION: One re-entrant lock serializes every mutation and every
snapshot. Backup import runs in a worker thread; holding the lock while it
commits keeps the replace all-or-nothing with respect to any other
mutation.

Front ends observe the ledger through subscribe(): every mutation that
changed state produces one LedgerChange notification, delivered after the
lock is released. A mutation whose save failed stays applied in memory, so
it is announced before its PersistenceError propagates. replace_all rolls
back instead and announces nothing on failure.
"""

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, Iterator, Optional
from uuid import UUID

import structlog
from pydantic import BaseModel, ConfigDict

from expense_tracker.audit import AuditLogger
from expense_tracker.ledger.categories import CategoryStore
from expense_tracker.ledger.errors import PersistenceError
from expense_tracker.ledger.store import DayLike, LedgerStore
from expense_tracker.models.audit import AuditEventBuilder
from expense_tracker.models.ledger import Category, DateRange, Expense, Income
from expense_tracker.services.storage import KeyValueStorage, create_storage


logger = structlog.get_logger(__name__)


class ChangeKind(str, Enum):
    ADDED = "added"
    UPDATED = "updated"
    DELETED = "deleted"
    REORDERED = "reordered"
    REPLACED = "replaced"


class LedgerChange(BaseModel):
    """Notification sent to subscribers after a mutation."""
    model_config = ConfigDict(frozen=True)

    kind: ChangeKind
    entity: str
    entity_id: Optional[str] = None


class LedgerSnapshot(BaseModel):
    """Immutable view of the whole ledger at one moment."""
    model_config = ConfigDict(frozen=True)

    categories: tuple[Category, ...]
    expenses: tuple[Expense, ...]
    incomes: tuple[Income, ...]


Listener = Callable[[LedgerChange], None]


@dataclass
class _PendingChange:
    kind: ChangeKind
    entity: str
    entity_id: Any = None
    applied: bool = True


class Ledger:
    """
    Expenses, incomes and categories behind one mutation API.

    Usage:
        ledger = Ledger(InMemoryStorage())
        food = ledger.categories()[0]
        ledger.add_expense(Expense(amount=Decimal("12.50"), category=food, date=now))
    """

    def __init__(
        self,
        storage: Optional[KeyValueStorage] = None,
        audit: Optional[AuditLogger] = None,
    ):
        self._lock = threading.RLock()
        self._audit = audit or AuditLogger()
        self._storage = storage or create_storage()
        self._listeners: list[Listener] = []
        with self._lock:
            self._category_store = CategoryStore(self._storage, self._audit)
            self._ledger_store = LedgerStore(self._storage, self._category_store, self._audit)

    @property
    def audit(self) -> AuditLogger:
        return self._audit

    # -------------------------------------------------------------------------
    # Subscriptions
    # -------------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a change listener.

        Returns a callable that unsubscribes it.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, kind: ChangeKind, entity: str, entity_id=None) -> None:
        change = LedgerChange(
            kind=kind,
            entity=entity,
            entity_id=None if entity_id is None else str(entity_id),
        )
        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception:
                logger.exception("ledger_listener_failed", change=change.model_dump(mode="json"))

    @contextmanager
    def _mutation(
        self,
        kind: ChangeKind,
        entity: str,
        entity_id=None,
    ) -> Iterator[_PendingChange]:
        """
        Run one mutation under the lock, then notify subscribers.

        The body sets `applied = False` for a no-op. A PersistenceError
        leaves the change applied in memory, so it is still announced.
        """
        change = _PendingChange(kind=kind, entity=entity, entity_id=entity_id)
        try:
            with self._lock:
                yield change
        except PersistenceError:
            self._announce(change)
            raise
        self._announce(change)

    def _announce(self, change: _PendingChange) -> None:
        if change.applied:
            self._notify(change.kind, change.entity, change.entity_id)

    # -------------------------------------------------------------------------
    # Snapshot
    # -------------------------------------------------------------------------

    def snapshot(self) -> LedgerSnapshot:
        with self._lock:
            return LedgerSnapshot(
                categories=tuple(self._category_store.list()),
                expenses=tuple(self._ledger_store.expenses),
                incomes=tuple(self._ledger_store.incomes),
            )

    # -------------------------------------------------------------------------
    # Categories
    # -------------------------------------------------------------------------

    def categories(self) -> list[Category]:
        with self._lock:
            return self._category_store.list()

    def get_category(self, category_id: UUID) -> Optional[Category]:
        with self._lock:
            return self._category_store.get(category_id)

    def add_category(self, category: Category) -> Category:
        with self._mutation(ChangeKind.ADDED, "category", category.id):
            return self._category_store.add(category)

    def delete_category(self, category_id: UUID) -> int:
        """
        Delete a category together with all of its expenses.

        Returns the number of expenses removed (0 for an unknown id).
        """
        with self._mutation(ChangeKind.DELETED, "category", category_id) as change:
            if category_id not in self._category_store:
                change.applied = False
                return 0
            try:
                removed = self._ledger_store.cascade_delete_by_category(category_id)
            except PersistenceError:
                # The expenses are gone in memory; the category goes too.
                self._category_store.delete(category_id)
                raise
            self._category_store.delete(category_id)
            self._audit.log(AuditEventBuilder.category_deleted(category_id, removed))
            return removed

    def edit_category(
        self,
        category_id: UUID,
        name: Optional[str] = None,
        color: Optional[str] = None,
        icon: Optional[str] = None,
    ) -> Optional[Category]:
        """
        Change a category's name, color or icon.

        Every expense of the category reads back the new values afterwards.
        Returns the updated category, or None for an unknown id.
        """
        with self._mutation(ChangeKind.UPDATED, "category", category_id) as change:
            updated = self._category_store.edit(category_id, name=name, color=color, icon=icon)
            if updated is None:
                change.applied = False
                return None
            affected = self._ledger_store.cascade_update_category(category_id, updated)
            self._audit.log(AuditEventBuilder.category_updated(category_id, updated.name, affected))
            return updated

    def reorder_categories(self, new_order: Iterable[UUID]) -> None:
        with self._mutation(ChangeKind.REORDERED, "category"):
            self._category_store.reorder(new_order)

    def sort_categories_by_name(self) -> None:
        with self._mutation(ChangeKind.REORDERED, "category"):
            self._category_store.sort_by_name()

    # -------------------------------------------------------------------------
    # Expenses
    # -------------------------------------------------------------------------

    def expenses(self) -> list[Expense]:
        with self._lock:
            return self._ledger_store.expenses

    def add_expense(self, expense: Expense) -> Expense:
        with self._mutation(ChangeKind.ADDED, "expense", expense.id):
            return self._ledger_store.add_expense(expense)

    def edit_expense(self, expense_id: UUID, replacement: Expense) -> bool:
        with self._mutation(ChangeKind.UPDATED, "expense", expense_id) as change:
            change.applied = self._ledger_store.edit_expense(expense_id, replacement)
            return change.applied

    def delete_expense(self, expense_id: UUID) -> bool:
        with self._mutation(ChangeKind.DELETED, "expense", expense_id) as change:
            change.applied = self._ledger_store.delete_expense(expense_id)
            return change.applied

    def expenses_on_day(self, day: DayLike) -> list[Expense]:
        with self._lock:
            return self._ledger_store.expenses_on_day(day)

    def expenses_in_month(self, moment: DayLike) -> list[Expense]:
        with self._lock:
            return self._ledger_store.expenses_in_month(moment)

    def expenses_in(self, period: DateRange) -> list[Expense]:
        with self._lock:
            return self._ledger_store.expenses_between(period.start, period.end)

    def expenses_for_category(
        self,
        category_id: UUID,
        period: Optional[DateRange] = None,
    ) -> list[Expense]:
        """Expenses of one category, optionally limited to a period."""
        with self._lock:
            if period is None:
                return self._ledger_store.expenses_for_category_all_time(category_id)
            return self._ledger_store.expenses_for_category(category_id, period.start, period.end)

    def is_free_day(self, day: DayLike) -> bool:
        with self._lock:
            return self._ledger_store.is_free_day(day)

    # -------------------------------------------------------------------------
    # Incomes
    # -------------------------------------------------------------------------

    def incomes(self) -> list[Income]:
        with self._lock:
            return self._ledger_store.incomes

    def add_income(self, income: Income) -> Income:
        with self._mutation(ChangeKind.ADDED, "income", income.id):
            return self._ledger_store.add_income(income)

    def edit_income(self, income_id: str, replacement: Income) -> bool:
        with self._mutation(ChangeKind.UPDATED, "income", income_id) as change:
            change.applied = self._ledger_store.edit_income(income_id, replacement)
            return change.applied

    def delete_income(self, income_id: str) -> bool:
        with self._mutation(ChangeKind.DELETED, "income", income_id) as change:
            change.applied = self._ledger_store.delete_income(income_id)
            return change.applied

    def incomes_on_day(self, day: DayLike) -> list[Income]:
        with self._lock:
            return self._ledger_store.incomes_on_day(day)

    def incomes_in_month(self, moment: DayLike) -> list[Income]:
        with self._lock:
            return self._ledger_store.incomes_in_month(moment)

    def incomes_in(self, period: DateRange) -> list[Income]:
        with self._lock:
            return self._ledger_store.incomes_between(period.start, period.end)

    # -------------------------------------------------------------------------
    # Wholesale replacement (backup import)
    # -------------------------------------------------------------------------

    def replace_all(
        self,
        categories: list[Category],
        expenses: list[Expense],
        incomes: list[Income],
    ) -> None:
        """
        Replace categories, expenses and incomes in one step.

        Either all three collections are swapped in and saved, or the ledger
        is left exactly as it was.

        Raises:
            LedgerError: If an entry is rejected (nothing changes)
            PersistenceError: If saving failed (previous state is restored)
        """
        with self._lock:
            previous_categories = self._category_store.list()
            previous_rows, previous_incomes = self._ledger_store.snapshot_rows()

            self._category_store.replace(categories)
            try:
                self._ledger_store.replace(expenses, incomes)
            except Exception:
                self._category_store.replace(previous_categories)
                raise

            try:
                self._category_store.save()
                self._ledger_store.save()
            except PersistenceError:
                self._category_store.replace(previous_categories)
                self._ledger_store.restore_rows(previous_rows, previous_incomes)
                self._save_after_rollback()
                raise
        self._notify(ChangeKind.REPLACED, "ledger")

    def _save_after_rollback(self) -> None:
        try:
            self._category_store.save()
            self._ledger_store.save()
        except PersistenceError as e:
            logger.error("ledger_rollback_save_failed", key=e.key, error=str(e))
