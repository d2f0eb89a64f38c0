"""
Ledger Store

Owns the expense and income collections.

DESIGN DECISION: Expenses are held as rows that reference their category
by id, and the embedded Category of an Expense is materialized from the
CategoryStore on every read. A renamed or recolored category is therefore
visible on every expense immediately; no stale snapshot can exist.

Both collections are kept sorted by date, newest first. The sort is
stable, so entries sharing a date keep their insertion order.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from expense_tracker.audit import AuditLogger
from expense_tracker.ledger.categories import CategoryStore
from expense_tracker.ledger.errors import (
    DuplicateIdError,
    InvalidAmountError,
    UnknownCategoryError,
)
from expense_tracker.ledger.persistence import RecordPersister
from expense_tracker.models.audit import AuditEventBuilder
from expense_tracker.models.backup import ExpenseRecord, IncomeRecord
from expense_tracker.models.ledger import Category, Expense, Income
from expense_tracker.services.storage import KeyValueStorage, StorageKey


DayLike = Union[date, datetime]


class _ExpenseRow(BaseModel):
    """Internal expense row: the category is referenced, not embedded."""
    model_config = ConfigDict(frozen=True)

    id: UUID
    amount: Decimal
    category_id: UUID
    date: datetime
    note: Optional[str] = None

    def to_record(self) -> ExpenseRecord:
        return ExpenseRecord(
            id=str(self.id),
            amount=self.amount,
            category_id=str(self.category_id),
            date=self.date,
            note=self.note,
        )


def _check_amount(amount: Decimal) -> None:
    if not isinstance(amount, Decimal) or not amount.is_finite() or amount <= 0:
        raise InvalidAmountError(f"Amount must be a positive finite number, got {amount!r}")


def _as_day(day: DayLike) -> date:
    return day.date() if isinstance(day, datetime) else day


def _same_month(moment: datetime, reference: DayLike) -> bool:
    return moment.year == reference.year and moment.month == reference.month


class LedgerStore:
    """
    Expense and income collections, persisted under "expenses" and "incomes".

    Reads return immutable Expense / Income values; mutating them never
    touches the store.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        categories: CategoryStore,
        audit: Optional[AuditLogger] = None,
    ):
        self._categories = categories
        self._audit = audit or AuditLogger()
        self._persister = RecordPersister(storage, self._audit)
        self._expenses: list[_ExpenseRow] = []
        self._incomes: list[Income] = []
        self.load()

    # -------------------------------------------------------------------------
    # Loading / saving
    # -------------------------------------------------------------------------

    def load(self) -> None:
        """
        (Re)load both collections from storage.

        Expense rows whose category no longer exists are dropped (and logged)
        so no orphan can survive a restart.
        """
        self._expenses = []
        seen_expenses: set[UUID] = set()
        for record in self._persister.load_rows(StorageKey.EXPENSES, ExpenseRecord) or []:
            try:
                row = _ExpenseRow(
                    id=UUID(record.id),
                    amount=record.amount,
                    category_id=UUID(record.category_id),
                    date=record.date,
                    note=record.note,
                )
                _check_amount(row.amount)
            except (ValueError, InvalidAmountError):
                self._persister.drop(StorageKey.EXPENSES, record.id, "invalid_expense")
                continue
            if row.category_id not in self._categories:
                self._persister.drop(StorageKey.EXPENSES, record.id, "unknown_category")
                continue
            if row.id in seen_expenses:
                self._persister.drop(StorageKey.EXPENSES, record.id, "duplicate_id")
                continue
            seen_expenses.add(row.id)
            self._expenses.append(row)
        self._sort_expenses()

        self._incomes = []
        seen_incomes: set[str] = set()
        for record in self._persister.load_rows(StorageKey.INCOMES, IncomeRecord) or []:
            try:
                income = Income(
                    id=record.id,
                    amount=record.amount,
                    date=record.date,
                    note=record.note,
                )
            except ValueError:
                self._persister.drop(StorageKey.INCOMES, record.id, "invalid_income")
                continue
            if income.id in seen_incomes:
                self._persister.drop(StorageKey.INCOMES, record.id, "duplicate_id")
                continue
            seen_incomes.add(income.id)
            self._incomes.append(income)
        self._sort_incomes()

    def _save_expenses(self) -> None:
        self._persister.save_rows(
            StorageKey.EXPENSES,
            [row.to_record() for row in self._expenses],
            ExpenseRecord,
        )

    def _save_incomes(self) -> None:
        self._persister.save_rows(
            StorageKey.INCOMES,
            [IncomeRecord.from_income(income) for income in self._incomes],
            IncomeRecord,
        )

    def save(self) -> None:
        """Persist both collections."""
        self._save_expenses()
        self._save_incomes()

    def _sort_expenses(self) -> None:
        self._expenses.sort(key=lambda row: row.date, reverse=True)

    def _sort_incomes(self) -> None:
        self._incomes.sort(key=lambda income: income.date, reverse=True)

    # -------------------------------------------------------------------------
    # Materialization
    # -------------------------------------------------------------------------

    def _materialize(self, row: _ExpenseRow) -> Expense:
        return Expense(
            id=row.id,
            amount=row.amount,
            category=self._categories.get(row.category_id),
            date=row.date,
            note=row.note,
        )

    def _to_row(self, expense: Expense, expense_id: Optional[UUID] = None) -> _ExpenseRow:
        _check_amount(expense.amount)
        if expense.category.id not in self._categories:
            raise UnknownCategoryError(
                f"Category {expense.category.id} ({expense.category.name}) does not exist"
            )
        return _ExpenseRow(
            id=expense_id or expense.id,
            amount=expense.amount,
            category_id=expense.category.id,
            date=expense.date,
            note=expense.note,
        )

    # -------------------------------------------------------------------------
    # Expenses
    # -------------------------------------------------------------------------

    @property
    def expenses(self) -> list[Expense]:
        """All expenses, newest first."""
        return [self._materialize(row) for row in self._expenses]

    def get_expense(self, expense_id: UUID) -> Optional[Expense]:
        for row in self._expenses:
            if row.id == expense_id:
                return self._materialize(row)
        return None

    def add_expense(self, expense: Expense) -> Expense:
        """
        Insert an expense, re-sort, and persist.

        Raises:
            InvalidAmountError: If the amount is not positive and finite
            UnknownCategoryError: If the category id is not in the CategoryStore
            DuplicateIdError: If an expense with this id already exists
            PersistenceError: If the save failed (the expense stays added)
        """
        row = self._to_row(expense)
        if any(existing.id == row.id for existing in self._expenses):
            raise DuplicateIdError(f"Expense {row.id} already exists")
        self._expenses.append(row)
        self._sort_expenses()
        self._audit.log(AuditEventBuilder.entry_added("expense", str(row.id), str(row.amount)))
        self._save_expenses()
        return self._materialize(row)

    def delete_expense(self, expense_id: UUID) -> bool:
        """Remove an expense by id. Unknown ids are a no-op returning False."""
        remaining = [row for row in self._expenses if row.id != expense_id]
        if len(remaining) == len(self._expenses):
            return False
        self._expenses = remaining
        self._audit.log(AuditEventBuilder.entry_deleted("expense", str(expense_id)))
        self._save_expenses()
        return True

    def edit_expense(self, expense_id: UUID, replacement: Expense) -> bool:
        """
        Replace the whole expense stored under expense_id, then re-sort.

        The replacement keeps expense_id whatever id it carries itself.
        Returns False (and logs a diagnostic) if the id is unknown.
        """
        for index, row in enumerate(self._expenses):
            if row.id != expense_id:
                continue
            self._expenses[index] = self._to_row(replacement, expense_id=expense_id)
            self._sort_expenses()
            self._audit.log(AuditEventBuilder.entry_updated("expense", str(expense_id)))
            self._save_expenses()
            return True

        self._audit.log(AuditEventBuilder.edit_target_missing("expense", str(expense_id)))
        return False

    def cascade_delete_by_category(self, category_id: UUID) -> int:
        """Remove every expense of a category and persist. Returns how many went."""
        remaining = [row for row in self._expenses if row.category_id != category_id]
        removed = len(self._expenses) - len(remaining)
        self._expenses = remaining
        self._save_expenses()
        return removed

    def cascade_update_category(self, category_id: UUID, new_category: Category) -> int:
        """
        Make every expense of a category read back as new_category.

        The CategoryStore must already hold new_category under the same id;
        rows only reference the id, so once it does, nothing is stale.
        Returns the number of affected expenses.

        Raises:
            ValueError: If new_category has another id
            UnknownCategoryError: If the CategoryStore does not hold new_category
        """
        if new_category.id != category_id:
            raise ValueError("A category edit cannot change the category id")
        if self._categories.get(category_id) != new_category:
            raise UnknownCategoryError(
                f"Category store does not hold the updated category {category_id}"
            )
        affected = sum(1 for row in self._expenses if row.category_id == category_id)
        self._save_expenses()
        return affected

    # Expense queries

    def expenses_on_day(self, day: DayLike) -> list[Expense]:
        target = _as_day(day)
        return [self._materialize(r) for r in self._expenses if r.date.date() == target]

    def expenses_in_month(self, moment: DayLike) -> list[Expense]:
        return [self._materialize(r) for r in self._expenses if _same_month(r.date, moment)]

    def expenses_between(self, start: datetime, end: datetime) -> list[Expense]:
        """Expenses with start <= date <= end. An inverted range is simply empty."""
        return [self._materialize(r) for r in self._expenses if start <= r.date <= end]

    def expenses_for_category(
        self,
        category_id: UUID,
        start: datetime,
        end: datetime,
    ) -> list[Expense]:
        return [
            self._materialize(r) for r in self._expenses
            if r.category_id == category_id and start <= r.date <= end
        ]

    def expenses_for_category_all_time(self, category_id: UUID) -> list[Expense]:
        return [self._materialize(r) for r in self._expenses if r.category_id == category_id]

    def is_free_day(self, day: DayLike) -> bool:
        """A day without a single expense."""
        target = _as_day(day)
        return not any(r.date.date() == target for r in self._expenses)

    # -------------------------------------------------------------------------
    # Incomes
    # -------------------------------------------------------------------------

    @property
    def incomes(self) -> list[Income]:
        """All incomes, newest first."""
        return list(self._incomes)

    def get_income(self, income_id: str) -> Optional[Income]:
        for income in self._incomes:
            if income.id == income_id:
                return income
        return None

    def add_income(self, income: Income) -> Income:
        """
        Insert an income, re-sort, and persist.

        Raises:
            InvalidAmountError: If the amount is not positive and finite
            DuplicateIdError: If an income with this id already exists
            PersistenceError: If the save failed (the income stays added)
        """
        _check_amount(income.amount)
        if self.get_income(income.id) is not None:
            raise DuplicateIdError(f"Income {income.id} already exists")
        self._incomes.append(income)
        self._sort_incomes()
        self._audit.log(AuditEventBuilder.entry_added("income", income.id, str(income.amount)))
        self._save_incomes()
        return income

    def delete_income(self, income_id: str) -> bool:
        """Remove an income by id. Unknown ids are a no-op returning False."""
        remaining = [income for income in self._incomes if income.id != income_id]
        if len(remaining) == len(self._incomes):
            return False
        self._incomes = remaining
        self._audit.log(AuditEventBuilder.entry_deleted("income", income_id))
        self._save_incomes()
        return True

    def edit_income(self, income_id: str, replacement: Income) -> bool:
        """
        Replace the whole income stored under income_id, then re-sort.

        Returns False (and logs a diagnostic) if the id is unknown.
        """
        for index, income in enumerate(self._incomes):
            if income.id != income_id:
                continue
            _check_amount(replacement.amount)
            self._incomes[index] = replacement.model_copy(update={"id": income_id})
            self._sort_incomes()
            self._audit.log(AuditEventBuilder.entry_updated("income", income_id))
            self._save_incomes()
            return True

        self._audit.log(AuditEventBuilder.edit_target_missing("income", income_id))
        return False

    # Income queries

    def incomes_on_day(self, day: DayLike) -> list[Income]:
        target = _as_day(day)
        return [i for i in self._incomes if i.date.date() == target]

    def incomes_in_month(self, moment: DayLike) -> list[Income]:
        return [i for i in self._incomes if _same_month(i.date, moment)]

    def incomes_between(self, start: datetime, end: datetime) -> list[Income]:
        return [i for i in self._incomes if start <= i.date <= end]

    # -------------------------------------------------------------------------
    # Wholesale replacement
    # -------------------------------------------------------------------------

    def replace(self, expenses: Iterable[Expense], incomes: Iterable[Income]) -> None:
        """
        Swap in whole new collections without persisting.

        Every expense must reference a category already in the CategoryStore.
        Nothing changes if any entry is rejected.
        """
        rows = [self._to_row(expense) for expense in expenses]
        new_incomes = list(incomes)
        for income in new_incomes:
            _check_amount(income.amount)
        self._expenses = rows
        self._incomes = new_incomes
        self._sort_expenses()
        self._sort_incomes()

    def snapshot_rows(self) -> tuple[list, list[Income]]:
        """Raw internal state, for restoring after a failed replace."""
        return list(self._expenses), list(self._incomes)

    def restore_rows(self, rows: list, incomes: list[Income]) -> None:
        self._expenses = list(rows)
        self._incomes = list(incomes)
