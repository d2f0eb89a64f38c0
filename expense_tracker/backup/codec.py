"""
Backup Codec

Pure conversion between ledger state and the portable backup document.

Two failure levels:

STRUCTURAL - the payload is not JSON, a required field is missing, a
value has the wrong JSON type, or the version is unknown. The whole
document is rejected with BackupFormatError, listing every problem by path.

RECORD - one record cannot be used (malformed id, dangling category
reference, non-positive amount, duplicate id). Only that record is
skipped; reconcile() reports it as a SkippedRecord.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional, Union
from uuid import UUID

from pydantic import ValidationError

from expense_tracker.models.backup import (
    BACKUP_VERSION,
    BackupDocument,
    CategoryRecord,
    ExpenseRecord,
    IncomeRecord,
    SkippedRecord,
    amounts_as_numbers,
    loads_exact,
)
from expense_tracker.models.ledger import Category, Expense, Income


class BackupFormatError(Exception):
    """
    The backup document is structurally invalid.

    Attributes:
        diagnostics: One {"path": ..., "message": ...} dict per problem
    """

    def __init__(self, message: str, diagnostics: Optional[list[dict]] = None):
        super().__init__(message)
        self.diagnostics = diagnostics or []


@dataclass
class ReconciledBackup:
    """Ledger values recovered from a document, plus what was left out."""

    categories: list[Category] = field(default_factory=list)
    expenses: list[Expense] = field(default_factory=list)
    incomes: list[Income] = field(default_factory=list)
    skipped: list[SkippedRecord] = field(default_factory=list)


# =============================================================================
# EXPORT
# =============================================================================

def build_document(
    categories: Iterable[Category],
    expenses: Iterable[Expense],
    incomes: Iterable[Income],
    exported_at: Optional[datetime] = None,
) -> BackupDocument:
    """Snapshot ledger values into a backup document (categories by id)."""
    return BackupDocument(
        version=BACKUP_VERSION,
        export_date=exported_at or datetime.now(),
        categories=[CategoryRecord.from_category(c) for c in categories],
        expenses=[ExpenseRecord.from_expense(e) for e in expenses],
        incomes=[IncomeRecord.from_income(i) for i in incomes],
    )


def encode(document: BackupDocument) -> bytes:
    """
    Serialize a document to indented UTF-8 JSON with camelCase keys.

    Amounts are written as JSON numbers carrying every digit of the Decimal.
    """
    payload = document.model_dump_json(by_alias=True, indent=2).encode("utf-8")
    return amounts_as_numbers(payload)


def backup_filename(moment: datetime, prefix: str = "ExpenseTracker") -> str:
    """Suggested file name for an exported backup."""
    return f"{prefix}_{moment.strftime('%Y%m%d_%H%M%S')}.json"


# =============================================================================
# IMPORT
# =============================================================================

def decode(payload: Union[bytes, str]) -> BackupDocument:
    """
    Parse and structurally validate a backup document.

    Non-integer numbers are parsed straight to Decimal, so amounts keep
    every digit they were written with.

    Raises:
        BackupFormatError: With a diagnostic per invalid path
    """
    try:
        data = loads_exact(payload)
    except ValueError as e:
        raise BackupFormatError(
            "Backup document is not valid JSON",
            [{"path": "<document>", "message": str(e)}],
        ) from e

    try:
        return BackupDocument.model_validate(data)
    except ValidationError as e:
        diagnostics = [
            {
                "path": ".".join(str(part) for part in error["loc"]) or "<document>",
                "message": error["msg"],
            }
            for error in e.errors()
        ]
        raise BackupFormatError(
            f"Invalid backup document ({len(diagnostics)} problems)",
            diagnostics,
        ) from e


def reconcile(document: BackupDocument) -> ReconciledBackup:
    """
    Turn a decoded document into ledger values.

    Expenses are resolved against the categories of the same document by
    id value. For duplicate ids the first record wins.
    """
    result = ReconciledBackup()
    categories_by_id: dict[UUID, Category] = {}

    for record in document.categories:
        category_id = _parse_uuid(record.id)
        if category_id is None:
            result.skipped.append(_skip("category", record.id, "malformed_id"))
            continue
        if category_id in categories_by_id:
            result.skipped.append(_skip("category", record.id, "duplicate_id"))
            continue
        category = Category(
            id=category_id,
            name=record.name,
            color=record.color,
            icon=record.icon,
        )
        categories_by_id[category_id] = category
        result.categories.append(category)

    seen_expenses: set[UUID] = set()
    for record in document.expenses:
        expense_id = _parse_uuid(record.id)
        if expense_id is None:
            result.skipped.append(_skip("expense", record.id, "malformed_id"))
            continue
        category = categories_by_id.get(_parse_uuid(record.category_id))
        if category is None:
            result.skipped.append(_skip("expense", record.id, "unknown_category"))
            continue
        if expense_id in seen_expenses:
            result.skipped.append(_skip("expense", record.id, "duplicate_id"))
            continue
        try:
            expense = Expense(
                id=expense_id,
                amount=record.amount,
                category=category,
                date=record.date,
                note=record.note,
            )
        except ValidationError:
            result.skipped.append(_skip("expense", record.id, "invalid_fields"))
            continue
        seen_expenses.add(expense_id)
        result.expenses.append(expense)

    seen_incomes: set[str] = set()
    for record in document.incomes:
        try:
            income = Income(
                id=record.id,
                amount=record.amount,
                date=record.date,
                note=record.note,
            )
        except ValidationError:
            result.skipped.append(_skip("income", record.id, "invalid_fields"))
            continue
        if income.id in seen_incomes:
            result.skipped.append(_skip("income", record.id, "duplicate_id"))
            continue
        seen_incomes.add(income.id)
        result.incomes.append(income)

    return result


def _parse_uuid(value: str) -> Optional[UUID]:
    try:
        return UUID(value)
    except (ValueError, TypeError, AttributeError):
        return None


def _skip(kind: str, record_id: str, reason: str) -> SkippedRecord:
    return SkippedRecord(kind=kind, record_id=record_id, reason=reason)
