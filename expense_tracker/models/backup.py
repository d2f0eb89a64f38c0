"""
Backup Document Models

The backup document is the portable, versioned serialization of the whole
ledger. Unlike the live models it normalizes the category out of each
expense: an ExpenseRecord references its category by id.

DESIGN DECISION: Record fields are typed loosely where a bad value must
skip one record rather than fail the whole file. Ids are plain strings
here; whether they parse as UUIDs is decided during reconciliation.
Everything else (missing fields, wrong JSON types) is a structural error.
"""

import json
import re
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    field_validator,
)
from pydantic.alias_generators import to_camel

from expense_tracker.models.ledger import Category, Expense, Income, to_naive_local


BACKUP_VERSION = "1.0"

# pydantic writes the exact decimal text in quotes; amounts_as_numbers()
# strips the quotes so amounts travel as JSON numbers without a float step.
JsonAmount = Annotated[
    Decimal,
    Field(allow_inf_nan=False),
    PlainSerializer(str, return_type=str, when_used="json"),
]

_QUOTED_AMOUNT = re.compile(
    rb'"amount":(\s*)"(-?[0-9]+(?:\.[0-9]+)?(?:[eE][-+]?[0-9]+)?)"'
)


def amounts_as_numbers(payload: bytes) -> bytes:
    """Turn the quoted amounts of a record dump into bare JSON numbers."""
    return _QUOTED_AMOUNT.sub(rb'"amount":\1\2', payload)


def loads_exact(payload: Union[bytes, str]) -> Any:
    """Parse JSON with non-integer numbers as Decimal instead of float."""
    return json.loads(payload, parse_float=Decimal)


class _RecordModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


class CategoryRecord(_RecordModel):
    """A category as stored in a backup."""

    id: str
    name: str
    color: str
    icon: str

    @classmethod
    def from_category(cls, category: Category) -> "CategoryRecord":
        return cls(
            id=str(category.id),
            name=category.name,
            color=category.color,
            icon=category.icon,
        )


class ExpenseRecord(_RecordModel):
    """An expense as stored in a backup (category by reference)."""

    id: str
    amount: JsonAmount
    category_id: str
    date: datetime
    note: Optional[str] = None

    @field_validator('date')
    @classmethod
    def normalize_date(cls, v: datetime) -> datetime:
        return to_naive_local(v)

    @classmethod
    def from_expense(cls, expense: Expense) -> "ExpenseRecord":
        return cls(
            id=str(expense.id),
            amount=expense.amount,
            category_id=str(expense.category.id),
            date=expense.date,
            note=expense.note,
        )


class IncomeRecord(_RecordModel):
    """An income as stored in a backup."""

    id: str
    amount: JsonAmount
    date: datetime
    note: Optional[str] = None

    @field_validator('date')
    @classmethod
    def normalize_date(cls, v: datetime) -> datetime:
        return to_naive_local(v)

    @classmethod
    def from_income(cls, income: Income) -> "IncomeRecord":
        return cls(
            id=income.id,
            amount=income.amount,
            date=income.date,
            note=income.note,
        )


class BackupDocument(_RecordModel):
    """
    Top-level backup document.

    JSON shape:
        {"version": "1.0", "exportDate": ..., "categories": [...],
         "expenses": [...], "incomes": [...]}
    """

    version: str = Field(
        ...,
        description="Schema version tag"
    )
    export_date: datetime = Field(
        ...,
        description="When the backup was produced"
    )
    categories: list[CategoryRecord]
    expenses: list[ExpenseRecord]
    incomes: list[IncomeRecord]

    @field_validator('version')
    @classmethod
    def validate_version(cls, v: str) -> str:
        """Only the current schema version can be read."""
        if v != BACKUP_VERSION:
            raise ValueError(
                f"Unsupported backup version {v!r} (expected {BACKUP_VERSION!r})"
            )
        return v

    @field_validator('export_date')
    @classmethod
    def normalize_export_date(cls, v: datetime) -> datetime:
        return to_naive_local(v)


# =============================================================================
# IMPORT RESULT
# =============================================================================

class SkippedRecord(BaseModel):
    """One record left out of an import, and why."""
    model_config = ConfigDict(frozen=True)

    kind: str = Field(
        ...,
        pattern="^(category|expense|income)$",
        description="Which collection the record came from"
    )
    record_id: str
    reason: str = Field(
        ...,
        description="Machine-readable reason, e.g. 'malformed_id'"
    )


class ImportReport(BaseModel):
    """
    Outcome of a backup import.

    success is the whole contract for callers that only need yes/no;
    the counts and skipped list are there for user feedback.
    """

    success: bool
    categories_imported: int = Field(default=0, ge=0)
    expenses_imported: int = Field(default=0, ge=0)
    incomes_imported: int = Field(default=0, ge=0)
    skipped: list[SkippedRecord] = Field(default_factory=list)
    error: Optional[str] = Field(
        default=None,
        description="Generic user-facing failure message"
    )

    def skipped_count(self, kind: Optional[str] = None) -> int:
        """Count skipped records, optionally of one kind."""
        if kind is None:
            return len(self.skipped)
        return sum(1 for record in self.skipped if record.kind == kind)
