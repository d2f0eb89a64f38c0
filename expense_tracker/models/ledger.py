"""
Core Data Models for Expense Tracker

These models define the schemas for everything the ledger holds or hands out.
They are designed to:
1. Enforce valid amounts and identifiers at the boundary
2. Be immutable once handed to a caller (views never alias store state)
3. Be serializable for storage and backup

DESIGN DECISION: Amounts are Decimal, never float.
Sums of money stay exact; only percentages are floats.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


def to_naive_local(value: datetime) -> datetime:
    """
    Normalize a timestamp to naive local time.

    Aware timestamps (e.g. parsed from "...Z") are converted to the local
    zone and stripped, so every date in the ledger compares with every other.
    """
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


# =============================================================================
# CATEGORY
# =============================================================================

class Category(BaseModel):
    """
    A user-defined spending tag.

    Identity is the id. Name, color and icon are edited by replacing the
    whole value with one that keeps the id.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique category ID"
    )
    # Display fields are free text; colors such as #FFF or #RRGGBBAA are kept.
    name: str = Field(
        ...,
        description="Display name"
    )
    color: str = Field(
        ...,
        description="Display color, usually hex such as #FF6B6B"
    )
    icon: str = Field(
        ...,
        description="Short display string, usually an emoji"
    )


# Seeded on first run, in this order.
DEFAULT_CATEGORIES: tuple[tuple[str, str, str], ...] = (
    ("Food", "#FF6B6B", "🍔"),
    ("Transport", "#4ECDC4", "🚗"),
    ("Entertainment", "#FFE66D", "🎮"),
    ("Shopping", "#95E1D3", "🛍️"),
    ("Health", "#C7CEEA", "💊"),
    ("Utilities", "#AA96DA", "🏠"),
    ("Other", "#CCCCCC", "📌"),
)


def default_categories() -> list[Category]:
    """Build a fresh set of default categories (new ids every call)."""
    return [
        Category(name=name, color=color, icon=icon)
        for name, color, icon in DEFAULT_CATEGORIES
    ]


# =============================================================================
# LEDGER ENTRIES
# =============================================================================

class Expense(BaseModel):
    """
    A single spending record.

    The category is embedded by value. The ledger materializes it from the
    category store on every read, so it always reflects the current
    name/color/icon of that category id.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique expense ID"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        allow_inf_nan=False,
        description="Amount spent (positive)"
    )
    category: Category
    date: datetime = Field(
        ...,
        description="When the money was spent"
    )
    note: Optional[str] = Field(
        default=None,
        description="Optional free-text note"
    )

    @field_validator('date')
    @classmethod
    def normalize_date(cls, v: datetime) -> datetime:
        return to_naive_local(v)


class Income(BaseModel):
    """
    A single income record.

    Income has no category; the note conventionally holds the source
    (e.g. "Salary").
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: str = Field(
        default_factory=lambda: str(uuid4()),
        min_length=1,
        description="Unique income ID"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        allow_inf_nan=False,
        description="Amount received (positive)"
    )
    date: datetime = Field(
        ...,
        description="When the money was received"
    )
    note: Optional[str] = Field(
        default=None,
        description="Income source"
    )

    @field_validator('date')
    @classmethod
    def normalize_date(cls, v: datetime) -> datetime:
        return to_naive_local(v)


# =============================================================================
# STATISTICS VIEWS (derived, never persisted)
# =============================================================================

class CategoryStatistic(BaseModel):
    """Spending of one category within a collection."""
    model_config = ConfigDict(frozen=True)

    category: Category
    total: Decimal
    percentage: float = Field(
        ...,
        description="Share of the grand total, 0-100 (0 when grand total is 0)"
    )


class MonthlyStatistic(BaseModel):
    """Total of one calendar month."""
    model_config = ConfigDict(frozen=True)

    month: datetime = Field(
        ...,
        description="First instant of the month"
    )
    total: Decimal


class PeriodComparison(BaseModel):
    """
    Current period against the previous one.

    percent_change is 0 when the previous total is 0, even if the current
    total is not.
    """
    model_config = ConfigDict(frozen=True)

    current: Decimal
    previous: Decimal
    percent_change: float


class DateRange(BaseModel):
    """An inclusive [start, end] interval."""
    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @field_validator('start', 'end')
    @classmethod
    def normalize_bounds(cls, v: datetime) -> datetime:
        return to_naive_local(v)

    def contains(self, moment: datetime) -> bool:
        """Check whether a moment falls inside the range (both ends included)."""
        return self.start <= moment <= self.end

    @property
    def length(self):
        return self.end - self.start
