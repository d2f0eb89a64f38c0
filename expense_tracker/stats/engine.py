"""
Statistics Engine

Pure functions over a caller-supplied collection, usually the result of a
LedgerStore query. Nothing here reads or writes the stores.

Totals are exact Decimal sums; percentages are floats in 0-100.
"""

from datetime import datetime
from decimal import Decimal
from typing import Iterable, Protocol, Sequence

from expense_tracker.models.ledger import (
    CategoryStatistic,
    Expense,
    MonthlyStatistic,
    PeriodComparison,
)


class _HasAmount(Protocol):
    amount: Decimal


class _Dated(Protocol):
    amount: Decimal
    date: datetime


def total(items: Iterable[_HasAmount]) -> Decimal:
    """Sum of amounts; 0 for an empty collection."""
    return sum((item.amount for item in items), Decimal(0))


def category_breakdown(expenses: Sequence[Expense]) -> list[CategoryStatistic]:
    """
    Spending per category, largest total first.

    Categories with equal totals keep the order in which they first appear
    in `expenses`. Percentages are 0 when the grand total is 0.
    """
    grand_total = total(expenses)
    groups: dict = {}
    categories: dict = {}
    for expense in expenses:
        key = expense.category.id
        if key not in groups:
            groups[key] = Decimal(0)
            categories[key] = expense.category
        groups[key] += expense.amount

    stats = [
        CategoryStatistic(
            category=categories[key],
            total=group_total,
            percentage=_percentage(group_total, grand_total),
        )
        for key, group_total in groups.items()
    ]
    return sorted(stats, key=lambda stat: stat.total, reverse=True)


def monthly_breakdown(items: Iterable[_Dated]) -> list[MonthlyStatistic]:
    """Totals per calendar month, oldest month first."""
    groups: dict[datetime, Decimal] = {}
    for item in items:
        month = month_start(item.date)
        groups[month] = groups.get(month, Decimal(0)) + item.amount

    return [
        MonthlyStatistic(month=month, total=groups[month])
        for month in sorted(groups)
    ]


def compare(
    current: Iterable[_HasAmount],
    previous: Iterable[_HasAmount],
) -> PeriodComparison:
    """
    Compare the totals of two periods.

    percent_change is (current - previous) / previous * 100, and 0 when
    the previous total is 0 (also when the current total is not).
    """
    current_total = total(current)
    previous_total = total(previous)
    if previous_total > 0:
        change = float((current_total - previous_total) / previous_total * 100)
    else:
        change = 0.0
    return PeriodComparison(
        current=current_total,
        previous=previous_total,
        percent_change=change,
    )


def net_balance(incomes: Iterable[_HasAmount], expenses: Iterable[_HasAmount]) -> Decimal:
    """Income minus spending."""
    return total(incomes) - total(expenses)


def month_start(moment: datetime) -> datetime:
    """First instant of the month `moment` falls in."""
    return datetime(moment.year, moment.month, 1)


def _percentage(part: Decimal, whole: Decimal) -> float:
    if whole <= 0:
        return 0.0
    return float(part / whole * 100)


__all__ = [
    "category_breakdown",
    "compare",
    "month_start",
    "monthly_breakdown",
    "net_balance",
    "total",
]
