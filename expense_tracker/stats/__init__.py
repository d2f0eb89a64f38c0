"""Statistics package: period resolution and pure aggregations."""

from expense_tracker.stats.engine import (
    category_breakdown,
    compare,
    month_start,
    monthly_breakdown,
    net_balance,
    total,
)
from expense_tracker.stats.periods import (
    Period,
    previous_range,
    resolve_period,
    subtract_months,
)

__all__ = [
    "Period",
    "category_breakdown",
    "compare",
    "month_start",
    "monthly_breakdown",
    "net_balance",
    "previous_range",
    "resolve_period",
    "subtract_months",
    "total",
]
