"""
Period Resolver

Maps a symbolic period to a concrete inclusive [start, end] range,
evaluated against "now" at call time. The named periods are rolling
windows ending now: "this month" is the last calendar month, not the
month-to-date.
"""

import calendar
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from expense_tracker.models.ledger import DateRange


class Period(str, Enum):
    """Period selectors offered for statistics."""
    THIS_WEEK = "this_week"
    THIS_MONTH = "this_month"
    THIS_YEAR = "this_year"
    CUSTOM = "custom"


def subtract_months(moment: datetime, months: int) -> datetime:
    """
    Move a timestamp back by whole calendar months.

    The day is clamped to the length of the target month,
    so 31 March minus one month is the last day of February.
    """
    month_index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def resolve_period(
    period: Period,
    now: Optional[datetime] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> DateRange:
    """
    Resolve a period to a date range.

    Args:
        period: Which period to resolve
        now: Reference time (defaults to the current local time)
        start: First instant of a CUSTOM range
        end: Last instant of a CUSTOM range

    The CUSTOM range is taken as given; an inverted range is allowed and
    simply matches nothing downstream.

    Raises:
        ValueError: If a CUSTOM period is missing a bound
    """
    period = Period(period)
    if period == Period.CUSTOM:
        if start is None or end is None:
            raise ValueError("A custom period needs both start and end")
        return DateRange(start=start, end=end)

    now = now or datetime.now()
    if period == Period.THIS_WEEK:
        begin = now - timedelta(days=7)
    elif period == Period.THIS_MONTH:
        begin = subtract_months(now, 1)
    else:
        begin = subtract_months(now, 12)
    return DateRange(start=begin, end=now)


def previous_range(current: DateRange) -> DateRange:
    """
    The range of equal length that ends just before `current` starts.

    Feeds period-over-period comparisons.
    """
    end = current.start - timedelta(microseconds=1)
    return DateRange(start=end - current.length, end=end)
