"""Tests for period resolution and aggregations."""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from expense_tracker.models.ledger import Category, DateRange, Expense, Income
from expense_tracker.stats import (
    Period,
    category_breakdown,
    compare,
    monthly_breakdown,
    net_balance,
    previous_range,
    resolve_period,
    subtract_months,
    total,
)


FOOD = Category(name="Food", color="#FF6B6B", icon="🍔")
TRANSPORT = Category(name="Transport", color="#4ECDC4", icon="🚗")
HEALTH = Category(name="Health", color="#C7CEEA", icon="💊")


def expense(category, amount, when=datetime(2024, 5, 1)):
    return Expense(amount=Decimal(amount), category=category, date=when)


class TestAggregations:
    """Tests for totals and breakdowns."""

    def test_total_of_empty_is_zero(self):
        """Test that an empty collection sums to 0."""
        assert total([]) == Decimal(0)

    def test_total_is_exact(self):
        """Test that amounts are summed without float drift."""
        items = [expense(FOOD, "0.10"), expense(FOOD, "0.20")]
        assert total(items) == Decimal("0.30")

    def test_breakdown_sorted_with_percentages(self):
        """Test grouping, ordering and percentages summing to 100."""
        items = [
            expense(FOOD, "10"),
            expense(TRANSPORT, "60"),
            expense(FOOD, "20"),
            expense(HEALTH, "10"),
        ]
        stats = category_breakdown(items)
        assert [s.category for s in stats] == [TRANSPORT, FOOD, HEALTH]
        assert [s.total for s in stats] == [Decimal("60"), Decimal("30"), Decimal("10")]
        assert sum(s.total for s in stats) == total(items)
        assert sum(s.percentage for s in stats) == pytest.approx(100.0)
        assert stats[0].percentage == pytest.approx(60.0)

    def test_breakdown_ties_keep_first_appearance(self):
        """Test that equal totals keep their first-appearance order."""
        items = [expense(HEALTH, "5"), expense(FOOD, "5"), expense(TRANSPORT, "5")]
        stats = category_breakdown(items)
        assert [s.category for s in stats] == [HEALTH, FOOD, TRANSPORT]

    def test_breakdown_of_empty(self):
        """Test that no expenses means no groups."""
        assert category_breakdown([]) == []

    def test_monthly_breakdown_ascending(self):
        """Test per-month totals, oldest first."""
        items = [
            expense(FOOD, "5", datetime(2024, 5, 31, 23, 0)),
            expense(FOOD, "7", datetime(2024, 3, 2)),
            expense(FOOD, "3", datetime(2024, 5, 1)),
        ]
        stats = monthly_breakdown(items)
        assert [s.month for s in stats] == [datetime(2024, 3, 1), datetime(2024, 5, 1)]
        assert [s.total for s in stats] == [Decimal("7"), Decimal("8")]

    def test_compare_growth(self):
        """Test percent change against a positive previous total."""
        result = compare([expense(FOOD, "150")], [expense(FOOD, "100")])
        assert result.current == Decimal("150")
        assert result.previous == Decimal("100")
        assert result.percent_change == pytest.approx(50.0)

    def test_compare_with_zero_previous(self):
        """Test that a zero previous total gives 0% change."""
        result = compare([expense(FOOD, "80")], [])
        assert result.percent_change == 0.0

    def test_net_balance(self):
        """Test income minus spending."""
        incomes = [Income(amount=Decimal("1000"), date=datetime(2024, 5, 1))]
        assert net_balance(incomes, [expense(FOOD, "250.50")]) == Decimal("749.50")


class TestPeriods:
    """Tests for the period resolver."""

    def test_this_week(self):
        """Test the rolling seven-day window."""
        now = datetime(2024, 5, 10, 15, 30)
        period = resolve_period(Period.THIS_WEEK, now=now)
        assert period.start == now - timedelta(days=7)
        assert period.end == now

    def test_this_month_clamps_day(self):
        """Test that 31 March minus one month is 29 February in a leap year."""
        period = resolve_period(Period.THIS_MONTH, now=datetime(2024, 3, 31, 10, 0))
        assert period.start == datetime(2024, 2, 29, 10, 0)

    def test_this_year_clamps_leap_day(self):
        """Test that 29 February minus a year is 28 February."""
        period = resolve_period(Period.THIS_YEAR, now=datetime(2024, 2, 29))
        assert period.start == datetime(2023, 2, 28)

    def test_subtract_months_across_years(self):
        """Test month arithmetic over a year boundary."""
        assert subtract_months(datetime(2024, 1, 15), 2) == datetime(2023, 11, 15)

    def test_period_accepts_string(self):
        """Test that plain string selectors resolve too."""
        now = datetime(2024, 5, 10)
        assert resolve_period("this_week", now=now) == resolve_period(Period.THIS_WEEK, now=now)

    def test_custom_requires_both_bounds(self):
        """Test that a custom period without a bound is rejected."""
        with pytest.raises(ValueError):
            resolve_period(Period.CUSTOM, start=datetime(2024, 1, 1))

    def test_custom_inverted_range_is_kept(self):
        """Test that an inverted custom range is returned and matches nothing."""
        period = resolve_period(
            Period.CUSTOM, start=datetime(2024, 6, 1), end=datetime(2024, 5, 1),
        )
        assert period.start > period.end
        assert not period.contains(datetime(2024, 5, 15))

    def test_previous_range(self):
        """Test that the previous range has equal length and ends before start."""
        current = DateRange(start=datetime(2024, 5, 1), end=datetime(2024, 5, 31))
        previous = previous_range(current)
        assert previous.end < current.start
        assert previous.end == current.start - timedelta(microseconds=1)
        assert previous.length == current.length
