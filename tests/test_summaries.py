"""Tests for spending summaries."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from expense_tracker.models import Expense, ExpenseCategory
from expense_tracker.summaries import (
    SummaryPeriod,
    compute_summaries,
    compute_summary,
    period_start,
    totals_by_category,
)


NOW = datetime(2024, 1, 15, 14, 30)


def expense(expense_id, amount, on, category=ExpenseCategory.FOOD):
    return Expense(
        id=expense_id,
        amount=Decimal(amount),
        description=f"item {expense_id}",
        category=category,
        date=on,
    )


@pytest.fixture
def expenses():
    return [
        expense("today", "10", date(2024, 1, 15)),
        expense("yesterday", "5", date(2024, 1, 14), ExpenseCategory.TRANSPORT),
        expense("week_edge", "7", date(2024, 1, 8)),
        expense("early_month", "20", date(2024, 1, 2), ExpenseCategory.RENT),
        expense("last_month", "100", date(2023, 12, 31)),
        expense("future", "1000", date(2024, 1, 16)),
    ]


class TestPeriodStart:
    """Tests for window boundaries."""

    def test_today_is_local_midnight(self):
        assert period_start(SummaryPeriod.TODAY, NOW) == datetime(2024, 1, 15)

    def test_week_is_rolling_seven_days(self):
        assert period_start(SummaryPeriod.WEEK, NOW) == datetime(2024, 1, 8, 14, 30)

    def test_month_is_first_of_month(self):
        assert period_start(SummaryPeriod.MONTH, NOW) == datetime(2024, 1, 1)


class TestComputeSummary:
    """Tests for window sums."""

    def test_today(self, expenses):
        """Test that only today's records count."""
        assert compute_summary(expenses, SummaryPeriod.TODAY, NOW) == Decimal("10")

    def test_week_excludes_day_before_rolling_start(self, expenses):
        """Test that a date's midnight must fall inside the 7x24h window."""
        assert compute_summary(expenses, SummaryPeriod.WEEK, NOW) == Decimal("15")

    def test_month(self, expenses):
        """Test the calendar month window."""
        assert compute_summary(expenses, SummaryPeriod.MONTH, NOW) == Decimal("42")

    def test_future_dates_never_count(self, expenses):
        """Test that records dated after today are excluded."""
        totals = compute_summaries(expenses, NOW)
        assert all(total < Decimal("1000") for total in totals.values())

    def test_empty(self):
        """Test sums over no records."""
        assert compute_summary([], SummaryPeriod.MONTH, NOW) == Decimal("0")

    def test_windows_nest(self, expenses):
        """Test today <= week <= month when the windows nest."""
        totals = compute_summaries(expenses, NOW)
        assert totals[SummaryPeriod.TODAY] <= totals[SummaryPeriod.WEEK] <= totals[SummaryPeriod.MONTH]


class TestTotalsByCategory:
    """Tests for the chart data."""

    def test_every_category_present(self, expenses):
        """Test that unused categories report zero."""
        totals = totals_by_category(expenses)
        assert set(totals) == set(ExpenseCategory)
        assert totals[ExpenseCategory.ENTERTAINMENT] == Decimal("0")
        assert totals[ExpenseCategory.RENT] == Decimal("20")
        assert totals[ExpenseCategory.TRANSPORT] == Decimal("5")
