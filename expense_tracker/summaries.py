"""
Spending Summaries

Pure read-side computations over the working set. Nothing is cached;
the UI recomputes on every render.

Windows (local, naive time):
- today: start of the local day through now
- week:  rolling 7 x 24 hours ending now
- month: start of the local month through now

A record's date counts as local midnight of that day. Records dated
after today are never counted.
"""

from collections.abc import Iterable
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from typing import Optional

from expense_tracker.models import Expense, ExpenseCategory


class SummaryPeriod(str, Enum):
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"


def period_start(period: SummaryPeriod, now: datetime) -> datetime:
    """Inclusive lower bound of the window ending at `now`."""
    if period == SummaryPeriod.TODAY:
        return now.replace(hour=0, minute=0, second=0, microsecond=0)
    if period == SummaryPeriod.WEEK:
        return now - timedelta(days=7)
    if period == SummaryPeriod.MONTH:
        return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    raise ValueError(f"Unknown summary period: {period}")


def _in_window(expense_date: date, start: datetime, today: date) -> bool:
    return expense_date <= today and datetime.combine(expense_date, time.min) >= start


def compute_summary(
    expenses: Iterable[Expense],
    period: SummaryPeriod,
    now: Optional[datetime] = None,
) -> Decimal:
    """Total amount spent in one window."""
    now = now or datetime.now()
    start = period_start(period, now)
    today = now.date()
    return sum(
        (e.amount for e in expenses if _in_window(e.date, start, today)),
        Decimal("0"),
    )


def compute_summaries(
    expenses: Iterable[Expense],
    now: Optional[datetime] = None,
) -> dict[SummaryPeriod, Decimal]:
    """All three windows against the same `now`."""
    now = now or datetime.now()
    expenses = list(expenses)
    return {
        period: compute_summary(expenses, period, now)
        for period in SummaryPeriod
    }


def totals_by_category(expenses: Iterable[Expense]) -> dict[ExpenseCategory, Decimal]:
    """Sum per category; every category is present, zero when unused."""
    totals = {category: Decimal("0") for category in ExpenseCategory}
    for expense in expenses:
        totals[expense.category] += expense.amount
    return totals
