"""
Metrics Engine

Computes the dashboard summary from the filtered (not yet paginated)
expenses, the full ledger snapshot and an injected reference time.

DESIGN DECISION: The current month is measured on the FILTERED
expenses but the previous month on the FULL ledger. The comparison
answers "how does what I'm looking at compare to everything I spent
last month", and is kept that way on purpose.
"""

from collections.abc import Sequence
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Optional, Union

from expense_tracker.models.expense import Expense, ExpenseCategory
from expense_tracker.models.metrics import CategoryTotal, Metrics, MonthlyTotal


ZERO = Decimal("0")


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    """Move a (year, month) pair by delta months."""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def _as_datetime(now: Union[datetime, date]) -> datetime:
    if isinstance(now, datetime):
        return now
    return datetime.combine(now, time.min)


def _sum_amounts(expenses: Sequence[Expense]) -> Decimal:
    return sum((expense.amount for expense in expenses), ZERO)


def _in_month(expense: Expense, year: int, month: int) -> bool:
    return expense.date.year == year and expense.date.month == month


class MetricsEngine:
    """
    Pure aggregate calculations over expenses.

    Args:
        recent_window_days: How far back "recent" reaches from now
        trend_months: Number of months in the spending trend
    """

    def __init__(self, recent_window_days: int = 7, trend_months: int = 12):
        self._recent_window = timedelta(days=recent_window_days)
        self._trend_months = trend_months

    def compute(
        self,
        filtered: Sequence[Expense],
        ledger: Sequence[Expense],
        now: Union[datetime, date],
    ) -> Metrics:
        """
        Compute all metrics.

        Args:
            filtered: Expenses passing the current filter, in storage order
            ledger: Every expense in the ledger
            now: Reference time; a plain date means midnight of that day
        """
        now = _as_datetime(now)

        month_spend = self.month_spend(filtered, now.year, now.month)
        prev_year, prev_month = shift_month(now.year, now.month, -1)
        prev_month_spend = self.month_spend(ledger, prev_year, prev_month)

        category_totals = self.category_totals(filtered)
        top = self._top_category(category_totals)
        dates = [expense.date for expense in filtered]

        return Metrics(
            total_spend=_sum_amounts(filtered),
            month_spend=month_spend,
            month_change_percent=self.change_percent(month_spend, prev_month_spend),
            top_category=top.category if top else None,
            top_category_amount=top.total if top else ZERO,
            recent_count=self.recent_count(filtered, now),
            matched_count=len(filtered),
            monthly_trend=self.monthly_trend(filtered, now),
            category_totals=category_totals,
            earliest_date=min(dates) if dates else None,
            latest_date=max(dates) if dates else None,
        )

    def month_spend(self, expenses: Sequence[Expense], year: int, month: int) -> Decimal:
        return _sum_amounts([e for e in expenses if _in_month(e, year, month)])

    @staticmethod
    def change_percent(current: Decimal, previous: Decimal) -> Optional[float]:
        """Percentage change, or None when there is nothing to compare against."""
        if previous == 0:
            return None
        return float((current - previous) / previous * 100)

    def category_totals(self, expenses: Sequence[Expense]) -> tuple[CategoryTotal, ...]:
        """Per-category sums in first-encountered order."""
        totals: dict[ExpenseCategory, Decimal] = {}
        for expense in expenses:
            totals[expense.category] = totals.get(expense.category, ZERO) + expense.amount
        return tuple(
            CategoryTotal(category=category, total=total)
            for category, total in totals.items()
        )

    @staticmethod
    def _top_category(totals: Sequence[CategoryTotal]) -> Optional[CategoryTotal]:
        # Strictly greater, so the first-encountered category wins a tie
        top = None
        for entry in totals:
            if top is None or entry.total > top.total:
                top = entry
        return top

    def recent_count(self, expenses: Sequence[Expense], now: datetime) -> int:
        """Count expenses dated on or after now minus the recent window."""
        cutoff = now - self._recent_window
        return sum(
            1 for expense in expenses
            if datetime.combine(expense.date, time.min, tzinfo=now.tzinfo) >= cutoff
        )

    def monthly_trend(
        self,
        expenses: Sequence[Expense],
        now: datetime,
    ) -> tuple[MonthlyTotal, ...]:
        """Spending per month for the trend window ending with now's month."""
        trend = []
        for offset in range(self._trend_months - 1, -1, -1):
            year, month = shift_month(now.year, now.month, -offset)
            trend.append(MonthlyTotal(
                year=year,
                month=month,
                label=date(year, month, 1).strftime("%b %Y"),
                total=self.month_spend(expenses, year, month),
            ))
        return tuple(trend)
