"""
Aggregate Metrics Models

Metrics are derived from the current filtered expenses (plus the full
ledger for the previous-month comparison). They are recomputed after
every view recomputation and never stored.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from expense_tracker.models.expense import ExpenseCategory


class MonthlyTotal(BaseModel):
    """Spending in one calendar month (one bar of the trend chart)."""
    model_config = ConfigDict(frozen=True)

    year: int
    month: int = Field(..., ge=1, le=12)
    label: str = Field(..., description="Short label, e.g. 'Jan 2024'")
    total: Decimal


class CategoryTotal(BaseModel):
    """Spending in one category (one slice of the breakdown chart)."""
    model_config = ConfigDict(frozen=True)

    category: ExpenseCategory
    total: Decimal


class Metrics(BaseModel):
    """
    Dashboard summary figures.

    month_change_percent is None when the previous month had no
    spending, since no meaningful percentage exists.
    """
    model_config = ConfigDict(frozen=True)

    total_spend: Decimal = Field(
        default=Decimal("0"),
        description="Sum of filtered amounts"
    )
    month_spend: Decimal = Field(
        default=Decimal("0"),
        description="Filtered spending in the reference month"
    )
    month_change_percent: Optional[float] = Field(
        default=None,
        description="Change against the previous month's unfiltered spending"
    )
    top_category: Optional[ExpenseCategory] = Field(
        default=None,
        description="Category with the largest filtered total"
    )
    top_category_amount: Decimal = Field(
        default=Decimal("0"),
        description="Total of the top category"
    )
    recent_count: int = Field(
        default=0,
        ge=0,
        description="Filtered expenses within the recent window"
    )
    matched_count: int = Field(
        default=0,
        ge=0,
        description="Number of filtered expenses before pagination"
    )

    # Chart and preview data
    monthly_trend: tuple[MonthlyTotal, ...] = Field(
        default=(),
        description="Filtered spending per month, oldest first"
    )
    category_totals: tuple[CategoryTotal, ...] = Field(
        default=(),
        description="Filtered spending per category, in first-seen order"
    )
    earliest_date: Optional[date] = None
    latest_date: Optional[date] = None
