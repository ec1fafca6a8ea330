"""
View Criteria and View Models

Criteria is the complete filter/sort/page selection that drives a view.
It is immutable: every user input change produces a new Criteria.

View is the derived result of applying Criteria to a ledger snapshot.
It is never persisted and never mutated.
"""

import calendar
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from expense_tracker.models.expense import Expense, ExpenseCategory


DEFAULT_PAGE_SIZE = 10
DEFAULT_AMOUNT_CEILING = Decimal("1000000")


class SortKey(str, Enum):
    """Available table orderings."""
    DATE_ASC = "date-asc"
    DATE_DESC = "date-desc"
    AMOUNT_ASC = "amount-asc"
    AMOUNT_DESC = "amount-desc"
    CATEGORY = "category"
    DESCRIPTION = "description"


def all_categories() -> frozenset[ExpenseCategory]:
    return frozenset(ExpenseCategory)


class Criteria(BaseModel):
    """
    Active filter, sort and page selection.

    A None bound means "unbounded" on that side. An inverted range
    (from > to, min > max) is allowed and simply matches nothing.
    """
    model_config = ConfigDict(frozen=True)

    search_term: str = Field(
        default="",
        description="Case-insensitive substring of description or location"
    )
    date_from: Optional[date] = Field(
        default=None,
        description="Earliest expense date to include"
    )
    date_to: Optional[date] = Field(
        default=None,
        description="Latest expense date to include (whole day)"
    )
    min_amount: Optional[Decimal] = Field(
        default=None,
        allow_inf_nan=False,
        description="Smallest amount to include"
    )
    max_amount: Optional[Decimal] = Field(
        default=None,
        allow_inf_nan=False,
        description="Largest amount to include"
    )
    active_categories: frozenset[ExpenseCategory] = Field(
        default_factory=all_categories,
        description="Categories to include"
    )
    sort_key: SortKey = Field(
        default=SortKey.DATE_DESC,
        description="Table ordering"
    )
    page: int = Field(
        default=1,
        ge=1,
        description="1-based page number"
    )
    page_size: int = Field(
        default=DEFAULT_PAGE_SIZE,
        gt=0,
        description="Rows per page"
    )

    @classmethod
    def for_current_month(
        cls,
        today: date,
        amount_ceiling: Decimal = DEFAULT_AMOUNT_CEILING,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> "Criteria":
        """
        Initial filter state: the whole of today's month, every category,
        amounts from zero up to the ceiling, newest first.
        """
        last_day = calendar.monthrange(today.year, today.month)[1]
        return cls(
            date_from=today.replace(day=1),
            date_to=today.replace(day=last_day),
            min_amount=Decimal("0"),
            max_amount=amount_ceiling,
            page_size=page_size,
        )

    def with_changes(self, **changes: Any) -> "Criteria":
        """
        Return a new Criteria with the given fields replaced.

        Any change other than the page itself sends the view back to
        page 1. If nothing actually changes, self is returned.
        """
        current = self.model_dump()
        if all(current.get(name) == value for name, value in changes.items()):
            return self
        if "page" not in changes:
            changes["page"] = 1
        return type(self).model_validate({**current, **changes})

    def with_page(self, page: int) -> "Criteria":
        return self.with_changes(page=page)


class View(BaseModel):
    """The current page of the filtered, sorted expenses."""
    model_config = ConfigDict(frozen=True)

    items: tuple[Expense, ...] = Field(
        default=(),
        description="Expenses on the current page only"
    )
    total_matched: int = Field(
        ...,
        ge=0,
        description="Number of expenses passing the filter"
    )
    total_pages: int = Field(
        ...,
        ge=1,
        description="Page count, at least 1 even when nothing matched"
    )
    page: int = Field(
        ...,
        ge=1,
        description="Page these items belong to"
    )

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages
