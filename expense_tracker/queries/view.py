"""
View Engine

DESIGN DECISION: View evaluation is a PURE function of a ledger
snapshot and a Criteria. Calling it twice with the same inputs gives
the same View; nothing here reads the clock or touches storage.

Pipeline, strictly in this order:
1. Filter   - search term, date range, amount range, categories
2. Sort     - stable, so storage order breaks ties
3. Paginate - slice out the requested page
"""

import math
from collections.abc import Callable, Iterable, Sequence
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from expense_tracker.models.criteria import Criteria, SortKey, View
from expense_tracker.models.expense import Expense


# Sort key function and direction for each ordering
_SORT_KEYS: dict[SortKey, tuple[Callable[[Expense], Any], bool]] = {
    SortKey.DATE_ASC: (lambda e: e.date, False),
    SortKey.DATE_DESC: (lambda e: e.date, True),
    SortKey.AMOUNT_ASC: (lambda e: e.amount, False),
    SortKey.AMOUNT_DESC: (lambda e: e.amount, True),
    SortKey.CATEGORY: (lambda e: e.category.value, False),
    SortKey.DESCRIPTION: (lambda e: e.description.casefold(), False),
}


def total_pages_for(total_matched: int, page_size: int) -> int:
    """Page count for a result size; at least 1 so an empty view has a page."""
    return max(1, math.ceil(total_matched / page_size))


def clamp_page(criteria: Criteria, total_pages: int) -> Criteria:
    """
    Pull an out-of-range page back to the last page.

    The engine itself never clamps; callers use this before evaluating.
    """
    if criteria.page > total_pages:
        return criteria.with_page(total_pages)
    return criteria


class ViewEngine:
    """
    Turns a ledger snapshot and a Criteria into a View.

    GUARANTEES:
    - Never raises on well-formed input
    - Expenses whose amount or date cannot be compared are excluded
    - total_matched does not depend on page or page_size
    """

    def evaluate(self, records: Sequence[Expense], criteria: Criteria) -> View:
        """Filter, sort and paginate in one step."""
        return self.paginate(self.sort(self.filter(records, criteria), criteria.sort_key), criteria)

    def filter(self, records: Iterable[Expense], criteria: Criteria) -> list[Expense]:
        """
        Keep the expenses that pass every active filter, in storage order.

        This is also the input to the metrics engine.
        """
        term = criteria.search_term.strip().casefold()
        categories = criteria.active_categories

        return [
            expense for expense in records
            if self._matches_term(expense, term)
            and self._in_range(expense.date, criteria.date_from, criteria.date_to)
            and self._amount_in_range(expense.amount, criteria.min_amount, criteria.max_amount)
            and expense.category in categories
        ]

    def sort(self, records: Iterable[Expense], sort_key: SortKey) -> list[Expense]:
        """Stable sort; unknown keys fall back to newest first."""
        key, reverse = _SORT_KEYS.get(sort_key, _SORT_KEYS[SortKey.DATE_DESC])
        # sorted() keeps ties in input order even with reverse=True
        return sorted(records, key=key, reverse=reverse)

    def paginate(self, ordered: Sequence[Expense], criteria: Criteria) -> View:
        """
        Slice out the requested page.

        A page past the end gives an empty page rather than an error.
        """
        total_matched = len(ordered)
        start = (criteria.page - 1) * criteria.page_size
        return View(
            items=tuple(ordered[start:start + criteria.page_size]),
            total_matched=total_matched,
            total_pages=total_pages_for(total_matched, criteria.page_size),
            page=criteria.page,
        )

    @staticmethod
    def _matches_term(expense: Expense, term: str) -> bool:
        if not term:
            return True
        if term in expense.description.casefold():
            return True
        return bool(expense.location) and term in expense.location.casefold()

    @staticmethod
    def _in_range(value: Any, low: Optional[Any], high: Optional[Any]) -> bool:
        # The date_to bound is a whole calendar day, so <= covers end-of-day
        try:
            if low is not None and value < low:
                return False
            if high is not None and value > high:
                return False
        except TypeError:
            return False
        return True

    @classmethod
    def _amount_in_range(
        cls,
        amount: Any,
        low: Optional[Decimal],
        high: Optional[Decimal],
    ) -> bool:
        try:
            return cls._in_range(amount, low, high)
        except InvalidOperation:
            # NaN never matches
            return False
