"""Shared fixtures for the Expense Tracker tests."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from expense_tracker.audit import AuditLogger
from expense_tracker.ledger import Ledger
from expense_tracker.models.expense import Expense, ExpenseCategory
from expense_tracker.services.storage import InMemoryAuditStorage, InMemoryExpenseStorage


FIXED_NOW = datetime(2024, 1, 25, 14, 30)


def make_expense(
    expense_id: int,
    amount: str,
    category: ExpenseCategory,
    day: date,
    description: str = "Expense",
    location: str = None,
) -> Expense:
    return Expense(
        id=expense_id,
        description=description,
        amount=Decimal(amount),
        category=category,
        date=day,
        location=location,
    )


@pytest.fixture
def storage() -> InMemoryExpenseStorage:
    return InMemoryExpenseStorage()


@pytest.fixture
def audit_storage() -> InMemoryAuditStorage:
    return InMemoryAuditStorage()


@pytest.fixture
def audit_logger(audit_storage) -> AuditLogger:
    return AuditLogger(audit_storage)


@pytest.fixture
def ledger(storage, audit_logger) -> Ledger:
    return Ledger(storage, audit_logger=audit_logger)


@pytest.fixture
def two_expenses() -> list[Expense]:
    """The two-record scenario: lunch (100) and a train ticket (50)."""
    return [
        make_expense(1, "100", ExpenseCategory.FOOD_AND_DINING, date(2024, 1, 5), "Lunch"),
        make_expense(2, "50", ExpenseCategory.TRAVEL, date(2024, 1, 20), "Train ticket"),
    ]
