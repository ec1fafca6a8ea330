"""
Data Models Package

This package contains all Pydantic models used in the Expense Tracker.
All data flowing between the ledger, the engines and the presenter
must conform to these schemas.
"""

from expense_tracker.models.expense import (
    Expense,
    ExpenseCategory,
    ExpenseInput,
    MalformedInputError,
    ValidationIssue,
    dump_json,
)
from expense_tracker.models.criteria import (
    Criteria,
    SortKey,
    View,
)
from expense_tracker.models.metrics import (
    CategoryTotal,
    Metrics,
    MonthlyTotal,
)
from expense_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Expense models
    "Expense",
    "ExpenseCategory",
    "ExpenseInput",
    "MalformedInputError",
    "ValidationIssue",
    "dump_json",
    # View models
    "Criteria",
    "SortKey",
    "View",
    # Metrics models
    "CategoryTotal",
    "Metrics",
    "MonthlyTotal",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
