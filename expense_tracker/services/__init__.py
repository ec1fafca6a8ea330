"""Services package."""

from expense_tracker.services.storage import (
    AuditStorageInterface,
    ExpenseStorageInterface,
    InMemoryAuditStorage,
    InMemoryExpenseStorage,
    JsonFileExpenseStorage,
    JsonLinesAuditStorage,
    NotFoundError,
    StorageCorruptError,
    StorageError,
)

__all__ = [
    # Storage services
    "AuditStorageInterface",
    "ExpenseStorageInterface",
    "InMemoryAuditStorage",
    "InMemoryExpenseStorage",
    "JsonFileExpenseStorage",
    "JsonLinesAuditStorage",
    "NotFoundError",
    "StorageCorruptError",
    "StorageError",
]
