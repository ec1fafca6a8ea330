"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Currently implements a local JSON file backend, but designed to be swappable.
"""

from expense_tracker.services.storage.interface import (
    AuditStorageInterface,
    ExpenseStorageInterface,
    NotFoundError,
    StorageCorruptError,
    StorageError,
)
from expense_tracker.services.storage.codec import (
    decode_expenses,
    encode_expenses,
)
from expense_tracker.services.storage.json_file import (
    JsonFileExpenseStorage,
    JsonLinesAuditStorage,
)
from expense_tracker.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryExpenseStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "ExpenseStorageInterface",
    # Exceptions
    "NotFoundError",
    "StorageCorruptError",
    "StorageError",
    # Codec
    "decode_expenses",
    "encode_expenses",
    # Implementations
    "InMemoryAuditStorage",
    "InMemoryExpenseStorage",
    "JsonFileExpenseStorage",
    "JsonLinesAuditStorage",
]
