"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep the ledger decoupled from where its data lives
2. Use in-memory storage for testing
3. Swap the JSON file for a database later

The expense interface mirrors a key/value store: the whole collection
is loaded once and saved in full after every mutation.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from expense_tracker.models.audit import AuditEvent
from expense_tracker.models.expense import Expense


class ExpenseStorageInterface(ABC):
    """
    Abstract interface for expense persistence.

    Any storage implementation must implement these methods.
    Both calls are synchronous.
    """

    @abstractmethod
    def load(self) -> list[Expense]:
        """
        Load the full expense collection in storage order.

        Returns:
            The stored expenses, or an empty list if nothing was saved yet

        Raises:
            StorageCorruptError: If the stored payload cannot be decoded
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def save(self, expenses: Sequence[Expense]) -> None:
        """
        Replace the stored collection with the given expenses.

        Args:
            expenses: The full collection in storage order

        Raises:
            StorageError: If the write fails
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageCorruptError(StorageError):
    """Stored payload exists but is not a valid expense collection."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass
