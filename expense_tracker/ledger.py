"""
Expense Ledger

The ledger is the single owner of the canonical expense collection.

GUARANTEES:
- IDs are assigned here, strictly increasing, never reused in a session
- Newest expenses sit at the front (storage order)
- Every mutation is followed by a full-collection save
- Invalid input is rejected before anything is stored
- Unreadable storage yields an empty ledger, never a crash
"""

from collections.abc import Mapping
from typing import Any, Optional, Union

from expense_tracker.audit import AuditLogger
from expense_tracker.models.expense import Expense, ExpenseInput
from expense_tracker.services.storage import (
    ExpenseStorageInterface,
    NotFoundError,
    StorageCorruptError,
    StorageError,
)


ExpenseData = Union[ExpenseInput, Mapping[str, Any]]


class Ledger:
    """
    Canonical, persisted collection of expenses.

    Callers get read-only snapshots from list(); only the ledger
    mutates the collection.
    """

    def __init__(
        self,
        storage: ExpenseStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._audit_logger = audit_logger or AuditLogger()
        self._expenses: list[Expense] = self._load()
        self._last_id = max((expense.id for expense in self._expenses), default=0)

    def _load(self) -> list[Expense]:
        try:
            expenses = self._storage.load()
        except StorageCorruptError as e:
            self._audit_logger.log_storage_corrupt(str(e))
            return []
        self._audit_logger.log_ledger_loaded(len(expenses))
        return list(expenses)

    def _persist(self, previous: list[Expense]) -> None:
        """Save the collection; on failure restore the previous state and re-raise."""
        try:
            self._storage.save(tuple(self._expenses))
        except StorageError:
            self._expenses = previous
            raise

    def _index_of(self, expense_id: int) -> int:
        for index, expense in enumerate(self._expenses):
            if expense.id == expense_id:
                return index
        raise NotFoundError(f"Expense not found: {expense_id}")

    def _next_id(self) -> int:
        # _last_id starts at the loaded maximum and only grows
        return self._last_id + 1

    def create(self, data: ExpenseData) -> Expense:
        """
        Add a new expense at the front of the ledger.

        Raises:
            MalformedInputError: If the input is invalid
            StorageError: If the save fails
        """
        expense_input = ExpenseInput.parse(data)
        expense = Expense.from_input(self._next_id(), expense_input)

        previous = list(self._expenses)
        self._expenses.insert(0, expense)
        self._persist(previous)
        self._last_id = expense.id

        self._audit_logger.log_expense_created(expense)
        return expense

    def update(self, expense_id: int, data: ExpenseData) -> Expense:
        """
        Replace every mutable field of an expense, keeping its id and position.

        Raises:
            NotFoundError: If no expense has this id
            MalformedInputError: If the input is invalid
        """
        index = self._index_of(expense_id)
        expense_input = ExpenseInput.parse(data)
        updated = Expense.from_input(expense_id, expense_input)

        previous = list(self._expenses)
        self._expenses[index] = updated
        self._persist(previous)

        self._audit_logger.log_expense_updated(updated)
        return updated

    def delete(self, expense_id: int) -> None:
        """
        Remove an expense.

        Raises:
            NotFoundError: If no expense has this id
        """
        index = self._index_of(expense_id)
        previous = list(self._expenses)
        del self._expenses[index]
        self._persist(previous)

        self._audit_logger.log_expense_deleted(expense_id)

    def delete_all(self) -> None:
        """Remove every expense."""
        previous = list(self._expenses)
        self._expenses = []
        self._persist(previous)

        self._audit_logger.log_ledger_cleared(len(previous))

    def get(self, expense_id: int) -> Expense:
        """
        Look up one expense, e.g. to pre-fill the edit form.

        Raises:
            NotFoundError: If no expense has this id
        """
        return self._expenses[self._index_of(expense_id)]

    def list(self) -> tuple[Expense, ...]:
        """Snapshot of all expenses in storage order (newest first)."""
        return tuple(self._expenses)

    def __len__(self) -> int:
        return len(self._expenses)
