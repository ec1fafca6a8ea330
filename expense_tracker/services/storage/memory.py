"""
In-Memory Storage Implementation

Holds the serialized collection in a dict keyed like browser local
storage. Used for tests and for sessions that should not touch disk.
Because it stores the encoded text rather than live objects, a corrupt
payload can be seeded to exercise the ledger's recovery path.
"""

from collections.abc import Sequence
from typing import Optional

from expense_tracker.models.audit import AuditEvent
from expense_tracker.models.expense import Expense
from expense_tracker.services.storage.codec import decode_expenses, encode_expenses
from expense_tracker.services.storage.interface import (
    AuditStorageInterface,
    ExpenseStorageInterface,
)


class InMemoryExpenseStorage(ExpenseStorageInterface):
    """Expense storage backed by a plain dict of JSON strings."""

    def __init__(self, key: str = "expenses", initial: Optional[str] = None):
        self._key = key
        self._items: dict[str, str] = {}
        self.save_count = 0
        if initial is not None:
            self._items[key] = initial

    @property
    def raw(self) -> Optional[str]:
        """The stored JSON text, if anything was saved."""
        return self._items.get(self._key)

    def load(self) -> list[Expense]:
        stored = self._items.get(self._key)
        return decode_expenses(stored) if stored else []

    def save(self, expenses: Sequence[Expense]) -> None:
        self._items[self._key] = encode_expenses(expenses)
        self.save_count += 1


class InMemoryAuditStorage(AuditStorageInterface):
    """Audit storage kept in a list."""

    def __init__(self):
        self.events: list[AuditEvent] = []

    def append_event(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return True

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self.events[-limit:]))
