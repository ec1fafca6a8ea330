"""
JSON File Storage Implementation

DESIGN DECISION: A single JSON file per storage key is the local
equivalent of a browser's key/value storage:
1. No database setup required
2. The user can open and back up the file directly
3. The persisted shape stays a plain JSON array of expenses

Saves write to a temporary file and atomically replace the target,
so a crash mid-write never leaves a half-written ledger behind.
The audit log is a separate append-only JSON-lines file.
"""

import json
import os
from collections import deque
from collections.abc import Sequence
from pathlib import Path

from pydantic import ValidationError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from expense_tracker.models.audit import AuditEvent
from expense_tracker.models.expense import Expense
from expense_tracker.services.storage.codec import decode_expenses, encode_expenses
from expense_tracker.services.storage.interface import (
    AuditStorageInterface,
    ExpenseStorageInterface,
    StorageCorruptError,
    StorageError,
)


class JsonFileExpenseStorage(ExpenseStorageInterface):
    """
    Stores the expense collection as <data_dir>/<key>.json.
    """

    def __init__(self, data_dir: Path, key: str = "expenses"):
        self._path = Path(data_dir) / f"{key}.json"

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> list[Expense]:
        """Load expenses; a missing file means an empty ledger."""
        if not self._path.exists():
            return []
        try:
            text = self._path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise StorageCorruptError(f"{self._path} is not valid UTF-8: {e}") from e
        except OSError as e:
            raise StorageError(f"Failed to read {self._path}: {e}") from e
        if not text.strip():
            return []
        return decode_expenses(text)

    def save(self, expenses: Sequence[Expense]) -> None:
        """Replace the stored collection."""
        try:
            self._write(encode_expenses(expenses))
        except OSError as e:
            raise StorageError(f"Failed to save expenses to {self._path}: {e}") from e

    @retry(
        retry=retry_if_exception_type(OSError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
        reraise=True,
    )
    def _write(self, text: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        tmp_path.write_text(text, encoding="utf-8")
        os.replace(tmp_path, self._path)


class JsonLinesAuditStorage(AuditStorageInterface):
    """
    Append-only audit log, one JSON object per line.
    """

    def __init__(self, path: Path):
        self._path = Path(path)

    @retry(
        retry=retry_if_exception_type(OSError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
        reraise=True,
    )
    def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event to the log file."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("a", encoding="utf-8") as f:
            f.write(event.to_json_line() + "\n")
        return True

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """Read the newest events, skipping lines that cannot be parsed."""
        if not self._path.exists():
            return []
        try:
            with self._path.open(encoding="utf-8", errors="replace") as f:
                lines = deque(f, maxlen=limit)
        except OSError as e:
            raise StorageError(f"Failed to read audit log {self._path}: {e}") from e

        events = []
        for line in reversed(lines):
            if not line.strip():
                continue
            try:
                events.append(AuditEvent.model_validate(json.loads(line)))
            except (json.JSONDecodeError, ValidationError):
                continue  # Skip malformed lines
        return events
