"""
Expense collection codec.

The persisted shape is a JSON array of objects with the fields
id, description, amount, category, date, location.
"""

import json
from collections.abc import Sequence
from decimal import Decimal

from pydantic import ValidationError

from expense_tracker.models.expense import Expense, dump_json
from expense_tracker.services.storage.interface import StorageCorruptError


def encode_expenses(expenses: Sequence[Expense]) -> str:
    """Serialize the collection to its persisted JSON text."""
    return dump_json([expense.to_record() for expense in expenses])


def decode_expenses(text: str) -> list[Expense]:
    """
    Parse persisted JSON text back into expenses.

    Amounts are read as Decimal so they round-trip exactly.

    Raises:
        StorageCorruptError: On invalid JSON, a non-array payload,
            an invalid record, or duplicate ids
    """
    try:
        payload = json.loads(text, parse_float=Decimal)
    except json.JSONDecodeError as e:
        raise StorageCorruptError(f"Stored expenses are not valid JSON: {e}") from e

    if payload is None:
        return []
    if not isinstance(payload, list):
        raise StorageCorruptError(
            f"Stored expenses must be a JSON array, got {type(payload).__name__}"
        )

    expenses = []
    seen_ids = set()
    for index, record in enumerate(payload):
        try:
            expense = Expense.model_validate(record)
        except ValidationError as e:
            raise StorageCorruptError(f"Stored expense #{index} is invalid: {e}") from e
        if expense.id in seen_ids:
            raise StorageCorruptError(f"Stored expense id {expense.id} appears twice")
        seen_ids.add(expense.id)
        expenses.append(expense)

    return expenses
