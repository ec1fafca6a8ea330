"""
Core Expense Models

These models define the strict schemas for expense records:
1. ExpenseCategory - the fixed set of categories
2. ExpenseInput - user-supplied fields, validated before reaching the ledger
3. Expense - a stored record with a ledger-assigned ID

DESIGN DECISION: Expenses are immutable. An update replaces the record
at the same position with a copy that keeps its ID, so any snapshot
handed out earlier stays consistent.
"""

import datetime
import json
from collections.abc import Mapping
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)


# =============================================================================
# ENUMS
# =============================================================================

class ExpenseCategory(str, Enum):
    """
    Supported expense categories.

    The values are the display labels and are what gets persisted.
    """
    FOOD_AND_DINING = "Food & Dining"
    TRANSPORTATION = "Transportation"
    BILLS_AND_UTILITIES = "Bills & Utilities"
    SHOPPING = "Shopping"
    ENTERTAINMENT = "Entertainment"
    HEALTH_AND_FITNESS = "Health & Fitness"
    TRAVEL = "Travel"
    OTHER = "Other"


# =============================================================================
# VALIDATION ERRORS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single problem found in user input."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'decimal_parsing', 'date_from_datetime_parsing')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class MalformedInputError(ValueError):
    """
    Raised when create/update input cannot become a valid expense.

    Non-numeric amounts, unparsable dates and unknown categories all
    land here. Nothing is stored when this is raised.
    """

    def __init__(self, issues: list[ValidationIssue]):
        self.issues = issues
        summary = "; ".join(f"{issue.field}: {issue.message}" for issue in issues)
        super().__init__(f"Malformed expense input: {summary}")


# =============================================================================
# EXPENSE MODELS
# =============================================================================

class ExpenseInput(BaseModel):
    """
    The mutable fields of an expense, as entered by the user.

    Whitespace is stripped from strings and an empty location
    becomes None.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    description: str = Field(
        ...,
        max_length=500,
        description="What the money was spent on"
    )
    amount: Decimal = Field(
        ...,
        allow_inf_nan=False,
        description="Amount spent, stored exactly as given"
    )
    category: ExpenseCategory = Field(
        ...,
        description="One of the fixed expense categories"
    )
    date: datetime.date = Field(
        ...,
        description="Calendar date of the expense"
    )
    location: Optional[str] = Field(
        default=None,
        max_length=200,
        description="Where the expense happened"
    )

    @field_validator("location")
    @classmethod
    def empty_location_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    @classmethod
    def parse(cls, data: Union["ExpenseInput", Mapping[str, Any]]) -> "ExpenseInput":
        """
        Validate raw form data into an ExpenseInput.

        Raises:
            MalformedInputError: If any field is invalid
        """
        if isinstance(data, cls):
            return data
        try:
            return cls.model_validate(dict(data))
        except ValidationError as e:
            raise MalformedInputError([
                ValidationIssue(
                    field=".".join(str(part) for part in error["loc"]) or "__root__",
                    issue_type=error["type"],
                    message=error["msg"],
                )
                for error in e.errors()
            ]) from e


class Expense(BaseModel):
    """
    A single expense entry owned by the ledger.

    Field order matches the persisted and exported shape:
    id, description, amount, category, date, location.
    """
    model_config = ConfigDict(frozen=True)

    id: int = Field(
        ...,
        ge=1,
        description="Ledger-assigned identifier, unique and immutable"
    )
    description: str
    amount: Decimal = Field(..., allow_inf_nan=False)
    category: ExpenseCategory
    date: datetime.date
    location: Optional[str] = None

    @classmethod
    def from_input(cls, expense_id: int, data: ExpenseInput) -> "Expense":
        """Build a stored expense from validated input."""
        return cls(id=expense_id, **data.model_dump())

    def to_record(self) -> dict[str, Any]:
        """
        Convert to a dictionary for dump_json.

        Used for both persistence and export, so the key order here
        is the on-disk and exported field order. The amount stays a
        Decimal so no digits are lost on the way out.
        """
        return {
            "id": self.id,
            "description": self.description,
            "amount": self.amount,
            "category": self.category.value,
            "date": self.date.isoformat(),
            "location": self.location,
        }


# =============================================================================
# JSON OUTPUT
# =============================================================================

def dump_json(value: Any, indent: Optional[int] = None) -> str:
    """
    Serialize like json.dumps, writing Decimals as exact JSON numbers.

    json.dumps can only emit a Decimal as a float or a string; amounts
    must keep every digit and still be numbers in the output.
    """
    return _encode(value, indent, 0)


def _encode(value: Any, indent: Optional[int], level: int) -> str:
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise ValueError(f"Cannot write {value} as a JSON number")
        return format(value, "f")
    if isinstance(value, Mapping):
        items = [
            f"{json.dumps(str(key), ensure_ascii=False)}: {_encode(item, indent, level + 1)}"
            for key, item in value.items()
        ]
        return _wrap("{", "}", items, indent, level)
    if isinstance(value, (list, tuple)):
        items = [_encode(item, indent, level + 1) for item in value]
        return _wrap("[", "]", items, indent, level)
    return json.dumps(value, ensure_ascii=False)


def _wrap(opening: str, closing: str, items: list[str], indent: Optional[int], level: int) -> str:
    # Same layout json.dumps produces for the given indent
    if not items:
        return opening + closing
    if indent is None:
        return opening + ", ".join(items) + closing
    inner = "\n" + " " * (indent * (level + 1))
    outer = "\n" + " " * (indent * level)
    return opening + inner + ("," + inner).join(items) + outer + closing
