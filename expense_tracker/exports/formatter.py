"""
Export Formatter

Serializes the currently filtered expenses as JSON or CSV. Only the
payload is produced here; saving it to a file is the presenter's job.

File names follow expenses_<YYYY-MM-DD>.<ext> so exports from older
versions sort and match alongside new ones.
"""

import csv
import io
from collections.abc import Sequence
from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from expense_tracker.models.expense import Expense, dump_json


CSV_HEADER = ["ID", "Date", "Description", "Category", "Location", "Amount"]


class ExportFormat(str, Enum):
    """Supported export formats."""
    JSON = "json"
    CSV = "csv"

    @property
    def media_type(self) -> str:
        return "application/json" if self is ExportFormat.JSON else "text/csv"


class ExportPayload(BaseModel):
    """A ready-to-save export."""
    model_config = ConfigDict(frozen=True)

    filename: str = Field(..., description="Suggested file name")
    content: str = Field(..., description="Serialized expenses")
    media_type: str = Field(..., description="MIME type for the download")
    expense_count: int = Field(..., ge=0)


class ExportFormatter:
    """
    Pure serializers for expense exports.

    Neither method reads the clock; the export time is passed in.
    """

    def to_json(self, records: Sequence[Expense], now: datetime) -> str:
        """
        Serialize as a JSON document.

        Shape (in this key order):
            exportDate, total, totalAmount, expenses
        """
        total_amount = sum((expense.amount for expense in records), Decimal("0"))
        payload = {
            "exportDate": now.isoformat(),
            "total": len(records),
            "totalAmount": total_amount,
            "expenses": [expense.to_record() for expense in records],
        }
        return dump_json(payload, indent=2)

    def to_csv(self, records: Sequence[Expense]) -> str:
        """
        Serialize as CSV with standard quoting.

        Fields containing a comma, quote or newline are quoted and
        embedded quotes are doubled.
        """
        buffer = io.StringIO()
        writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
        writer.writerow(CSV_HEADER)
        for expense in records:
            writer.writerow([
                expense.id,
                expense.date.isoformat(),
                expense.description,
                expense.category.value,
                expense.location or "",
                format(expense.amount, "f"),
            ])
        return buffer.getvalue()

    @staticmethod
    def filename(export_format: ExportFormat, now: datetime) -> str:
        return f"expenses_{now.date().isoformat()}.{ExportFormat(export_format).value}"

    def export(
        self,
        export_format: ExportFormat,
        records: Sequence[Expense],
        now: datetime,
    ) -> ExportPayload:
        """Build the payload for one format."""
        export_format = ExportFormat(export_format)
        if export_format is ExportFormat.JSON:
            content = self.to_json(records, now)
        else:
            content = self.to_csv(records)

        return ExportPayload(
            filename=self.filename(export_format, now),
            content=content,
            media_type=export_format.media_type,
            expense_count=len(records),
        )
