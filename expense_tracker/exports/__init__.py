"""Export package."""

from expense_tracker.exports.formatter import (
    CSV_HEADER,
    ExportFormat,
    ExportFormatter,
    ExportPayload,
)

__all__ = ["CSV_HEADER", "ExportFormat", "ExportFormatter", "ExportPayload"]
