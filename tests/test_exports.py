"""Tests for JSON and CSV export."""

import csv
import io
import json
from datetime import date
from decimal import Decimal

import pytest

from conftest import FIXED_NOW, make_expense
from expense_tracker.exports import CSV_HEADER, ExportFormat, ExportFormatter
from expense_tracker.models.expense import Expense, ExpenseCategory


@pytest.fixture
def formatter() -> ExportFormatter:
    return ExportFormatter()


class TestCsvExport:
    """Tests for the CSV serializer."""

    def test_header_only_for_no_expenses(self, formatter):
        """Test that an empty export still has the header row."""
        assert formatter.to_csv([]) == "ID,Date,Description,Category,Location,Amount\n"

    def test_row_layout(self, formatter, two_expenses):
        """Test column order and values."""
        lines = formatter.to_csv(two_expenses).splitlines()
        assert lines[0].split(",") == CSV_HEADER
        assert lines[1] == '1,2024-01-05,Lunch,Food & Dining,,100'
        assert lines[2] == '2,2024-01-20,Train ticket,Travel,,50'

    def test_quotes_are_doubled(self, formatter):
        """Test that a description with a comma and quotes is quoted correctly."""
        expense = make_expense(
            1, "9.99", ExpenseCategory.OTHER, date(2024, 1, 1),
            description='He said "hi", ok',
        )
        row = formatter.to_csv([expense]).splitlines()[1]
        assert row == '1,2024-01-01,"He said ""hi"", ok",Other,,9.99'

    def test_location_with_comma_is_quoted(self, formatter):
        """Test quoting in the location column."""
        expense = make_expense(
            1, "5", ExpenseCategory.SHOPPING, date(2024, 1, 1),
            description="Bag", location="Mall, Level 2",
        )
        assert '"Mall, Level 2"' in formatter.to_csv([expense])

    def test_csv_reads_back(self, formatter):
        """Test that a standard CSV reader recovers every field."""
        expense = make_expense(
            7, "12.50", ExpenseCategory.BILLS_AND_UTILITIES, date(2024, 1, 9),
            description='Line one\nline "two"', location="Home",
        )
        rows = list(csv.reader(io.StringIO(formatter.to_csv([expense]))))
        assert rows[1] == ["7", "2024-01-09", 'Line one\nline "two"', "Bills & Utilities", "Home", "12.50"]


class TestJsonExport:
    """Tests for the JSON serializer."""

    def test_document_shape(self, formatter, two_expenses):
        """Test the top-level keys and totals."""
        document = json.loads(formatter.to_json(two_expenses, FIXED_NOW))
        assert list(document) == ["exportDate", "total", "totalAmount", "expenses"]
        assert document["exportDate"] == "2024-01-25T14:30:00"
        assert document["total"] == 2
        assert document["totalAmount"] == 150
        assert document["expenses"][0] == {
            "id": 1,
            "description": "Lunch",
            "amount": 100,
            "category": "Food & Dining",
            "date": "2024-01-05",
            "location": None,
        }

    def test_expenses_parse_back(self, formatter, two_expenses):
        """Test that exported records validate as expenses again."""
        document = json.loads(formatter.to_json(two_expenses, FIXED_NOW), parse_float=Decimal)
        restored = [Expense.model_validate(record) for record in document["expenses"]]
        assert restored == two_expenses

    def test_amounts_keep_every_digit(self, formatter):
        """Test that JSON export writes precise amounts and totals exactly."""
        expense = make_expense(1, "0.12345678901234567890", ExpenseCategory.OTHER, date(2024, 1, 1))
        text = formatter.to_json([expense], FIXED_NOW)
        document = json.loads(text, parse_float=Decimal)
        assert document["expenses"][0]["amount"] == Decimal("0.12345678901234567890")
        assert document["totalAmount"] == Decimal("0.12345678901234567890")

    def test_empty_export(self, formatter):
        """Test exporting nothing."""
        document = json.loads(formatter.to_json([], FIXED_NOW))
        assert document["total"] == 0
        assert document["totalAmount"] == 0
        assert document["expenses"] == []

    def test_non_ascii_is_kept(self, formatter):
        """Test that descriptions are written as-is, not escaped."""
        expense = make_expense(1, "3", ExpenseCategory.FOOD_AND_DINING, date(2024, 1, 1), "Café")
        assert "Café" in formatter.to_json([expense], FIXED_NOW)


class TestExportPayload:
    """Tests for file names and payloads."""

    def test_filename(self, formatter):
        """Test the dated file name for each format."""
        assert formatter.filename(ExportFormat.JSON, FIXED_NOW) == "expenses_2024-01-25.json"
        assert formatter.filename(ExportFormat.CSV, FIXED_NOW) == "expenses_2024-01-25.csv"

    def test_export_csv_payload(self, formatter, two_expenses):
        """Test the CSV payload metadata."""
        payload = formatter.export(ExportFormat.CSV, two_expenses, FIXED_NOW)
        assert payload.media_type == "text/csv"
        assert payload.expense_count == 2
        assert payload.content.startswith("ID,Date")

    def test_export_accepts_format_string(self, formatter, two_expenses):
        """Test that the plain format name works too."""
        payload = formatter.export("json", two_expenses, FIXED_NOW)
        assert payload.media_type == "application/json"
        assert payload.filename.endswith(".json")

    def test_unknown_format(self, formatter):
        """Test that an unsupported format is rejected."""
        with pytest.raises(ValueError):
            formatter.export("xml", [], FIXED_NOW)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
