"""
Integration tests for the expense dashboard.

The dashboard is wired to in-memory storage and a fixed clock, so
every test sees the same "now".
"""

from datetime import date
from decimal import Decimal

import pytest

from conftest import FIXED_NOW, make_expense
from expense_tracker.exports import ExportFormat
from expense_tracker.ledger import Ledger
from expense_tracker.models.audit import AuditEventType
from expense_tracker.models.criteria import Criteria, SortKey
from expense_tracker.models.expense import ExpenseCategory, MalformedInputError
from expense_tracker.orchestrator import (
    CreateExpense,
    DeleteExpense,
    ExpenseDashboard,
    create_dashboard,
)
from expense_tracker.services.storage import InMemoryExpenseStorage, NotFoundError, StorageError


def form(description="Coffee", amount="4", category="Food & Dining", day="2024-01-10"):
    return {"description": description, "amount": amount, "category": category, "date": day}


class FlakyStorage(InMemoryExpenseStorage):
    """Storage that fails the next `failures` saves."""

    def __init__(self):
        super().__init__()
        self.failures = 0

    def save(self, expenses):
        if self.failures:
            self.failures -= 1
            raise StorageError("disk full")
        super().save(expenses)


@pytest.fixture
def dashboard(ledger, audit_logger) -> ExpenseDashboard:
    return ExpenseDashboard(ledger, clock=lambda: FIXED_NOW, audit_logger=audit_logger)


@pytest.fixture
def seeded(two_expenses, audit_logger) -> ExpenseDashboard:
    storage = InMemoryExpenseStorage()
    storage.save(list(reversed(two_expenses)))
    ledger = Ledger(storage, audit_logger=audit_logger)
    return ExpenseDashboard(ledger, clock=lambda: FIXED_NOW, audit_logger=audit_logger)


class TestInitialState:
    """Tests for the state right after construction."""

    def test_default_criteria_is_current_month(self, dashboard):
        """Test that the first view covers the current month."""
        criteria = dashboard.criteria
        assert criteria.date_from == date(2024, 1, 1)
        assert criteria.date_to == date(2024, 1, 31)
        assert criteria.page == 1

    def test_empty_state(self, dashboard):
        """Test the state of an empty ledger."""
        state = dashboard.state
        assert state.view.items == ()
        assert state.view.total_pages == 1
        assert state.metrics.top_category is None
        assert state.ledger_size == 0
        assert state.computed_at == FIXED_NOW

    def test_seeded_state(self, seeded):
        """Test view and metrics over the two-expense ledger."""
        state = seeded.state
        assert [e.id for e in state.view.items] == [2, 1]
        assert state.metrics.total_spend == Decimal("150")
        assert state.metrics.top_category == ExpenseCategory.FOOD_AND_DINING


class TestCommands:
    """Tests for ledger commands through the dashboard."""

    def test_create_refreshes_view(self, dashboard):
        """Test that a new expense appears immediately."""
        expense = dashboard.create_expense(form())
        assert dashboard.state.view.items == (expense,)
        assert dashboard.state.metrics.total_spend == Decimal("4")

    def test_update_refreshes_metrics(self, seeded):
        """Test that an edit is reflected in the metrics."""
        seeded.update_expense(2, form(description="Train", amount="500", category="Travel", day="2024-01-20"))
        assert seeded.state.metrics.top_category == ExpenseCategory.TRAVEL

    def test_delete(self, seeded):
        seeded.delete_expense(1)
        assert [e.id for e in seeded.state.view.items] == [2]

    def test_delete_all(self, seeded):
        seeded.delete_all()
        assert seeded.state.ledger_size == 0
        assert seeded.state.metrics.total_spend == 0

    def test_missing_expense_propagates_and_is_audited(self, dashboard, audit_storage):
        """Test that NotFoundError reaches the caller and is logged."""
        with pytest.raises(NotFoundError):
            dashboard.delete_expense(42)
        event = audit_storage.events[-1]
        assert event.event_type == AuditEventType.COMMAND_FAILED
        assert event.entity_id == 42

    def test_storage_failure_propagates_and_is_audited(self, audit_logger, audit_storage):
        """Test that a failed save reaches the caller and is logged."""
        storage = FlakyStorage()
        ledger = Ledger(storage, audit_logger=audit_logger)
        dashboard = ExpenseDashboard(ledger, clock=lambda: FIXED_NOW, audit_logger=audit_logger)

        storage.failures = 1
        with pytest.raises(StorageError):
            dashboard.create_expense(form())

        assert audit_storage.events[-1].event_type == AuditEventType.COMMAND_FAILED
        assert dashboard.state.ledger_size == 0
        assert dashboard.create_expense(form()).id == 1

    def test_malformed_input_propagates(self, dashboard):
        """Test that invalid form data is rejected."""
        with pytest.raises(MalformedInputError):
            dashboard.create_expense(form(amount=""))
        assert dashboard.state.ledger_size == 0


class TestReentrantCommands:
    """Tests for commands dispatched while the view is recomputed."""

    def test_command_from_listener_is_applied_after_refresh(self, dashboard):
        """Test that a listener's command is queued, then reflected."""
        seen_sizes = []

        def listener(state):
            seen_sizes.append(state.ledger_size)
            if state.ledger_size == 1:
                assert dashboard.dispatch(CreateExpense(data=form(description="Follow-up"))) is None

        dashboard.subscribe(listener)
        dashboard.create_expense(form(description="First"))

        assert seen_sizes == [1, 2]
        assert dashboard.state.ledger_size == 2
        assert dashboard.state.view.items[0].description == "Follow-up"

    def test_failed_queued_command_is_deferred(self, dashboard):
        """Test that a failing queued command is reported, not raised."""
        dispatched = []

        def listener(state):
            if state.ledger_size == 1 and not dispatched:
                dispatched.append(True)
                dashboard.dispatch(DeleteExpense(expense_id=99))

        dashboard.subscribe(listener)
        dashboard.create_expense(form())

        errors = dashboard.take_deferred_errors()
        assert len(errors) == 1
        assert errors[0].command == "DeleteExpense"
        assert errors[0].expense_id == 99
        assert dashboard.take_deferred_errors() == []

    def test_failed_save_of_queued_command_is_deferred(self, audit_logger, audit_storage):
        """Test that a queued command whose save fails does not block the rest."""
        storage = FlakyStorage()
        ledger = Ledger(storage, audit_logger=audit_logger)
        dashboard = ExpenseDashboard(ledger, clock=lambda: FIXED_NOW, audit_logger=audit_logger)
        dispatched = []

        def listener(state):
            if state.ledger_size == 1 and not dispatched:
                dispatched.append(True)
                storage.failures = 1
                dashboard.dispatch(CreateExpense(data=form(description="Lost")))
                dashboard.dispatch(CreateExpense(data=form(description="Kept")))

        dashboard.subscribe(listener)
        dashboard.create_expense(form(description="First"))

        errors = dashboard.take_deferred_errors()
        assert [error.command for error in errors] == ["CreateExpense"]
        assert "disk full" in errors[0].message
        assert [e.description for e in dashboard.state.view.items] == ["Kept", "First"]
        assert any(e.event_type == AuditEventType.COMMAND_FAILED for e in audit_storage.events)

    def test_criteria_change_from_listener(self, seeded):
        """Test that a criteria change during refresh is not lost."""
        def listener(state):
            if state.criteria.search_term == "":
                seeded.update_criteria(search_term="lunch")

        seeded.subscribe(listener)
        seeded.refresh()

        assert seeded.criteria.search_term == "lunch"
        assert [e.id for e in seeded.state.view.items] == [1]


class TestCriteriaChanges:
    """Tests for filters, sorting and paging."""

    @pytest.fixture
    def paged(self, audit_logger):
        storage = InMemoryExpenseStorage()
        storage.save([
            make_expense(i, str(i), ExpenseCategory.OTHER, date(2024, 1, 1 + i % 28))
            for i in range(23, 0, -1)
        ])
        ledger = Ledger(storage, audit_logger=audit_logger)
        return ExpenseDashboard(ledger, clock=lambda: FIXED_NOW, audit_logger=audit_logger)

    def test_update_criteria_resets_page(self, paged):
        """Test that a filter change jumps back to page 1."""
        paged.change_page(1)
        assert paged.criteria.page == 2
        paged.update_criteria(sort_key=SortKey.AMOUNT_ASC)
        assert paged.criteria.page == 1
        assert paged.state.view.items[0].amount == Decimal("1")

    def test_change_page_stays_in_range(self, paged):
        """Test that paging beyond either end is ignored."""
        paged.change_page(-1)
        assert paged.criteria.page == 1
        paged.change_page(1)
        paged.change_page(1)
        paged.change_page(1)
        assert paged.criteria.page == 3
        assert len(paged.state.view.items) == 3

    def test_page_is_clamped_after_delete(self, paged):
        """Test that emptying the last page moves back a page."""
        paged.change_page(2)
        assert paged.criteria.page == 3
        for expense in paged.state.view.items:
            paged.delete_expense(expense.id)
        assert paged.criteria.page == 2
        assert paged.state.view.page == 2
        assert len(paged.state.view.items) == 10

    def test_reset_filters(self, seeded):
        """Test that reset goes back to the default criteria."""
        seeded.update_criteria(search_term="zzz", sort_key=SortKey.DESCRIPTION)
        assert seeded.state.view.items == ()
        seeded.reset_filters()
        assert seeded.criteria == seeded.default_criteria()
        assert len(seeded.state.view.items) == 2

    def test_metrics_follow_filter(self, seeded):
        """Test that metrics are computed from the filtered expenses."""
        seeded.update_criteria(active_categories=frozenset({ExpenseCategory.TRAVEL}))
        metrics = seeded.state.metrics
        assert metrics.total_spend == Decimal("50")
        assert metrics.matched_count == 1

    def test_set_criteria(self, seeded):
        seeded.set_criteria(Criteria(min_amount=Decimal("60")))
        assert [e.id for e in seeded.state.view.items] == [1]


class TestExport:
    """Tests for exporting through the dashboard."""

    def test_export_uses_filtered_table_order(self, seeded):
        """Test that export covers every match, not just the current page."""
        seeded.update_criteria(sort_key=SortKey.AMOUNT_ASC, page_size=1)
        payload = seeded.export(ExportFormat.CSV)
        lines = payload.content.splitlines()
        assert [line.split(",")[0] for line in lines[1:]] == ["2", "1"]
        assert payload.filename == "expenses_2024-01-25.csv"

    def test_export_is_audited_only_when_recorded(self, seeded, audit_storage):
        """Test the record flag."""
        before = len(audit_storage.events)
        payload = seeded.export("json", record=False)
        assert len(audit_storage.events) == before

        seeded.record_export(payload)
        event = audit_storage.events[-1]
        assert event.event_type == AuditEventType.EXPORT_GENERATED
        assert event.details["format"] == "json"
        assert event.details["expense_count"] == 2


class TestCreateDashboard:
    """Tests for the settings-driven factory."""

    def test_create_dashboard_from_settings(self, tmp_path, monkeypatch):
        """Test that the factory wires storage from environment settings."""
        from expense_tracker.config import get_settings

        monkeypatch.setenv("EXPENSE_TRACKER_STORAGE_DATA_DIR", str(tmp_path))
        monkeypatch.setenv("DEFAULT_PAGE_SIZE", "5")
        get_settings.cache_clear()
        try:
            dashboard = create_dashboard(clock=lambda: FIXED_NOW)
            dashboard.create_expense(form())
            assert (tmp_path / "expenses.json").exists()
            assert (tmp_path / "audit.jsonl").exists()
            assert dashboard.criteria.page_size == 5
        finally:
            get_settings.cache_clear()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
