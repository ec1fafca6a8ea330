"""
Main Orchestrator for Expense Tracker

This module ties the components together for the presenter:
1. Commands (create / update / delete / delete all) → Ledger
2. Criteria changes (filters, sort, page) → new Criteria
3. After either: ViewEngine → View, MetricsEngine → Metrics
4. Export of the current filtered expenses

DESIGN DECISION: The dashboard enforces the boundaries:
- The presenter never touches the ledger collection directly
- Rendered rows hold only expense IDs; actions come back as commands
- View and Metrics always come from ONE ledger snapshot. A command
  dispatched while they are being recomputed (e.g. from a render
  listener) is queued and applied once the recomputation finishes.
"""

from collections import deque
from collections.abc import Callable
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from expense_tracker.audit import AuditLogger
from expense_tracker.config import get_settings
from expense_tracker.exports import ExportFormat, ExportFormatter, ExportPayload
from expense_tracker.ledger import Ledger
from expense_tracker.models.criteria import Criteria, View
from expense_tracker.models.expense import Expense, MalformedInputError
from expense_tracker.models.metrics import Metrics
from expense_tracker.queries import MetricsEngine, ViewEngine, clamp_page, total_pages_for
from expense_tracker.services.storage import (
    ExpenseStorageInterface,
    JsonFileExpenseStorage,
    JsonLinesAuditStorage,
    StorageError,
)


# =============================================================================
# COMMANDS
# =============================================================================

class CreateExpense(BaseModel):
    """Add a new expense from raw form data."""
    model_config = ConfigDict(frozen=True)

    data: dict[str, Any]


class UpdateExpense(BaseModel):
    """Replace the fields of an existing expense."""
    model_config = ConfigDict(frozen=True)

    expense_id: int
    data: dict[str, Any]


class DeleteExpense(BaseModel):
    """Remove one expense."""
    model_config = ConfigDict(frozen=True)

    expense_id: int


class DeleteAllExpenses(BaseModel):
    """Remove every expense."""
    model_config = ConfigDict(frozen=True)


LedgerCommand = Union[CreateExpense, UpdateExpense, DeleteExpense, DeleteAllExpenses]


class DeferredCommandError(BaseModel):
    """A queued command that failed when it was finally applied."""
    model_config = ConfigDict(frozen=True)

    command: str
    expense_id: Optional[int] = None
    message: str


class DashboardState(BaseModel):
    """Everything the presenter needs to render one frame."""
    model_config = ConfigDict(frozen=True)

    criteria: Criteria
    view: View
    metrics: Metrics
    matched: tuple[Expense, ...] = Field(
        default=(),
        description="All filtered expenses in table order (used for export)"
    )
    ledger_size: int = Field(default=0, ge=0)
    computed_at: datetime


StateListener = Callable[[DashboardState], None]


# =============================================================================
# DASHBOARD
# =============================================================================

class ExpenseDashboard:
    """
    Presenter-facing composition of Ledger, engines and Criteria.

    Flow:
    1. dispatch(command) or update_criteria(...)
    2. Ledger persists (for commands)
    3. refresh(): filter → sort → clamp page → paginate → metrics
    4. Listeners receive the new DashboardState

    StorageError (including NotFoundError) and MalformedInputError from a
    directly dispatched command are audited, then propagate to the caller
    so it can show a message. Failures of queued commands are collected
    for take_deferred_errors() instead.
    """

    def __init__(
        self,
        ledger: Ledger,
        criteria: Optional[Criteria] = None,
        clock: Optional[Callable[[], datetime]] = None,
        view_engine: Optional[ViewEngine] = None,
        metrics_engine: Optional[MetricsEngine] = None,
        export_formatter: Optional[ExportFormatter] = None,
        audit_logger: Optional[AuditLogger] = None,
        amount_ceiling: Decimal = Decimal("1000000"),
        page_size: int = 10,
    ):
        self._ledger = ledger
        self._clock = clock or datetime.now
        self._view_engine = view_engine or ViewEngine()
        self._metrics_engine = metrics_engine or MetricsEngine()
        self._export_formatter = export_formatter or ExportFormatter()
        self._audit_logger = audit_logger or AuditLogger()
        self._amount_ceiling = amount_ceiling
        self._page_size = page_size

        self._criteria = criteria or self.default_criteria()
        self._listeners: list[StateListener] = []
        self._pending: deque[LedgerCommand] = deque()
        self._deferred_errors: list[DeferredCommandError] = []
        self._refreshing = False
        self._criteria_dirty = False
        self._state: Optional[DashboardState] = None

        self.refresh()

    # -------------------------------------------------------------------------
    # State access
    # -------------------------------------------------------------------------

    @property
    def state(self) -> DashboardState:
        return self._state

    @property
    def criteria(self) -> Criteria:
        return self._criteria

    @property
    def ledger(self) -> Ledger:
        return self._ledger

    def subscribe(self, listener: StateListener) -> None:
        """Call listener with every new state (including during refresh)."""
        self._listeners.append(listener)

    def take_deferred_errors(self) -> list[DeferredCommandError]:
        """Return and clear failures of commands that were queued mid-refresh."""
        errors, self._deferred_errors = self._deferred_errors, []
        return errors

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def dispatch(self, command: LedgerCommand) -> Optional[Expense]:
        """
        Apply a ledger command and refresh.

        Returns the created/updated expense, or None for deletes and for
        commands queued because a refresh is in progress.
        """
        if self._refreshing:
            self._pending.append(command)
            return None

        try:
            result = self._apply(command)
        except (StorageError, MalformedInputError) as e:
            self._audit_logger.log_command_failed(
                command=type(command).__name__,
                error_message=str(e),
                entity_id=getattr(command, "expense_id", None),
            )
            raise

        self.refresh()
        return result

    def create_expense(self, data: dict[str, Any]) -> Optional[Expense]:
        return self.dispatch(CreateExpense(data=data))

    def update_expense(self, expense_id: int, data: dict[str, Any]) -> Optional[Expense]:
        return self.dispatch(UpdateExpense(expense_id=expense_id, data=data))

    def delete_expense(self, expense_id: int) -> None:
        self.dispatch(DeleteExpense(expense_id=expense_id))

    def delete_all(self) -> None:
        self.dispatch(DeleteAllExpenses())

    def _apply(self, command: LedgerCommand) -> Optional[Expense]:
        if isinstance(command, CreateExpense):
            return self._ledger.create(command.data)
        if isinstance(command, UpdateExpense):
            return self._ledger.update(command.expense_id, command.data)
        if isinstance(command, DeleteExpense):
            self._ledger.delete(command.expense_id)
            return None
        if isinstance(command, DeleteAllExpenses):
            self._ledger.delete_all()
            return None
        raise TypeError(f"Unknown command: {command!r}")

    def _apply_pending(self) -> None:
        while self._pending:
            command = self._pending.popleft()
            try:
                self._apply(command)
            except (StorageError, MalformedInputError) as e:
                self._audit_logger.log_command_failed(
                    command=type(command).__name__,
                    error_message=str(e),
                    entity_id=getattr(command, "expense_id", None),
                )
                self._deferred_errors.append(DeferredCommandError(
                    command=type(command).__name__,
                    expense_id=getattr(command, "expense_id", None),
                    message=str(e),
                ))

    # -------------------------------------------------------------------------
    # Criteria
    # -------------------------------------------------------------------------

    def default_criteria(self) -> Criteria:
        """Current month, every category, zero to the amount ceiling."""
        return Criteria.for_current_month(
            self._clock().date(),
            amount_ceiling=self._amount_ceiling,
            page_size=self._page_size,
        )

    def set_criteria(self, criteria: Criteria) -> DashboardState:
        self._criteria = criteria
        if self._refreshing:
            # Picked up by the refresh loop once the current pass is done
            self._criteria_dirty = True
            return self._state
        return self.refresh()

    def update_criteria(self, **changes: Any) -> DashboardState:
        """Change filters or sort; the page goes back to 1 if anything changed."""
        return self.set_criteria(self._criteria.with_changes(**changes))

    def reset_filters(self) -> DashboardState:
        return self.set_criteria(self.default_criteria())

    def change_page(self, direction: int) -> DashboardState:
        """Move by direction pages, ignoring moves outside 1..total_pages."""
        target = self._criteria.page + direction
        if 1 <= target <= self._state.view.total_pages:
            return self.set_criteria(self._criteria.with_page(target))
        return self._state

    # -------------------------------------------------------------------------
    # Recomputation
    # -------------------------------------------------------------------------

    def refresh(self) -> DashboardState:
        """
        Recompute View and Metrics, then apply any commands queued meanwhile.

        Repeats until no commands or criteria changes are pending, so the
        final state always reflects the ledger after the last queued command.
        """
        while True:
            self._criteria_dirty = False
            self._recompute()
            if not self._pending and not self._criteria_dirty:
                return self._state
            self._apply_pending()

    def _recompute(self) -> None:
        self._refreshing = True
        try:
            snapshot = self._ledger.list()
            now = self._clock()

            filtered = self._view_engine.filter(snapshot, self._criteria)
            ordered = self._view_engine.sort(filtered, self._criteria.sort_key)
            self._criteria = clamp_page(
                self._criteria,
                total_pages_for(len(ordered), self._criteria.page_size),
            )
            view = self._view_engine.paginate(ordered, self._criteria)
            metrics = self._metrics_engine.compute(filtered, snapshot, now)

            self._state = DashboardState(
                criteria=self._criteria,
                view=view,
                metrics=metrics,
                matched=tuple(ordered),
                ledger_size=len(snapshot),
                computed_at=now,
            )
            for listener in list(self._listeners):
                listener(self._state)
        finally:
            self._refreshing = False

    # -------------------------------------------------------------------------
    # Export
    # -------------------------------------------------------------------------

    def export(
        self,
        export_format: Union[ExportFormat, str],
        record: bool = True,
    ) -> ExportPayload:
        """
        Serialize the currently filtered expenses in table order.

        Pass record=False to prepare a payload without auditing it, e.g.
        when a download button is rendered but not yet clicked.
        """
        payload = self._export_formatter.export(
            ExportFormat(export_format),
            self._state.matched,
            self._clock(),
        )
        if record:
            self.record_export(payload)
        return payload

    def record_export(self, payload: ExportPayload) -> None:
        self._audit_logger.log_export(
            export_format=payload.filename.rsplit(".", 1)[-1],
            filename=payload.filename,
            expense_count=payload.expense_count,
        )


def create_dashboard(
    storage: Optional[ExpenseStorageInterface] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> ExpenseDashboard:
    """
    Factory function to create a dashboard from settings.

    Args:
        storage: Expense storage to use. Defaults to the JSON file
                 configured in settings.
        clock: Source of "now". Defaults to datetime.now.
    """
    settings = get_settings()
    storage_settings = settings.storage
    app_settings = settings.app

    audit_storage = None
    if storage_settings.audit_log_enabled:
        audit_storage = JsonLinesAuditStorage(storage_settings.audit_path)
    audit_logger = AuditLogger(audit_storage)

    if storage is None:
        storage = JsonFileExpenseStorage(storage_settings.data_dir, storage_settings.key)

    ledger = Ledger(storage, audit_logger=audit_logger)

    return ExpenseDashboard(
        ledger,
        clock=clock,
        metrics_engine=MetricsEngine(
            recent_window_days=app_settings.recent_window_days,
            trend_months=app_settings.trend_months,
        ),
        audit_logger=audit_logger,
        amount_ceiling=app_settings.amount_filter_ceiling,
        page_size=app_settings.default_page_size,
    )
