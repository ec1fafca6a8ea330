"""
Audit Logger

DESIGN DECISION: Every change to the ledger is logged.
This provides:
1. Complete traceability
2. Debugging capability when stored data had to be discarded
3. A history the user can look back on

The audit logger:
- Always logs locally through structlog
- Gracefully handles storage failures (never crashes the app if logging fails)
"""

from typing import Optional

import structlog

from expense_tracker.models.audit import AuditEvent, AuditEventBuilder
from expense_tracker.models.expense import Expense
from expense_tracker.services.storage import AuditStorageInterface, StorageError


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence and user visibility), if configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger(__name__)

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value == "error":
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif event.severity.value == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return self._storage.append_event(event)
            except (OSError, StorageError) as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """Newest-first audit history, empty when no storage is configured."""
        if not self._storage:
            return []
        return self._storage.get_recent_events(limit)

    def log_expense_created(self, expense: Expense) -> None:
        self.log(AuditEventBuilder.expense_created(expense))

    def log_expense_updated(self, expense: Expense) -> None:
        self.log(AuditEventBuilder.expense_updated(expense))

    def log_expense_deleted(self, expense_id: int) -> None:
        self.log(AuditEventBuilder.expense_deleted(expense_id))

    def log_ledger_cleared(self, removed_count: int) -> None:
        self.log(AuditEventBuilder.ledger_cleared(removed_count))

    def log_ledger_loaded(self, expense_count: int) -> None:
        self.log(AuditEventBuilder.ledger_loaded(expense_count))

    def log_storage_corrupt(self, error_message: str) -> None:
        """Log that stored expenses were discarded."""
        self.log(AuditEventBuilder.storage_corrupt_recovered(error_message))

    def log_export(
        self,
        export_format: str,
        filename: str,
        expense_count: int,
    ) -> None:
        self.log(AuditEventBuilder.export_generated(
            export_format=export_format,
            filename=filename,
            expense_count=expense_count,
        ))

    def log_command_failed(
        self,
        command: str,
        error_message: str,
        entity_id: Optional[int] = None,
    ) -> None:
        self.log(AuditEventBuilder.command_failed(
            command=command,
            error_message=error_message,
            entity_id=entity_id,
        ))
