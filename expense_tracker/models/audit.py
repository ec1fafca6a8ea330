"""
Audit Models for Expense Tracker

Every ledger mutation, storage recovery and export is recorded as an
audit event. This provides:
1. Traceability of every change to the ledger
2. Debugging information when stored data had to be discarded
3. A history the user can look back on

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from expense_tracker.models.expense import Expense


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _shorten(text: str, limit: int = 80) -> str:
    """Trim user text quoted in an event description; details keep it whole."""
    if len(text) <= limit:
        return text
    return text[:limit - 3] + "..."


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Ledger mutations
    EXPENSE_CREATED = "expense_created"
    EXPENSE_UPDATED = "expense_updated"
    EXPENSE_DELETED = "expense_deleted"
    LEDGER_CLEARED = "ledger_cleared"

    # Storage
    LEDGER_LOADED = "ledger_loaded"
    STORAGE_CORRUPT_RECOVERED = "storage_corrupt_recovered"

    # Presenter actions
    EXPORT_GENERATED = "export_generated"
    COMMAND_FAILED = "command_failed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of the audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'expense', 'ledger', 'export')"
    )
    entity_id: Optional[int] = Field(
        default=None,
        description="ID of the expense this event relates to"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_json_line(self) -> str:
        """Serialize for append-only JSON-lines storage."""
        return json.dumps(self.to_log_dict(), ensure_ascii=False)


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.expense_created(expense)
        event = AuditEventBuilder.expense_deleted(expense_id)
    """

    @staticmethod
    def expense_created(expense: Expense) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_CREATED,
            entity_type="expense",
            entity_id=expense.id,
            description=f"Expense added: {_shorten(expense.description)}",
            details=expense.model_dump(mode="json"),
            is_user_action=True,
        )

    @staticmethod
    def expense_updated(expense: Expense) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_UPDATED,
            entity_type="expense",
            entity_id=expense.id,
            description=f"Expense updated: {_shorten(expense.description)}",
            details=expense.model_dump(mode="json"),
            is_user_action=True,
        )

    @staticmethod
    def expense_deleted(expense_id: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_DELETED,
            entity_type="expense",
            entity_id=expense_id,
            description=f"Expense {expense_id} deleted",
            is_user_action=True,
        )

    @staticmethod
    def ledger_cleared(removed_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_CLEARED,
            severity=AuditSeverity.WARNING,
            entity_type="ledger",
            description=f"All expenses deleted ({removed_count} removed)",
            details={"removed_count": removed_count},
            is_user_action=True,
        )

    @staticmethod
    def ledger_loaded(expense_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_LOADED,
            severity=AuditSeverity.DEBUG,
            entity_type="ledger",
            description=f"Ledger loaded with {expense_count} expenses",
            details={"expense_count": expense_count},
        )

    @staticmethod
    def storage_corrupt_recovered(error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_CORRUPT_RECOVERED,
            severity=AuditSeverity.WARNING,
            entity_type="ledger",
            description="Stored expenses were unreadable; starting with an empty ledger",
            error_message=error_message,
        )

    @staticmethod
    def export_generated(
        export_format: str,
        filename: str,
        expense_count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPORT_GENERATED,
            entity_type="export",
            description=f"Exported {expense_count} expenses as {export_format.upper()}",
            details={
                "format": export_format,
                "filename": filename,
                "expense_count": expense_count,
            },
            is_user_action=True,
        )

    @staticmethod
    def command_failed(
        command: str,
        error_message: str,
        entity_id: Optional[int] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.COMMAND_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="expense",
            entity_id=entity_id,
            description=f"Command failed: {command}",
            error_message=error_message,
            is_user_action=True,
        )
