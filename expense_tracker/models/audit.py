"""
Audit Models for Expense Tracker

Every ledger mutation and every backup run is described by an AuditEvent.
This provides:
1. A structured diagnostic channel next to the simple return values
2. Per-record reasons when an import skips data
3. Visibility of persistence failures that the ledger survives

DESIGN DECISION: Events are plain data. Turning them into log lines is
the AuditLogger's job.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Categories
    CATEGORIES_SEEDED = "categories_seeded"
    CATEGORY_ADDED = "category_added"
    CATEGORY_UPDATED = "category_updated"
    CATEGORY_DELETED = "category_deleted"
    CATEGORIES_REORDERED = "categories_reordered"

    # Expenses and incomes
    ENTRY_ADDED = "entry_added"
    ENTRY_UPDATED = "entry_updated"
    ENTRY_DELETED = "entry_deleted"
    EDIT_TARGET_MISSING = "edit_target_missing"
    STORED_ROW_DROPPED = "stored_row_dropped"

    # Backup
    BACKUP_EXPORTED = "backup_exported"
    BACKUP_IMPORTED = "backup_imported"
    BACKUP_RECORD_SKIPPED = "backup_record_skipped"
    BACKUP_IMPORT_FAILED = "backup_import_failed"

    # Persistence
    PERSISTENCE_FAILED = "persistence_failed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.

    entity_id is a string because income ids are free-form strings,
    not UUIDs.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.now,
        description="When the event occurred (local time)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g. 'category', 'expense', 'income', 'backup')"
    )
    entity_id: Optional[str] = None

    # Correlation - ties the skip events of one import together
    correlation_id: Optional[UUID] = None

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

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
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.category_deleted(category_id, removed_expenses=3)
        event = AuditEventBuilder.backup_record_skipped("expense", "abc", "malformed_id")
    """

    @staticmethod
    def categories_seeded(count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORIES_SEEDED,
            entity_type="category",
            description=f"Seeded {count} default categories",
            details={"count": count},
        )

    @staticmethod
    def category_added(category_id: UUID, name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_ADDED,
            entity_type="category",
            entity_id=str(category_id),
            description=f"Category added: {name}",
            details={"name": name},
        )

    @staticmethod
    def category_updated(
        category_id: UUID,
        name: str,
        affected_expenses: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_UPDATED,
            entity_type="category",
            entity_id=str(category_id),
            description=f"Category updated: {name} ({affected_expenses} expenses)",
            details={
                "name": name,
                "affected_expenses": affected_expenses,
            },
        )

    @staticmethod
    def category_deleted(category_id: UUID, removed_expenses: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_DELETED,
            entity_type="category",
            entity_id=str(category_id),
            description=f"Category deleted with {removed_expenses} expenses",
            details={"removed_expenses": removed_expenses},
        )

    @staticmethod
    def categories_reordered(count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORIES_REORDERED,
            entity_type="category",
            description=f"Reordered {count} categories",
            details={"count": count},
        )

    @staticmethod
    def entry_added(kind: str, entry_id: str, amount: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTRY_ADDED,
            entity_type=kind,
            entity_id=entry_id,
            description=f"{kind.capitalize()} added: {amount}",
            details={"amount": amount},
        )

    @staticmethod
    def entry_updated(kind: str, entry_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTRY_UPDATED,
            entity_type=kind,
            entity_id=entry_id,
            description=f"{kind.capitalize()} updated",
        )

    @staticmethod
    def entry_deleted(kind: str, entry_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTRY_DELETED,
            entity_type=kind,
            entity_id=entry_id,
            description=f"{kind.capitalize()} deleted",
        )

    @staticmethod
    def edit_target_missing(kind: str, entry_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EDIT_TARGET_MISSING,
            severity=AuditSeverity.WARNING,
            entity_type=kind,
            entity_id=entry_id,
            description=f"{kind.capitalize()} to edit was not found",
        )

    @staticmethod
    def stored_row_dropped(key: str, record_id: str, reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORED_ROW_DROPPED,
            severity=AuditSeverity.WARNING,
            entity_type=key,
            entity_id=record_id,
            description=f"Dropped unreadable row from '{key}': {reason}",
            details={"key": key, "reason": reason},
        )

    @staticmethod
    def backup_exported(
        categories: int,
        expenses: int,
        incomes: int,
        destination: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BACKUP_EXPORTED,
            entity_type="backup",
            description=f"Backup exported: {expenses} expenses, {incomes} incomes",
            details={
                "categories": categories,
                "expenses": expenses,
                "incomes": incomes,
                "destination": destination,
            },
        )

    @staticmethod
    def backup_imported(
        categories: int,
        expenses: int,
        incomes: int,
        skipped: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BACKUP_IMPORTED,
            severity=AuditSeverity.WARNING if skipped else AuditSeverity.INFO,
            entity_type="backup",
            correlation_id=correlation_id,
            description=f"Backup imported ({skipped} records skipped)",
            details={
                "categories": categories,
                "expenses": expenses,
                "incomes": incomes,
                "skipped": skipped,
            },
        )

    @staticmethod
    def backup_record_skipped(
        kind: str,
        record_id: str,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BACKUP_RECORD_SKIPPED,
            severity=AuditSeverity.WARNING,
            entity_type=kind,
            entity_id=record_id,
            correlation_id=correlation_id,
            description=f"Skipped {kind} record: {reason}",
            details={"reason": reason},
        )

    @staticmethod
    def backup_import_failed(
        error_message: str,
        diagnostics: Optional[list[dict]] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BACKUP_IMPORT_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="backup",
            correlation_id=correlation_id,
            description="Backup import failed",
            error_message=error_message,
            details={"diagnostics": diagnostics or []},
        )

    @staticmethod
    def persistence_failed(key: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERSISTENCE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type=key,
            description=f"Could not persist '{key}'",
            error_message=error_message,
            details={"key": key},
        )
