"""
Audit Models for Local Ledger

Every significant action on the ledger is logged for audit purposes.
This provides:
1. Traceability of every mutation and derived record
2. Debugging information when persistence goes wrong
3. A place to see why an operation was rejected

DESIGN DECISION: Audit events go to the structured log only. They are not
part of the snapshot, so corrections to the ledger never have to rewrite
history.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Store
    SNAPSHOT_HYDRATED = "snapshot_hydrated"
    SNAPSHOT_CORRUPT = "snapshot_corrupt"
    LEDGER_MUTATION = "ledger_mutation"
    SNAPSHOT_SAVED = "snapshot_saved"
    SNAPSHOT_SAVE_FAILED = "snapshot_save_failed"

    # Derived records
    LINKED_EXPENSE_CREATED = "linked_expense_created"
    NOTIFICATION_EMITTED = "notification_emitted"

    # Rejections
    VALIDATION_REJECTED = "validation_rejected"
    IMPORT_REJECTED = "import_rejected"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant action creates one of these.
    """

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

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
        description="Type of entity (e.g., 'loan', 'borrowed', 'snapshot')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )
    operation: Optional[str] = Field(
        default=None,
        description="Service operation that caused the event"
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
            "operation": self.operation,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.mutation("add_loan", changed=["loans"])
        event = AuditEventBuilder.save_failed("add_loan", error)
    """

    @staticmethod
    def hydrated(source: str, collections: dict[str, int]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_HYDRATED,
            entity_type="snapshot",
            description=f"Ledger hydrated from {source}",
            details={"source": source, "counts": collections},
        )

    @staticmethod
    def corrupt_snapshot(error: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_CORRUPT,
            severity=AuditSeverity.ERROR,
            entity_type="snapshot",
            description="Stored snapshot unreadable, starting from defaults",
            error_message=error,
        )

    @staticmethod
    def mutation(operation: str, changed: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_MUTATION,
            entity_type="snapshot",
            operation=operation,
            description=f"Ledger updated by {operation}",
            details={"changed_collections": changed},
        )

    @staticmethod
    def saved(operation: str, target: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_SAVED,
            severity=AuditSeverity.DEBUG,
            entity_type="snapshot",
            operation=operation,
            description=f"Snapshot written to {target}",
        )

    @staticmethod
    def save_failed(operation: str, error: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="snapshot",
            operation=operation,
            description="Snapshot write failed; in-memory state kept",
            error_message=error,
        )

    @staticmethod
    def linked_expense(expense_id: str, category: str, source_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LINKED_EXPENSE_CREATED,
            entity_type="expense",
            entity_id=expense_id,
            description=f"Linked {category} expense created",
            details={"source_id": source_id},
        )

    @staticmethod
    def notification(notification_id: str, kind: str, title: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.NOTIFICATION_EMITTED,
            entity_type="notification",
            entity_id=notification_id,
            description=title,
            details={"type": kind},
        )

    @staticmethod
    def validation_rejected(operation: str, issues: list[dict]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_REJECTED,
            severity=AuditSeverity.WARNING,
            operation=operation,
            description=f"{operation} rejected: {len(issues)} issue(s)",
            details={"issues": issues},
        )

    @staticmethod
    def import_rejected(error: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMPORT_REJECTED,
            severity=AuditSeverity.WARNING,
            operation="import_data",
            entity_type="snapshot",
            description="Backup import rejected",
            error_message=error,
        )
