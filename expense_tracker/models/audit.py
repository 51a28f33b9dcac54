"""
Audit Models for Personal Expense Tracker

Every mutation and every sync step is recorded as an audit event.
This provides:
1. A trace of what was pushed, when, and what the service answered
2. Debugging information when local and remote views diverge
3. A visible "sync activity" history in the UI

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # User mutations
    EXPENSE_CREATED = "expense_created"
    EXPENSE_UPDATED = "expense_updated"
    EXPENSE_DELETED = "expense_deleted"
    EXPENSE_QUEUED = "expense_queued"

    # Push sweep
    PUSH_STARTED = "push_started"
    PUSH_SUCCEEDED = "push_succeeded"
    PUSH_FAILED = "push_failed"
    PUSH_COMPLETED = "push_completed"

    # Merge
    MERGE_COMPLETED = "merge_completed"

    # Connectivity
    CONNECTIVITY_CHANGED = "connectivity_changed"

    # System events
    REMOTE_ERROR = "remote_error"
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
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
        description="Type of entity (e.g., 'expense', 'sync', 'connectivity')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - e.g. every event of one push sweep
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events"
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
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.expense_created(expense_id, amount, synced=False)
        event = AuditEventBuilder.push_failed(expense_id, operation, error, correlation_id)
    """

    @staticmethod
    def expense_created(
        expense_id: str,
        amount: str,
        synced: bool,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_CREATED,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=f"Expense created: {amount}" + ("" if synced else " (pending)"),
            details={
                "amount": amount,
                "synced": synced,
            },
            is_user_action=True,
        )

    @staticmethod
    def expense_updated(
        expense_id: str,
        synced: bool,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_UPDATED,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description="Expense updated" + ("" if synced else " (pending)"),
            details={"synced": synced},
            is_user_action=True,
        )

    @staticmethod
    def expense_deleted(
        expense_id: str,
        remote_confirmed: bool,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_DELETED,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=(
                "Expense deleted"
                if remote_confirmed
                else "Expense deleted locally, remote delete queued"
            ),
            details={"remote_confirmed": remote_confirmed},
            is_user_action=True,
        )

    @staticmethod
    def expense_queued(
        expense_id: str,
        sync_state: str,
        reason: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_QUEUED,
            severity=AuditSeverity.WARNING,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=f"Expense queued for sync ({sync_state})",
            details={
                "sync_state": sync_state,
                "reason": reason,
            },
        )

    @staticmethod
    def push_started(
        pending_count: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PUSH_STARTED,
            entity_type="sync",
            correlation_id=correlation_id,
            description=f"Push started with {pending_count} pending records",
            details={"pending_count": pending_count},
        )

    @staticmethod
    def push_succeeded(
        expense_id: str,
        operation: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PUSH_SUCCEEDED,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=f"Pushed {operation}",
            details={"operation": operation},
        )

    @staticmethod
    def push_failed(
        expense_id: str,
        operation: str,
        error_message: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PUSH_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=f"Push of {operation} failed",
            error_message=error_message,
            details={"operation": operation},
        )

    @staticmethod
    def push_completed(
        succeeded: int,
        failed: int,
        aborted: bool,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PUSH_COMPLETED,
            severity=AuditSeverity.WARNING if (failed or aborted) else AuditSeverity.INFO,
            entity_type="sync",
            correlation_id=correlation_id,
            description=f"Push finished: {succeeded} pushed, {failed} failed",
            details={
                "succeeded": succeeded,
                "failed": failed,
                "aborted": aborted,
            },
        )

    @staticmethod
    def merge_completed(
        remote_count: int,
        pending_count: int,
        pruned_count: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MERGE_COMPLETED,
            severity=AuditSeverity.DEBUG,
            entity_type="sync",
            correlation_id=correlation_id,
            description=(
                f"Merged {remote_count} remote records with {pending_count} pending"
            ),
            details={
                "remote_count": remote_count,
                "pending_count": pending_count,
                "pruned_count": pruned_count,
            },
        )

    @staticmethod
    def connectivity_changed(online: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CONNECTIVITY_CHANGED,
            entity_type="connectivity",
            description="Remote service reachable" if online else "Remote service unreachable",
            details={"online": online},
        )

    @staticmethod
    def remote_error(
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REMOTE_ERROR,
            severity=AuditSeverity.ERROR,
            entity_type="sync",
            description=f"Remote service error during {operation}",
            error_message=error_message,
            details={"operation": operation},
            correlation_id=correlation_id,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
