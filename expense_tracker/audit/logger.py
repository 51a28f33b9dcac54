"""
Audit Logger

DESIGN DECISION: Every mutation and every sync step is logged.
This provides:
1. A trace of what was pushed and what the service answered
2. Debugging capability when local and remote views diverge
3. A sync activity history the user can see

The audit logger:
- Always writes to the structured log
- Persists to storage when one is configured
- Gracefully handles failures (never breaks the main flow)
- Supports correlation IDs to trace the events of one sweep
"""

import logging
import sys
from typing import Optional
from uuid import UUID, uuid4

import structlog

from expense_tracker.config import get_settings
from expense_tracker.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from expense_tracker.services.storage import AuditStorageInterface


def configure_logging(log_level: str = "INFO", log_json: bool = False) -> None:
    """Configure structlog on top of the stdlib logging module."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )
    renderer = (
        structlog.processors.JSONRenderer()
        if log_json
        else structlog.dev.ConsoleRenderer(colors=False)
    )
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
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


_app_settings = get_settings().app
configure_logging(_app_settings.log_level, _app_settings.log_json)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for the sync activity view), if configured
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
        self._logger = structlog.get_logger("expense_tracker.audit")

    @property
    def storage(self) -> Optional[AuditStorageInterface]:
        return self._storage

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def recent_events(self, limit: int = 50) -> list[AuditEvent]:
        """Most recent persisted events, newest first (empty without storage)."""
        if not self._storage:
            return []
        try:
            return await self._storage.get_recent_events(limit=limit)
        except Exception as e:
            self._logger.error("audit_storage_read_failed", error=str(e))
            return []

    async def log_expense_created(
        self,
        expense_id: str,
        amount: str,
        synced: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a user-created expense."""
        await self.log(AuditEventBuilder.expense_created(
            expense_id=expense_id,
            amount=amount,
            synced=synced,
            correlation_id=correlation_id,
        ))

    async def log_expense_updated(
        self,
        expense_id: str,
        synced: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.expense_updated(
            expense_id=expense_id,
            synced=synced,
            correlation_id=correlation_id,
        ))

    async def log_expense_deleted(
        self,
        expense_id: str,
        remote_confirmed: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.expense_deleted(
            expense_id=expense_id,
            remote_confirmed=remote_confirmed,
            correlation_id=correlation_id,
        ))

    async def log_expense_queued(
        self,
        expense_id: str,
        sync_state: str,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log that a record was left pending for the next push."""
        await self.log(AuditEventBuilder.expense_queued(
            expense_id=expense_id,
            sync_state=sync_state,
            reason=reason,
            correlation_id=correlation_id,
        ))

    async def log_push_started(self, pending_count: int, correlation_id: UUID) -> None:
        await self.log(AuditEventBuilder.push_started(
            pending_count=pending_count,
            correlation_id=correlation_id,
        ))

    async def log_push_succeeded(
        self,
        expense_id: str,
        operation: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.push_succeeded(
            expense_id=expense_id,
            operation=operation,
            correlation_id=correlation_id,
        ))

    async def log_push_failed(
        self,
        expense_id: str,
        operation: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.push_failed(
            expense_id=expense_id,
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_push_completed(
        self,
        succeeded: int,
        failed: int,
        aborted: bool,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.push_completed(
            succeeded=succeeded,
            failed=failed,
            aborted=aborted,
            correlation_id=correlation_id,
        ))

    async def log_merge_completed(
        self,
        remote_count: int,
        pending_count: int,
        pruned_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.merge_completed(
            remote_count=remote_count,
            pending_count=pending_count,
            pruned_count=pruned_count,
            correlation_id=correlation_id,
        ))

    async def log_connectivity_changed(self, online: bool) -> None:
        await self.log(AuditEventBuilder.connectivity_changed(online=online))

    async def log_remote_error(
        self,
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a record service error."""
        await self.log(AuditEventBuilder.remote_error(
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a user action or a push sweep.
    Pass it through all subsequent operations.
    """
    return uuid4()
