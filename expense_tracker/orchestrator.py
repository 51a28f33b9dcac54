"""
Main Orchestrator for Personal Expense Tracker

This module ties together all the components and defines the
user-facing flows:
1. Create (fields -> local record -> push if online)
2. Edit (fields -> local overwrite -> push if online)
3. Delete (remote delete if online, otherwise tombstone)
4. Refresh (load/merge the working set)

DESIGN DECISION: The local store is written before any network call.
A record only leaves a pending state once the service has confirmed it,
so a failed or interrupted request never loses a change; it is simply
retried on the next offline -> online transition.

DESIGN DECISION: Record ids are generated on the client and the service
honours them. Should a service ever answer a create with a different id,
the local record is re-keyed to the service's id.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

import httpx
import structlog

from expense_tracker.audit import AuditLogger, create_correlation_id
from expense_tracker.config import ClientSettings, get_settings
from expense_tracker.models import (
    AuditEvent,
    ExpenseFields,
    LocalExpense,
    PushReport,
    SyncState,
    new_expense_id,
)
from expense_tracker.services.remote import (
    RemoteError,
    RemoteExpenseClient,
    RemoteUnavailableError,
)
from expense_tracker.services.storage import (
    LocalExpenseStoreInterface,
    NotFoundError,
    SqlAlchemyAuditStorage,
    SqlAlchemyLocalStore,
    create_session_factory,
)
from expense_tracker.summaries import SummaryPeriod, compute_summaries, totals_by_category
from expense_tracker.sync import ConnectivityMonitor, ExpenseReconciler


logger = structlog.get_logger(__name__)


class ExpenseTrackerFlow:
    """
    Orchestrates every user action against the local store and the service.

    Flow for each mutation:
    1. Write the local store (pending state)
    2. If online, replay the record against the service
    3. On success the record is clean; on failure it stays pending
    4. Audit the outcome
    """

    def __init__(
        self,
        local_store: LocalExpenseStoreInterface,
        remote: RemoteExpenseClient,
        monitor: ConnectivityMonitor,
        reconciler: Optional[ExpenseReconciler] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._local = local_store
        self._remote = remote
        self._monitor = monitor
        self._audit = audit_logger or AuditLogger()
        self._reconciler = reconciler or ExpenseReconciler(
            local_store, remote, monitor, self._audit
        )

    @property
    def is_online(self) -> bool:
        return self._monitor.is_online

    @property
    def monitor(self) -> ConnectivityMonitor:
        return self._monitor

    @property
    def reconciler(self) -> ExpenseReconciler:
        return self._reconciler

    @property
    def local_store(self) -> LocalExpenseStoreInterface:
        return self._local

    async def _try_push(
        self,
        record: LocalExpense,
        correlation_id: UUID,
    ) -> Optional[LocalExpense]:
        """
        Push one record if online.

        Returns the clean record (or None for a confirmed delete) on
        success, and `record` itself when it must stay pending.
        """
        if not self._monitor.is_online:
            await self._audit.log_expense_queued(
                expense_id=record.id,
                sync_state=record.sync_state.value,
                reason="offline",
                correlation_id=correlation_id,
            )
            return record

        try:
            return await self._reconciler.push_record(record)
        except RemoteUnavailableError as e:
            await self._monitor.record_failure()
            reason = f"unreachable: {e}"
        except RemoteError as e:
            await self._audit.log_remote_error(
                operation=record.sync_state.value,
                error_message=str(e),
                correlation_id=correlation_id,
            )
            reason = f"rejected: {e}"

        await self._audit.log_expense_queued(
            expense_id=record.id,
            sync_state=record.sync_state.value,
            reason=reason,
            correlation_id=correlation_id,
        )
        return record

    async def create_expense(self, fields: ExpenseFields) -> LocalExpense:
        """
        Record a new expense.

        Returns the stored record; `synced` tells whether the service
        already has it.
        """
        correlation_id = create_correlation_id()
        record = LocalExpense.from_fields(
            new_expense_id(), fields, SyncState.PENDING_CREATE
        )
        await self._local.add(record)

        result = await self._try_push(record, correlation_id)

        await self._audit.log_expense_created(
            expense_id=result.id,
            amount=str(result.amount),
            synced=result.synced,
            correlation_id=correlation_id,
        )
        return result

    async def edit_expense(self, expense_id: str, fields: ExpenseFields) -> LocalExpense:
        """
        Overwrite an expense's fields, keeping its id.

        Raises:
            NotFoundError: If no visible local record has this id
        """
        existing = await self._local.get(expense_id)
        if existing is None or existing.is_tombstone:
            raise NotFoundError(f"Expense not found: {expense_id}")

        correlation_id = create_correlation_id()
        # A record the service has never seen is still a create
        state = (
            SyncState.PENDING_CREATE
            if existing.sync_state == SyncState.PENDING_CREATE
            else SyncState.PENDING_UPDATE
        )
        record = LocalExpense.from_fields(expense_id, fields, state)
        await self._local.put(record)

        result = await self._try_push(record, correlation_id)

        await self._audit.log_expense_updated(
            expense_id=result.id,
            synced=result.synced,
            correlation_id=correlation_id,
        )
        return result

    async def delete_expense(self, expense_id: str) -> bool:
        """
        Delete an expense.

        Returns True when the service confirmed the delete, False when it
        was only applied locally (tombstone queued).
        Deleting an unknown id is a no-op.
        """
        existing = await self._local.get(expense_id)
        if existing is None:
            logger.info("delete_unknown_expense", expense_id=expense_id)
            return False

        correlation_id = create_correlation_id()
        tombstone = existing.with_state(SyncState.PENDING_DELETE)

        attempted_remote = self._monitor.is_online
        if attempted_remote:
            result = await self._try_push(tombstone, correlation_id)
            if result is None:
                await self._audit.log_expense_deleted(
                    expense_id=expense_id,
                    remote_confirmed=True,
                    correlation_id=correlation_id,
                )
                return True

        # Tombstone even a pending create: its POST may have landed with the
        # response lost. A DELETE answered with 404 is confirmed anyway.
        await self._local.put(tombstone)
        if not attempted_remote:
            await self._audit.log_expense_queued(
                expense_id=expense_id,
                sync_state=SyncState.PENDING_DELETE.value,
                reason="offline",
                correlation_id=correlation_id,
            )

        await self._audit.log_expense_deleted(
            expense_id=expense_id,
            remote_confirmed=False,
            correlation_id=correlation_id,
        )
        return False

    async def refresh(self) -> list[LocalExpense]:
        """The working set to display."""
        return await self._reconciler.load_working_set()

    async def push_pending(self) -> PushReport:
        return await self._reconciler.push_pending()

    async def check_connectivity(self) -> bool:
        """
        Probe the service once.

        An offline -> online transition runs the push through the
        monitor's listeners.
        """
        return await self._monitor.probe_once()

    async def summaries(
        self,
        expenses: Optional[list[LocalExpense]] = None,
        now: Optional[datetime] = None,
    ) -> dict[SummaryPeriod, Decimal]:
        """Today / week / month totals over the working set."""
        if expenses is None:
            expenses = await self.refresh()
        return compute_summaries(expenses, now=now)

    async def category_totals(
        self,
        expenses: Optional[list[LocalExpense]] = None,
    ) -> dict:
        if expenses is None:
            expenses = await self.refresh()
        return totals_by_category(expenses)

    async def recent_activity(self, limit: int = 20) -> list[AuditEvent]:
        """Latest audit events for the sync activity view."""
        return await self._audit.recent_events(limit=limit)


def create_app_components(
    settings: Optional[ClientSettings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> tuple[ExpenseTrackerFlow, ConnectivityMonitor]:
    """
    Factory function to create all client-side components.

    Args:
        settings: Client settings; read from the environment when omitted
        transport: Optional httpx transport for the remote client
                  (tests route requests to an in-process service)

    Returns:
        (flow, monitor)
    """
    settings = settings or get_settings().client

    session_factory = create_session_factory(settings.local_db_url)
    local_store = SqlAlchemyLocalStore(session_factory)
    audit_logger = AuditLogger(SqlAlchemyAuditStorage(session_factory))

    remote = RemoteExpenseClient(
        settings.api_base,
        timeout=settings.request_timeout_seconds,
        probe_timeout=settings.probe_timeout_seconds,
        transport=transport,
    )
    monitor = ConnectivityMonitor(
        remote.probe,
        interval_seconds=settings.probe_interval_seconds,
        offline_after_failures=settings.offline_after_failures,
    )
    reconciler = ExpenseReconciler(local_store, remote, monitor, audit_logger)

    monitor.add_listener(audit_logger.log_connectivity_changed)
    monitor.add_online_listener(reconciler.push_pending)

    flow = ExpenseTrackerFlow(
        local_store=local_store,
        remote=remote,
        monitor=monitor,
        reconciler=reconciler,
        audit_logger=audit_logger,
    )
    return flow, monitor
