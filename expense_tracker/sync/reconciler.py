"""
Expense Reconciler

Keeps the local store and the remote record service converging.

Two operations:
1. load_working_set(): build the list the UI shows. Online, the remote
   list is authoritative for clean records and pending local records are
   layered on top. Offline, the local store is the whole answer.
2. push_pending(): replay every pending local record against the service
   (create / update / delete per its sync state).

DESIGN DECISION: A merge never overwrites a pending_update record and never
resurrects a pending_delete tombstone. Only a successful push clears those
states, so an offline edit or delete cannot be lost to a refresh that
happens before the push. A pending_create record the service already has
is adopted as clean.

DESIGN DECISION: A transport failure aborts a push sweep and is folded
into the connectivity monitor. A rejection (4xx/5xx) only affects the one
record: it stays pending and the sweep moves on.
"""

from typing import Optional
from uuid import UUID

import structlog

from expense_tracker.audit import AuditLogger, create_correlation_id
from expense_tracker.models import Expense, LocalExpense, PushReport, SyncState
from expense_tracker.services.remote import (
    RemoteExpenseClient,
    RemoteNotFoundError,
    RemoteRejectedError,
    RemoteUnavailableError,
)
from expense_tracker.services.storage import LocalExpenseStoreInterface
from expense_tracker.sync.connectivity import ConnectivityMonitor


logger = structlog.get_logger(__name__)

_OPERATIONS = {
    SyncState.PENDING_CREATE: "create",
    SyncState.PENDING_UPDATE: "update",
    SyncState.PENDING_DELETE: "delete",
}


class ExpenseReconciler:
    """
    Merges remote and local views and pushes pending local changes.

    Args:
        local_store: Durable on-device store
        remote: Client for the record service
        monitor: Shared connectivity signal
        audit_logger: Optional audit trail
    """

    def __init__(
        self,
        local_store: LocalExpenseStoreInterface,
        remote: RemoteExpenseClient,
        monitor: ConnectivityMonitor,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._local = local_store
        self._remote = remote
        self._monitor = monitor
        self._audit = audit_logger or AuditLogger()
        # Plain flag rather than asyncio.Lock: callers may drive us from
        # different event loops (one per UI action).
        self._sweeping = False

    # =========================================================================
    # WORKING SET
    # =========================================================================

    async def local_view(self) -> list[LocalExpense]:
        """Every local record except tombstones, in store order."""
        return [e for e in await self._local.get_all() if not e.is_tombstone]

    async def load_working_set(
        self,
        correlation_id: Optional[UUID] = None,
    ) -> list[LocalExpense]:
        """
        The list of expenses to display.

        Falls back to the local view when offline or when the remote
        list cannot be fetched.
        """
        if not self._monitor.is_online:
            return await self.local_view()

        try:
            remote_expenses = await self._remote.list_expenses()
        except RemoteUnavailableError as e:
            logger.info("remote_list_unavailable", error=str(e))
            await self._monitor.record_failure()
            return await self.local_view()
        except RemoteRejectedError as e:
            await self._audit.log_remote_error(
                operation="list",
                error_message=str(e),
                correlation_id=correlation_id,
            )
            return await self.local_view()

        return await self.merge(remote_expenses, correlation_id=correlation_id)

    async def merge(
        self,
        remote_expenses: list[Expense],
        correlation_id: Optional[UUID] = None,
    ) -> list[LocalExpense]:
        """
        Fold a remote list into the local store and return the working set.

        Rules, per id:
        - clean or unknown locally: take the remote copy, store it clean
        - pending_create: the create already landed, adopt the remote copy
        - pending_update: keep the local content, in the remote position
        - pending_delete: hide it
        - pending locally but absent remotely: append after remote records
        - clean locally but absent remotely: deleted elsewhere, prune

        Running it twice with the same inputs gives the same result.
        """
        local_records = await self._local.get_all()
        local_by_id = {e.id: e for e in local_records}

        working: list[LocalExpense] = []
        remote_ids: set[str] = set()

        for remote_expense in remote_expenses:
            if remote_expense.id in remote_ids:
                continue
            remote_ids.add(remote_expense.id)

            local_copy = local_by_id.get(remote_expense.id)
            if local_copy is not None:
                if local_copy.sync_state == SyncState.PENDING_UPDATE:
                    working.append(local_copy)
                    continue
                if local_copy.is_tombstone:
                    continue

            record = LocalExpense.from_remote(remote_expense)
            if local_copy != record:
                await self._local.put(record)
            working.append(record)

        pending_only = [
            e for e in local_records
            if e.is_pending and not e.is_tombstone and e.id not in remote_ids
        ]
        working.extend(pending_only)

        stale = [e for e in local_records if e.synced and e.id not in remote_ids]
        for expense in stale:
            await self._local.delete(expense.id)

        await self._audit.log_merge_completed(
            remote_count=len(remote_ids),
            pending_count=len(pending_only),
            pruned_count=len(stale),
            correlation_id=correlation_id,
        )
        return working

    # =========================================================================
    # PUSH
    # =========================================================================

    async def push_record(self, expense: LocalExpense) -> Optional[LocalExpense]:
        """
        Replay one pending record against the service.

        Returns the stored clean record, or None for a confirmed delete
        (and for records that were already clean).

        Raises:
            RemoteUnavailableError: Service unreachable, record untouched
            RemoteRejectedError: Service refused the request, record untouched
        """
        if expense.sync_state == SyncState.CLEAN:
            return None

        if expense.sync_state == SyncState.PENDING_DELETE:
            try:
                await self._remote.delete_expense(expense.id)
            except RemoteNotFoundError:
                # Already gone remotely; the delete is satisfied
                logger.info("remote_delete_already_gone", expense_id=expense.id)
            await self._local.delete(expense.id)
            return None

        if expense.sync_state == SyncState.PENDING_UPDATE:
            try:
                stored = await self._remote.update_expense(expense.to_expense())
            except RemoteNotFoundError:
                # Deleted elsewhere while we held an edit: recreate it
                stored, _ = await self._remote.create_expense(expense.to_expense())
        else:
            stored, _ = await self._remote.create_expense(expense.to_expense())

        return await self._store_clean(expense.id, stored)

    async def _store_clean(self, local_id: str, stored: Expense) -> LocalExpense:
        record = LocalExpense.from_remote(stored)
        if record.id != local_id:
            logger.warning("remote_assigned_new_id", local_id=local_id, remote_id=record.id)
            await self._local.rekey(local_id, record)
        else:
            await self._local.put(record)
        return record

    async def push_pending(self) -> PushReport:
        """
        Push every pending local record, then refresh the working set.

        A call made while another sweep is running does nothing and
        returns a report with `skipped` set.
        """
        if self._sweeping:
            logger.info("push_already_running")
            return PushReport(skipped=True)

        self._sweeping = True
        try:
            return await self._sweep()
        finally:
            self._sweeping = False

    async def _sweep(self) -> PushReport:
        correlation_id = create_correlation_id()
        report = PushReport(correlation_id=correlation_id)

        pending = [e for e in await self._local.get_all() if e.is_pending]
        if pending:
            await self._audit.log_push_started(
                pending_count=len(pending),
                correlation_id=correlation_id,
            )

        for expense in pending:
            operation = _OPERATIONS[expense.sync_state]
            report.attempted.append(expense.id)
            try:
                await self.push_record(expense)
            except RemoteUnavailableError as e:
                report.failed.append(expense.id)
                report.aborted = True
                await self._audit.log_push_failed(
                    expense_id=expense.id,
                    operation=operation,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
                await self._monitor.record_failure()
                break
            except RemoteRejectedError as e:
                report.failed.append(expense.id)
                await self._audit.log_push_failed(
                    expense_id=expense.id,
                    operation=operation,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
                continue

            report.succeeded.append(expense.id)
            await self._audit.log_push_succeeded(
                expense_id=expense.id,
                operation=operation,
                correlation_id=correlation_id,
            )

        if pending:
            await self._audit.log_push_completed(
                succeeded=len(report.succeeded),
                failed=len(report.failed),
                aborted=report.aborted,
                correlation_id=correlation_id,
            )

        report.working_set = await self.load_working_set(correlation_id=correlation_id)
        return report
