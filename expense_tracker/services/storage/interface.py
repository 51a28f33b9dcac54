"""
Abstract Storage Interfaces

DESIGN DECISION: Both sides of the system talk to storage through an
abstract interface:
1. The record service handlers never touch the backing file directly,
   so a flat file can be swapped for an embedded database
2. The client's reconciliation logic never touches SQL, so tests can
   run against an in-memory database
3. Audit persistence is optional and pluggable

The interfaces are intentionally small - only the operations the
handlers and the reconciler need.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from expense_tracker.models.audit import AuditEvent
from expense_tracker.models.expense import Expense, ExpenseFields, LocalExpense


class ExpenseRepositoryInterface(ABC):
    """
    Server-side record store behind the /expenses endpoints.

    Implementations must serialise mutations (single writer) and keep
    ids unique.
    """

    @abstractmethod
    async def load(self) -> None:
        """
        Load persisted records.

        A missing backing store is an empty store, not an error.
        """
        pass

    @abstractmethod
    async def list_expenses(self) -> list[Expense]:
        """Return all records in insertion order."""
        pass

    @abstractmethod
    async def get_expense(self, expense_id: str) -> Optional[Expense]:
        """Return the record with this id, or None."""
        pass

    @abstractmethod
    async def upsert_expense(self, expense: Expense) -> tuple[Expense, bool]:
        """
        Create a record keyed by its client-supplied id.

        If a record with the same id exists it is replaced in place,
        which makes a retried create idempotent.

        Returns:
            (stored_record, created) - created is False for a replace
        """
        pass

    @abstractmethod
    async def update_expense(self, expense_id: str, fields: ExpenseFields) -> Expense:
        """
        Overwrite the editable fields of an existing record.

        Raises:
            NotFoundError: If no record has this id
        """
        pass

    @abstractmethod
    async def delete_expense(self, expense_id: str) -> None:
        """
        Remove a record.

        Raises:
            NotFoundError: If no record has this id
        """
        pass


class LocalExpenseStoreInterface(ABC):
    """
    Client-side key-value collection of expense records, keyed by id.

    Survives across sessions. Each call is atomic for a single record;
    there is no cross-record transaction.
    """

    @abstractmethod
    async def add(self, expense: LocalExpense) -> None:
        """
        Insert a new record.

        Raises:
            DuplicateError: If a record with this id already exists
        """
        pass

    @abstractmethod
    async def get(self, expense_id: str) -> Optional[LocalExpense]:
        """Return the record with this id, or None."""
        pass

    @abstractmethod
    async def get_all(self) -> list[LocalExpense]:
        """Return every record, tombstones included, in insertion order."""
        pass

    @abstractmethod
    async def put(self, expense: LocalExpense) -> None:
        """Insert or overwrite the record with this id."""
        pass

    @abstractmethod
    async def delete(self, expense_id: str) -> None:
        """Remove a record. Removing an unknown id is a no-op."""
        pass

    @abstractmethod
    async def rekey(self, old_id: str, expense: LocalExpense) -> None:
        """
        Replace the record stored under old_id with one stored under
        expense.id, in a single transaction.
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., one push sweep).

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class StorageUnavailableError(StorageError):
    """Could not open or reach the storage backend."""
    pass
