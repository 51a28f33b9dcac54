"""Services package."""

from expense_tracker.services.remote import (
    RemoteError,
    RemoteExpenseClient,
    RemoteNotFoundError,
    RemoteRejectedError,
    RemoteUnavailableError,
)
from expense_tracker.services.storage import (
    AuditStorageInterface,
    DuplicateError,
    ExpenseRepositoryInterface,
    InMemoryExpenseRepository,
    JsonFileExpenseRepository,
    LocalExpenseStoreInterface,
    NotFoundError,
    SqlAlchemyAuditStorage,
    SqlAlchemyLocalStore,
    StorageError,
    StorageUnavailableError,
    create_session_factory,
)

__all__ = [
    # Remote client
    "RemoteError",
    "RemoteExpenseClient",
    "RemoteNotFoundError",
    "RemoteRejectedError",
    "RemoteUnavailableError",
    # Storage services
    "AuditStorageInterface",
    "DuplicateError",
    "ExpenseRepositoryInterface",
    "InMemoryExpenseRepository",
    "JsonFileExpenseRepository",
    "LocalExpenseStoreInterface",
    "NotFoundError",
    "SqlAlchemyAuditStorage",
    "SqlAlchemyLocalStore",
    "StorageError",
    "StorageUnavailableError",
    "create_session_factory",
]
