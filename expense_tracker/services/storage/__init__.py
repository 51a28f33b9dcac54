"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage:
a JSON file for the record service, SQLite (via SQLAlchemy) for the client.
"""

from expense_tracker.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    ExpenseRepositoryInterface,
    LocalExpenseStoreInterface,
    NotFoundError,
    StorageError,
    StorageUnavailableError,
)
from expense_tracker.services.storage.json_file import (
    InMemoryExpenseRepository,
    JsonFileExpenseRepository,
)
from expense_tracker.services.storage.local_sqlite import (
    SqlAlchemyAuditStorage,
    SqlAlchemyLocalStore,
    create_session_factory,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "ExpenseRepositoryInterface",
    "LocalExpenseStoreInterface",
    # Exceptions
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    "StorageUnavailableError",
    # Record service implementations
    "InMemoryExpenseRepository",
    "JsonFileExpenseRepository",
    # Local implementations
    "SqlAlchemyAuditStorage",
    "SqlAlchemyLocalStore",
    "create_session_factory",
]
