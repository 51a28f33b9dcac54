"""
Data Models Package

This package contains all Pydantic models used in the Personal Expense Tracker.
All data flowing through the system must conform to these schemas.
"""

from expense_tracker.models.expense import (
    Expense,
    ExpenseCategory,
    ExpenseFields,
    LocalExpense,
    SyncState,
    new_expense_id,
)
from expense_tracker.models.sync import PushReport
from expense_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Expense models
    "Expense",
    "ExpenseCategory",
    "ExpenseFields",
    "LocalExpense",
    "SyncState",
    "new_expense_id",
    # Sync models
    "PushReport",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
