"""
Core Data Models for Personal Expense Tracker

These models define the strict schemas for every record flowing between
the local store, the remote record service and the UI.

DESIGN DECISION: The wire representation (Expense) and the local
representation (LocalExpense) are separate models. Sync state lives only
in the local store and is never sent to the remote service.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class ExpenseCategory(str, Enum):
    """
    Supported expense categories.

    The values are the exact strings exchanged with the record service.
    """
    FOOD = "Food"
    TRANSPORT = "Transport"
    RENT = "Rent"
    ENTERTAINMENT = "Entertainment"
    OTHER = "Other"


class SyncState(str, Enum):
    """
    Per-record reconciliation state, held only in the local store.

    Transitions:
        (offline create)          -> PENDING_CREATE
        PENDING_CREATE  --push--> CLEAN
        CLEAN  --offline edit-->  PENDING_UPDATE
        PENDING_UPDATE  --push--> CLEAN
        CLEAN / PENDING_UPDATE --offline delete--> PENDING_DELETE
        PENDING_DELETE  --push--> (removed)
        PENDING_CREATE  --offline delete--> PENDING_DELETE (the POST may have landed)
    """
    CLEAN = "clean"
    PENDING_CREATE = "pending_create"
    PENDING_UPDATE = "pending_update"
    PENDING_DELETE = "pending_delete"


def new_expense_id() -> str:
    """Generate a fresh client-side identifier."""
    return str(uuid4())


# =============================================================================
# EXPENSE MODELS
# =============================================================================

class ExpenseFields(BaseModel):
    """
    The user-editable part of an expense.

    Used by the add/edit form and by PUT /expenses/{id}.
    """
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    amount: Annotated[
        Decimal,
        Field(ge=0, description="Amount spent (non-negative)")
    ]
    description: str = Field(
        ...,
        min_length=1,
        max_length=500,
        description="Free-text label"
    )
    category: ExpenseCategory = Field(
        ...,
        description="Expense category"
    )
    date: date

    @field_serializer("amount", when_used="json")
    def serialize_amount(self, amount: Decimal) -> float:
        """Amounts travel as JSON numbers, not strings."""
        return float(amount)


class Expense(ExpenseFields):
    """
    An expense record as the remote service stores it.

    The id is opaque and stable for the record's lifetime.
    """

    id: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Unique record identifier"
    )

    def to_wire(self) -> dict[str, Any]:
        """JSON-ready dict with exactly the remote fields."""
        data = self.model_dump(mode="json")
        return {
            "id": data["id"],
            "amount": data["amount"],
            "description": data["description"],
            "category": data["category"],
            "date": data["date"],
        }

    def editable_fields(self) -> ExpenseFields:
        """Return just the editable fields."""
        return ExpenseFields(
            amount=self.amount,
            description=self.description,
            category=self.category,
            date=self.date,
        )


class LocalExpense(Expense):
    """
    An expense as held in the local store.

    `synced` is kept as a derived property so callers that only care
    about "is this known remotely with matching content" need not look
    at the full state.
    """

    sync_state: SyncState = Field(
        default=SyncState.PENDING_CREATE,
        description="Reconciliation state of this record"
    )

    @property
    def synced(self) -> bool:
        return self.sync_state == SyncState.CLEAN

    @property
    def is_pending(self) -> bool:
        return self.sync_state != SyncState.CLEAN

    @property
    def is_tombstone(self) -> bool:
        return self.sync_state == SyncState.PENDING_DELETE

    @classmethod
    def from_remote(cls, expense: Expense) -> "LocalExpense":
        """Remote records are clean by definition."""
        return cls(**expense.model_dump(exclude={"sync_state"}), sync_state=SyncState.CLEAN)

    @classmethod
    def from_fields(
        cls,
        expense_id: str,
        fields: ExpenseFields,
        sync_state: SyncState,
    ) -> "LocalExpense":
        return cls(id=expense_id, **fields.model_dump(), sync_state=sync_state)

    def to_expense(self) -> Expense:
        """Strip local state."""
        return Expense(**self.model_dump(exclude={"sync_state"}))

    def with_state(self, sync_state: SyncState) -> "LocalExpense":
        return self.model_copy(update={"sync_state": sync_state})
