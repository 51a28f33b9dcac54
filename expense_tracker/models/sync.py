"""
Sync Models

Result types returned by the reconciliation logic.
"""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from expense_tracker.models.expense import LocalExpense


class PushReport(BaseModel):
    """Outcome of one push sweep over the pending local records."""

    correlation_id: Optional[UUID] = None

    attempted: list[str] = Field(
        default_factory=list,
        description="Ids of the records a request was issued for"
    )
    succeeded: list[str] = Field(
        default_factory=list,
        description="Ids confirmed by the service (now clean or removed)"
    )
    failed: list[str] = Field(
        default_factory=list,
        description="Ids left pending"
    )

    # The sweep stopped early because the service became unreachable
    aborted: bool = False
    # Another sweep was already running; nothing was done
    skipped: bool = False

    working_set: list[LocalExpense] = Field(
        default_factory=list,
        description="Merged view after the sweep"
    )
