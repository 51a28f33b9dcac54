"""Remote record service client package."""

from expense_tracker.services.remote.client import (
    RemoteError,
    RemoteExpenseClient,
    RemoteNotFoundError,
    RemoteRejectedError,
    RemoteUnavailableError,
)

__all__ = [
    "RemoteError",
    "RemoteExpenseClient",
    "RemoteNotFoundError",
    "RemoteRejectedError",
    "RemoteUnavailableError",
]
