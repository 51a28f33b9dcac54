"""Connectivity tracking and local/remote reconciliation."""

from expense_tracker.sync.connectivity import ConnectivityMonitor
from expense_tracker.sync.reconciler import ExpenseReconciler

__all__ = ["ConnectivityMonitor", "ExpenseReconciler"]
