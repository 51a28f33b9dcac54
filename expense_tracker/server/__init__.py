"""Remote record service (FastAPI)."""

from expense_tracker.server.app import create_app

__all__ = ["create_app"]
