"""Configuration package."""

from expense_tracker.config.settings import (
    AppSettings,
    ClientSettings,
    ServerSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "ClientSettings",
    "ServerSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
