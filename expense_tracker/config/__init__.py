"""Configuration package."""

from expense_tracker.config.settings import LedgerSettings, get_settings

__all__ = [
    "LedgerSettings",
    "get_settings",
]
