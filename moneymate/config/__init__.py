"""Configuration package."""

from moneymate.config.settings import (
    AppSettings,
    GoogleSheetsSettings,
    SessionSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "GoogleSheetsSettings",
    "SessionSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
