"""Configuration package."""

from lifepath.config.settings import (
    AppSettings,
    DashboardSettings,
    GoogleSheetsSettings,
    QuizSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "DashboardSettings",
    "GoogleSheetsSettings",
    "QuizSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
