"""Configuration helpers for the membership matrix."""

from .settings import (
    DEFAULT_DEBOUNCE_SECONDS,
    DEFAULT_PAGE_SIZE,
    Settings,
    SettingsManager,
)

__all__ = [
    "DEFAULT_DEBOUNCE_SECONDS",
    "DEFAULT_PAGE_SIZE",
    "Settings",
    "SettingsManager",
]
