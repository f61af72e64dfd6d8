"""Configuration helpers for the principal console."""

from .settings import DEFAULT_ACTIONS, DEFAULT_PROVIDER, Settings, SettingsManager

__all__ = [
    "DEFAULT_ACTIONS",
    "DEFAULT_PROVIDER",
    "Settings",
    "SettingsManager",
]
