"""Shared utility helpers for the principal console."""

from .logging import (
    LoggingOptions,
    configure_from_settings,
    configure_logging,
    get_logger,
    log_file_path,
)
from .observable import EventHook, ObservableValue
from .sanitize import sanitize_log_message, sanitize_search_text

__all__ = [
    "LoggingOptions",
    "configure_from_settings",
    "configure_logging",
    "get_logger",
    "log_file_path",
    "EventHook",
    "ObservableValue",
    "sanitize_search_text",
    "sanitize_log_message",
]
