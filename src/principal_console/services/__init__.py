"""Service layer for loading principal forests."""

from .base import EventHook, ProviderScope, RefreshEvent, ServiceErrorEvent
from .errors import ForestLoadError, LoadErrorCategory, categorize_load_error
from .principals import ForestLoader, PayloadForestLoader, PrincipalTreeService

__all__ = [
    "EventHook",
    "ProviderScope",
    "RefreshEvent",
    "ServiceErrorEvent",
    "ForestLoadError",
    "LoadErrorCategory",
    "categorize_load_error",
    "ForestLoader",
    "PayloadForestLoader",
    "PrincipalTreeService",
]
