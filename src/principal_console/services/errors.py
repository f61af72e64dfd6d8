from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class LoadErrorCategory(str, Enum):
    NETWORK = "network"
    TIMEOUT = "timeout"
    PERMISSION = "permission"
    INVALID_PAYLOAD = "invalid_payload"
    UNKNOWN = "unknown"


@dataclass(slots=True)
class ForestLoadError(Exception):
    """Raised when the forest loader rejects; the previous view stays intact."""

    message: str
    provider: str | None = None
    org_id: str | None = None
    category: LoadErrorCategory = LoadErrorCategory.UNKNOWN
    inner_error: Exception | None = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.message

    @property
    def is_retriable(self) -> bool:
        return self.category in {LoadErrorCategory.NETWORK, LoadErrorCategory.TIMEOUT}

    @property
    def recovery_suggestion(self) -> str | None:
        if self.category is LoadErrorCategory.NETWORK:
            return "Check the connection to the security provider and reload."
        if self.category is LoadErrorCategory.TIMEOUT:
            return "The provider took too long to answer. Retry shortly."
        if self.category is LoadErrorCategory.PERMISSION:
            return "The signed-in administrator cannot list principals for this scope."
        if self.category is LoadErrorCategory.INVALID_PAYLOAD:
            return "The provider returned malformed principal data. Check its configuration."
        return None


def categorize_load_error(error: Exception) -> LoadErrorCategory:
    """Map a loader exception onto a coarse category for user messaging."""

    if isinstance(error, TimeoutError):
        return LoadErrorCategory.TIMEOUT
    if isinstance(error, PermissionError):
        return LoadErrorCategory.PERMISSION
    if isinstance(error, (ConnectionError, OSError)):
        return LoadErrorCategory.NETWORK
    if isinstance(error, (ValueError, TypeError)):
        return LoadErrorCategory.INVALID_PAYLOAD
    return LoadErrorCategory.UNKNOWN


__all__ = ["ForestLoadError", "LoadErrorCategory", "categorize_load_error"]
