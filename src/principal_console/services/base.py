from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from principal_console.utils import EventHook


T_co = TypeVar("T_co", covariant=True)


@dataclass(frozen=True, slots=True)
class ProviderScope:
    """Security provider and, in multi-tenant mode, organization to load."""

    provider: str
    org_id: str | None = None

    @property
    def label(self) -> str:
        if self.org_id:
            return f"{self.provider}/{self.org_id}"
        return self.provider


@dataclass(slots=True)
class RefreshEvent(Generic[T_co]):
    scope: ProviderScope
    items: T_co
    generation: int


@dataclass(slots=True)
class ServiceErrorEvent:
    scope: ProviderScope
    error: Exception


__all__ = [
    "EventHook",
    "ProviderScope",
    "RefreshEvent",
    "ServiceErrorEvent",
]
