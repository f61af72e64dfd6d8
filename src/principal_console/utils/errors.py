from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum

from pydantic import ValidationError

from principal_console.services.errors import ForestLoadError, LoadErrorCategory


class ErrorSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(slots=True)
class ErrorDescriptor:
    headline: str
    detail: str
    severity: ErrorSeverity = ErrorSeverity.ERROR
    transient: bool = False
    suggestion: str | None = None


def describe_exception(error: Exception) -> ErrorDescriptor:
    descriptor = ErrorDescriptor(
        headline="Principal console operation failed.",
        detail=f"{type(error).__name__}: {error}",
        severity=ErrorSeverity.ERROR,
        transient=False,
    )

    load_error = _locate_load_error(error)
    if load_error is not None:
        descriptor.headline = _load_headline(load_error)
        descriptor.detail = _format_load_detail(load_error)
        descriptor.suggestion = load_error.recovery_suggestion
        descriptor.transient = load_error.is_retriable
        if load_error.is_retriable:
            descriptor.severity = ErrorSeverity.WARNING
        return descriptor

    root = _unwrap_error(error)

    if isinstance(root, ValidationError):
        descriptor.headline = "Principal data failed validation."
        descriptor.detail = f"{root.title}: {root.error_count()} invalid field(s)"
        descriptor.suggestion = "Check the provider's principal export for missing names or unknown types."
        return descriptor

    if isinstance(root, (asyncio.TimeoutError, TimeoutError)):
        descriptor.headline = "The security provider did not answer in time."
        descriptor.detail = f"{type(root).__name__}: no response"
        descriptor.severity = ErrorSeverity.WARNING
        descriptor.transient = True
        descriptor.suggestion = "Reload the tree once the provider is reachable."
        return descriptor

    if isinstance(root, ConnectionError):
        descriptor.headline = "Lost the connection to the security provider."
        descriptor.detail = f"{type(root).__name__}: {root}"
        descriptor.severity = ErrorSeverity.WARNING
        descriptor.transient = True
        descriptor.suggestion = "Reload the tree once the connection is back."
        return descriptor

    return descriptor


def _locate_load_error(error: Exception) -> ForestLoadError | None:
    current: BaseException | None = error
    visited: set[int] = set()
    while current is not None and id(current) not in visited:
        visited.add(id(current))
        if isinstance(current, ForestLoadError):
            return current
        current = current.__cause__ or current.__context__
    return None


def _unwrap_error(error: Exception) -> BaseException:
    current: BaseException = error
    visited: set[int] = set()
    while True:
        visited.add(id(current))
        inner = current.__cause__ or current.__context__
        if inner is None or id(inner) in visited:
            return current
        current = inner


def _load_headline(error: ForestLoadError) -> str:
    match error.category:
        case LoadErrorCategory.NETWORK:
            return "Network issue contacting the security provider."
        case LoadErrorCategory.TIMEOUT:
            return "The security provider did not respond in time."
        case LoadErrorCategory.PERMISSION:
            return "Not permitted to list principals for this scope."
        case LoadErrorCategory.INVALID_PAYLOAD:
            return "The security provider returned invalid principal data."
        case _:
            return "Loading principals failed."


def _format_load_detail(error: ForestLoadError) -> str:
    scope = error.provider or "default"
    if error.org_id:
        scope = f"{scope}/{error.org_id}"
    return f"[{scope}] {error}"


__all__ = [
    "ErrorDescriptor",
    "ErrorSeverity",
    "describe_exception",
]
