from __future__ import annotations

from typing import Callable, Generic, TypeVar

from .logging import get_logger


logger = get_logger(__name__)

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)


class EventHook(Generic[T_co]):
    """Simple observer pattern helper for Qt-friendly bridging."""

    def __init__(self) -> None:
        self._subscribers: list[Callable[[T_co], None]] = []

    def subscribe(self, callback: Callable[[T_co], None]) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            try:
                self._subscribers.remove(callback)
            except ValueError:  # pragma: no cover - best effort cleanup
                pass

        return unsubscribe

    def emit(self, payload: T_co) -> None:
        for callback in list(self._subscribers):
            try:
                callback(payload)
            except Exception:  # pragma: no cover - callbacks should not crash producers
                logger.exception("Event callback failed")

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)


class ObservableValue(Generic[T]):
    """Single-value cell that notifies subscribers when its value changes.

    Subscribers registered through :meth:`subscribe` receive the new value.
    ``set`` with an equal value is a no-op unless ``force`` is passed.
    """

    __slots__ = ("_value", "changed")

    def __init__(self, value: T) -> None:
        self._value = value
        self.changed: EventHook[T] = EventHook()

    @property
    def value(self) -> T:
        return self._value

    def set(self, value: T, *, force: bool = False) -> bool:
        if not force and value == self._value:
            return False
        self._value = value
        self.changed.emit(value)
        return True

    def subscribe(self, callback: Callable[[T], None]) -> Callable[[], None]:
        return self.changed.subscribe(callback)

    def __repr__(self) -> str:
        return f"ObservableValue({self._value!r})"


__all__ = ["EventHook", "ObservableValue"]
