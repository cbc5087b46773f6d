from __future__ import annotations

from collections.abc import Callable
from typing import Generic, TypeVar

T = TypeVar("T")

Listener = Callable[[T], None]


class Subscription:
    """Handle returned by `Emitter.subscribe()`; `cancel()` detaches the listener."""

    def __init__(self, detach: Callable[[], None]) -> None:
        self._detach: Callable[[], None] | None = detach

    @property
    def active(self) -> bool:
        return self._detach is not None

    def cancel(self) -> None:
        detach = self._detach
        self._detach = None
        if detach is not None:
            detach()


class Emitter(Generic[T]):
    """Synchronous fan-out to listeners, in subscription order.

    Listeners subscribed or cancelled during an `emit()` take effect from the next emit.
    """

    def __init__(self) -> None:
        self._listeners: list[Listener[T]] = []

    def __len__(self) -> int:
        return len(self._listeners)

    def subscribe(self, listener: Listener[T]) -> Subscription:
        self._listeners.append(listener)

        def _detach() -> None:
            # Identity-based removal: the same callable may be subscribed twice.
            for idx, existing in enumerate(self._listeners):
                if existing is listener:
                    del self._listeners[idx]
                    return

        return Subscription(_detach)

    def emit(self, value: T) -> None:
        for listener in list(self._listeners):
            listener(value)

    def clear(self) -> None:
        self._listeners.clear()
