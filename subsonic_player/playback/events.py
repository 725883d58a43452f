"""
Observer fan-out.

Listeners are plain callables; a listener that raises is logged and the
remaining listeners still run.
"""

import logging
from typing import Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Unsubscribe = Callable[[], None]


class EventEmitter(Generic[T]):
    """Synchronous event emitter for a single payload type."""

    def __init__(self, name: str = "event") -> None:
        self._name = name
        self._listeners: list[Callable[[T], None]] = []

    def subscribe(self, listener: Callable[[T], None]) -> Unsubscribe:
        """
        Register ``listener``.

        Returns:
            Callable that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def emit(self, payload: T) -> None:
        """Deliver ``payload`` to every listener."""
        for listener in list(self._listeners):
            try:
                listener(payload)
            except Exception as e:
                logger.error(f"{self._name} listener error: {e}", exc_info=True)

    def __len__(self) -> int:
        return len(self._listeners)
