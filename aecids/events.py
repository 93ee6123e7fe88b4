"""Event — minimal synchronous publish/subscribe primitive.

Components expose ``Event`` attributes (``on_model_disposed``,
``on_relations_indexed``...) and collaborators register handlers on them
explicitly, so wiring is always visible at construction time.
"""

from __future__ import annotations

import logging
from typing import Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Event(Generic[T]):
    """A list of handlers called in registration order on :meth:`trigger`."""

    def __init__(self) -> None:
        self._handlers: list[Callable[[T], None]] = []

    def add(self, handler: Callable[[T], None]) -> None:
        """Register *handler*.  Registering the same handler twice is a no-op."""
        if handler not in self._handlers:
            self._handlers.append(handler)

    def remove(self, handler: Callable[[T], None]) -> None:
        """Unregister *handler* if present."""
        if handler in self._handlers:
            self._handlers.remove(handler)

    def trigger(self, data: T) -> None:
        """Call every handler with *data*.

        A failing handler is logged and does not prevent the remaining
        handlers from running.
        """
        for handler in list(self._handlers):
            try:
                handler(data)
            except Exception:
                logger.error(
                    "Event handler %r failed", handler, exc_info=True
                )

    def reset(self) -> None:
        """Drop all handlers."""
        self._handlers.clear()

    def __len__(self) -> int:
        return len(self._handlers)
