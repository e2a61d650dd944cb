"""Publish/subscribe hub for combat events."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from dungeon_combat.core.logging import get_logger


logger = get_logger(__name__)

EventHandler = Callable[[Any], None]

_ALL_EVENTS = "*"


class EventBus:
    """Deliver combat events to subscribers in subscription order.

    Handlers subscribe either to one event tag (``"combat-ended"``) or to
    every event. A failing handler is logged and skipped; it never stops
    delivery to the others or interrupts combat.

    Example:
        >>> bus = EventBus()
        >>> bus.subscribe(print, "combat-ended")
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = {}
        self.emitted = 0

    def subscribe(self, handler: EventHandler, event_type: str | None = None) -> None:
        """Register a handler.

        Args:
            handler: Callable receiving the event model.
            event_type: Event tag to listen for, or None for all events.
        """
        key = event_type or _ALL_EVENTS
        if key not in self._handlers:
            self._handlers[key] = []
        self._handlers[key].append(handler)

    def unsubscribe(self, handler: EventHandler, event_type: str | None = None) -> bool:
        """Remove a handler; returns False if it was not registered."""
        handlers = self._handlers.get(event_type or _ALL_EVENTS, [])
        if handler in handlers:
            handlers.remove(handler)
            return True
        return False

    def emit(self, event: Any) -> None:
        """Deliver ``event`` to handlers for its tag, then to catch-all handlers."""
        event_type = getattr(event, "event", type(event).__name__)
        self.emitted += 1
        handlers = [*self._handlers.get(event_type, []), *self._handlers.get(_ALL_EVENTS, [])]
        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.exception(
                    "Event handler error",
                    event_type=event_type,
                )


__all__ = [
    "EventBus",
    "EventHandler",
]
