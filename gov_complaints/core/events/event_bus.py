"""
Event bus implementation for the complaints backend.

Handlers run synchronously in the publishing thread, after the
publisher's transaction has committed. A failing handler is logged and
does not stop the remaining handlers.
"""
from typing import Any, Callable, Dict, List

from gov_complaints.core.events.domain_events import BaseDomainEvent
from gov_complaints.core.logging import get_logger

logger = get_logger(__name__)

EventHandler = Callable[[BaseDomainEvent], None]


class EventHandlerRegistry:
    """Registry for event handlers."""

    def __init__(self):
        self._handlers: Dict[str, List[EventHandler]] = {}

    def register(self, event_type: str, handler: EventHandler) -> None:
        self._handlers.setdefault(event_type, []).append(handler)

    def unregister(self, event_type: str, handler: EventHandler) -> None:
        if handler in self._handlers.get(event_type, []):
            self._handlers[event_type].remove(handler)

    def get_handlers(self, event_type: str) -> List[EventHandler]:
        return list(self._handlers.get(event_type, []))

    def clear(self) -> None:
        self._handlers.clear()


class EventBus:
    """
    Event bus for handling application events.
    """

    def __init__(self):
        self._registry = EventHandlerRegistry()

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        """
        Subscribe a handler to an event type.

        Args:
            event_type: The type of event to subscribe to (event class name)
            handler: Callable receiving the event
        """
        self._registry.register(event_type, handler)
        logger.info(f"Registered handler for event type: {event_type}")

    def unsubscribe(self, event_type: str, handler: EventHandler) -> None:
        self._registry.unregister(event_type, handler)
        logger.info(f"Unregistered handler for event type: {event_type}")

    def publish(self, event: BaseDomainEvent) -> int:
        """
        Publish an event to every subscribed handler.

        Args:
            event: The event to publish

        Returns:
            Number of handlers that completed without error
        """
        handlers = self._registry.get_handlers(event.event_type)

        if not handlers:
            logger.debug(f"No handlers found for event type: {event.event_type}")
            return 0

        delivered = 0
        for handler in handlers:
            try:
                handler(event)
                delivered += 1
            except Exception as e:
                logger.error(
                    f"Error handling event {event.event_type}: {str(e)}",
                    exc_info=True,
                    extra={"event_id": event.event_id},
                )
        return delivered

    def get_stats(self) -> Dict[str, Any]:
        return {
            "registered_handlers": {
                event_type: len(handlers)
                for event_type, handlers in self._registry._handlers.items()
            }
        }


# Global event bus instance
event_bus = EventBus()
