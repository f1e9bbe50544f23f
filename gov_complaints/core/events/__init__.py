"""
Event system for the complaints backend.
"""

from .domain_events import (
    BaseDomainEvent,
    ComplaintCreatedEvent,
    ComplaintStatusChangedEvent,
    EventCategory,
)
from .event_bus import EventBus, EventHandlerRegistry, event_bus

__all__ = [
    "BaseDomainEvent",
    "ComplaintCreatedEvent",
    "ComplaintStatusChangedEvent",
    "EventCategory",
    "EventBus",
    "EventHandlerRegistry",
    "event_bus",
]
