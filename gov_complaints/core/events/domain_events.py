import json
import time
import uuid
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class EventCategory(Enum):
    """Event category for domain events"""
    COMPLAINT = "complaint"
    SYSTEM = "system"


@dataclass
class BaseDomainEvent:
    """Base domain event class"""

    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    event_type: Optional[str] = None
    event_category: EventCategory = EventCategory.SYSTEM
    timestamp: float = field(default_factory=time.time)
    actor_id: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.event_type is None:
            self.event_type = self.__class__.__name__

    def to_dict(self) -> Dict[str, Any]:
        event_dict = asdict(self)
        event_dict['event_category'] = self.event_category.value
        return event_dict

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)


# Complaint events
@dataclass
class ComplaintCreatedEvent(BaseDomainEvent):
    """Event when a citizen files a complaint"""

    event_category: EventCategory = EventCategory.COMPLAINT

    complaint_id: Optional[str] = None
    tracking_number: Optional[str] = None
    entity_id: Optional[str] = None
    user_id: Optional[str] = None
    complaint_kind: Optional[str] = None


@dataclass
class ComplaintStatusChangedEvent(BaseDomainEvent):
    """Event when a complaint moves between workflow statuses"""

    event_category: EventCategory = EventCategory.COMPLAINT

    complaint_id: Optional[str] = None
    tracking_number: Optional[str] = None
    old_status: Optional[str] = None
    new_status: Optional[str] = None
