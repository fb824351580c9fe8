"""
Event module - Structured progress events delivered to live subscribers
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from .enums import EventType


@dataclass(frozen=True)
class Event:
    """An immutable progress event."""
    type: EventType
    task_id: Optional[str] = None
    data: Mapping[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        object.__setattr__(self, "data", MappingProxyType(dict(self.data)))

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"type": self.type.value}
        if self.task_id:
            payload["taskId"] = self.task_id
        if self.data:
            payload["data"] = dict(self.data)
        payload["timestamp"] = self.timestamp.isoformat()
        return payload

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)


def create_event(event_type: EventType, task_id: Optional[str] = None, **data: Any) -> Event:
    """Build an event stamped with the current time."""
    return Event(type=event_type, task_id=task_id, data=data)
