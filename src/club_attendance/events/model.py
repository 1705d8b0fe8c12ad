from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from typing import Optional

from ..common.datetime_utils import iso_or_none
from ..core.enums import EventType


@dataclass(frozen=True)
class Event:
    event_id: int
    name: str
    event_date: date
    event_type: EventType
    created_by: int
    description: Optional[str] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    location: Optional[str] = None
    is_active: bool = True
    max_participants: Optional[int] = None
    creator_name: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "event_id": self.event_id,
            "name": self.name,
            "description": self.description,
            "event_date": iso_or_none(self.event_date),
            "start_time": self.start_time.strftime("%H:%M") if self.start_time else None,
            "end_time": self.end_time.strftime("%H:%M") if self.end_time else None,
            "location": self.location,
            "event_type": self.event_type.value,
            "is_active": self.is_active,
            "max_participants": self.max_participants,
            "creator": self.creator_name or "Unknown",
        }
