from __future__ import annotations

from datetime import date, time
from typing import Optional, Protocol, Sequence

from ..core.enums import EventType
from .model import Event


class EventRepository(Protocol):
    def get_by_id(self, event_id: int) -> Optional[Event]:
        raise NotImplementedError

    def search(self, query: str, *, limit: int) -> Sequence[Event]:
        """Active events whose name contains ``query``, newest first."""

        raise NotImplementedError

    def create(
        self,
        *,
        name: str,
        event_date: date,
        event_type: EventType,
        created_by: int,
        description: Optional[str] = None,
        start_time: Optional[time] = None,
        end_time: Optional[time] = None,
        location: Optional[str] = None,
        max_participants: Optional[int] = None,
    ) -> int:
        raise NotImplementedError

    def set_active(self, event_id: int, is_active: bool) -> bool:
        raise NotImplementedError
