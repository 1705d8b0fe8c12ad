from __future__ import annotations

import logging
from datetime import date, time
from typing import Optional, Sequence

from ..common.validators import require_non_empty
from ..core.constants import DEFAULT_EVENT_SEARCH_LIMIT, MAX_PAGE_SIZE, MIN_EVENT_QUERY_LENGTH
from ..core.enums import EventType
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..users.model import Actor
from .model import Event
from .repository import EventRepository

logger = logging.getLogger(__name__)


def require_active_event(events: EventRepository, event_id: Optional[int]) -> Optional[Event]:
    """Resolve the event a duty session points at. None passes through."""

    if event_id is None:
        return None
    event = events.get_by_id(int(event_id))
    if not event or not event.is_active:
        raise NotFoundError("Event not found")
    return event


class EventService:
    def __init__(self, events: EventRepository):
        self._events = events

    def search(self, query: Optional[str], *, limit=None) -> Sequence[Event]:
        """Name lookup for autocomplete; fewer than two characters returns nothing."""

        query = (query or "").strip()
        if len(query) < MIN_EVENT_QUERY_LENGTH:
            return []
        try:
            limit = int(limit or DEFAULT_EVENT_SEARCH_LIMIT)
        except (TypeError, ValueError):
            raise ValidationError("limit must be an integer")
        return self._events.search(query, limit=min(MAX_PAGE_SIZE, max(1, limit)))

    def get(self, event_id: int) -> Event:
        event = self._events.get_by_id(int(event_id))
        if not event:
            raise NotFoundError("Event not found")
        return event

    def create(
        self,
        *,
        actor: Actor,
        name: str,
        event_date: date,
        event_type: EventType = EventType.OTHER,
        description: Optional[str] = None,
        start_time: Optional[time] = None,
        end_time: Optional[time] = None,
        location: Optional[str] = None,
        max_participants: Optional[int] = None,
    ) -> Event:
        if not actor.is_elevated:
            raise AuthorizationError("Only core team or teachers can create events")
        name = require_non_empty(name, "name")
        if start_time and end_time and end_time <= start_time:
            raise ValidationError("end_time must be after start_time")
        if max_participants is not None and max_participants < 1:
            raise ValidationError("max_participants must be positive")

        event_id = self._events.create(
            name=name,
            event_date=event_date,
            event_type=event_type,
            created_by=actor.user_id,
            description=(description or "").strip() or None,
            start_time=start_time,
            end_time=end_time,
            location=(location or "").strip() or None,
            max_participants=max_participants,
        )
        logger.info("Event %s (%s) created by %s", event_id, name, actor.user_id)
        return self.get(event_id)

    def deactivate(self, *, actor: Actor, event_id: int) -> Event:
        if not actor.is_elevated:
            raise AuthorizationError("Only core team or teachers can archive events")
        event = self.get(event_id)
        self._events.set_active(event.event_id, False)
        return self.get(event.event_id)
