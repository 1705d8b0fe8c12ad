from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Optional, Sequence

from ..core.enums import EventType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall, fetchone
from .model import Event
from .repository import EventRepository

_SELECT = """
    SELECT e.event_id, e.name, e.description, e.event_date, e.start_time, e.end_time, e.location,
           e.event_type, e.is_active, e.created_by, e.max_participants, u.full_name AS creator_name
    FROM events e
    LEFT JOIN users u ON u.user_id = e.created_by
"""


def _as_time(value) -> Optional[time]:
    # mysql-connector hands TIME columns back as timedelta
    if value is None or isinstance(value, time):
        return value
    if isinstance(value, timedelta):
        return (datetime.min + value).time()
    return time.fromisoformat(str(value))


def _to_event(r: dict) -> Event:
    return Event(
        event_id=int(r["event_id"]),
        name=r["name"],
        description=r.get("description"),
        event_date=r["event_date"],
        start_time=_as_time(r.get("start_time")),
        end_time=_as_time(r.get("end_time")),
        location=r.get("location"),
        event_type=EventType(r["event_type"]),
        is_active=bool(as_bool(r.get("is_active"))),
        created_by=int(r["created_by"]),
        max_participants=r.get("max_participants"),
        creator_name=r.get("creator_name"),
    )


class MySQLEventRepository(EventRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, event_id: int) -> Optional[Event]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE e.event_id=%s", (int(event_id),))
            r = fetchone(cur)
            return _to_event(r) if r else None

    def search(self, query: str, *, limit: int) -> Sequence[Event]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + " WHERE e.is_active=1 AND e.name LIKE %s ORDER BY e.event_date DESC, e.event_id DESC LIMIT %s",
                (f"%{query}%", int(limit)),
            )
            return [_to_event(r) for r in fetchall(cur)]

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO events(name, description, event_date, start_time, end_time, location,
                                   event_type, created_by, max_participants)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    name,
                    description,
                    event_date,
                    start_time,
                    end_time,
                    location,
                    event_type.value,
                    int(created_by),
                    max_participants,
                ),
            )
            return int(cur.lastrowid)

    def set_active(self, event_id: int, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE events SET is_active=%s WHERE event_id=%s", (1 if is_active else 0, int(event_id)))
            return cur.rowcount > 0
