from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import conflict_on_duplicate, db_cursor, fetchall, fetchone, where_clause
from .model import DutyReportRow, DutySession
from .repository import DutySessionRepository

_COLUMNS = "session_id, user_id, event_id, start_time, end_time, break_duration, total_duration, is_active, notes"


def _to_session(r: dict) -> DutySession:
    return DutySession(
        session_id=int(r["session_id"]),
        user_id=int(r["user_id"]),
        event_id=r.get("event_id"),
        start_time=r["start_time"],
        end_time=r.get("end_time"),
        break_duration=int(r.get("break_duration") or 0),
        total_duration=int(r["total_duration"]) if r.get("total_duration") is not None else None,
        is_active=bool(r["is_active"]),
        notes=r.get("notes"),
    )


class MySQLDutySessionRepository(DutySessionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, session_id: int) -> Optional[DutySession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM duty_sessions WHERE session_id=%s", (int(session_id),))
            r = fetchone(cur)
            return _to_session(r) if r else None

    def get_active_for_user(self, user_id: int) -> Optional[DutySession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM duty_sessions WHERE user_id=%s AND is_active=1 LIMIT 1",
                (int(user_id),),
            )
            r = fetchone(cur)
            return _to_session(r) if r else None

    def create(
        self,
        *,
        user_id: int,
        start_time: datetime,
        notes: Optional[str] = None,
        event_id: Optional[int] = None,
    ) -> int:
        with conflict_on_duplicate("Active duty session already exists"):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO duty_sessions(user_id, event_id, start_time, break_duration, is_active, notes)
                    VALUES(%s,%s,%s,0,1,%s)
                    """,
                    (int(user_id), event_id, start_time, notes),
                )
                return int(cur.lastrowid)

    def close(self, session_id: int, *, end_time: datetime, break_duration: int, total_duration: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE duty_sessions
                SET end_time=%s, break_duration=%s, total_duration=%s, is_active=0
                WHERE session_id=%s AND is_active=1
                """,
                (end_time, int(break_duration), int(total_duration), int(session_id)),
            )
            return cur.rowcount > 0

    def add_break_minutes(self, session_id: int, minutes: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE duty_sessions SET break_duration = break_duration + %s WHERE session_id=%s",
                (int(minutes), int(session_id)),
            )
            return cur.rowcount > 0

    def update_details(self, session_id: int, *, notes: Optional[str], event_id: Optional[int]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE duty_sessions SET notes=%s, event_id=%s WHERE session_id=%s",
                (notes, event_id, int(session_id)),
            )
            return cur.rowcount > 0

    def list_history(
        self,
        *,
        user_id: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: int = 200,
    ) -> Sequence[DutySession]:
        clauses, params = [], []
        if user_id is not None:
            clauses.append("user_id=%s")
            params.append(int(user_id))
        if start is not None:
            clauses.append("start_time >= %s")
            params.append(start)
        if end is not None:
            clauses.append("start_time <= %s")
            params.append(end)
        params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM duty_sessions
                WHERE {where_clause(clauses)}
                ORDER BY start_time DESC
                LIMIT %s
                """,
                tuple(params),
            )
            return [_to_session(r) for r in fetchall(cur)]

    def find_overlapping(self, *, user_id: int, day_start: datetime, day_end: datetime) -> Optional[DutySession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM duty_sessions
                WHERE user_id=%s AND start_time <= %s AND (end_time IS NULL OR end_time >= %s)
                ORDER BY start_time DESC
                LIMIT 1
                """,
                (int(user_id), day_end, day_start),
            )
            r = fetchone(cur)
            return _to_session(r) if r else None

    def get_report_rows(
        self,
        *,
        start_date: date,
        end_date: date,
        user_id: Optional[int] = None,
    ) -> Sequence[DutyReportRow]:
        clauses = ["DATE(s.start_time) BETWEEN %s AND %s"]
        params: list = [start_date, end_date]
        if user_id is not None:
            clauses.append("s.user_id=%s")
            params.append(int(user_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT s.session_id, s.user_id, u.full_name, u.email,
                       s.start_time, s.end_time, s.break_duration, s.total_duration, s.is_active,
                       COUNT(l.log_id) AS log_count
                FROM duty_sessions s
                JOIN users u ON u.user_id = s.user_id
                LEFT JOIN hourly_logs l ON l.session_id = s.session_id
                WHERE {where_clause(clauses)}
                GROUP BY s.session_id, s.user_id, u.full_name, u.email,
                         s.start_time, s.end_time, s.break_duration, s.total_duration, s.is_active
                ORDER BY s.start_time, u.full_name
                """,
                tuple(params),
            )
            return [
                DutyReportRow(
                    session_id=int(r["session_id"]),
                    user_id=int(r["user_id"]),
                    full_name=r["full_name"],
                    email=r["email"],
                    start_time=r["start_time"],
                    end_time=r.get("end_time"),
                    break_duration=int(r.get("break_duration") or 0),
                    total_duration=int(r["total_duration"]) if r.get("total_duration") is not None else None,
                    is_active=bool(r["is_active"]),
                    log_count=int(r.get("log_count") or 0),
                )
                for r in fetchall(cur)
            ]
