from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import HourlyLog
from .repository import HourlyLogRepository

_COLUMNS = (
    "log_id, session_id, user_id, log_time, previous_hour_work, next_hour_plan, break_start_time, break_end_time"
)


def _to_log(r: dict) -> HourlyLog:
    return HourlyLog(
        log_id=int(r["log_id"]),
        session_id=int(r["session_id"]),
        user_id=int(r["user_id"]),
        log_time=r["log_time"],
        previous_hour_work=r["previous_hour_work"],
        next_hour_plan=r["next_hour_plan"],
        break_start_time=r.get("break_start_time"),
        break_end_time=r.get("break_end_time"),
    )


class MySQLHourlyLogRepository(HourlyLogRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, log_id: int) -> Optional[HourlyLog]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM hourly_logs WHERE log_id=%s", (int(log_id),))
            r = fetchone(cur)
            return _to_log(r) if r else None

    def list_for_session(self, session_id: int) -> Sequence[HourlyLog]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM hourly_logs WHERE session_id=%s ORDER BY log_time ASC, log_id ASC",
                (int(session_id),),
            )
            return [_to_log(r) for r in fetchall(cur)]

    def list_between(self, *, start: datetime, end: datetime) -> Sequence[HourlyLog]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM hourly_logs WHERE log_time BETWEEN %s AND %s ORDER BY log_time ASC",
                (start, end),
            )
            return [_to_log(r) for r in fetchall(cur)]

    def create(
        self,
        *,
        session_id: int,
        user_id: int,
        log_time: datetime,
        previous_hour_work: str,
        next_hour_plan: str,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO hourly_logs(session_id, user_id, log_time, previous_hour_work, next_hour_plan)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (int(session_id), int(user_id), log_time, previous_hour_work, next_hour_plan),
            )
            return int(cur.lastrowid)

    def update_text(self, log_id: int, *, previous_hour_work: str, next_hour_plan: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE hourly_logs SET previous_hour_work=%s, next_hour_plan=%s WHERE log_id=%s",
                (previous_hour_work, next_hour_plan, int(log_id)),
            )
            return cur.rowcount > 0

    def set_break_start(self, log_id: int, at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE hourly_logs SET break_start_time=%s WHERE log_id=%s AND break_start_time IS NULL",
                (at, int(log_id)),
            )
            return cur.rowcount > 0

    def set_break_end(self, log_id: int, at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE hourly_logs SET break_end_time=%s
                WHERE log_id=%s AND break_start_time IS NOT NULL AND break_end_time IS NULL
                """,
                (at, int(log_id)),
            )
            return cur.rowcount > 0
