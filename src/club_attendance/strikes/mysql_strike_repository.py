from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import StrikeReason, StrikeSeverity
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, where_clause
from .model import Strike, StrikeFilter, StrikeReportRow
from .repository import StrikeRepository

_COLUMNS = (
    "strike_id, user_id, reason, description, strike_date, severity, is_active, strike_count_at_time, "
    "session_id, log_id, created_at, resolved_by, resolved_at, resolution_notes"
)


def _to_strike(r: dict) -> Strike:
    return Strike(
        strike_id=int(r["strike_id"]),
        user_id=int(r["user_id"]),
        reason=StrikeReason(r["reason"]),
        description=r.get("description"),
        strike_date=r["strike_date"],
        severity=StrikeSeverity(r["severity"]),
        is_active=bool(r["is_active"]),
        strike_count_at_time=int(r.get("strike_count_at_time") or 0),
        created_at=r["created_at"],
        session_id=r.get("session_id"),
        log_id=r.get("log_id"),
        resolved_by=r.get("resolved_by"),
        resolved_at=r.get("resolved_at"),
        resolution_notes=r.get("resolution_notes"),
    )


def _filter_sql(filters: StrikeFilter) -> tuple[str, list]:
    clauses, params = [], []
    if filters.user_id is not None:
        clauses.append("user_id=%s")
        params.append(int(filters.user_id))
    if filters.reason is not None:
        clauses.append("reason=%s")
        params.append(filters.reason.value)
    if filters.is_active is not None:
        clauses.append("is_active=%s")
        params.append(1 if filters.is_active else 0)
    if filters.start_date is not None:
        clauses.append("strike_date >= %s")
        params.append(filters.start_date)
    if filters.end_date is not None:
        clauses.append("strike_date <= %s")
        params.append(filters.end_date)
    return where_clause(clauses), params


class MySQLStrikeRepository(StrikeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, strike_id: int) -> Optional[Strike]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM strikes WHERE strike_id=%s", (int(strike_id),))
            r = fetchone(cur)
            return _to_strike(r) if r else None

    def create(
        self,
        *,
        user_id: int,
        reason: StrikeReason,
        description: Optional[str],
        severity: StrikeSeverity,
        strike_date: date,
        created_at: datetime,
        strike_count_at_time: int,
        session_id: Optional[int] = None,
        log_id: Optional[int] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO strikes(user_id, reason, description, strike_date, severity, is_active,
                                    strike_count_at_time, session_id, log_id, created_at)
                VALUES(%s,%s,%s,%s,%s,1,%s,%s,%s,%s)
                """,
                (
                    int(user_id),
                    reason.value,
                    description,
                    strike_date,
                    severity.value,
                    int(strike_count_at_time),
                    session_id,
                    log_id,
                    created_at,
                ),
            )
            return int(cur.lastrowid)

    def count_active(self, user_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS cnt FROM strikes WHERE user_id=%s AND is_active=1", (int(user_id),))
            r = fetchone(cur)
            return int(r["cnt"]) if r else 0

    def find_recent_active(self, *, user_id: int, reason: StrikeReason, since: datetime) -> Optional[Strike]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM strikes
                WHERE user_id=%s AND reason=%s AND is_active=1 AND created_at >= %s
                ORDER BY created_at DESC
                LIMIT 1
                """,
                (int(user_id), reason.value, since),
            )
            r = fetchone(cur)
            return _to_strike(r) if r else None

    def resolve(self, strike_id: int, *, resolved_by: int, resolved_at: datetime, notes: Optional[str]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE strikes
                SET is_active=0, resolved_by=%s, resolved_at=%s, resolution_notes=%s
                WHERE strike_id=%s AND is_active=1
                """,
                (int(resolved_by), resolved_at, notes, int(strike_id)),
            )
            return cur.rowcount > 0

    def list_strikes(self, filters: StrikeFilter, *, limit: int, offset: int) -> tuple[Sequence[Strike], int]:
        where, params = _filter_sql(filters)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS cnt FROM strikes WHERE {where}", tuple(params))
            total = int((fetchone(cur) or {"cnt": 0})["cnt"])
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM strikes
                WHERE {where}
                ORDER BY created_at DESC, strike_id DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params + [int(limit), int(offset)]),
            )
            return [_to_strike(r) for r in fetchall(cur)], total

    def list_all(self, filters: StrikeFilter) -> Sequence[Strike]:
        where, params = _filter_sql(filters)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM strikes WHERE {where} ORDER BY created_at DESC", tuple(params))
            return [_to_strike(r) for r in fetchall(cur)]

    def get_report_rows(self, *, start_date: date, end_date: date) -> Sequence[StrikeReportRow]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT s.strike_id, s.user_id, u.full_name, u.email, s.reason, s.severity,
                       s.strike_date, s.is_active, s.description
                FROM strikes s
                JOIN users u ON u.user_id = s.user_id
                WHERE s.strike_date BETWEEN %s AND %s
                ORDER BY s.strike_date, u.full_name
                """,
                (start_date, end_date),
            )
            return [
                StrikeReportRow(
                    strike_id=int(r["strike_id"]),
                    user_id=int(r["user_id"]),
                    full_name=r["full_name"],
                    email=r["email"],
                    reason=StrikeReason(r["reason"]),
                    severity=StrikeSeverity(r["severity"]),
                    strike_date=r["strike_date"],
                    is_active=bool(r["is_active"]),
                    description=r.get("description"),
                )
                for r in fetchall(cur)
            ]
