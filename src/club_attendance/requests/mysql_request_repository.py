from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import RequestStatus, RequestType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import conflict_on_duplicate, db_cursor, fetchall, fetchone, where_clause
from .model import LeaveRequest, RequestFilter
from .repository import LeaveRequestRepository

_SELECT = """
    SELECT r.request_id, r.user_id, u.full_name, r.request_type, r.request_date, r.reason, r.status,
           r.submitted_at, r.decided_by, r.decided_at, r.rejection_reason
    FROM leave_requests r
    JOIN users u ON u.user_id = r.user_id
"""


def _to_request(r: dict) -> LeaveRequest:
    return LeaveRequest(
        request_id=int(r["request_id"]),
        user_id=int(r["user_id"]),
        full_name=r.get("full_name"),
        request_type=RequestType(r["request_type"]),
        request_date=r["request_date"],
        reason=r["reason"],
        status=RequestStatus(r["status"]),
        submitted_at=r["submitted_at"],
        decided_by=r.get("decided_by"),
        decided_at=r.get("decided_at"),
        rejection_reason=r.get("rejection_reason"),
    )


class MySQLLeaveRequestRepository(LeaveRequestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, request_id: int) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE r.request_id=%s", (int(request_id),))
            r = fetchone(cur)
            return _to_request(r) if r else None

    def exists_for_date(self, *, user_id: int, request_date: date, exclude_id: Optional[int] = None) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT 1 FROM leave_requests
                WHERE user_id=%s AND request_date=%s AND request_id <> %s
                LIMIT 1
                """,
                (int(user_id), request_date, int(exclude_id or 0)),
            )
            return fetchone(cur) is not None

    def create(
        self,
        *,
        user_id: int,
        request_type: RequestType,
        request_date: date,
        reason: str,
        submitted_at: datetime,
    ) -> int:
        with conflict_on_duplicate("A request for this date already exists"):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO leave_requests(user_id, request_type, request_date, reason, status, submitted_at)
                    VALUES(%s,%s,%s,%s,'pending',%s)
                    """,
                    (int(user_id), request_type.value, request_date, reason, submitted_at),
                )
                return int(cur.lastrowid)

    def update(self, request_id: int, *, request_date: date, reason: str) -> bool:
        with conflict_on_duplicate("A request for this date already exists"):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    "UPDATE leave_requests SET request_date=%s, reason=%s WHERE request_id=%s AND status='pending'",
                    (request_date, reason, int(request_id)),
                )
                return cur.rowcount > 0

    def delete(self, request_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM leave_requests WHERE request_id=%s AND status='pending'", (int(request_id),))
            return cur.rowcount > 0

    def decide(
        self,
        request_id: int,
        *,
        status: RequestStatus,
        decided_by: int,
        decided_at: datetime,
        rejection_reason: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_requests
                SET status=%s, decided_by=%s, decided_at=%s, rejection_reason=%s
                WHERE request_id=%s AND status='pending'
                """,
                (status.value, int(decided_by), decided_at, rejection_reason, int(request_id)),
            )
            return cur.rowcount > 0

    def list_requests(self, filters: RequestFilter, *, limit: int, offset: int) -> tuple[Sequence[LeaveRequest], int]:
        clauses, params = [], []
        if filters.user_id is not None:
            clauses.append("r.user_id=%s")
            params.append(int(filters.user_id))
        if filters.status is not None:
            clauses.append("r.status=%s")
            params.append(filters.status.value)
        if filters.date_from is not None:
            clauses.append("r.request_date >= %s")
            params.append(filters.date_from)
        if filters.date_to is not None:
            clauses.append("r.request_date <= %s")
            params.append(filters.date_to)
        where = where_clause(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS cnt FROM leave_requests r WHERE {where}", tuple(params))
            total = int((fetchone(cur) or {"cnt": 0})["cnt"])
            cur.execute(
                _SELECT + f" WHERE {where} ORDER BY r.request_date DESC, r.request_id DESC LIMIT %s OFFSET %s",
                tuple(params + [int(limit), int(offset)]),
            )
            return [_to_request(r) for r in fetchall(cur)], total

    def count_by_status(self) -> dict[str, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT status, COUNT(*) AS cnt FROM leave_requests GROUP BY status")
            counts = {s.value: 0 for s in RequestStatus}
            for r in fetchall(cur):
                counts[r["status"]] = int(r["cnt"])
            counts["total"] = sum(counts.values())
            return counts
