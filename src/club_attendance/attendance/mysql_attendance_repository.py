from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, conflict_on_duplicate, db_cursor, fetchall, fetchone, where_clause
from .model import AttendanceFilter, AttendanceRecord, AttendanceReportRow
from .repository import AttendanceRepository

_COLUMNS = "attendance_id, user_id, work_date, status, is_approved, duty_eligible, approved_by, approved_at, note"


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        user_id=int(r["user_id"]),
        work_date=r["work_date"],
        status=AttendanceStatus(r["status"]),
        is_approved=as_bool(r.get("is_approved")),
        duty_eligible=as_bool(r.get("duty_eligible")),
        approved_by=r.get("approved_by"),
        approved_at=r.get("approved_at"),
        note=r.get("note"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_records WHERE attendance_id=%s", (int(attendance_id),))
            r = fetchone(cur)
            return _to_record(r) if r else None

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records WHERE user_id=%s AND work_date=%s",
                (int(user_id), work_date),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def create(
        self,
        *,
        user_id: int,
        work_date: date,
        status: AttendanceStatus,
        note: Optional[str] = None,
    ) -> int:
        with conflict_on_duplicate("Attendance already marked for this date"):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(user_id, work_date, status, note)
                    VALUES(%s,%s,%s,%s)
                    """,
                    (int(user_id), work_date, status.value, note),
                )
                return int(cur.lastrowid)

    def upsert_status(self, *, user_id: int, work_date: date, status: AttendanceStatus) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_records(user_id, work_date, status)
                VALUES(%s,%s,%s)
                ON DUPLICATE KEY UPDATE status=VALUES(status)
                """,
                (int(user_id), work_date, status.value),
            )

    def set_duty_eligible(self, *, user_id: int, work_date: date, eligible: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE attendance_records SET duty_eligible=%s WHERE user_id=%s AND work_date=%s",
                (1 if eligible else 0, int(user_id), work_date),
            )
            return cur.rowcount > 0

    def set_approval(
        self,
        attendance_id: int,
        *,
        is_approved: bool,
        approved_by: int,
        approved_at: datetime,
        note: Optional[str],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET is_approved=%s, approved_by=%s, approved_at=%s, note=%s
                WHERE attendance_id=%s
                """,
                (1 if is_approved else 0, int(approved_by), approved_at, note, int(attendance_id)),
            )
            return cur.rowcount > 0

    def list_pending(
        self, filters: AttendanceFilter, *, limit: int, offset: int
    ) -> tuple[Sequence[AttendanceRecord], int]:
        clauses, params = ["is_approved IS NULL"], []
        if filters.user_id is not None:
            clauses.append("user_id=%s")
            params.append(int(filters.user_id))
        if filters.date_from is not None:
            clauses.append("work_date >= %s")
            params.append(filters.date_from)
        if filters.date_to is not None:
            clauses.append("work_date <= %s")
            params.append(filters.date_to)
        where = where_clause(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS cnt FROM attendance_records WHERE {where}", tuple(params))
            total = int((fetchone(cur) or {"cnt": 0})["cnt"])
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM attendance_records
                WHERE {where}
                ORDER BY work_date DESC, created_at DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params + [int(limit), int(offset)]),
            )
            return [_to_record(r) for r in fetchall(cur)], total

    def list_for_user(self, user_id: int, *, limit: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM attendance_records
                WHERE user_id=%s
                ORDER BY work_date DESC
                LIMIT %s
                """,
                (int(user_id), int(limit)),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def list_for_date(self, work_date: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records WHERE work_date=%s ORDER BY user_id",
                (work_date,),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def status_counts(self) -> dict[str, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT
                    SUM(is_approved IS NULL) AS pending,
                    SUM(is_approved = 1) AS approved,
                    SUM(is_approved = 0) AS rejected,
                    COUNT(*) AS total
                FROM attendance_records
                """
            )
            r = fetchone(cur) or {}
            return {k: int(r.get(k) or 0) for k in ("pending", "approved", "rejected", "total")}

    def get_report_rows(
        self,
        *,
        start_date: date,
        end_date: date,
        user_id: Optional[int] = None,
    ) -> Sequence[AttendanceReportRow]:
        clauses = ["a.work_date BETWEEN %s AND %s"]
        params: list = [start_date, end_date]
        if user_id is not None:
            clauses.append("a.user_id=%s")
            params.append(int(user_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT a.attendance_id, a.user_id, u.full_name, u.email, u.student_code,
                       a.work_date, a.status, a.is_approved, a.duty_eligible, a.note
                FROM attendance_records a
                JOIN users u ON u.user_id = a.user_id
                WHERE {where_clause(clauses)}
                ORDER BY a.work_date, u.full_name
                """,
                tuple(params),
            )
            return [
                AttendanceReportRow(
                    attendance_id=int(r["attendance_id"]),
                    user_id=int(r["user_id"]),
                    full_name=r["full_name"],
                    email=r["email"],
                    student_code=r.get("student_code"),
                    work_date=r["work_date"],
                    status=AttendanceStatus(r["status"]),
                    is_approved=as_bool(r.get("is_approved")),
                    duty_eligible=as_bool(r.get("duty_eligible")),
                    note=r.get("note"),
                )
                for r in fetchall(cur)
            ]
