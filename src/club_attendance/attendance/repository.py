from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceFilter, AttendanceRecord, AttendanceReportRow


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def create(
        self,
        *,
        user_id: int,
        work_date: date,
        status: AttendanceStatus,
        note: Optional[str] = None,
    ) -> int:
        """Insert a record. Raises ConflictError if (user_id, work_date) already exists."""

        raise NotImplementedError

    def upsert_status(self, *, user_id: int, work_date: date, status: AttendanceStatus) -> None:
        raise NotImplementedError

    def set_duty_eligible(self, *, user_id: int, work_date: date, eligible: bool) -> bool:
        raise NotImplementedError

    def set_approval(
        self,
        attendance_id: int,
        *,
        is_approved: bool,
        approved_by: int,
        approved_at: datetime,
        note: Optional[str],
    ) -> bool:
        raise NotImplementedError

    def list_pending(
        self, filters: AttendanceFilter, *, limit: int, offset: int
    ) -> tuple[Sequence[AttendanceRecord], int]:
        raise NotImplementedError

    def list_for_user(self, user_id: int, *, limit: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_for_date(self, work_date: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def status_counts(self) -> dict[str, int]:
        raise NotImplementedError

    def get_report_rows(
        self,
        *,
        start_date: date,
        end_date: date,
        user_id: Optional[int] = None,
    ) -> Sequence[AttendanceReportRow]:
        raise NotImplementedError
