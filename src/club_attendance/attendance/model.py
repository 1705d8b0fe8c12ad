from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..common.datetime_utils import iso_or_none
from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceRecord:
    attendance_id: int
    user_id: int
    work_date: date
    status: AttendanceStatus
    is_approved: Optional[bool] = None
    duty_eligible: Optional[bool] = None
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    note: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return self.is_approved is None

    def to_dict(self) -> dict:
        return {
            "attendance_id": self.attendance_id,
            "user_id": self.user_id,
            "work_date": iso_or_none(self.work_date),
            "status": self.status.value,
            "is_approved": self.is_approved,
            "duty_eligible": self.duty_eligible,
            "approved_by": self.approved_by,
            "approved_at": iso_or_none(self.approved_at),
            "note": self.note,
        }


@dataclass(frozen=True)
class AttendanceFilter:
    user_id: Optional[int] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None


@dataclass(frozen=True)
class AttendanceReportRow:
    """Joined row for attendance reports (record + member)."""

    attendance_id: int
    user_id: int
    full_name: str
    email: str
    student_code: Optional[str]
    work_date: date
    status: AttendanceStatus
    is_approved: Optional[bool]
    duty_eligible: Optional[bool]
    note: Optional[str]
