from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import iso_or_none, minutes_between


@dataclass(frozen=True)
class DutySession:
    session_id: int
    user_id: int
    start_time: datetime
    end_time: Optional[datetime]
    break_duration: int
    total_duration: Optional[int]
    is_active: bool
    notes: Optional[str] = None
    event_id: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "user_id": self.user_id,
            "event_id": self.event_id,
            "start_time": iso_or_none(self.start_time),
            "end_time": iso_or_none(self.end_time),
            "break_duration": self.break_duration,
            "total_duration": self.total_duration,
            "is_active": self.is_active,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class HourlyLog:
    log_id: int
    session_id: int
    user_id: int
    log_time: datetime
    previous_hour_work: str
    next_hour_plan: str
    break_start_time: Optional[datetime] = None
    break_end_time: Optional[datetime] = None

    @property
    def has_open_break(self) -> bool:
        return self.break_start_time is not None and self.break_end_time is None

    def break_minutes(self, now: Optional[datetime] = None) -> int:
        if self.break_start_time is None:
            return 0
        end = self.break_end_time or now
        if end is None:
            return 0
        return max(0, minutes_between(self.break_start_time, end))

    def to_dict(self) -> dict:
        return {
            "log_id": self.log_id,
            "session_id": self.session_id,
            "user_id": self.user_id,
            "log_time": iso_or_none(self.log_time),
            "previous_hour_work": self.previous_hour_work,
            "next_hour_plan": self.next_hour_plan,
            "break_start_time": iso_or_none(self.break_start_time),
            "break_end_time": iso_or_none(self.break_end_time),
        }


@dataclass(frozen=True)
class DutyReportRow:
    """Joined row for duty reports (session + member)."""

    session_id: int
    user_id: int
    full_name: str
    email: str
    start_time: datetime
    end_time: Optional[datetime]
    break_duration: int
    total_duration: Optional[int]
    is_active: bool
    log_count: int
