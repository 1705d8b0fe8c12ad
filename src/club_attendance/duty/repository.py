from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from .model import DutyReportRow, DutySession, HourlyLog


class DutySessionRepository(Protocol):
    def get_by_id(self, session_id: int) -> Optional[DutySession]:
        raise NotImplementedError

    def get_active_for_user(self, user_id: int) -> Optional[DutySession]:
        raise NotImplementedError

    def create(
        self,
        *,
        user_id: int,
        start_time: datetime,
        notes: Optional[str] = None,
        event_id: Optional[int] = None,
    ) -> int:
        """Insert an active session. Raises ConflictError if the user already has one."""

        raise NotImplementedError

    def close(self, session_id: int, *, end_time: datetime, break_duration: int, total_duration: int) -> bool:
        raise NotImplementedError

    def add_break_minutes(self, session_id: int, minutes: int) -> bool:
        raise NotImplementedError

    def update_details(self, session_id: int, *, notes: Optional[str], event_id: Optional[int]) -> bool:
        raise NotImplementedError

    def list_history(
        self,
        *,
        user_id: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: int = 200,
    ) -> Sequence[DutySession]:
        raise NotImplementedError

    def find_overlapping(self, *, user_id: int, day_start: datetime, day_end: datetime) -> Optional[DutySession]:
        raise NotImplementedError

    def get_report_rows(
        self,
        *,
        start_date: date,
        end_date: date,
        user_id: Optional[int] = None,
    ) -> Sequence[DutyReportRow]:
        raise NotImplementedError


class HourlyLogRepository(Protocol):
    def get_by_id(self, log_id: int) -> Optional[HourlyLog]:
        raise NotImplementedError

    def list_for_session(self, session_id: int) -> Sequence[HourlyLog]:
        """Logs of a session ordered by log_time ascending."""

        raise NotImplementedError

    def list_between(self, *, start: datetime, end: datetime) -> Sequence[HourlyLog]:
        raise NotImplementedError

    def create(
        self,
        *,
        session_id: int,
        user_id: int,
        log_time: datetime,
        previous_hour_work: str,
        next_hour_plan: str,
    ) -> int:
        raise NotImplementedError

    def update_text(self, log_id: int, *, previous_hour_work: str, next_hour_plan: str) -> bool:
        raise NotImplementedError

    def set_break_start(self, log_id: int, at: datetime) -> bool:
        raise NotImplementedError

    def set_break_end(self, log_id: int, at: datetime) -> bool:
        raise NotImplementedError
