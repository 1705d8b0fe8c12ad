from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import StrikeReason, StrikeSeverity
from .model import Strike, StrikeFilter, StrikeReportRow


class StrikeRepository(Protocol):
    def get_by_id(self, strike_id: int) -> Optional[Strike]:
        raise NotImplementedError

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
        raise NotImplementedError

    def count_active(self, user_id: int) -> int:
        raise NotImplementedError

    def find_recent_active(self, *, user_id: int, reason: StrikeReason, since: datetime) -> Optional[Strike]:
        """Latest active strike for the same reason created at or after ``since``."""

        raise NotImplementedError

    def resolve(self, strike_id: int, *, resolved_by: int, resolved_at: datetime, notes: Optional[str]) -> bool:
        raise NotImplementedError

    def list_strikes(self, filters: StrikeFilter, *, limit: int, offset: int) -> tuple[Sequence[Strike], int]:
        """Return one page of strikes (newest first) and the total matching count."""

        raise NotImplementedError

    def list_all(self, filters: StrikeFilter) -> Sequence[Strike]:
        raise NotImplementedError

    def get_report_rows(self, *, start_date: date, end_date: date) -> Sequence[StrikeReportRow]:
        raise NotImplementedError
