from __future__ import annotations

from datetime import datetime
from typing import Sequence

from ...common.datetime_utils import minutes_between
from ..model import DutySession, HourlyLog
from .base import DutyCalculator


class StandardDutyCalculator(DutyCalculator):
    """Standard rule: (end - start) - break minutes, not below 0."""

    def worked_minutes(self, *, start: datetime, end: datetime, break_minutes: int) -> int:
        minutes = minutes_between(start, end) - int(break_minutes or 0)
        return max(minutes, 0)

    def break_minutes(self, session: DutySession, logs: Sequence[HourlyLog], *, now: datetime) -> int:
        # closed breaks are already folded into break_duration; only open ones are pending
        pending = sum(log.break_minutes(now) for log in logs if log.has_open_break)
        return int(session.break_duration or 0) + pending
