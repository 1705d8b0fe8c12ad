from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

from ..model import DutySession, HourlyLog


@dataclass(frozen=True)
class Eligibility:
    meets: bool
    total_minutes: int
    break_minutes: int

    def to_dict(self) -> dict:
        return {"meets": self.meets, "total": self.total_minutes, "breaks": self.break_minutes}


class DutyCalculator(ABC):
    """Calculator interface (Strategy Pattern for duty time)."""

    @abstractmethod
    def worked_minutes(self, *, start: datetime, end: datetime, break_minutes: int) -> int:
        raise NotImplementedError

    @abstractmethod
    def break_minutes(self, session: DutySession, logs: Sequence[HourlyLog], *, now: datetime) -> int:
        raise NotImplementedError

    def eligibility(
        self,
        session: DutySession,
        logs: Sequence[HourlyLog],
        *,
        now: datetime,
        min_duty_minutes: int,
    ) -> Eligibility:
        breaks = self.break_minutes(session, logs, now=now)
        if session.total_duration is not None:
            total = int(session.total_duration)
        else:
            total = self.worked_minutes(start=session.start_time, end=session.end_time or now, break_minutes=breaks)
        return Eligibility(meets=total >= int(min_duty_minutes), total_minutes=total, break_minutes=breaks)
