from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..common.datetime_utils import iso_or_none
from ..core.enums import StrikeEventKind, StrikeReason, StrikeSeverity

_SEVERITY_BY_REASON = {
    StrikeReason.MISSED_HOURLY_LOG: StrikeSeverity.MINOR,
    StrikeReason.INSUFFICIENT_DUTY_HOURS: StrikeSeverity.MAJOR,
    StrikeReason.EXCESSIVE_BREAK: StrikeSeverity.WARNING,
    StrikeReason.OTHER: StrikeSeverity.MINOR,
}


def severity_for(reason: StrikeReason) -> StrikeSeverity:
    return _SEVERITY_BY_REASON.get(reason, StrikeSeverity.MINOR)


@dataclass(frozen=True)
class Strike:
    strike_id: int
    user_id: int
    reason: StrikeReason
    description: Optional[str]
    strike_date: date
    severity: StrikeSeverity
    is_active: bool
    strike_count_at_time: int
    created_at: datetime
    session_id: Optional[int] = None
    log_id: Optional[int] = None
    resolved_by: Optional[int] = None
    resolved_at: Optional[datetime] = None
    resolution_notes: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "strike_id": self.strike_id,
            "user_id": self.user_id,
            "reason": self.reason.value,
            "description": self.description,
            "strike_date": iso_or_none(self.strike_date),
            "severity": self.severity.value,
            "is_active": self.is_active,
            "strike_count_at_time": self.strike_count_at_time,
            "session_id": self.session_id,
            "log_id": self.log_id,
            "created_at": iso_or_none(self.created_at),
            "resolved_by": self.resolved_by,
            "resolved_at": iso_or_none(self.resolved_at),
            "resolution_notes": self.resolution_notes,
        }


@dataclass(frozen=True)
class StrikeEvent:
    """Something the ledger did that members should hear about once it is committed."""

    kind: StrikeEventKind
    user_id: int
    active_count: int
    strike: Optional[Strike] = None
    suspended_until: Optional[datetime] = None


@dataclass(frozen=True)
class StrikeFilter:
    user_id: Optional[int] = None
    reason: Optional[StrikeReason] = None
    is_active: Optional[bool] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


@dataclass(frozen=True)
class StrikeReportRow:
    strike_id: int
    user_id: int
    full_name: str
    email: str
    reason: StrikeReason
    severity: StrikeSeverity
    strike_date: date
    is_active: bool
    description: Optional[str] = None
