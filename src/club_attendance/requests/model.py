from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..common.datetime_utils import iso_or_none
from ..core.enums import RequestStatus, RequestType


@dataclass(frozen=True)
class LeaveRequest:
    request_id: int
    user_id: int
    request_type: RequestType
    request_date: date
    reason: str
    status: RequestStatus
    submitted_at: datetime
    decided_by: Optional[int] = None
    decided_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    full_name: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING

    def to_dict(self) -> dict:
        return {
            "request_id": self.request_id,
            "user_id": self.user_id,
            "full_name": self.full_name,
            "request_type": self.request_type.value,
            "request_date": iso_or_none(self.request_date),
            "reason": self.reason,
            "status": self.status.value,
            "submitted_at": iso_or_none(self.submitted_at),
            "decided_by": self.decided_by,
            "decided_at": iso_or_none(self.decided_at),
            "rejection_reason": self.rejection_reason,
        }


@dataclass(frozen=True)
class RequestFilter:
    user_id: Optional[int] = None
    status: Optional[RequestStatus] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
