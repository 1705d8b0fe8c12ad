from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import RequestStatus, RequestType
from .model import LeaveRequest, RequestFilter


class LeaveRequestRepository(Protocol):
    def get_by_id(self, request_id: int) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def exists_for_date(self, *, user_id: int, request_date: date, exclude_id: Optional[int] = None) -> bool:
        raise NotImplementedError

    def create(
        self,
        *,
        user_id: int,
        request_type: RequestType,
        request_date: date,
        reason: str,
        submitted_at: datetime,
    ) -> int:
        raise NotImplementedError

    def update(self, request_id: int, *, request_date: date, reason: str) -> bool:
        raise NotImplementedError

    def delete(self, request_id: int) -> bool:
        raise NotImplementedError

    def decide(
        self,
        request_id: int,
        *,
        status: RequestStatus,
        decided_by: int,
        decided_at: datetime,
        rejection_reason: Optional[str] = None,
    ) -> bool:
        """Move a pending request to ``status``. False if it was not pending."""

        raise NotImplementedError

    def list_requests(self, filters: RequestFilter, *, limit: int, offset: int) -> tuple[Sequence[LeaveRequest], int]:
        raise NotImplementedError

    def count_by_status(self) -> dict[str, int]:
        raise NotImplementedError
