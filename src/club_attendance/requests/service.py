from __future__ import annotations

import logging
from datetime import date, datetime, time
from typing import Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.validators import parse_page, require_min_length
from ..core.constants import MAX_PAGE_SIZE, MIN_LEAVE_REASON_LENGTH, MIN_REJECTION_REASON_LENGTH
from ..core.enums import NotificationType, RequestStatus, RequestType, Role
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..core.policy import DutyPolicy
from ..database.connection import TransactionManager
from ..notifications.service import NotificationService
from ..users.model import Actor
from .model import LeaveRequest, RequestFilter
from .repository import LeaveRequestRepository

logger = logging.getLogger(__name__)


class LeaveRequestService:
    """Leave / club-duty requests: pending -> approved | rejected."""

    def __init__(
        self,
        requests: LeaveRequestRepository,
        tx: TransactionManager,
        *,
        policy: Optional[DutyPolicy] = None,
        notifications: Optional[NotificationService] = None,
    ):
        self._requests = requests
        self._tx = tx
        self._policy = policy or DutyPolicy()
        self._notifications = notifications

    def submission_deadline(self, request_date: date) -> datetime:
        return datetime.combine(request_date, time(hour=self._policy.leave_cutoff_hour))

    def deadline_warning(self, request_date: date, *, now: Optional[datetime] = None) -> str:
        remaining = self.submission_deadline(request_date) - (now or now_local())
        if remaining.total_seconds() <= 0:
            return "Deadline passed"
        minutes = -(-int(remaining.total_seconds()) // 60)
        return f"{minutes} minutes until {self._policy.leave_cutoff_hour:02d}:00 deadline"

    def _validate_date(self, request_date: date, *, submitted_at: datetime) -> None:
        if request_date < submitted_at.date():
            raise ValidationError("request_date must be today or in the future")
        if submitted_at > self.submission_deadline(request_date):
            raise ValidationError(
                f"Requests must be submitted before {self._policy.leave_cutoff_hour:02d}:00 on the request date"
            )

    def _get(self, request_id: int) -> LeaveRequest:
        req = self._requests.get_by_id(int(request_id))
        if not req:
            raise NotFoundError("Request not found")
        return req

    def _require_elevated(self, actor: Actor) -> None:
        if not actor.is_elevated:
            raise AuthorizationError("Core team or teacher role required")

    def submit(
        self,
        *,
        actor: Actor,
        request_type: RequestType,
        request_date: date,
        reason: str,
        now: Optional[datetime] = None,
    ) -> LeaveRequest:
        now = now or now_local()
        reason = require_min_length(reason, "reason", MIN_LEAVE_REASON_LENGTH)
        self._validate_date(request_date, submitted_at=now)

        if self._requests.exists_for_date(user_id=actor.user_id, request_date=request_date):
            raise ConflictError("A request for this date already exists")

        request_id = self._requests.create(
            user_id=actor.user_id,
            request_type=request_type,
            request_date=request_date,
            reason=reason,
            submitted_at=now,
        )
        logger.info("Request %s (%s) submitted by user %s", request_id, request_type.value, actor.user_id)

        if self._notifications:
            self._notifications.send_to_role_quietly(
                Role.CORE_TEAM,
                NotificationType.GENERIC,
                "New Leave Request",
                f"New request from {actor.full_name or f'user {actor.user_id}'} for {request_date.isoformat()}",
                {"request_id": request_id},
            )
        return self._get(request_id)

    def _notify_decision(self, req: LeaveRequest) -> None:
        if not self._notifications:
            return
        if req.status == RequestStatus.APPROVED:
            self._notifications.send_quietly(
                req.user_id,
                NotificationType.REQUEST_APPROVED,
                "Request Approved",
                f"Your request for {req.request_date.isoformat()} was approved.",
                {"request_id": req.request_id},
            )
        else:
            self._notifications.send_quietly(
                req.user_id,
                NotificationType.REQUEST_REJECTED,
                "Request Rejected",
                f"Your request for {req.request_date.isoformat()} was rejected: {req.rejection_reason}",
                {"request_id": req.request_id},
            )

    def _decide(
        self,
        *,
        actor: Actor,
        request_id: int,
        status: RequestStatus,
        rejection_reason: Optional[str],
        now: datetime,
    ) -> LeaveRequest:
        req = self._get(request_id)
        if not req.is_pending:
            raise ConflictError(f"Only pending requests can be {status.value}")
        if not self._requests.decide(
            req.request_id,
            status=status,
            decided_by=actor.user_id,
            decided_at=now,
            rejection_reason=rejection_reason,
        ):
            # decided concurrently by someone else
            raise ConflictError(f"Only pending requests can be {status.value}")
        return self._get(req.request_id)

    def approve(self, *, actor: Actor, request_id: int, now: Optional[datetime] = None) -> LeaveRequest:
        self._require_elevated(actor)
        req = self._decide(
            actor=actor, request_id=request_id, status=RequestStatus.APPROVED, rejection_reason=None, now=now or now_local()
        )
        self._notify_decision(req)
        return req

    def reject(self, *, actor: Actor, request_id: int, reason: str, now: Optional[datetime] = None) -> LeaveRequest:
        self._require_elevated(actor)
        reason = require_min_length(reason, "rejection_reason", MIN_REJECTION_REASON_LENGTH)
        req = self._decide(
            actor=actor, request_id=request_id, status=RequestStatus.REJECTED, rejection_reason=reason, now=now or now_local()
        )
        self._notify_decision(req)
        return req

    def bulk_approve(self, *, actor: Actor, request_ids: Sequence[int], now: Optional[datetime] = None) -> list:
        self._require_elevated(actor)
        if not request_ids:
            raise ValidationError("ids array required")
        now = now or now_local()

        updated = []
        with self._tx.transaction():
            for request_id in request_ids:
                req = self._requests.get_by_id(int(request_id))
                if not req or not req.is_pending:
                    continue
                if self._requests.decide(req.request_id, status=RequestStatus.APPROVED, decided_by=actor.user_id, decided_at=now):
                    updated.append(self._requests.get_by_id(req.request_id))

        for req in updated:
            self._notify_decision(req)
        return updated

    def _owned_pending(self, actor: Actor, request_id: int) -> LeaveRequest:
        req = self._get(request_id)
        if req.user_id != actor.user_id:
            raise AuthorizationError("Not authorized")
        if not req.is_pending:
            raise ConflictError("Only pending requests can be changed")
        return req

    def update(
        self,
        *,
        actor: Actor,
        request_id: int,
        request_date: Optional[date] = None,
        reason: Optional[str] = None,
    ) -> LeaveRequest:
        req = self._owned_pending(actor, request_id)

        new_date = req.request_date
        if request_date is not None and request_date != req.request_date:
            # the deadline is checked against the original submission time
            self._validate_date(request_date, submitted_at=req.submitted_at)
            if self._requests.exists_for_date(user_id=actor.user_id, request_date=request_date, exclude_id=req.request_id):
                raise ConflictError("A request for this date already exists")
            new_date = request_date

        new_reason = req.reason if reason is None else require_min_length(reason, "reason", MIN_LEAVE_REASON_LENGTH)
        self._requests.update(req.request_id, request_date=new_date, reason=new_reason)
        return self._get(req.request_id)

    def delete(self, *, actor: Actor, request_id: int) -> None:
        req = self._owned_pending(actor, request_id)
        if not self._requests.delete(req.request_id):
            raise ConflictError("Only pending requests can be changed")
        logger.info("Request %s withdrawn by user %s", req.request_id, actor.user_id)

    def list_mine(self, *, actor: Actor, status: Optional[RequestStatus] = None):
        rows, _ = self._requests.list_requests(
            RequestFilter(user_id=actor.user_id, status=status), limit=MAX_PAGE_SIZE * 10, offset=0
        )
        return rows

    def list_pending(self, *, actor: Actor):
        self._require_elevated(actor)
        rows, _ = self._requests.list_requests(
            RequestFilter(status=RequestStatus.PENDING), limit=MAX_PAGE_SIZE * 10, offset=0
        )
        return sorted(rows, key=lambda r: r.request_date)

    def list_all(self, *, actor: Actor, filters: RequestFilter, page=1, page_size=None) -> dict:
        self._require_elevated(actor)
        p, size = parse_page(page, page_size)
        rows, total = self._requests.list_requests(filters, limit=size, offset=(p - 1) * size)
        return {"items": rows, "page": p, "page_size": size, "total": total}

    def stats(self, *, actor: Actor) -> dict[str, int]:
        self._require_elevated(actor)
        return self._requests.count_by_status()
