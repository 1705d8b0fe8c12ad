from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional, Sequence

from ..common.datetime_utils import day_bounds, now_local
from ..common.validators import parse_page, require_non_empty
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.enums import AttendanceStatus, NotificationType
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..duty.repository import DutySessionRepository, HourlyLogRepository
from ..duty.state_machine import DutyStateMachine
from ..notifications.service import NotificationService
from ..users.model import Actor
from ..users.repository import UserRepository
from .model import AttendanceFilter, AttendanceRecord
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


def _append_rejection(note: Optional[str], reason: str) -> str:
    return (f"{note}; " if note else "") + f"Rejected: {reason}"


class AttendanceService:
    def __init__(
        self,
        state: DutyStateMachine,
        attendance: AttendanceRepository,
        users: UserRepository,
        sessions: DutySessionRepository,
        logs: HourlyLogRepository,
        *,
        notifications: Optional[NotificationService] = None,
    ):
        self._state = state
        self._attendance = attendance
        self._users = users
        self._sessions = sessions
        self._logs = logs
        self._notifications = notifications

    def _require_elevated(self, actor: Actor) -> None:
        if not actor.is_elevated:
            raise AuthorizationError("Core team or teacher role required")

    def _notify_update(self, record: AttendanceRecord, title: str) -> None:
        if not self._notifications:
            return
        self._notifications.send_quietly(
            record.user_id,
            NotificationType.ATTENDANCE_UPDATE,
            title,
            f"Status: {record.status.value}",
            {"attendance_id": record.attendance_id, "date": record.work_date.isoformat()},
        )

    def mark_attendance(
        self,
        *,
        actor: Actor,
        user_id: int,
        work_date: date,
        status: AttendanceStatus,
        note: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        now = now or now_local()
        user_id = int(user_id)
        if not actor.can_act_for(user_id):
            raise AuthorizationError("Students can only mark their own attendance")
        if status == AttendanceStatus.ON_CLUB_DUTY and work_date > now.date():
            raise ValidationError("Cannot mark future-dated club duty attendance")
        note = (note or "").strip() or None

        with self._state.transition():
            user = self._users.lock_for_update(user_id)
            if not user:
                raise NotFoundError("User not found")
            self._state.ensure_not_suspended(user, now=now)

            if self._attendance.get_for_user_and_date(user_id, work_date):
                raise ConflictError("Attendance already marked for this date")
            attendance_id = self._attendance.create(user_id=user_id, work_date=work_date, status=status, note=note)

            if (
                status == AttendanceStatus.ON_CLUB_DUTY
                and work_date == now.date()
                and not self._sessions.get_active_for_user(user_id)
            ):
                self._state.start_session(
                    user_id=user_id, notes=f"Auto-created for attendance {attendance_id}", now=now
                )
            record = self._attendance.get_by_id(attendance_id)

        logger.info("Attendance %s marked %s for user %s on %s", attendance_id, status.value, user_id, work_date)
        self._notify_update(record, "Attendance Created")
        return record

    def is_duty_eligible(self, record: AttendanceRecord, *, now: Optional[datetime] = None) -> bool:
        """Stored flag first, else computed from the session overlapping that day."""

        if record.duty_eligible:
            return True
        day_start, day_end = day_bounds(record.work_date)
        session = self._sessions.find_overlapping(user_id=record.user_id, day_start=day_start, day_end=day_end)
        if not session:
            return False
        return self._state.preview_eligibility(session, now=now).meets

    def set_approval(
        self,
        *,
        actor: Actor,
        attendance_id: int,
        approve: bool,
        reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        self._require_elevated(actor)
        now = now or now_local()

        record = self._attendance.get_by_id(int(attendance_id))
        if not record:
            raise NotFoundError("Attendance record not found")

        if approve:
            if record.status == AttendanceStatus.ON_CLUB_DUTY and not self.is_duty_eligible(record, now=now):
                raise ValidationError("Not eligible for duty approval")
            note = record.note
        else:
            note = _append_rejection(record.note, require_non_empty(reason, "reason"))

        self._attendance.set_approval(
            record.attendance_id, is_approved=approve, approved_by=actor.user_id, approved_at=now, note=note
        )
        updated = self._attendance.get_by_id(record.attendance_id)
        self._notify_update(updated, "Attendance Approved" if approve else "Attendance Rejected")
        return updated

    def bulk_approve(self, *, actor: Actor, attendance_ids: Sequence[int], now: Optional[datetime] = None) -> dict:
        self._require_elevated(actor)
        now = now or now_local()

        updated, errors = [], []
        with self._state.transition():
            for attendance_id in attendance_ids:
                record = self._attendance.get_by_id(int(attendance_id))
                if not record:
                    errors.append({"attendance_id": int(attendance_id), "message": "Attendance record not found"})
                    continue

                approve = True
                if record.status == AttendanceStatus.ON_CLUB_DUTY and not self.is_duty_eligible(record, now=now):
                    approve = False
                    errors.append({"attendance_id": record.attendance_id, "message": "Not eligible for duty approval"})

                self._attendance.set_approval(
                    record.attendance_id, is_approved=approve, approved_by=actor.user_id, approved_at=now, note=record.note
                )
                updated.append(self._attendance.get_by_id(record.attendance_id))

        for record in updated:
            self._notify_update(record, "Attendance Approved" if record.is_approved else "Attendance Rejected")
        return {"updated": updated, "errors": errors}

    def bulk_reject(
        self,
        *,
        actor: Actor,
        attendance_ids: Sequence[int],
        reason: str,
        now: Optional[datetime] = None,
    ) -> dict:
        self._require_elevated(actor)
        reason = require_non_empty(reason, "reason")
        now = now or now_local()

        updated, errors = [], []
        with self._state.transition():
            for attendance_id in attendance_ids:
                record = self._attendance.get_by_id(int(attendance_id))
                if not record:
                    errors.append({"attendance_id": int(attendance_id), "message": "Attendance record not found"})
                    continue
                self._attendance.set_approval(
                    record.attendance_id,
                    is_approved=False,
                    approved_by=actor.user_id,
                    approved_at=now,
                    note=_append_rejection(record.note, reason),
                )
                updated.append(self._attendance.get_by_id(record.attendance_id))

        for record in updated:
            self._notify_update(record, "Attendance Rejected")
        return {"updated": updated, "errors": errors}

    def get_details(self, *, actor: Actor, attendance_id: int, now: Optional[datetime] = None) -> dict:
        record = self._attendance.get_by_id(int(attendance_id))
        if not record:
            raise NotFoundError("Attendance record not found")
        if not actor.can_act_for(record.user_id):
            raise AuthorizationError("You can only view your own attendance")

        eligibility = None
        if record.status == AttendanceStatus.ON_CLUB_DUTY:
            day_start, day_end = day_bounds(record.work_date)
            session = self._sessions.find_overlapping(user_id=record.user_id, day_start=day_start, day_end=day_end)
            if session:
                eligibility = self._state.preview_eligibility(session, now=now).to_dict()
        return {**record.to_dict(), "eligibility": eligibility}

    def list_pending(self, *, actor: Actor, filters: AttendanceFilter, page=1, page_size=None) -> dict:
        self._require_elevated(actor)
        p, size = parse_page(page, page_size)
        rows, total = self._attendance.list_pending(filters, limit=size, offset=(p - 1) * size)
        return {"items": rows, "page": p, "page_size": size, "total": total}

    def list_for_user(self, *, actor: Actor, user_id: int, limit: int = DEFAULT_HISTORY_LIMIT):
        if not actor.can_act_for(user_id):
            raise AuthorizationError("You can only view your own attendance")
        return self._attendance.list_for_user(int(user_id), limit=limit)

    def list_for_date(self, *, actor: Actor, work_date: date):
        self._require_elevated(actor)
        return self._attendance.list_for_date(work_date)

    def daily_summary(self, *, actor: Actor, day: date) -> dict:
        self._require_elevated(actor)
        day_start, day_end = day_bounds(day)

        records = self._attendance.list_for_date(day)
        sessions = self._sessions.list_history(start=day_start, end=day_end, limit=10_000)
        logs = self._logs.list_between(start=day_start, end=day_end)
        return {
            "date": day.isoformat(),
            "attendance_records": [r.to_dict() for r in records],
            "duty_sessions": [s.to_dict() for s in sessions],
            "hourly_logs": [log.to_dict() for log in logs],
            "summary": {
                "total_attendance": len(records),
                "approved_attendance": sum(1 for r in records if r.is_approved),
                "pending_approval": sum(1 for r in records if r.is_pending),
                "total_duty_sessions": len(sessions),
                "completed_duty_sessions": sum(1 for s in sessions if s.end_time is not None),
                "total_hourly_logs": len(logs),
            },
        }

    def status_counts(self, *, actor: Actor) -> dict[str, int]:
        self._require_elevated(actor)
        return self._attendance.status_counts()
