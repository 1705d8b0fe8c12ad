from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import now_local
from ..core.enums import AttendanceStatus, StrikeReason
from ..core.exceptions import AuthorizationError, ValidationError
from ..core.policy import DutyPolicy
from ..duty.calculator.base import DutyCalculator
from ..duty.calculator.standard_calculator import StandardDutyCalculator
from ..duty.repository import DutySessionRepository
from ..strikes.repository import StrikeRepository
from ..users.model import Actor


@dataclass(frozen=True)
class ReportData:
    rows: list[dict]
    summary: list[dict]
    totals: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"rows": self.rows, "summary": self.summary, "totals": self.totals}


def _hhmm(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def _approval_label(value: Optional[bool]) -> str:
    if value is None:
        return "pending"
    return "approved" if value else "rejected"


class ReportService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        sessions: DutySessionRepository,
        strikes: StrikeRepository,
        *,
        policy: Optional[DutyPolicy] = None,
        calculator: Optional[DutyCalculator] = None,
    ):
        self._attendance = attendance
        self._sessions = sessions
        self._strikes = strikes
        self._policy = policy or DutyPolicy()
        self._calculator = calculator or StandardDutyCalculator()

    @staticmethod
    def _check_range(start: date, end: date) -> None:
        if end < start:
            raise ValidationError("end must not be before start")

    @staticmethod
    def _scope(actor: Actor, user_id: Optional[int]) -> Optional[int]:
        # students only ever get their own rows
        if actor.is_elevated:
            return user_id
        if user_id is not None and int(user_id) != actor.user_id:
            raise AuthorizationError("You can only view your own reports")
        return actor.user_id

    def attendance_summary(
        self,
        *,
        actor: Actor,
        start: date,
        end: date,
        user_id: Optional[int] = None,
    ) -> ReportData:
        self._check_range(start, end)
        user_id = self._scope(actor, user_id)
        query_rows = self._attendance.get_report_rows(start_date=start, end_date=end, user_id=user_id)

        out_rows: list[dict] = []
        per_user: dict[int, dict] = {}
        by_status: Counter = Counter()
        by_approval: Counter = Counter()

        for r in query_rows:
            approval = _approval_label(r.is_approved)
            out_rows.append(
                {
                    "work_date": r.work_date.strftime("%Y-%m-%d"),
                    "user_id": r.user_id,
                    "full_name": r.full_name,
                    "email": r.email,
                    "student_code": r.student_code or "-",
                    "status": r.status.value,
                    "approval": approval,
                    "duty_eligible": "" if r.duty_eligible is None else ("yes" if r.duty_eligible else "no"),
                    "note": r.note or "",
                }
            )
            by_status[r.status.value] += 1
            by_approval[approval] += 1

            s = per_user.get(r.user_id)
            if not s:
                s = {"user_id": r.user_id, "full_name": r.full_name, "email": r.email}
                s.update({status.value: 0 for status in AttendanceStatus})
                per_user[r.user_id] = s
            s[r.status.value] += 1

        summary = sorted(per_user.values(), key=lambda x: x["full_name"])
        totals = {
            "records": len(out_rows),
            "by_status": {status.value: by_status.get(status.value, 0) for status in AttendanceStatus},
            "by_approval": {k: by_approval.get(k, 0) for k in ("approved", "rejected", "pending")},
        }
        return ReportData(rows=out_rows, summary=summary, totals=totals)

    def duty_report(
        self,
        *,
        actor: Actor,
        start: date,
        end: date,
        user_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> ReportData:
        self._check_range(start, end)
        user_id = self._scope(actor, user_id)
        now = now or now_local()
        query_rows = self._sessions.get_report_rows(start_date=start, end_date=end, user_id=user_id)

        out_rows: list[dict] = []
        per_user: dict[int, dict] = {}
        for r in query_rows:
            if r.total_duration is not None:
                minutes = r.total_duration
            else:
                minutes = self._calculator.worked_minutes(
                    start=r.start_time, end=r.end_time or now, break_minutes=r.break_duration
                )
            eligible = minutes >= self._policy.min_duty_minutes

            out_rows.append(
                {
                    "session_id": r.session_id,
                    "user_id": r.user_id,
                    "full_name": r.full_name,
                    "email": r.email,
                    "date": r.start_time.strftime("%Y-%m-%d"),
                    "start": r.start_time.strftime("%H:%M"),
                    "end": r.end_time.strftime("%H:%M") if r.end_time else "-",
                    "break_minutes": r.break_duration,
                    "worked_minutes": minutes,
                    "worked_hours": _hhmm(minutes),
                    "hourly_logs": r.log_count,
                    "eligible": "yes" if eligible else "no",
                    "active": "yes" if r.is_active else "no",
                }
            )

            s = per_user.get(r.user_id)
            if not s:
                s = {
                    "user_id": r.user_id,
                    "full_name": r.full_name,
                    "email": r.email,
                    "sessions": 0,
                    "eligible_sessions": 0,
                    "total_minutes": 0,
                }
                per_user[r.user_id] = s
            s["sessions"] += 1
            s["eligible_sessions"] += 1 if eligible else 0
            s["total_minutes"] += minutes

        summary = []
        for s in per_user.values():
            summary.append({**s, "total_hours": _hhmm(int(s["total_minutes"]))})
        summary.sort(key=lambda x: x["total_minutes"], reverse=True)

        totals = {
            "sessions": len(out_rows),
            "total_minutes": sum(int(s["total_minutes"]) for s in summary),
        }
        return ReportData(rows=out_rows, summary=summary, totals=totals)

    def penalty_report(self, *, actor: Actor, start: date, end: date) -> ReportData:
        if not actor.is_elevated:
            raise AuthorizationError("Core team or teacher role required")
        self._check_range(start, end)
        query_rows = self._strikes.get_report_rows(start_date=start, end_date=end)

        out_rows: list[dict] = []
        per_user: dict[int, dict] = {}
        by_reason: Counter = Counter()
        for r in query_rows:
            out_rows.append(
                {
                    "strike_id": r.strike_id,
                    "strike_date": r.strike_date.strftime("%Y-%m-%d"),
                    "user_id": r.user_id,
                    "full_name": r.full_name,
                    "email": r.email,
                    "reason": r.reason.value,
                    "severity": r.severity.value,
                    "active": "yes" if r.is_active else "no",
                    "description": r.description or "",
                }
            )
            by_reason[r.reason.value] += 1

            s = per_user.get(r.user_id)
            if not s:
                s = {"user_id": r.user_id, "full_name": r.full_name, "email": r.email, "total": 0, "active": 0}
                per_user[r.user_id] = s
            s["total"] += 1
            s["active"] += 1 if r.is_active else 0

        summary = sorted(per_user.values(), key=lambda x: (x["active"], x["total"]), reverse=True)
        totals = {
            "strikes": len(out_rows),
            "active": sum(s["active"] for s in summary),
            "by_reason": {reason.value: by_reason.get(reason.value, 0) for reason in StrikeReason},
        }
        return ReportData(rows=out_rows, summary=summary, totals=totals)

    def daily_summary(self, *, actor: Actor, day: date, now: Optional[datetime] = None) -> ReportData:
        """One day at a glance: attendance rows, per-member duty totals, strikes issued."""

        if not actor.is_elevated:
            raise AuthorizationError("Core team or teacher role required")
        attendance = self.attendance_summary(actor=actor, start=day, end=day)
        duty = self.duty_report(actor=actor, start=day, end=day, now=now)
        strikes = self._strikes.get_report_rows(start_date=day, end_date=day)

        totals = {
            "date": day.isoformat(),
            "attendance_records": attendance.totals["records"],
            "approved": attendance.totals["by_approval"]["approved"],
            "pending": attendance.totals["by_approval"]["pending"],
            "duty_sessions": duty.totals["sessions"],
            "duty_minutes": duty.totals["total_minutes"],
            "strikes_issued": len(strikes),
        }
        return ReportData(rows=attendance.rows, summary=duty.summary, totals=totals)
