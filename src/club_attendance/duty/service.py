from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.validators import require_non_empty
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.enums import NotificationType
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..events.repository import EventRepository
from ..events.service import require_active_event
from ..notifications.service import NotificationService
from ..users.model import Actor
from .calculator.base import Eligibility
from .model import DutySession, HourlyLog
from .repository import DutySessionRepository, HourlyLogRepository
from .rules.missed_log import break_intervals, missed_log_gaps
from .state_machine import BreakOutcome, DutyStateMachine, SessionSummary

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CurrentSession:
    session: DutySession
    logs: Sequence[HourlyLog]
    next_log_due: datetime
    eligibility: Eligibility

    def to_dict(self) -> dict:
        return {
            "session": self.session.to_dict(),
            "logs": [log.to_dict() for log in self.logs],
            "next_log_due": self.next_log_due.isoformat(),
            "eligibility": self.eligibility.to_dict(),
        }


class DutySessionService:
    def __init__(
        self,
        state: DutyStateMachine,
        sessions: DutySessionRepository,
        logs: HourlyLogRepository,
        events: EventRepository,
        *,
        notifications: Optional[NotificationService] = None,
    ):
        self._state = state
        self._sessions = sessions
        self._logs = logs
        self._events = events
        self._notifications = notifications

    def _notify(self, user_id: int, title: str, message: str, data: dict) -> None:
        if self._notifications:
            self._notifications.send_quietly(user_id, NotificationType.DUTY_SESSION, title, message, data)

    def start_session(
        self,
        *,
        actor: Actor,
        notes: Optional[str] = None,
        event_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> DutySession:
        session = self._state.start_session(user_id=actor.user_id, notes=notes, event_id=event_id, now=now)
        self._notify(
            actor.user_id,
            "Duty session started",
            "Remember to submit an hourly log every hour.",
            {"session_id": session.session_id},
        )
        return session

    def end_session(self, *, actor: Actor, session_id: int, now: Optional[datetime] = None) -> SessionSummary:
        summary = self._state.end_session(session_id=session_id, actor=actor, now=now)
        self._notify(
            summary.session.user_id,
            "Duty session ended",
            f"Total: {summary.session.total_duration} mins",
            {"session_id": summary.session.session_id, "eligible": summary.eligible},
        )
        return summary

    def get_session(self, *, actor: Actor, session_id: int) -> DutySession:
        session = self._sessions.get_by_id(int(session_id))
        if not session:
            raise NotFoundError("Duty session not found")
        if not actor.can_act_for(session.user_id):
            raise AuthorizationError("You can only view your own duty sessions")
        return session

    def next_log_due(self, session: DutySession, logs: Sequence[HourlyLog]) -> datetime:
        last = logs[-1].log_time if logs else session.start_time
        return last + timedelta(minutes=self._state.policy.log_interval_minutes)

    def get_current_session(self, user_id: int, *, now: Optional[datetime] = None) -> Optional[CurrentSession]:
        now = now or now_local()
        session = self._sessions.get_active_for_user(int(user_id))
        if not session:
            return None
        logs = self._logs.list_for_session(session.session_id)
        return CurrentSession(
            session=session,
            logs=logs,
            next_log_due=self.next_log_due(session, logs),
            eligibility=self._state.preview_eligibility(session, now=now),
        )

    def get_history(
        self,
        *,
        actor: Actor,
        user_id: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> Sequence[DutySession]:
        # students only ever see their own sessions
        if not actor.is_elevated:
            user_id = actor.user_id
        if start and end and end < start:
            raise ValidationError("'to' must not be before 'from'")
        return self._sessions.list_history(user_id=user_id, start=start, end=end, limit=limit)

    def update_session(
        self,
        *,
        actor: Actor,
        session_id: int,
        notes: Optional[str],
        event_id: Optional[int] = None,
    ) -> DutySession:
        session = self.get_session(actor=actor, session_id=session_id)
        notes = (notes or "").strip() or None
        require_active_event(self._events, event_id)
        self._sessions.update_details(session.session_id, notes=notes, event_id=event_id)
        return self._sessions.get_by_id(session.session_id)

    def get_stats(self, *, actor: Actor, user_id: Optional[int] = None) -> dict:
        if not actor.is_elevated:
            user_id = actor.user_id
        sessions = self._sessions.list_history(user_id=user_id, limit=10_000)
        total = sum(int(s.total_duration or 0) for s in sessions)
        count = len(sessions)
        return {
            "total_minutes": total,
            "session_count": count,
            "average_minutes": int(round(total / count)) if count else 0,
        }

    def calculate_eligibility(self, *, session_id: int, now: Optional[datetime] = None) -> Eligibility:
        session = self._sessions.get_by_id(int(session_id))
        if not session:
            raise NotFoundError("Duty session not found")
        return self._state.preview_eligibility(session, now=now)


class HourlyLogService:
    def __init__(self, state: DutyStateMachine, sessions: DutySessionRepository, logs: HourlyLogRepository):
        self._state = state
        self._sessions = sessions
        self._logs = logs

    def _owned_log(self, actor: Actor, log_id: int) -> HourlyLog:
        log = self._logs.get_by_id(int(log_id))
        if not log:
            raise NotFoundError("Log not found")
        if log.user_id != actor.user_id:
            raise AuthorizationError("You can only change your own hourly logs")
        return log

    def create_log(
        self,
        *,
        actor: Actor,
        session_id: int,
        previous_hour_work: str,
        next_hour_plan: str,
        now: Optional[datetime] = None,
    ) -> HourlyLog:
        now = now or now_local()
        previous_hour_work = require_non_empty(previous_hour_work, "previous_hour_work")
        next_hour_plan = require_non_empty(next_hour_plan, "next_hour_plan")

        session = self._sessions.get_by_id(int(session_id))
        if not session:
            raise NotFoundError("Session not found")
        if session.user_id != actor.user_id:
            raise AuthorizationError("You can only log work for your own session")
        if not session.is_active:
            raise ConflictError("Session already ended")

        policy = self._state.policy
        logs = self._logs.list_for_session(session.session_id)
        last = logs[-1].log_time if logs else session.start_time
        expected = last + timedelta(minutes=policy.log_interval_minutes)
        if now < expected - timedelta(minutes=policy.log_window_minutes):
            raise ConflictError(f"Hourly log already submitted; next log is due at {expected:%H:%M}")

        log_id = self._logs.create(
            session_id=session.session_id,
            user_id=actor.user_id,
            log_time=now,
            previous_hour_work=previous_hour_work,
            next_hour_plan=next_hour_plan,
        )
        logger.info("Hourly log %s added to session %s", log_id, session.session_id)
        return self._logs.get_by_id(log_id)

    def update_log(
        self,
        *,
        actor: Actor,
        log_id: int,
        previous_hour_work: Optional[str] = None,
        next_hour_plan: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> HourlyLog:
        now = now or now_local()
        log = self._owned_log(actor, log_id)
        if now - log.log_time > timedelta(minutes=self._state.policy.log_edit_window_minutes):
            raise ValidationError("Update window elapsed")

        prev = log.previous_hour_work if previous_hour_work is None else require_non_empty(
            previous_hour_work, "previous_hour_work"
        )
        nxt = log.next_hour_plan if next_hour_plan is None else require_non_empty(next_hour_plan, "next_hour_plan")
        self._logs.update_text(log.log_id, previous_hour_work=prev, next_hour_plan=nxt)
        return self._logs.get_by_id(log.log_id)

    def start_break(self, *, actor: Actor, log_id: int, now: Optional[datetime] = None) -> HourlyLog:
        now = now or now_local()
        log = self._owned_log(actor, log_id)
        if log.break_start_time is not None:
            raise ConflictError("Break already started")

        session = self._sessions.get_by_id(log.session_id)
        if not session or not session.is_active:
            raise ConflictError("Session already ended")
        if any(other.has_open_break for other in self._logs.list_for_session(log.session_id)):
            raise ConflictError("Another break is already in progress")

        if not self._logs.set_break_start(log.log_id, now):
            raise ConflictError("Break already started")
        return self._logs.get_by_id(log.log_id)

    def end_break(self, *, actor: Actor, log_id: int, now: Optional[datetime] = None) -> BreakOutcome:
        log = self._owned_log(actor, log_id)
        if log.break_start_time is None:
            raise ConflictError("Break not started")
        if log.break_end_time is not None:
            raise ConflictError("Break already ended")
        return self._state.end_break(log=log, now=now)

    def list_logs(self, *, actor: Actor, session_id: int) -> Sequence[HourlyLog]:
        session = self._sessions.get_by_id(int(session_id))
        if not session:
            raise NotFoundError("Session not found")
        if not actor.can_act_for(session.user_id):
            raise AuthorizationError("You can only view logs of your own sessions")
        return self._logs.list_for_session(session.session_id)

    def preview_missed_logs(
        self,
        *,
        actor: Actor,
        user_id: int,
        days: int = 1,
        now: Optional[datetime] = None,
    ) -> list[dict]:
        """Missed-log gaps of the member's recent sessions. Nothing is written."""

        now = now or now_local()
        if not actor.can_act_for(user_id):
            raise AuthorizationError("You can only preview your own sessions")

        policy = self._state.policy
        out = []
        for session in self._sessions.list_history(user_id=int(user_id), start=now - timedelta(days=days)):
            logs = self._logs.list_for_session(session.session_id)
            gaps = missed_log_gaps(
                start=session.start_time,
                log_times=[log.log_time for log in logs],
                end=session.end_time or now,
                policy=policy,
                breaks=break_intervals(logs, now=now),
            )
            if gaps:
                out.append({"session_id": session.session_id, "gaps": [g.to_dict() for g in gaps]})
        return out

    def issue_missed_log_strikes(self, *, actor: Actor, session_id: int, now: Optional[datetime] = None):
        if not actor.is_elevated:
            raise AuthorizationError("Only core team or teachers can issue strikes")
        return self._state.issue_missed_log_strikes(session_id=session_id, now=now)
