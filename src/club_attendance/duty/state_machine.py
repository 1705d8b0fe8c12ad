"""Duty session / strike state transitions.

Every write that can change whether a member holds an active duty session,
how many active strikes they carry, or whether they are suspended goes
through :class:`DutyStateMachine`. Each public transition runs inside
``transition()``, which opens (or joins) one database transaction and
publishes the strike events it produced only after the outermost block
commits.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Iterator, Optional, Protocol, Sequence

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import now_local
from ..core.enums import AttendanceStatus, EscalationLevel, StrikeEventKind, StrikeReason
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, SuspendedError
from ..core.policy import DutyPolicy
from ..database.connection import TransactionManager
from ..events.repository import EventRepository
from ..events.service import require_active_event
from ..strikes.model import Strike, StrikeEvent, severity_for
from ..strikes.repository import StrikeRepository
from ..users.model import Actor, User
from ..users.repository import UserRepository
from .calculator.base import DutyCalculator
from .calculator.standard_calculator import StandardDutyCalculator
from .factory import DutyRuleFactory
from .model import DutySession, HourlyLog
from .repository import DutySessionRepository, HourlyLogRepository
from .rules.base import RuleContext, Violation

logger = logging.getLogger(__name__)


class StrikeEventListener(Protocol):
    def handle(self, events: Sequence[StrikeEvent]) -> None:
        raise NotImplementedError


@dataclass(frozen=True)
class SessionSummary:
    session: DutySession
    eligible: bool
    violations: list[Violation] = field(default_factory=list)
    strikes: list[Strike] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "session": self.session.to_dict(),
            "eligible": self.eligible,
            "violations": [v.to_dict() for v in self.violations],
            "strikes": [s.to_dict() for s in self.strikes],
        }


@dataclass(frozen=True)
class BreakOutcome:
    log: HourlyLog
    break_minutes: int
    strike: Optional[Strike] = None

    def to_dict(self) -> dict:
        return {
            "log": self.log.to_dict(),
            "break_minutes": self.break_minutes,
            "strike": self.strike.to_dict() if self.strike else None,
        }


class DutyStateMachine:
    def __init__(
        self,
        *,
        tx: TransactionManager,
        users: UserRepository,
        sessions: DutySessionRepository,
        logs: HourlyLogRepository,
        attendance: AttendanceRepository,
        strikes: StrikeRepository,
        events: EventRepository,
        policy: Optional[DutyPolicy] = None,
        calculator: Optional[DutyCalculator] = None,
        rule_factory: Optional[DutyRuleFactory] = None,
        listener: Optional[StrikeEventListener] = None,
    ):
        self._tx = tx
        self._users = users
        self._sessions = sessions
        self._logs = logs
        self._attendance = attendance
        self._strikes = strikes
        self._events = events
        self._policy = policy or DutyPolicy()
        self._calculator = calculator or StandardDutyCalculator()
        self._rules = rule_factory or DutyRuleFactory()
        self._listener = listener
        self._local = threading.local()

    @property
    def policy(self) -> DutyPolicy:
        return self._policy

    @property
    def calculator(self) -> DutyCalculator:
        return self._calculator

    def set_listener(self, listener: Optional[StrikeEventListener]) -> None:
        self._listener = listener

    @contextmanager
    def transition(self) -> Iterator[None]:
        """Transactional boundary shared by every transition (nesting joins the outer one)."""

        depth = getattr(self._local, "depth", 0)
        if depth == 0:
            self._local.events = []
        self._local.depth = depth + 1
        try:
            with self._tx.transaction():
                yield
        finally:
            self._local.depth = depth

        if depth == 0:
            events, self._local.events = self._local.events, []
            self._publish(events)

    def _emit(self, event: StrikeEvent) -> None:
        self._local.events.append(event)

    def _publish(self, events: list[StrikeEvent]) -> None:
        if not events or self._listener is None:
            return
        try:
            self._listener.handle(events)
        except Exception:
            logger.exception("Strike event delivery failed (%d events)", len(events))

    def _lock_user(self, user_id: int) -> User:
        user = self._users.lock_for_update(int(user_id))
        if not user:
            raise NotFoundError("User not found")
        return user

    # ----- suspension gate -------------------------------------------------

    def ensure_not_suspended(self, user: User, *, now: Optional[datetime] = None) -> User:
        """Raise SuspendedError while suspended; clear an expired suspension."""

        now = now or now_local()
        if user.suspended_until is None:
            return user
        if user.is_suspended(now):
            raise SuspendedError(user.suspended_until)

        self._users.update_strike_state(user.user_id, strike_count=user.strike_count, suspended_until=None)
        logger.info("Suspension of user %s expired at %s", user.user_id, user.suspended_until)
        return replace(user, suspended_until=None)

    def clear_expired_suspension(self, user_id: int, *, now: Optional[datetime] = None) -> User:
        now = now or now_local()
        with self.transition():
            user = self._lock_user(user_id)
            if user.suspended_until is not None and not user.is_suspended(now):
                return self.ensure_not_suspended(user, now=now)
            return user

    # ----- duty sessions ---------------------------------------------------

    def start_session(
        self,
        *,
        user_id: int,
        notes: Optional[str] = None,
        event_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> DutySession:
        now = now or now_local()
        with self.transition():
            # the row lock serializes concurrent starts for the same member
            user = self._lock_user(user_id)
            self.ensure_not_suspended(user, now=now)

            if self._sessions.get_active_for_user(user.user_id):
                raise ConflictError("Active duty session already exists")
            require_active_event(self._events, event_id)

            session_id = self._sessions.create(user_id=user.user_id, start_time=now, notes=notes, event_id=event_id)
            self._attendance.upsert_status(
                user_id=user.user_id, work_date=now.date(), status=AttendanceStatus.ON_CLUB_DUTY
            )
            session = self._sessions.get_by_id(session_id)

        logger.info("Duty session %s started for user %s", session_id, user_id)
        return session

    def end_session(self, *, session_id: int, actor: Actor, now: Optional[datetime] = None) -> SessionSummary:
        now = now or now_local()
        with self.transition():
            session = self._sessions.get_by_id(int(session_id))
            if not session:
                raise NotFoundError("Duty session not found")
            if not actor.can_act_for(session.user_id):
                raise AuthorizationError("You can only end your own duty session")

            self._lock_user(session.user_id)
            session = self._sessions.get_by_id(int(session_id))
            if not session.is_active:
                raise ConflictError("Session already ended")

            break_minutes = session.break_duration
            closed_breaks: list[HourlyLog] = []
            for log in self._logs.list_for_session(session.session_id):
                if log.has_open_break:
                    self._logs.set_break_end(log.log_id, now)
                    break_minutes += log.break_minutes(now)
                    closed_breaks.append(self._logs.get_by_id(log.log_id))

            total = self._calculator.worked_minutes(start=session.start_time, end=now, break_minutes=break_minutes)
            eligible = total >= self._policy.min_duty_minutes
            self._sessions.close(session.session_id, end_time=now, break_duration=break_minutes, total_duration=total)

            ended = self._sessions.get_by_id(session.session_id)
            ctx = RuleContext(
                session=ended,
                now=now,
                policy=self._policy,
                logs=tuple(self._logs.list_for_session(session.session_id)),
            )
            violations: list[Violation] = []
            for closed in closed_breaks:
                break_ctx = RuleContext(session=ended, now=now, policy=self._policy, log=closed)
                for rule in self._rules.for_break_end():
                    violations.extend(rule.evaluate(break_ctx))
            for rule in self._rules.for_session_end():
                violations.extend(rule.evaluate(ctx))

            strikes = []
            for v in violations:
                strike = self.record_strike(
                    user_id=ended.user_id,
                    reason=v.reason,
                    description=v.description,
                    session_id=v.session_id,
                    log_id=v.log_id,
                    now=now,
                )
                if strike:
                    strikes.append(strike)

            self._attendance.set_duty_eligible(
                user_id=ended.user_id, work_date=ended.start_time.date(), eligible=eligible
            )

        logger.info(
            "Duty session %s ended: total=%s eligible=%s violations=%d",
            session_id,
            total,
            eligible,
            len(violations),
        )
        return SessionSummary(session=ended, eligible=eligible, violations=violations, strikes=strikes)

    def end_break(self, *, log: HourlyLog, now: Optional[datetime] = None) -> BreakOutcome:
        """Close the break on ``log``, fold it into the session and penalize it if too long."""

        now = now or now_local()
        with self.transition():
            self._lock_user(log.user_id)
            current = self._logs.get_by_id(log.log_id)
            if not current or current.break_start_time is None:
                raise ConflictError("Break not started")
            if current.break_end_time is not None:
                raise ConflictError("Break already ended")

            self._logs.set_break_end(current.log_id, now)
            closed = self._logs.get_by_id(current.log_id)
            minutes = closed.break_minutes()
            self._sessions.add_break_minutes(closed.session_id, minutes)

            session = self._sessions.get_by_id(closed.session_id)
            ctx = RuleContext(session=session, now=now, policy=self._policy, log=closed)
            strike = None
            for rule in self._rules.for_break_end():
                for v in rule.evaluate(ctx):
                    strike = self.record_strike(
                        user_id=closed.user_id,
                        reason=v.reason,
                        description=v.description,
                        session_id=v.session_id,
                        log_id=v.log_id,
                        now=now,
                    ) or strike

        return BreakOutcome(log=closed, break_minutes=minutes, strike=strike)

    def issue_missed_log_strikes(self, *, session_id: int, now: Optional[datetime] = None) -> list[Strike]:
        """Run the missed-log rule against a session on demand."""

        now = now or now_local()
        with self.transition():
            session = self._sessions.get_by_id(int(session_id))
            if not session:
                raise NotFoundError("Duty session not found")
            ctx = RuleContext(
                session=session,
                now=now,
                policy=self._policy,
                logs=tuple(self._logs.list_for_session(session.session_id)),
            )
            created = []
            for rule in self._rules.for_session_end():
                for v in rule.evaluate(ctx):
                    if v.reason != StrikeReason.MISSED_HOURLY_LOG:
                        continue
                    strike = self.record_strike(
                        user_id=session.user_id,
                        reason=v.reason,
                        description=v.description,
                        session_id=session.session_id,
                        now=now,
                    )
                    if strike:
                        created.append(strike)
        return created

    # ----- strike ledger ---------------------------------------------------

    def record_strike(
        self,
        *,
        user_id: int,
        reason: StrikeReason,
        description: Optional[str] = None,
        session_id: Optional[int] = None,
        log_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Optional[Strike]:
        """Add a strike and re-evaluate suspension. Returns None for a duplicate."""

        now = now or now_local()
        with self.transition():
            user = self._lock_user(user_id)

            since = now - timedelta(hours=self._policy.duplicate_strike_window_hours)
            if self._strikes.find_recent_active(user_id=user.user_id, reason=reason, since=since):
                logger.info("Duplicate strike prevented for user %s, reason %s", user.user_id, reason.value)
                return None

            active_after = self._strikes.count_active(user.user_id) + 1
            strike_id = self._strikes.create(
                user_id=user.user_id,
                reason=reason,
                description=description,
                severity=severity_for(reason),
                strike_date=now.date(),
                created_at=now,
                strike_count_at_time=active_after,
                session_id=session_id,
                log_id=log_id,
            )
            strike = self._strikes.get_by_id(strike_id)
            self._emit(StrikeEvent(kind=StrikeEventKind.RECORDED, user_id=user.user_id, active_count=active_after, strike=strike))
            self.evaluate_suspension(user.user_id, now=now, new_strike=True)

        logger.info("Strike %s (%s) recorded for user %s", strike_id, reason.value, user_id)
        return strike

    def evaluate_suspension(
        self,
        user_id: int,
        *,
        now: Optional[datetime] = None,
        new_strike: bool = False,
    ) -> EscalationLevel:
        """Derive strike_count and suspended_until from the active strike count."""

        now = now or now_local()
        p = self._policy
        with self.transition():
            user = self._lock_user(user_id)
            active = self._strikes.count_active(user.user_id)

            if active >= p.strike_suspension_threshold:
                level = EscalationLevel.SUSPENSION
                # only a new strike or a fresh crossing restarts the clock
                if new_strike or user.strike_count < p.strike_suspension_threshold:
                    suspended_until = now + timedelta(days=p.suspension_days)
                else:
                    suspended_until = user.suspended_until
            else:
                level = EscalationLevel.WARNING if active >= p.strike_warning_threshold else EscalationLevel.NONE
                suspended_until = None

            self._users.update_strike_state(user.user_id, strike_count=active, suspended_until=suspended_until)

            if new_strike and level == EscalationLevel.SUSPENSION:
                self._emit(
                    StrikeEvent(
                        kind=StrikeEventKind.SUSPENSION,
                        user_id=user.user_id,
                        active_count=active,
                        suspended_until=suspended_until,
                    )
                )
            elif new_strike and level == EscalationLevel.WARNING:
                self._emit(StrikeEvent(kind=StrikeEventKind.WARNING, user_id=user.user_id, active_count=active))

        if suspended_until != user.suspended_until:
            logger.info("User %s suspension now %s (active strikes=%d)", user_id, suspended_until, active)
        return level

    def resolve_strike(
        self,
        *,
        strike_id: int,
        actor: Actor,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Strike:
        if not actor.is_elevated:
            raise AuthorizationError("Only core team or teachers can resolve strikes")

        now = now or now_local()
        with self.transition():
            found = self._strikes.get_by_id(int(strike_id))
            if not found:
                raise NotFoundError("Strike not found")

            self._lock_user(found.user_id)
            strike = self._strikes.get_by_id(found.strike_id)
            if not strike.is_active:
                raise ConflictError("Strike already resolved")

            self._strikes.resolve(strike.strike_id, resolved_by=actor.user_id, resolved_at=now, notes=notes)
            self.evaluate_suspension(strike.user_id, now=now)
            resolved = self._strikes.get_by_id(strike.strike_id)
            self._emit(
                StrikeEvent(
                    kind=StrikeEventKind.RESOLVED,
                    user_id=strike.user_id,
                    active_count=self._strikes.count_active(strike.user_id),
                    strike=resolved,
                )
            )

        logger.info("Strike %s resolved by %s", strike_id, actor.user_id)
        return resolved

    # ----- previews (no writes) -------------------------------------------

    def preview_eligibility(self, session: DutySession, *, now: Optional[datetime] = None):
        now = now or now_local()
        logs = self._logs.list_for_session(session.session_id)
        return self._calculator.eligibility(session, logs, now=now, min_duty_minutes=self._policy.min_duty_minutes)


