from __future__ import annotations

import logging
from collections import Counter
from datetime import date, datetime
from typing import Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.validators import parse_page, require_non_empty
from ..core.enums import EscalationLevel, StrikeReason
from ..core.exceptions import AuthorizationError, ConflictError, DomainError, NotFoundError
from ..duty.state_machine import DutyStateMachine
from ..users.model import Actor
from ..users.repository import UserRepository
from .model import Strike, StrikeFilter
from .repository import StrikeRepository

logger = logging.getLogger(__name__)


class StrikeService:
    """Strike ledger use cases. Writes go through the duty state machine."""

    def __init__(self, state: DutyStateMachine, strikes: StrikeRepository, users: UserRepository):
        self._state = state
        self._strikes = strikes
        self._users = users

    def escalation_level(self, active_count: int) -> EscalationLevel:
        p = self._state.policy
        if active_count >= p.strike_suspension_threshold:
            return EscalationLevel.SUSPENSION
        if active_count >= p.strike_warning_threshold:
            return EscalationLevel.WARNING
        return EscalationLevel.NONE

    def issue_strike(
        self,
        *,
        actor: Actor,
        user_id: int,
        reason: StrikeReason,
        description: str,
        now: Optional[datetime] = None,
    ) -> Strike:
        if not actor.is_elevated:
            raise AuthorizationError("Only core team or teachers can issue strikes")
        description = require_non_empty(description, "description")

        strike = self._state.record_strike(user_id=int(user_id), reason=reason, description=description, now=now)
        if strike is None:
            raise ConflictError("A strike for this reason was already issued recently")
        return strike

    def resolve(self, *, actor: Actor, strike_id: int, notes: Optional[str] = None, now=None) -> Strike:
        notes = (notes or "").strip() or None
        return self._state.resolve_strike(strike_id=int(strike_id), actor=actor, notes=notes, now=now)

    def bulk_resolve(self, *, actor: Actor, strike_ids: Sequence[int], notes: Optional[str] = None, now=None) -> dict:
        if not actor.is_elevated:
            raise AuthorizationError("Only core team or teachers can resolve strikes")

        resolved, errors = [], []
        for strike_id in strike_ids:
            try:
                resolved.append(self.resolve(actor=actor, strike_id=strike_id, notes=notes, now=now))
            except DomainError as e:
                errors.append({"strike_id": int(strike_id), "message": str(e)})
        return {"resolved": resolved, "errors": errors}

    def count_active(self, *, actor: Actor, user_id: int) -> int:
        if not actor.can_act_for(user_id):
            raise AuthorizationError("You can only view your own strikes")
        return self._strikes.count_active(int(user_id))

    def get_strike(self, *, actor: Actor, strike_id: int) -> Strike:
        strike = self._strikes.get_by_id(int(strike_id))
        if not strike:
            raise NotFoundError("Strike not found")
        if not actor.can_act_for(strike.user_id):
            raise AuthorizationError("You can only view your own strikes")
        return strike

    def list_strikes(self, *, actor: Actor, filters: StrikeFilter, page=1, page_size=None) -> dict:
        if not actor.is_elevated:
            filters = StrikeFilter(
                user_id=actor.user_id,
                reason=filters.reason,
                is_active=filters.is_active,
                start_date=filters.start_date,
                end_date=filters.end_date,
            )
        p, size = parse_page(page, page_size)
        rows, total = self._strikes.list_strikes(filters, limit=size, offset=(p - 1) * size)
        return {"items": rows, "page": p, "page_size": size, "total": total}

    def statistics(
        self,
        *,
        actor: Actor,
        user_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> dict:
        if not actor.is_elevated:
            user_id = actor.user_id

        strikes = self._strikes.list_all(StrikeFilter(user_id=user_id, start_date=start_date, end_date=end_date))
        by_reason = Counter(s.reason.value for s in strikes)
        active = sum(1 for s in strikes if s.is_active)

        stats = {
            "total": len(strikes),
            "active": active,
            "resolved": len(strikes) - active,
            "by_reason": {r.value: by_reason.get(r.value, 0) for r in StrikeReason},
        }
        if user_id is not None:
            current = self._strikes.count_active(int(user_id))
            stats["escalation_level"] = self.escalation_level(current).value
        return stats

    def check_suspension_expiry(self, *, actor: Actor, user_id: int, now: Optional[datetime] = None) -> dict:
        if not actor.can_act_for(user_id):
            raise AuthorizationError("You can only check your own suspension")
        now = now or now_local()
        user = self._state.clear_expired_suspension(int(user_id), now=now)
        return {
            "user_id": user.user_id,
            "suspended": user.is_suspended(now),
            "suspended_until": user.suspended_until.isoformat() if user.suspended_until else None,
            "strike_count": user.strike_count,
        }
