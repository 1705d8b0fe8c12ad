from __future__ import annotations

from ...core.enums import StrikeReason
from .base import DutyRule, RuleContext, Violation


class InsufficientHoursRule(DutyRule):
    """Ended session shorter than the minimum duty time."""

    def evaluate(self, ctx: RuleContext) -> list[Violation]:
        total = ctx.session.total_duration
        if total is None or total >= ctx.policy.min_duty_minutes:
            return []
        return [
            Violation(
                reason=StrikeReason.INSUFFICIENT_DUTY_HOURS,
                description=(
                    f"Insufficient duty hours: {total} minutes logged, "
                    f"{ctx.policy.min_duty_minutes} minutes required."
                ),
                session_id=ctx.session.session_id,
            )
        ]
