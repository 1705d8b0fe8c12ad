from __future__ import annotations

from ...core.enums import StrikeReason
from .base import DutyRule, RuleContext, Violation


class ExcessiveBreakRule(DutyRule):
    """Break attached to an hourly log lasted longer than allowed."""

    def evaluate(self, ctx: RuleContext) -> list[Violation]:
        log = ctx.log
        if log is None or log.break_start_time is None:
            return []

        minutes = log.break_minutes(ctx.now)
        if minutes <= ctx.policy.max_break_minutes:
            return []
        return [
            Violation(
                reason=StrikeReason.EXCESSIVE_BREAK,
                description=(
                    f"Excessive break duration: {minutes} minutes taken, "
                    f"maximum allowed is {ctx.policy.max_break_minutes} minutes."
                ),
                session_id=log.session_id,
                log_id=log.log_id,
            )
        ]
