from __future__ import annotations

from dataclasses import dataclass

from .rules.base import DutyRule
from .rules.excessive_break import ExcessiveBreakRule
from .rules.insufficient_hours import InsufficientHoursRule
from .rules.missed_log import MissedLogRule


@dataclass
class DutyRuleFactory:
    """Factory Pattern: choose the rules that apply at each transition."""

    def for_session_end(self) -> list[DutyRule]:
        return [InsufficientHoursRule(), MissedLogRule()]

    def for_break_end(self) -> list[DutyRule]:
        return [ExcessiveBreakRule()]
