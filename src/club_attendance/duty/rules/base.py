from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Sequence

from ...core.enums import StrikeReason
from ...core.policy import DutyPolicy
from ..model import DutySession, HourlyLog


@dataclass(frozen=True)
class RuleContext:
    session: DutySession
    now: datetime
    policy: DutyPolicy
    logs: Sequence[HourlyLog] = field(default_factory=tuple)
    log: Optional[HourlyLog] = None


@dataclass(frozen=True)
class Violation:
    reason: StrikeReason
    description: str
    session_id: Optional[int] = None
    log_id: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "reason": self.reason.value,
            "description": self.description,
            "session_id": self.session_id,
            "log_id": self.log_id,
        }


class DutyRule(ABC):
    """Strategy Pattern: one rule a duty session can break."""

    @abstractmethod
    def evaluate(self, ctx: RuleContext) -> list[Violation]:
        raise NotImplementedError
