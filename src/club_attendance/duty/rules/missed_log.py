from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Sequence

from ...common.datetime_utils import iso_or_none, minutes_between
from ...core.enums import StrikeReason
from ...core.policy import DutyPolicy
from ..model import HourlyLog
from .base import DutyRule, RuleContext, Violation


@dataclass(frozen=True)
class LogGap:
    start: datetime
    end: datetime
    expected_time: datetime
    duration_minutes: int

    def to_dict(self) -> dict:
        return {
            "start": iso_or_none(self.start),
            "end": iso_or_none(self.end),
            "expected_time": iso_or_none(self.expected_time),
            "duration_minutes": self.duration_minutes,
        }


def break_intervals(logs: Sequence[HourlyLog], *, now: Optional[datetime] = None) -> list[tuple[datetime, datetime]]:
    """(start, end) of every break on the logs; an open break runs until ``now``."""

    out = []
    for log in logs:
        end = log.break_end_time or now
        if log.break_start_time is not None and end is not None and end > log.break_start_time:
            out.append((log.break_start_time, end))
    return out


def _break_overlap(start: datetime, end: datetime, breaks: Sequence[tuple[datetime, datetime]]) -> int:
    seconds = 0.0
    for b_start, b_end in breaks:
        lo, hi = max(start, b_start), min(end, b_end)
        if hi > lo:
            seconds += (hi - lo).total_seconds()
    return int(round(seconds / 60))


def missed_log_gaps(
    *,
    start: datetime,
    log_times: Sequence[datetime],
    end: datetime,
    policy: DutyPolicy,
    breaks: Sequence[tuple[datetime, datetime]] = (),
) -> list[LogGap]:
    """Gaps between consecutive check-ins (start, logs, end) longer than interval + window.

    Break time inside a gap does not count towards it; a long break is
    penalized as an excessive break, not as a missed log.
    """

    checkpoints = [start, *sorted(log_times), end]
    limit = policy.missed_log_gap_minutes
    gaps: list[LogGap] = []
    for prev, nxt in zip(checkpoints, checkpoints[1:]):
        duration = minutes_between(prev, nxt) - _break_overlap(prev, nxt, breaks)
        if duration > limit:
            gaps.append(
                LogGap(
                    start=prev,
                    end=nxt,
                    expected_time=prev + timedelta(minutes=policy.log_interval_minutes),
                    duration_minutes=duration,
                )
            )
    return gaps


class MissedLogRule(DutyRule):
    """One violation per gap without an hourly log."""

    def evaluate(self, ctx: RuleContext) -> list[Violation]:
        gaps = missed_log_gaps(
            start=ctx.session.start_time,
            log_times=[log.log_time for log in ctx.logs],
            end=ctx.session.end_time or ctx.now,
            policy=ctx.policy,
            breaks=break_intervals(ctx.logs, now=ctx.now),
        )
        return [
            Violation(
                reason=StrikeReason.MISSED_HOURLY_LOG,
                description=(
                    "Missed hourly log during duty session. "
                    f"Expected log at {gap.expected_time:%Y-%m-%d %H:%M}, gap of {gap.duration_minutes} minutes."
                ),
                session_id=ctx.session.session_id,
            )
            for gap in gaps
        ]
