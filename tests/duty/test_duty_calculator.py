from datetime import datetime

from club_attendance.duty.calculator.standard_calculator import StandardDutyCalculator
from club_attendance.duty.model import DutySession, HourlyLog


def _session(start, end=None, *, break_duration=0, total=None):
    return DutySession(
        session_id=1,
        user_id=1,
        start_time=start,
        end_time=end,
        break_duration=break_duration,
        total_duration=total,
        is_active=end is None,
    )


def test_worked_minutes_subtracts_break():
    calc = StandardDutyCalculator()
    start = datetime(2026, 3, 2, 8, 0)
    assert calc.worked_minutes(start=start, end=datetime(2026, 3, 2, 10, 30), break_minutes=30) == 120


def test_worked_minutes_never_negative():
    calc = StandardDutyCalculator()
    start = datetime(2026, 3, 2, 8, 0)
    assert calc.worked_minutes(start=start, end=datetime(2026, 3, 2, 8, 20), break_minutes=45) == 0


def test_150_minutes_without_break_is_eligible():
    calc = StandardDutyCalculator()
    start = datetime(2026, 3, 2, 8, 0)
    result = calc.eligibility(
        _session(start, datetime(2026, 3, 2, 10, 30)), [], now=datetime(2026, 3, 2, 11, 0), min_duty_minutes=120
    )
    assert result.meets is True
    assert result.total_minutes == 150


def test_60_minutes_is_not_eligible():
    calc = StandardDutyCalculator()
    start = datetime(2026, 3, 2, 8, 0)
    result = calc.eligibility(
        _session(start, datetime(2026, 3, 2, 9, 0)), [], now=datetime(2026, 3, 2, 11, 0), min_duty_minutes=120
    )
    assert result.meets is False
    assert result.total_minutes == 60


def test_open_break_counts_until_now_for_active_session():
    calc = StandardDutyCalculator()
    start = datetime(2026, 3, 2, 8, 0)
    log = HourlyLog(
        log_id=1,
        session_id=1,
        user_id=1,
        log_time=datetime(2026, 3, 2, 9, 0),
        previous_hour_work="w",
        next_hour_plan="p",
        break_start_time=datetime(2026, 3, 2, 9, 10),
    )
    result = calc.eligibility(
        _session(start, break_duration=5), [log], now=datetime(2026, 3, 2, 9, 30), min_duty_minutes=120
    )
    assert result.break_minutes == 25
    assert result.total_minutes == 90 - 25


def test_stored_total_wins_over_recomputation():
    calc = StandardDutyCalculator()
    start = datetime(2026, 3, 2, 8, 0)
    result = calc.eligibility(
        _session(start, datetime(2026, 3, 2, 12, 0), total=100), [], now=datetime(2026, 3, 2, 12, 0), min_duty_minutes=120
    )
    assert result.total_minutes == 100
    assert result.meets is False
