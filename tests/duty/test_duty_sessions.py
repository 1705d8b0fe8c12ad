from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest

from club_attendance.core.enums import AttendanceStatus, Role, StrikeReason
from club_attendance.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError


def _log_hourly(world, actor, session_id, start, hours):
    for h in range(1, hours + 1):
        world.log_service.create_log(
            actor=actor,
            session_id=session_id,
            previous_hour_work=f"hour {h}",
            next_hour_plan="keep going",
            now=start + timedelta(hours=h),
        )


def test_start_session_marks_attendance_on_club_duty(world, fixed_now):
    actor = world.actor(world.student)
    session = world.duty_service.start_session(actor=actor, notes="front desk", now=fixed_now)

    assert session.is_active
    assert session.start_time == fixed_now
    record = world.attendance.get_for_user_and_date(world.student.user_id, fixed_now.date())
    assert record.status == AttendanceStatus.ON_CLUB_DUTY


def test_second_start_conflicts(world, fixed_now):
    actor = world.actor(world.student)
    world.duty_service.start_session(actor=actor, now=fixed_now)

    with pytest.raises(ConflictError):
        world.duty_service.start_session(actor=actor, now=fixed_now + timedelta(minutes=5))


def test_concurrent_starts_exactly_one_succeeds(world, fixed_now):
    actor = world.actor(world.student)

    def attempt(_):
        try:
            world.duty_service.start_session(actor=actor, now=fixed_now)
            return "ok"
        except ConflictError:
            return "conflict"

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(attempt, range(16)))

    assert results.count("ok") == 1
    assert results.count("conflict") == 15
    assert len([s for s in world.sessions.list_history(user_id=world.student.user_id) if s.is_active]) == 1


def test_end_session_150_minutes_is_eligible(world, fixed_now):
    actor = world.actor(world.student)
    session = world.duty_service.start_session(actor=actor, now=fixed_now)
    _log_hourly(world, actor, session.session_id, fixed_now, 2)

    summary = world.duty_service.end_session(
        actor=actor, session_id=session.session_id, now=fixed_now + timedelta(minutes=150)
    )

    assert summary.eligible is True
    assert summary.session.total_duration == 150
    assert summary.session.is_active is False
    assert summary.violations == []
    assert summary.strikes == []
    record = world.attendance.get_for_user_and_date(world.student.user_id, fixed_now.date())
    assert record.duty_eligible is True


def test_end_session_60_minutes_records_insufficient_hours(world, fixed_now):
    actor = world.actor(world.student)
    session = world.duty_service.start_session(actor=actor, now=fixed_now)

    summary = world.duty_service.end_session(
        actor=actor, session_id=session.session_id, now=fixed_now + timedelta(minutes=60)
    )

    assert summary.eligible is False
    assert [s.reason for s in summary.strikes] == [StrikeReason.INSUFFICIENT_DUTY_HOURS]
    assert world.users.get_by_id(world.student.user_id).strike_count == 1
    record = world.attendance.get_for_user_and_date(world.student.user_id, fixed_now.date())
    assert record.duty_eligible is False


def test_end_session_closes_open_break(world, fixed_now):
    actor = world.actor(world.student)
    session = world.duty_service.start_session(actor=actor, now=fixed_now)
    log = world.log_service.create_log(
        actor=actor,
        session_id=session.session_id,
        previous_hour_work="setup",
        next_hour_plan="more setup",
        now=fixed_now + timedelta(hours=1),
    )
    world.log_service.start_break(actor=actor, log_id=log.log_id, now=fixed_now + timedelta(minutes=70))

    summary = world.duty_service.end_session(
        actor=actor, session_id=session.session_id, now=fixed_now + timedelta(minutes=150)
    )

    assert summary.session.break_duration == 80
    assert summary.session.total_duration == 70
    assert world.logs.get_by_id(log.log_id).break_end_time == fixed_now + timedelta(minutes=150)


def test_end_session_twice_conflicts(world, fixed_now):
    actor = world.actor(world.student)
    session = world.duty_service.start_session(actor=actor, now=fixed_now)
    world.duty_service.end_session(actor=actor, session_id=session.session_id, now=fixed_now + timedelta(hours=1))

    with pytest.raises(ConflictError):
        world.duty_service.end_session(actor=actor, session_id=session.session_id, now=fixed_now + timedelta(hours=2))


def test_only_owner_or_staff_can_end(world, fixed_now):
    other = world.users.add("Student Two", Role.STUDENT)
    session = world.duty_service.start_session(actor=world.actor(world.student), now=fixed_now)

    with pytest.raises(AuthorizationError):
        world.duty_service.end_session(
            actor=world.actor(other), session_id=session.session_id, now=fixed_now + timedelta(hours=3)
        )

    summary = world.duty_service.end_session(
        actor=world.actor(world.teacher), session_id=session.session_id, now=fixed_now + timedelta(hours=3)
    )
    assert summary.session.end_time == fixed_now + timedelta(hours=3)


def test_end_missing_session_is_not_found(world, fixed_now):
    with pytest.raises(NotFoundError):
        world.duty_service.end_session(actor=world.actor(world.teacher), session_id=999, now=fixed_now)


def test_current_session_reports_next_log_due(world, fixed_now):
    actor = world.actor(world.student)
    session = world.duty_service.start_session(actor=actor, now=fixed_now)
    _log_hourly(world, actor, session.session_id, fixed_now, 1)

    current = world.duty_service.get_current_session(world.student.user_id, now=fixed_now + timedelta(minutes=90))

    assert current.session.session_id == session.session_id
    assert len(current.logs) == 1
    assert current.next_log_due == fixed_now + timedelta(hours=2)
    assert current.eligibility.total_minutes == 90
    assert world.duty_service.get_current_session(world.teacher.user_id, now=fixed_now) is None


def test_history_is_scoped_for_students(world, fixed_now):
    other = world.users.add("Student Two", Role.STUDENT)
    world.duty_service.start_session(actor=world.actor(world.student), now=fixed_now)
    world.duty_service.start_session(actor=world.actor(other), now=fixed_now)

    own = world.duty_service.get_history(actor=world.actor(world.student), user_id=other.user_id)
    everyone = world.duty_service.get_history(actor=world.actor(world.teacher))

    assert {s.user_id for s in own} == {world.student.user_id}
    assert len(everyone) == 2

    with pytest.raises(ValidationError):
        world.duty_service.get_history(
            actor=world.actor(world.teacher), start=fixed_now, end=fixed_now - timedelta(days=1)
        )


def test_stats_average_completed_sessions(world, fixed_now):
    actor = world.actor(world.student)
    for day, minutes in ((0, 150), (1, 90)):
        start = fixed_now + timedelta(days=day)
        s = world.duty_service.start_session(actor=actor, now=start)
        world.duty_service.end_session(actor=actor, session_id=s.session_id, now=start + timedelta(minutes=minutes))

    stats = world.duty_service.get_stats(actor=actor)
    assert stats == {"total_minutes": 240, "session_count": 2, "average_minutes": 120}


def test_update_session_notes(world, fixed_now):
    actor = world.actor(world.student)
    session = world.duty_service.start_session(actor=actor, now=fixed_now)

    updated = world.duty_service.update_session(actor=actor, session_id=session.session_id, notes="  library  ")
    assert updated.notes == "library"
