from datetime import timedelta

import pytest

from club_attendance.core.enums import Role, StrikeReason
from club_attendance.core.exceptions import AuthorizationError, ConflictError, ValidationError


@pytest.fixture
def active(world, fixed_now):
    actor = world.actor(world.student)
    session = world.duty_service.start_session(actor=actor, now=fixed_now)
    return actor, session


def _log(world, actor, session, at):
    return world.log_service.create_log(
        actor=actor, session_id=session.session_id, previous_hour_work="did", next_hour_plan="will do", now=at
    )


def test_log_requires_both_texts(world, active, fixed_now):
    actor, session = active
    with pytest.raises(ValidationError):
        world.log_service.create_log(
            actor=actor,
            session_id=session.session_id,
            previous_hour_work="  ",
            next_hour_plan="plan",
            now=fixed_now + timedelta(hours=1),
        )


def test_log_inside_window_accepted_earlier_rejected(world, active, fixed_now):
    actor, session = active

    with pytest.raises(ConflictError):
        _log(world, actor, session, fixed_now + timedelta(minutes=30))

    log = _log(world, actor, session, fixed_now + timedelta(minutes=45))
    assert log.log_time == fixed_now + timedelta(minutes=45)

    # the next one is due an hour after the previous log
    with pytest.raises(ConflictError):
        _log(world, actor, session, fixed_now + timedelta(minutes=80))


def test_late_log_is_accepted(world, active, fixed_now):
    actor, session = active
    log = _log(world, actor, session, fixed_now + timedelta(hours=3))
    assert log.session_id == session.session_id


def test_cannot_log_into_someone_elses_session(world, active, fixed_now):
    _, session = active
    other = world.users.add("Student Two", Role.STUDENT)
    with pytest.raises(AuthorizationError):
        _log(world, world.actor(other), session, fixed_now + timedelta(hours=1))


def test_cannot_log_into_ended_session(world, active, fixed_now):
    actor, session = active
    world.duty_service.end_session(actor=actor, session_id=session.session_id, now=fixed_now + timedelta(minutes=30))
    with pytest.raises(ConflictError):
        _log(world, actor, session, fixed_now + timedelta(hours=1))


def test_update_only_within_edit_window(world, active, fixed_now):
    actor, session = active
    log = _log(world, actor, session, fixed_now + timedelta(hours=1))

    updated = world.log_service.update_log(
        actor=actor, log_id=log.log_id, next_hour_plan="new plan", now=fixed_now + timedelta(minutes=70)
    )
    assert updated.next_hour_plan == "new plan"
    assert updated.previous_hour_work == "did"

    with pytest.raises(ValidationError):
        world.log_service.update_log(
            actor=actor, log_id=log.log_id, next_hour_plan="too late", now=fixed_now + timedelta(minutes=76)
        )


def test_break_within_limit_adds_to_session(world, active, fixed_now):
    actor, session = active
    log = _log(world, actor, session, fixed_now + timedelta(hours=1))
    world.log_service.start_break(actor=actor, log_id=log.log_id, now=fixed_now + timedelta(minutes=65))

    outcome = world.log_service.end_break(actor=actor, log_id=log.log_id, now=fixed_now + timedelta(minutes=85))

    assert outcome.break_minutes == 20
    assert outcome.strike is None
    assert world.sessions.get_by_id(session.session_id).break_duration == 20


def test_excessive_break_is_saved_and_penalized(world, active, fixed_now):
    actor, session = active
    log = _log(world, actor, session, fixed_now + timedelta(hours=1))
    world.log_service.start_break(actor=actor, log_id=log.log_id, now=fixed_now + timedelta(minutes=65))

    outcome = world.log_service.end_break(actor=actor, log_id=log.log_id, now=fixed_now + timedelta(minutes=105))

    assert outcome.break_minutes == 40
    assert outcome.strike.reason == StrikeReason.EXCESSIVE_BREAK
    assert outcome.strike.log_id == log.log_id
    assert world.sessions.get_by_id(session.session_id).break_duration == 40


def test_break_state_conflicts(world, active, fixed_now):
    actor, session = active
    first = _log(world, actor, session, fixed_now + timedelta(hours=1))
    second = _log(world, actor, session, fixed_now + timedelta(hours=2))

    with pytest.raises(ConflictError):
        world.log_service.end_break(actor=actor, log_id=first.log_id, now=fixed_now + timedelta(hours=2))

    world.log_service.start_break(actor=actor, log_id=first.log_id, now=fixed_now + timedelta(minutes=125))
    with pytest.raises(ConflictError):
        world.log_service.start_break(actor=actor, log_id=first.log_id, now=fixed_now + timedelta(minutes=126))
    with pytest.raises(ConflictError):
        world.log_service.start_break(actor=actor, log_id=second.log_id, now=fixed_now + timedelta(minutes=126))

    world.log_service.end_break(actor=actor, log_id=first.log_id, now=fixed_now + timedelta(minutes=130))
    with pytest.raises(ConflictError):
        world.log_service.end_break(actor=actor, log_id=first.log_id, now=fixed_now + timedelta(minutes=131))


def test_preview_missed_logs_writes_nothing(world, active, fixed_now):
    actor, session = active
    _log(world, actor, session, fixed_now + timedelta(hours=1))

    preview = world.log_service.preview_missed_logs(
        actor=actor, user_id=world.student.user_id, now=fixed_now + timedelta(hours=3)
    )

    assert len(preview) == 1
    assert preview[0]["session_id"] == session.session_id
    assert preview[0]["gaps"][0]["duration_minutes"] == 120
    assert world.strikes.count_active(world.student.user_id) == 0


def test_issue_missed_log_strikes_is_staff_only(world, active, fixed_now):
    actor, session = active
    with pytest.raises(AuthorizationError):
        world.log_service.issue_missed_log_strikes(actor=actor, session_id=session.session_id)

    created = world.log_service.issue_missed_log_strikes(
        actor=world.actor(world.teacher), session_id=session.session_id, now=fixed_now + timedelta(hours=3)
    )
    assert [s.reason for s in created] == [StrikeReason.MISSED_HOURLY_LOG]


def test_staff_can_list_logs_of_any_session(world, active, fixed_now):
    actor, session = active
    _log(world, actor, session, fixed_now + timedelta(hours=1))

    assert len(world.log_service.list_logs(actor=world.actor(world.teacher), session_id=session.session_id)) == 1
    other = world.users.add("Student Two", Role.STUDENT)
    with pytest.raises(AuthorizationError):
        world.log_service.list_logs(actor=world.actor(other), session_id=session.session_id)


def test_break_left_open_until_session_end_is_penalized_once(world, active, fixed_now):
    actor, session = active
    log = _log(world, actor, session, fixed_now + timedelta(hours=1))
    world.log_service.start_break(actor=actor, log_id=log.log_id, now=fixed_now + timedelta(minutes=61))

    summary = world.duty_service.end_session(
        actor=actor, session_id=session.session_id, now=fixed_now + timedelta(minutes=241)
    )

    reasons = [s.reason for s in summary.strikes]
    assert StrikeReason.EXCESSIVE_BREAK in reasons
    # the break itself is not also counted as a missed log
    assert StrikeReason.MISSED_HOURLY_LOG not in reasons
    excessive = next(s for s in summary.strikes if s.reason == StrikeReason.EXCESSIVE_BREAK)
    assert excessive.log_id == log.log_id
