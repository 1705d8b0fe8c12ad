from datetime import timedelta

import pytest

from club_attendance.attendance.model import AttendanceFilter
from club_attendance.core.enums import AttendanceStatus, NotificationType, Role
from club_attendance.core.exceptions import AuthorizationError, ConflictError, ValidationError


def _mark(world, user, status, *, now, actor=None, work_date=None, note=None):
    return world.attendance_service.mark_attendance(
        actor=world.actor(actor or user),
        user_id=user.user_id,
        work_date=work_date or now.date(),
        status=status,
        note=note,
        now=now,
    )


def test_one_record_per_member_and_day(world, fixed_now):
    _mark(world, world.student, AttendanceStatus.PRESENT, now=fixed_now)

    with pytest.raises(ConflictError):
        _mark(world, world.student, AttendanceStatus.ABSENT, now=fixed_now + timedelta(hours=1))

    tomorrow = _mark(world, world.student, AttendanceStatus.PRESENT, now=fixed_now + timedelta(days=1))
    assert tomorrow.is_pending


def test_students_mark_only_themselves(world, fixed_now):
    other = world.users.add("Student Two", Role.STUDENT)
    with pytest.raises(AuthorizationError):
        _mark(world, other, AttendanceStatus.PRESENT, now=fixed_now, actor=world.student)

    record = _mark(world, other, AttendanceStatus.PRESENT, now=fixed_now, actor=world.teacher)
    assert record.user_id == other.user_id


def test_future_club_duty_is_rejected(world, fixed_now):
    with pytest.raises(ValidationError):
        _mark(world, world.student, AttendanceStatus.ON_CLUB_DUTY, now=fixed_now, work_date=fixed_now.date() + timedelta(days=1))


def test_club_duty_today_starts_a_session(world, fixed_now):
    record = _mark(world, world.student, AttendanceStatus.ON_CLUB_DUTY, now=fixed_now, note="stage crew")

    session = world.sessions.get_active_for_user(world.student.user_id)
    assert session is not None
    assert session.start_time == fixed_now
    assert record.status == AttendanceStatus.ON_CLUB_DUTY
    assert record.note == "stage crew"
    assert any(n.type == NotificationType.ATTENDANCE_UPDATE for n in world.notifications.for_user(world.student.user_id))


def test_duty_approval_needs_eligibility(world, fixed_now):
    student = world.actor(world.student)
    teacher = world.actor(world.teacher)
    record = _mark(world, world.student, AttendanceStatus.ON_CLUB_DUTY, now=fixed_now)

    with pytest.raises(ValidationError):
        world.attendance_service.set_approval(
            actor=teacher, attendance_id=record.attendance_id, approve=True, now=fixed_now + timedelta(minutes=30)
        )

    session = world.sessions.get_active_for_user(world.student.user_id)
    for h in (1, 2):
        world.log_service.create_log(
            actor=student,
            session_id=session.session_id,
            previous_hour_work="ushering",
            next_hour_plan="ushering",
            now=fixed_now + timedelta(hours=h),
        )
    world.duty_service.end_session(actor=student, session_id=session.session_id, now=fixed_now + timedelta(minutes=150))

    approved = world.attendance_service.set_approval(
        actor=teacher, attendance_id=record.attendance_id, approve=True, now=fixed_now + timedelta(hours=3)
    )
    assert approved.is_approved is True
    assert approved.duty_eligible is True
    assert approved.approved_by == world.teacher.user_id


def test_rejection_needs_reason_and_is_noted(world, fixed_now):
    teacher = world.actor(world.teacher)
    record = _mark(world, world.student, AttendanceStatus.PRESENT, now=fixed_now, note="morning")

    with pytest.raises(ValidationError):
        world.attendance_service.set_approval(actor=teacher, attendance_id=record.attendance_id, approve=False)

    rejected = world.attendance_service.set_approval(
        actor=teacher, attendance_id=record.attendance_id, approve=False, reason="not seen", now=fixed_now
    )
    assert rejected.is_approved is False
    assert rejected.note == "morning; Rejected: not seen"


def test_students_cannot_approve(world, fixed_now):
    record = _mark(world, world.student, AttendanceStatus.PRESENT, now=fixed_now)
    with pytest.raises(AuthorizationError):
        world.attendance_service.set_approval(
            actor=world.actor(world.student), attendance_id=record.attendance_id, approve=True
        )


def test_bulk_approve_flags_ineligible_duty(world, fixed_now):
    other = world.users.add("Student Two", Role.STUDENT)
    present = _mark(world, world.student, AttendanceStatus.PRESENT, now=fixed_now)
    duty = _mark(world, other, AttendanceStatus.ON_CLUB_DUTY, now=fixed_now)

    result = world.attendance_service.bulk_approve(
        actor=world.actor(world.teacher),
        attendance_ids=[present.attendance_id, duty.attendance_id, 404],
        now=fixed_now + timedelta(minutes=10),
    )

    by_id = {r.attendance_id: r for r in result["updated"]}
    assert by_id[present.attendance_id].is_approved is True
    assert by_id[duty.attendance_id].is_approved is False
    assert [e["attendance_id"] for e in result["errors"]] == [duty.attendance_id, 404]


def test_bulk_reject_and_pending_listing(world, fixed_now):
    teacher = world.actor(world.teacher)
    first = _mark(world, world.student, AttendanceStatus.PRESENT, now=fixed_now)
    second = _mark(world, world.student, AttendanceStatus.ABSENT, now=fixed_now + timedelta(days=1))

    page = world.attendance_service.list_pending(actor=teacher, filters=AttendanceFilter())
    assert page["total"] == 2

    result = world.attendance_service.bulk_reject(
        actor=teacher, attendance_ids=[first.attendance_id], reason="duplicate entry", now=fixed_now
    )
    assert result["updated"][0].note == "Rejected: duplicate entry"

    counts = world.attendance_service.status_counts(actor=teacher)
    assert counts == {"pending": 1, "approved": 0, "rejected": 1, "total": 2}
    assert world.attendance_service.list_pending(actor=teacher, filters=AttendanceFilter())["items"][0].attendance_id == second.attendance_id


def test_daily_summary(world, fixed_now):
    _mark(world, world.student, AttendanceStatus.ON_CLUB_DUTY, now=fixed_now)

    summary = world.attendance_service.daily_summary(actor=world.actor(world.teacher), day=fixed_now.date())
    assert summary["summary"]["total_attendance"] == 1
    assert summary["summary"]["total_duty_sessions"] == 1
    assert summary["summary"]["completed_duty_sessions"] == 0
