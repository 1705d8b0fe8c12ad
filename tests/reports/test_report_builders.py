from datetime import timedelta

import pytest

from club_attendance.core.enums import AttendanceStatus, Role, StrikeReason
from club_attendance.core.exceptions import AuthorizationError, ValidationError
from club_attendance.reports.export import to_csv_bytes, to_excel_bytes


def test_attendance_summary_counts(world, fixed_now):
    other = world.users.add("Student Two", Role.STUDENT)
    for user, status in ((world.student, AttendanceStatus.PRESENT), (other, AttendanceStatus.ABSENT)):
        world.attendance_service.mark_attendance(
            actor=world.actor(world.teacher), user_id=user.user_id, work_date=fixed_now.date(), status=status, now=fixed_now
        )

    report = world.report_service.attendance_summary(
        actor=world.actor(world.teacher), start=fixed_now.date(), end=fixed_now.date()
    )

    assert report.totals["records"] == 2
    assert report.totals["by_status"] == {"present": 1, "on_club_duty": 0, "absent": 1}
    assert report.totals["by_approval"]["pending"] == 2
    assert {r["full_name"] for r in report.summary} == {"Student One", "Student Two"}
    assert report.rows[0]["student_code"] == "STU-1"


def test_student_reports_are_limited_to_self(world, fixed_now):
    other = world.users.add("Student Two", Role.STUDENT)
    student = world.actor(world.student)
    with pytest.raises(AuthorizationError):
        world.report_service.attendance_summary(
            actor=student, start=fixed_now.date(), end=fixed_now.date(), user_id=other.user_id
        )
    with pytest.raises(AuthorizationError):
        world.report_service.penalty_report(actor=student, start=fixed_now.date(), end=fixed_now.date())


def test_range_must_be_ordered(world, fixed_now):
    with pytest.raises(ValidationError):
        world.report_service.duty_report(
            actor=world.actor(world.teacher), start=fixed_now.date(), end=fixed_now.date() - timedelta(days=1)
        )


def test_duty_report_totals_per_member(world, fixed_now):
    actor = world.actor(world.student)
    ended = world.duty_service.start_session(actor=actor, now=fixed_now)
    world.duty_service.end_session(actor=actor, session_id=ended.session_id, now=fixed_now + timedelta(minutes=150))
    running = world.duty_service.start_session(actor=actor, now=fixed_now + timedelta(hours=4))

    report = world.report_service.duty_report(
        actor=world.actor(world.teacher),
        start=fixed_now.date(),
        end=fixed_now.date(),
        now=running.start_time + timedelta(minutes=30),
    )

    assert [r["worked_minutes"] for r in report.rows] == [150, 30]
    assert [r["eligible"] for r in report.rows] == ["yes", "no"]
    assert report.summary[0]["sessions"] == 2
    assert report.summary[0]["eligible_sessions"] == 1
    assert report.summary[0]["total_hours"] == "03:00"


def test_penalty_report_groups_by_reason(world, fixed_now):
    uid = world.student.user_id
    world.state.record_strike(user_id=uid, reason=StrikeReason.MISSED_HOURLY_LOG, now=fixed_now)
    strike = world.state.record_strike(user_id=uid, reason=StrikeReason.OTHER, now=fixed_now)
    world.strike_service.resolve(actor=world.actor(world.teacher), strike_id=strike.strike_id, now=fixed_now)

    report = world.report_service.penalty_report(
        actor=world.actor(world.teacher), start=fixed_now.date(), end=fixed_now.date()
    )

    assert report.totals["strikes"] == 2
    assert report.totals["active"] == 1
    assert report.totals["by_reason"]["missed_hourly_log"] == 1
    assert report.summary == [
        {"user_id": uid, "full_name": "Student One", "email": world.student.email, "total": 2, "active": 1}
    ]


def test_exports(world, fixed_now):
    world.attendance_service.mark_attendance(
        actor=world.actor(world.student),
        user_id=world.student.user_id,
        work_date=fixed_now.date(),
        status=AttendanceStatus.PRESENT,
        now=fixed_now,
    )
    report = world.report_service.attendance_summary(
        actor=world.actor(world.teacher), start=fixed_now.date(), end=fixed_now.date()
    )

    csv_bytes = to_csv_bytes(report)
    assert csv_bytes.startswith(b"\xef\xbb\xbf")
    header = csv_bytes.decode("utf-8-sig").splitlines()[0]
    assert header.startswith("work_date,user_id,full_name")

    xlsx = to_excel_bytes(report, sheet_name="attendance")
    assert xlsx[:2] == b"PK"
