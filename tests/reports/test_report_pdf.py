from datetime import timedelta

import pytest

from club_attendance.core.enums import AttendanceStatus, StrikeReason
from club_attendance.core.exceptions import AuthorizationError
from club_attendance.reports import pdf as pdf_export
from club_attendance.reports.service import ReportData


def _weasyprint_ready() -> bool:
    try:
        import weasyprint  # noqa: F401
    except (ImportError, OSError):
        return False
    return True


def test_daily_summary_collects_the_day(world, fixed_now):
    actor = world.actor(world.student)
    session = world.duty_service.start_session(actor=actor, now=fixed_now)
    world.duty_service.end_session(actor=actor, session_id=session.session_id, now=fixed_now + timedelta(minutes=60))

    report = world.report_service.daily_summary(actor=world.actor(world.teacher), day=fixed_now.date())

    assert report.totals["date"] == fixed_now.date().isoformat()
    assert report.totals["attendance_records"] == 1
    assert report.totals["duty_sessions"] == 1
    assert report.totals["duty_minutes"] == 60
    assert report.totals["strikes_issued"] == 1
    assert report.rows[0]["status"] == AttendanceStatus.ON_CLUB_DUTY.value


def test_daily_summary_is_staff_only(world, fixed_now):
    with pytest.raises(AuthorizationError):
        world.report_service.daily_summary(actor=world.actor(world.student), day=fixed_now.date())


def test_report_html_lists_rows_summary_and_totals(world, fixed_now):
    world.state.record_strike(user_id=world.student.user_id, reason=StrikeReason.OTHER, description="<late>", now=fixed_now)
    data = world.report_service.penalty_report(
        actor=world.actor(world.teacher), start=fixed_now.date(), end=fixed_now.date()
    )

    html = pdf_export.render_report_html(data, title="Penalty Report", start=fixed_now.date())

    assert "<h1>Penalty Report</h1>" in html
    assert "Student One" in html
    assert "&lt;late&gt;" in html
    assert "missed hourly log: 0" in html


def test_empty_report_still_renders(fixed_now):
    html = pdf_export.render_report_html(ReportData(rows=[], summary=[]), title="Duty Log Report", start=fixed_now.date())

    assert "No records in this period." in html


@pytest.mark.skipif(not _weasyprint_ready(), reason="WeasyPrint native libraries unavailable")
def test_pdf_bytes(fixed_now):
    data = ReportData(rows=[{"user_id": 1, "status": "present"}], summary=[], totals={"records": 1})

    assert pdf_export.to_pdf_bytes(data, title="Attendance Report", start=fixed_now.date()).startswith(b"%PDF")
