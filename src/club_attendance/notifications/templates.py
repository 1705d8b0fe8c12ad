"""Email bodies for strike escalation.

Each builder returns ``(subject, text, html)``.
"""

from __future__ import annotations

from datetime import datetime
from html import escape

from ..core.policy import DutyPolicy

_WRAP = '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">{body}</div>'
_SIGNATURE = "Best regards,\nClub Attendance System"


def strike_warning(*, name: str, strike_count: int, policy: DutyPolicy) -> tuple[str, str, str]:
    subject = "Strike Warning - Club Attendance System"
    text = (
        f"Dear {name},\n\n"
        f"You currently have {strike_count} active strikes in the Club Attendance System.\n"
        f"If you reach {policy.strike_suspension_threshold} active strikes, your account will be "
        f"suspended for {policy.suspension_days} days.\n\n"
        "Please make sure you:\n"
        "- log your hourly work during duty sessions\n"
        f"- complete at least {policy.min_duty_minutes} minutes of duty per session\n"
        f"- keep breaks to {policy.max_break_minutes} minutes or less\n\n"
        f"{_SIGNATURE}"
    )
    html = _WRAP.format(
        body=(
            '<h2 style="color: #d32f2f;">Strike Warning</h2>'
            f"<p>Dear {escape(name)},</p>"
            f"<p>You currently have <strong>{strike_count} active strikes</strong>.</p>"
            f"<p><strong>Important:</strong> at {policy.strike_suspension_threshold} active strikes your account "
            f"is suspended for {policy.suspension_days} days.</p>"
            "<ul>"
            "<li>Log your hourly work during duty sessions</li>"
            f"<li>Complete at least {policy.min_duty_minutes} minutes of duty per session</li>"
            f"<li>Take breaks of no more than {policy.max_break_minutes} minutes</li>"
            "</ul>"
            "<p>Best regards,<br>Club Attendance System</p>"
        )
    )
    return subject, text, html


def suspension(*, name: str, suspended_until: datetime, policy: DutyPolicy) -> tuple[str, str, str]:
    subject = "Account Suspended - Club Attendance System"
    until = f"{suspended_until:%Y-%m-%d %H:%M}"
    text = (
        f"Dear {name},\n\n"
        "Your account has been suspended due to multiple strikes.\n"
        f"Suspension ends: {until} ({policy.suspension_days} days).\n\n"
        "While suspended you cannot mark attendance or start duty sessions.\n"
        "Please contact your core team to resolve outstanding strikes.\n\n"
        f"{_SIGNATURE}"
    )
    html = _WRAP.format(
        body=(
            '<h2 style="color: #d32f2f;">Account Suspended</h2>'
            f"<p>Dear {escape(name)},</p>"
            "<p>Your account has been <strong>suspended</strong> due to multiple strikes.</p>"
            f"<ul><li>Suspension end: <strong>{until}</strong></li>"
            f"<li>Duration: {policy.suspension_days} days</li></ul>"
            "<p>While suspended you cannot mark attendance or start duty sessions.</p>"
            "<p>Best regards,<br>Club Attendance System</p>"
        )
    )
    return subject, text, html


def staff_notice(*, student_name: str, headline: str, strike_count: int) -> tuple[str, str, str]:
    subject = f"Student Strike Alert - {student_name}"
    text = (
        f"Student {student_name}: {headline}.\n"
        f"Current active strikes: {strike_count}.\n\n"
        "Please monitor this student's attendance and duty sessions.\n\n"
        f"{_SIGNATURE}"
    )
    html = _WRAP.format(
        body=(
            '<h2 style="color: #1976d2;">Student Strike Alert</h2>'
            f"<p>Student <strong>{escape(student_name)}</strong>: {escape(headline)}.</p>"
            f"<ul><li>Current active strikes: {strike_count}</li></ul>"
            "<p>Best regards,<br>Club Attendance System</p>"
        )
    )
    return subject, text, html
