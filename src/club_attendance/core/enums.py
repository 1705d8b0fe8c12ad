from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for access control."""

    STUDENT = "student"
    CORE_TEAM = "core_team"
    TEACHER = "teacher"


ELEVATED_ROLES = frozenset({Role.CORE_TEAM, Role.TEACHER})


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ON_CLUB_DUTY = "on_club_duty"
    ABSENT = "absent"


class EventType(str, Enum):
    MEETING = "meeting"
    WORKSHOP = "workshop"
    COMPETITION = "competition"
    SOCIAL = "social"
    OTHER = "other"


class RequestStatus(str, Enum):
    """Leave request approval flow."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class RequestType(str, Enum):
    LEAVE = "leave"
    CLUB_DUTY = "club_duty"


class StrikeReason(str, Enum):
    MISSED_HOURLY_LOG = "missed_hourly_log"
    INSUFFICIENT_DUTY_HOURS = "insufficient_duty_hours"
    EXCESSIVE_BREAK = "excessive_break"
    OTHER = "other"


class StrikeSeverity(str, Enum):
    WARNING = "warning"
    MINOR = "minor"
    MAJOR = "major"


class EscalationLevel(str, Enum):
    """Outcome of evaluating a user's active strike count."""

    NONE = "none"
    WARNING = "warning"
    SUSPENSION = "suspension"


class NotificationType(str, Enum):
    HOURLY_REMINDER = "hourly_reminder"
    REQUEST_APPROVED = "request_approved"
    REQUEST_REJECTED = "request_rejected"
    DUTY_SESSION = "duty_session"
    STRIKE_WARNING = "strike_warning"
    STRIKE_RESOLVED = "strike_resolved"
    SUSPENSION = "suspension"
    ATTENDANCE_UPDATE = "attendance_update"
    GENERIC = "generic"


class StrikeEventKind(str, Enum):
    RECORDED = "recorded"
    WARNING = "warning"
    SUSPENSION = "suspension"
    RESOLVED = "resolved"
