"""Settings shared by every environment, read from the process environment."""

import os


def _flag(name: str, default: str = "0") -> bool:
    return bool(int(os.getenv(name, default)))


DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "club_attendance"),
}

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Duty / strike policy
MIN_DUTY_MINUTES = int(os.getenv("MIN_DUTY_MINUTES", "120"))
MAX_BREAK_MINUTES = int(os.getenv("MAX_BREAK_MINUTES", "30"))
LOG_INTERVAL_MINUTES = int(os.getenv("LOG_INTERVAL_MINUTES", "60"))
LOG_WINDOW_MINUTES = int(os.getenv("LOG_WINDOW_MINUTES", "15"))
LOG_EDIT_WINDOW_MINUTES = int(os.getenv("LOG_EDIT_WINDOW_MINUTES", "15"))
STRIKE_WARNING_THRESHOLD = int(os.getenv("STRIKE_WARNING_THRESHOLD", "3"))
STRIKE_SUSPENSION_THRESHOLD = int(os.getenv("STRIKE_SUSPENSION_THRESHOLD", "5"))
SUSPENSION_DAYS = int(os.getenv("SUSPENSION_DAYS", "7"))
DUPLICATE_STRIKE_WINDOW_HOURS = int(os.getenv("DUPLICATE_STRIKE_WINDOW_HOURS", "24"))
LEAVE_SUBMISSION_CUTOFF_HOUR = int(os.getenv("LEAVE_SUBMISSION_CUTOFF_HOUR", "9"))

# Outgoing mail; empty SMTP_HOST disables email
SMTP_HOST = os.getenv("SMTP_HOST", "")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_USER = os.getenv("SMTP_USER", "")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD", "")
SMTP_FROM = os.getenv("SMTP_FROM", "noreply@clubattendance.local")
SMTP_FROM_NAME = os.getenv("SMTP_FROM_NAME", "Club Attendance System")
SMTP_USE_TLS = _flag("SMTP_USE_TLS", "1")
STRIKE_EMAIL_ENABLED = _flag("STRIKE_EMAIL_ENABLED", "1")
# Staff alert recipients for strike warnings / suspensions (comma separated)
TEACHER_NOTIFICATION_EMAIL = os.getenv("TEACHER_NOTIFICATION_EMAIL", "")
CORE_TEAM_NOTIFICATION_EMAIL = os.getenv("CORE_TEAM_NOTIFICATION_EMAIL", "")
