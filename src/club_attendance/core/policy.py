from __future__ import annotations

from dataclasses import dataclass

from . import constants


@dataclass(frozen=True)
class DutyPolicy:
    """Thresholds of the duty/strike rules, loaded from settings."""

    min_duty_minutes: int = constants.DEFAULT_MIN_DUTY_MINUTES
    max_break_minutes: int = constants.DEFAULT_MAX_BREAK_MINUTES
    log_interval_minutes: int = constants.DEFAULT_LOG_INTERVAL_MINUTES
    log_window_minutes: int = constants.DEFAULT_LOG_WINDOW_MINUTES
    log_edit_window_minutes: int = constants.DEFAULT_LOG_EDIT_WINDOW_MINUTES
    strike_warning_threshold: int = constants.DEFAULT_STRIKE_WARNING_THRESHOLD
    strike_suspension_threshold: int = constants.DEFAULT_STRIKE_SUSPENSION_THRESHOLD
    suspension_days: int = constants.DEFAULT_SUSPENSION_DAYS
    duplicate_strike_window_hours: int = constants.DEFAULT_DUPLICATE_STRIKE_WINDOW_HOURS
    leave_cutoff_hour: int = constants.DEFAULT_LEAVE_CUTOFF_HOUR

    @property
    def missed_log_gap_minutes(self) -> int:
        """A gap between check-ins longer than this counts as a missed log."""
        return self.log_interval_minutes + self.log_window_minutes

    @classmethod
    def from_settings(cls, settings) -> "DutyPolicy":
        def _int(name: str, default: int) -> int:
            return int(getattr(settings, name, default))

        return cls(
            min_duty_minutes=_int("MIN_DUTY_MINUTES", constants.DEFAULT_MIN_DUTY_MINUTES),
            max_break_minutes=_int("MAX_BREAK_MINUTES", constants.DEFAULT_MAX_BREAK_MINUTES),
            log_interval_minutes=_int("LOG_INTERVAL_MINUTES", constants.DEFAULT_LOG_INTERVAL_MINUTES),
            log_window_minutes=_int("LOG_WINDOW_MINUTES", constants.DEFAULT_LOG_WINDOW_MINUTES),
            log_edit_window_minutes=_int("LOG_EDIT_WINDOW_MINUTES", constants.DEFAULT_LOG_EDIT_WINDOW_MINUTES),
            strike_warning_threshold=_int("STRIKE_WARNING_THRESHOLD", constants.DEFAULT_STRIKE_WARNING_THRESHOLD),
            strike_suspension_threshold=_int(
                "STRIKE_SUSPENSION_THRESHOLD", constants.DEFAULT_STRIKE_SUSPENSION_THRESHOLD
            ),
            suspension_days=_int("SUSPENSION_DAYS", constants.DEFAULT_SUSPENSION_DAYS),
            duplicate_strike_window_hours=_int(
                "DUPLICATE_STRIKE_WINDOW_HOURS", constants.DEFAULT_DUPLICATE_STRIKE_WINDOW_HOURS
            ),
            leave_cutoff_hour=_int("LEAVE_SUBMISSION_CUTOFF_HOUR", constants.DEFAULT_LEAVE_CUTOFF_HOUR),
        )
