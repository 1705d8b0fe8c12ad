from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..core.enums import ELEVATED_ROLES, NotificationType, StrikeEventKind
from ..core.policy import DutyPolicy
from ..strikes.model import StrikeEvent
from ..users.repository import UserRepository
from . import templates
from .mailer import Mailer
from .service import NotificationService

logger = logging.getLogger(__name__)


class StrikeAlerts:
    """Turns committed strike events into in-app notifications and emails."""

    def __init__(
        self,
        notifications: NotificationService,
        users: UserRepository,
        *,
        policy: DutyPolicy,
        mailer: Optional[Mailer] = None,
        email_enabled: bool = True,
    ):
        self._notifications = notifications
        self._users = users
        self._policy = policy
        self._mailer = mailer
        self._email_enabled = email_enabled

    def handle(self, events: Sequence[StrikeEvent]) -> None:
        for event in events:
            try:
                self._handle_one(event)
            except Exception:
                logger.exception("Strike alert for user %s (%s) failed", event.user_id, event.kind.value)

    def _handle_one(self, event: StrikeEvent) -> None:
        user = self._users.get_by_id(event.user_id)
        if not user:
            return

        if event.kind == StrikeEventKind.WARNING:
            self._notifications.send_quietly(
                user.user_id,
                NotificationType.STRIKE_WARNING,
                "Strike Warning",
                f"You have {event.active_count} active strikes. Further violations may result in suspension.",
                {"strike_count": event.active_count},
            )
            self._notify_staff(
                NotificationType.STRIKE_WARNING,
                "Student Strike Warning",
                f"{user.full_name} has {event.active_count} active strikes.",
                {"user_id": user.user_id, "strike_count": event.active_count},
            )
            if self._can_email():
                self._mailer.send(to=[user.email], **_mail(*templates.strike_warning(
                    name=user.full_name, strike_count=event.active_count, policy=self._policy
                )))
                self._email_staff(user.full_name, "Multiple strikes", event.active_count)

        elif event.kind == StrikeEventKind.SUSPENSION:
            days = self._policy.suspension_days
            self._notifications.send_quietly(
                user.user_id,
                NotificationType.SUSPENSION,
                "Account Suspended",
                f"Your account has been suspended for {days} days due to {event.active_count} active strikes.",
                {
                    "strike_count": event.active_count,
                    "suspension_days": days,
                    "suspended_until": event.suspended_until.isoformat() if event.suspended_until else None,
                },
            )
            self._notify_staff(
                NotificationType.SUSPENSION,
                "Student Suspended",
                f"{user.full_name} has been suspended for {days} days.",
                {"user_id": user.user_id, "strike_count": event.active_count, "suspension_days": days},
            )
            if self._can_email() and event.suspended_until:
                self._mailer.send(to=[user.email], **_mail(*templates.suspension(
                    name=user.full_name, suspended_until=event.suspended_until, policy=self._policy
                )))
                self._email_staff(user.full_name, "Account suspended", event.active_count)

        elif event.kind == StrikeEventKind.RESOLVED and event.strike:
            self._notifications.send_quietly(
                user.user_id,
                NotificationType.STRIKE_RESOLVED,
                "Strike Resolved",
                f"Your strike for {event.strike.reason.value} has been resolved.",
                {"strike_id": event.strike.strike_id, "active_strikes": event.active_count},
            )

    def _notify_staff(self, type: NotificationType, title: str, message: str, data: dict) -> None:
        for role in sorted(ELEVATED_ROLES, key=lambda r: r.value):
            self._notifications.send_to_role_quietly(role, type, title, message, data)

    def _can_email(self) -> bool:
        return self._email_enabled and self._mailer is not None and self._mailer.enabled

    def _email_staff(self, student_name: str, headline: str, strike_count: int) -> None:
        if not self._mailer.staff_recipients:
            return
        subject, text, html = templates.staff_notice(
            student_name=student_name, headline=headline, strike_count=strike_count
        )
        self._mailer.send(to=self._mailer.staff_recipients, subject=subject, text=text, html=html)


def _mail(subject: str, text: str, html: str) -> dict:
    return {"subject": subject, "text": text, "html": html}
