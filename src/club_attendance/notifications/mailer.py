from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass, field
from email.message import EmailMessage
from email.utils import formataddr
from typing import Optional, Sequence

logger = logging.getLogger(__name__)


def _split_addresses(value: str) -> tuple[str, ...]:
    return tuple(a.strip() for a in (value or "").split(",") if a.strip())


@dataclass(frozen=True)
class MailSettings:
    host: str = ""
    port: int = 587
    user: str = ""
    password: str = ""
    from_email: str = "noreply@clubattendance.local"
    from_name: str = "Club Attendance System"
    use_tls: bool = True
    staff_recipients: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_settings(cls, settings) -> "MailSettings":
        staff = _split_addresses(getattr(settings, "TEACHER_NOTIFICATION_EMAIL", "")) + _split_addresses(
            getattr(settings, "CORE_TEAM_NOTIFICATION_EMAIL", "")
        )
        return cls(
            host=str(getattr(settings, "SMTP_HOST", "") or ""),
            port=int(getattr(settings, "SMTP_PORT", 587)),
            user=str(getattr(settings, "SMTP_USER", "") or ""),
            password=str(getattr(settings, "SMTP_PASSWORD", "") or ""),
            from_email=str(getattr(settings, "SMTP_FROM", cls.from_email)),
            from_name=str(getattr(settings, "SMTP_FROM_NAME", cls.from_name)),
            use_tls=bool(getattr(settings, "SMTP_USE_TLS", True)),
            staff_recipients=staff,
        )


class Mailer:
    """Fire-and-forget SMTP sender. Disabled when no SMTP host is configured."""

    def __init__(self, settings: MailSettings):
        self._settings = settings

    @property
    def enabled(self) -> bool:
        return bool(self._settings.host)

    @property
    def staff_recipients(self) -> tuple[str, ...]:
        return self._settings.staff_recipients

    def _build(self, *, to: Sequence[str], subject: str, text: str, html: Optional[str]) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = formataddr((self._settings.from_name, self._settings.from_email))
        msg["To"] = ", ".join(to)
        msg["Subject"] = subject
        msg.set_content(text)
        if html:
            msg.add_alternative(html, subtype="html")
        return msg

    def send(self, *, to: Sequence[str], subject: str, text: str, html: Optional[str] = None) -> bool:
        recipients = [a for a in to if a]
        if not self.enabled or not recipients:
            logger.debug("Email '%s' skipped (mailer disabled or no recipients)", subject)
            return False

        msg = self._build(to=recipients, subject=subject, text=text, html=html)
        s = self._settings
        try:
            with smtplib.SMTP(s.host, s.port, timeout=10) as smtp:
                if s.use_tls:
                    smtp.starttls()
                if s.user:
                    smtp.login(s.user, s.password)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError):
            logger.exception("Sending email '%s' to %s failed", subject, recipients)
            return False

        logger.info("Email '%s' sent to %d recipient(s)", subject, len(recipients))
        return True
