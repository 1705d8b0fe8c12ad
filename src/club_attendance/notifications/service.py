from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import now_local
from ..common.validators import parse_page
from ..core.enums import NotificationType, Role
from ..core.exceptions import NotFoundError
from ..users.model import Actor
from ..users.repository import UserRepository
from .repository import NotificationRepository

logger = logging.getLogger(__name__)


class NotificationService:
    """In-app notifications persisted per member."""

    def __init__(self, notifications: NotificationRepository, users: UserRepository):
        self._notifications = notifications
        self._users = users

    def send(
        self,
        user_id: int,
        type: NotificationType,
        title: str,
        message: str,
        data: Optional[dict] = None,
        *,
        now: Optional[datetime] = None,
    ) -> int:
        return self._notifications.create(
            user_id=int(user_id),
            type=type,
            title=title,
            message=message,
            data=data,
            created_at=now or now_local(),
        )

    def send_to_role(
        self,
        role: Role,
        type: NotificationType,
        title: str,
        message: str,
        data: Optional[dict] = None,
    ) -> int:
        sent = 0
        for user in self._users.list_users(role=role):
            if user.is_active:
                self.send(user.user_id, type, title, message, data)
                sent += 1
        return sent

    def send_quietly(self, user_id: int, type: NotificationType, title: str, message: str, data=None) -> None:
        """Like ``send`` but never fails the caller."""
        try:
            self.send(user_id, type, title, message, data)
        except Exception:
            logger.exception("Notification '%s' to user %s failed", title, user_id)

    def send_to_role_quietly(self, role: Role, type: NotificationType, title: str, message: str, data=None) -> None:
        try:
            self.send_to_role(role, type, title, message, data)
        except Exception:
            logger.exception("Notification '%s' to role %s failed", title, role.value)

    def list_for_user(self, *, actor: Actor, unread_only: bool = False, page=1, page_size=None) -> dict:
        p, size = parse_page(page, page_size)
        rows, total = self._notifications.list_for_user(
            actor.user_id, unread_only=unread_only, limit=size, offset=(p - 1) * size
        )
        return {"items": rows, "page": p, "page_size": size, "total": total}

    def mark_read(self, *, actor: Actor, notification_id: int, now: Optional[datetime] = None) -> None:
        if not self._notifications.mark_read(int(notification_id), user_id=actor.user_id, at=now or now_local()):
            raise NotFoundError("Notification not found")

    def mark_all_read(self, *, actor: Actor, now: Optional[datetime] = None) -> int:
        return self._notifications.mark_all_read(actor.user_id, at=now or now_local())

    def unread_count(self, *, actor: Actor) -> int:
        return self._notifications.unread_count(actor.user_id)
