from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import NotificationType
from .model import Notification


class NotificationRepository(Protocol):
    def create(
        self,
        *,
        user_id: int,
        type: NotificationType,
        title: str,
        message: str,
        data: Optional[dict],
        created_at: datetime,
    ) -> int:
        raise NotImplementedError

    def list_for_user(
        self, user_id: int, *, unread_only: bool, limit: int, offset: int
    ) -> tuple[Sequence[Notification], int]:
        raise NotImplementedError

    def mark_read(self, notification_id: int, *, user_id: int, at: datetime) -> bool:
        raise NotImplementedError

    def mark_all_read(self, user_id: int, *, at: datetime) -> int:
        raise NotImplementedError

    def unread_count(self, user_id: int) -> int:
        raise NotImplementedError
