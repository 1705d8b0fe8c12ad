from __future__ import annotations

import json
from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import NotificationType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, load_json
from .model import Notification
from .repository import NotificationRepository

_COLUMNS = "notification_id, user_id, type, title, message, data, is_read, read_at, created_at"


def _to_notification(r: dict) -> Notification:
    try:
        kind = NotificationType(r["type"])
    except ValueError:
        kind = NotificationType.GENERIC
    return Notification(
        notification_id=int(r["notification_id"]),
        user_id=int(r["user_id"]),
        type=kind,
        title=r["title"],
        message=r["message"],
        data=load_json(r.get("data")),
        is_read=bool(r.get("is_read")),
        read_at=r.get("read_at"),
        created_at=r.get("created_at"),
    )


class MySQLNotificationRepository(NotificationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

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
        payload = json.dumps(data, default=str) if data else None
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO notifications(user_id, type, title, message, data, is_read, created_at)
                VALUES(%s,%s,%s,%s,%s,0,%s)
                """,
                (int(user_id), type.value, title, message, payload, created_at),
            )
            return int(cur.lastrowid)

    def list_for_user(
        self, user_id: int, *, unread_only: bool, limit: int, offset: int
    ) -> tuple[Sequence[Notification], int]:
        where = "user_id=%s" + (" AND is_read=0" if unread_only else "")
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS cnt FROM notifications WHERE {where}", (int(user_id),))
            total = int((fetchone(cur) or {"cnt": 0})["cnt"])
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM notifications
                WHERE {where}
                ORDER BY created_at DESC, notification_id DESC
                LIMIT %s OFFSET %s
                """,
                (int(user_id), int(limit), int(offset)),
            )
            return [_to_notification(r) for r in fetchall(cur)], total

    def mark_read(self, notification_id: int, *, user_id: int, at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE notifications SET is_read=1, read_at=COALESCE(read_at, %s)
                WHERE notification_id=%s AND user_id=%s
                """,
                (at, int(notification_id), int(user_id)),
            )
            return cur.rowcount > 0

    def mark_all_read(self, user_id: int, *, at: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE notifications SET is_read=1, read_at=%s WHERE user_id=%s AND is_read=0",
                (at, int(user_id)),
            )
            return int(cur.rowcount)

    def unread_count(self, user_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS cnt FROM notifications WHERE user_id=%s AND is_read=0", (int(user_id),))
            r = fetchone(cur)
            return int(r["cnt"]) if r else 0
