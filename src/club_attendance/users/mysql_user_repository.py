from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import conflict_on_duplicate, db_cursor, fetchall, fetchone
from .model import User
from .repository import UserRepository

_COLUMNS = "user_id, full_name, email, password_hash, role, student_code, is_active, strike_count, suspended_until"


def _to_user(row: dict) -> User:
    return User(
        user_id=int(row["user_id"]),
        full_name=row["full_name"],
        email=row["email"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        student_code=row.get("student_code"),
        is_active=bool(row.get("is_active", True)),
        strike_count=int(row.get("strike_count") or 0),
        suspended_until=row.get("suspended_until"),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE user_id=%s", (int(user_id),))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def get_by_email(self, email: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE email=%s", (email,))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def lock_for_update(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE user_id=%s FOR UPDATE", (int(user_id),))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def create_user(
        self,
        *,
        full_name: str,
        email: str,
        password_hash: str,
        role: Role,
        student_code: Optional[str] = None,
    ) -> int:
        with conflict_on_duplicate("Email or student code already registered"):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO users(full_name, email, password_hash, role, student_code, is_active)
                    VALUES(%s,%s,%s,%s,%s,1)
                    """,
                    (full_name, email, password_hash, role.value, student_code),
                )
                return int(cur.lastrowid)

    def update_strike_state(self, user_id: int, *, strike_count: int, suspended_until: Optional[datetime]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE users SET strike_count=%s, suspended_until=%s WHERE user_id=%s",
                (int(strike_count), suspended_until, int(user_id)),
            )
            return cur.rowcount > 0

    def list_users(self, *, role: Optional[Role] = None) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            if role is None:
                cur.execute(f"SELECT {_COLUMNS} FROM users ORDER BY full_name")
            else:
                cur.execute(f"SELECT {_COLUMNS} FROM users WHERE role=%s ORDER BY full_name", (role.value,))
            return [_to_user(r) for r in fetchall(cur)]
