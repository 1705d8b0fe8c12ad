from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import ELEVATED_ROLES, Role


@dataclass(frozen=True)
class User:
    """Domain entity: a club member.

    Note: Plain data object (no DB access code). ``strike_count`` and
    ``suspended_until`` are written only by the strike ledger.
    """

    user_id: int
    full_name: str
    email: str
    password_hash: str
    role: Role
    student_code: Optional[str] = None
    is_active: bool = True
    strike_count: int = 0
    suspended_until: Optional[datetime] = None

    @property
    def is_elevated(self) -> bool:
        return self.role in ELEVATED_ROLES

    def is_suspended(self, now: datetime) -> bool:
        return self.suspended_until is not None and now < self.suspended_until

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "full_name": self.full_name,
            "email": self.email,
            "role": self.role.value,
            "student_code": self.student_code,
            "is_active": self.is_active,
            "strike_count": self.strike_count,
            "suspended_until": self.suspended_until.isoformat() if self.suspended_until else None,
        }


@dataclass(frozen=True)
class Actor:
    """The authenticated caller of a use case (what we keep in the Flask session)."""

    user_id: int
    role: Role
    full_name: str = ""

    @property
    def is_elevated(self) -> bool:
        return self.role in ELEVATED_ROLES

    def can_act_for(self, user_id: int) -> bool:
        return self.is_elevated or int(user_id) == self.user_id
