from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from .model import User


class UserRepository(Protocol):
    """Repository interface for User.

    Note (DIP): services depend on this interface, not on a concrete DB.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def lock_for_update(self, user_id: int) -> Optional[User]:
        """Read the user and hold a row lock until the surrounding transaction ends."""

        raise NotImplementedError

    def create_user(
        self,
        *,
        full_name: str,
        email: str,
        password_hash: str,
        role: Role,
        student_code: Optional[str] = None,
    ) -> int:
        raise NotImplementedError

    def update_strike_state(self, user_id: int, *, strike_count: int, suspended_until: Optional[datetime]) -> bool:
        raise NotImplementedError

    def list_users(self, *, role: Optional[Role] = None) -> Sequence[User]:
        raise NotImplementedError
