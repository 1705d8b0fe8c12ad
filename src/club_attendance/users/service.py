from __future__ import annotations

import logging
from typing import Optional, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.validators import require_min_length, require_non_empty
from ..core.constants import MIN_PASSWORD_LENGTH
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError, ConflictError, NotFoundError, ValidationError
from .model import Actor, User
from .repository import UserRepository

logger = logging.getLogger(__name__)


class AuthService:
    """Use case: authenticate user (login)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def authenticate(self, email: str, password: str) -> Actor:
        email = (email or "").strip().lower()
        user = self._users.get_by_email(email)
        if not user or not user.is_active:
            raise AuthenticationError("Invalid email or password")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False

        if not ok:
            logger.info("Failed login for %s", email)
            raise AuthenticationError("Invalid email or password")

        return Actor(user_id=user.user_id, role=user.role, full_name=user.full_name)


class UserService:
    """Use case: manage club members (core team / teachers)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def create_account(
        self,
        *,
        actor: Actor,
        full_name: str,
        email: str,
        password: str,
        role: Role,
        student_code: Optional[str] = None,
    ) -> int:
        if not actor.is_elevated:
            raise AuthorizationError("Only core team or teachers can create accounts")

        full_name = require_non_empty(full_name, "Full name")
        email = require_non_empty(email, "Email").lower()
        if "@" not in email:
            raise ValidationError("Email is not valid")
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)
        student_code = (student_code or "").strip() or None

        if self._users.get_by_email(email):
            raise ConflictError("Email already registered")

        user_id = self._users.create_user(
            full_name=full_name,
            email=email,
            password_hash=generate_password_hash(password),
            role=role,
            student_code=student_code,
        )
        logger.info("User %s (%s) created by %s", user_id, role.value, actor.user_id)
        return user_id

    def get_profile(self, user_id: int) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found")
        return user

    def get_visible_profile(self, *, actor: Actor, user_id: int) -> User:
        if not actor.can_act_for(user_id):
            raise AuthorizationError("You can only view your own profile")
        return self.get_profile(user_id)

    def list_users(self, *, actor: Actor, role: Optional[Role] = None) -> Sequence[User]:
        if not actor.is_elevated:
            raise AuthorizationError("Only core team or teachers can list members")
        return self._users.list_users(role=role)
