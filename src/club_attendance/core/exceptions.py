from __future__ import annotations

from datetime import datetime
from typing import Optional


class DomainError(Exception):
    """Base exception for business rule violations."""

    status_code = 400


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""

    status_code = 401


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    status_code = 403


class NotFoundError(DomainError):
    status_code = 404


class ConflictError(DomainError):
    """Raised when the requested transition clashes with current state."""

    status_code = 409


class SuspendedError(AuthorizationError):
    """Raised when a suspended user attempts a gated action."""

    def __init__(self, suspended_until: datetime, message: Optional[str] = None):
        self.suspended_until = suspended_until
        super().__init__(message or f"Account suspended until {suspended_until:%Y-%m-%d}")
