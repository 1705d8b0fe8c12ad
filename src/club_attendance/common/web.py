"""Helpers shared by the Flask JSON controllers."""

from __future__ import annotations

from datetime import date, datetime, time
from functools import wraps
from typing import Any, Optional

from flask import jsonify, request, session

from .datetime_utils import parse_iso_date
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError, ValidationError
from ..users.model import Actor


def ok(data: Any = None, *, status: int = 200, message: Optional[str] = None, **extra):
    body = {"success": True, "data": data}
    if message:
        body["message"] = message
    body.update(extra)
    return jsonify(body), status


def current_actor() -> Actor:
    if "user_id" not in session:
        raise AuthenticationError("Please log in to continue")
    return Actor(user_id=int(session["user_id"]), role=Role(session["role"]), full_name=session.get("name", ""))


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        current_actor()
        return view(*args, **kwargs)

    return wrapper


def elevated_required(view):
    """Allow only core team and teachers."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        if not current_actor().is_elevated:
            raise AuthorizationError("Core team or teacher role required")
        return view(*args, **kwargs)

    return wrapper


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("JSON object expected")
    return data


def id_list(data: dict, key: str = "ids") -> list[int]:
    ids = data.get(key)
    if not isinstance(ids, list):
        raise ValidationError(f"{key} must be an array")
    try:
        return [int(i) for i in ids]
    except (TypeError, ValueError):
        raise ValidationError(f"{key} must contain integer ids")


def optional_int(value) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError("Expected an integer id")


def date_arg(value, field_name: str, default: Optional[date] = None) -> Optional[date]:
    """Parse a YYYY-MM-DD query/body value; empty means ``default``."""
    if value is None or str(value).strip() == "":
        return default
    try:
        return parse_iso_date(str(value).strip())
    except ValueError:
        raise ValidationError(f"{field_name} must be a YYYY-MM-DD date")


def datetime_arg(value, field_name: str) -> Optional[datetime]:
    if value is None or str(value).strip() == "":
        return None
    try:
        return datetime.fromisoformat(str(value).strip())
    except ValueError:
        raise ValidationError(f"{field_name} must be an ISO date/time")


def flag_arg(value) -> Optional[bool]:
    if value is None or value == "":
        return None
    return str(value).lower() in {"1", "true", "yes"}


def time_arg(value, field_name: str) -> Optional[time]:
    if value is None or str(value).strip() == "":
        return None
    try:
        return time.fromisoformat(str(value).strip())
    except ValueError:
        raise ValidationError(f"{field_name} must be a HH:MM time")
