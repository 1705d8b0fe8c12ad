from __future__ import annotations

from typing import Optional

from ..core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ..core.exceptions import ValidationError


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_min_length(value: Optional[str], field_name: str, min_len: int) -> str:
    if value is None or len(value.strip()) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value.strip()


def parse_enum(enum_cls, value, field_name: str):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"Invalid {field_name} (expected one of: {allowed})")


def parse_page(page, page_size) -> tuple[int, int]:
    """Normalize 1-based page and page size query values."""
    try:
        p = max(1, int(page or 1))
        size = int(page_size or DEFAULT_PAGE_SIZE)
    except (TypeError, ValueError):
        raise ValidationError("page and pageSize must be integers")
    return p, min(MAX_PAGE_SIZE, max(1, size))
