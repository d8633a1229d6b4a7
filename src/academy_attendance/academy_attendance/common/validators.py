from __future__ import annotations

from typing import Optional

from ..core.exceptions import ValidationError


def is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if is_blank(value):
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_max_length(value: Optional[str], field_name: str, max_len: int) -> Optional[str]:
    if value is not None and len(value) > max_len:
        raise ValidationError(f"{field_name} must be at most {max_len} characters")
    return value


def clean_optional(value: Optional[str]) -> Optional[str]:
    """Strip text input; blank becomes None."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError("Text fields must be strings")
    value = value.strip()
    return value or None


def require_positive_id(value, field_name: str) -> int:
    try:
        ident = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} is invalid")
    if ident <= 0:
        raise ValidationError(f"{field_name} is invalid")
    return ident
