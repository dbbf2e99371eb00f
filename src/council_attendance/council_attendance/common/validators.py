from __future__ import annotations

from typing import Any

from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_int_in_range(value: Any, field_name: str, *, low: int, high: int) -> int:
    try:
        n = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a whole number")
    if n < low or n > high:
        raise ValidationError(f"{field_name} must be between {low} and {high}")
    return n


def require_bool(value: Any, field_name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, str)) and str(value).strip().lower() in {"1", "true", "yes", "on"}:
        return True
    if isinstance(value, (int, str)) and str(value).strip().lower() in {"0", "false", "no", "off"}:
        return False
    raise ValidationError(f"{field_name} must be true or false")
