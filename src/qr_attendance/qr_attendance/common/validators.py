from __future__ import annotations

from datetime import date
from typing import Any

from ..core.exceptions import ValidationError
from .datetime_utils import parse_iso_date


def require_non_empty(value: Any, field_name: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_positive_int(value: Any, field_name: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")
    if number <= 0:
        raise ValidationError(f"{field_name} must be positive")
    return number


def require_iso_date(value: Any, field_name: str) -> date:
    raw = require_non_empty(value, field_name)
    try:
        return parse_iso_date(raw)
    except ValueError:
        raise ValidationError(f"{field_name} must be a date (YYYY-MM-DD)")
