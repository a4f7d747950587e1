from __future__ import annotations

from datetime import date, time
from typing import Any, Optional

from ..core.enums import AttendanceStatus
from ..core.exceptions import ValidationError
from .datetime_utils import parse_clock_time, parse_iso_date


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def _as_int(value: Any, field_name: str) -> int:
    # JSON true/1.5 must not pass as 1
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValidationError(f"{field_name} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")


def require_positive_int(value: Any, field_name: str) -> int:
    n = _as_int(value, field_name)
    if n <= 0:
        raise ValidationError(f"{field_name} must be positive")
    return n


def require_non_negative_int(value: Any, field_name: str) -> int:
    n = _as_int(value, field_name)
    if n < 0:
        raise ValidationError(f"{field_name} must not be negative")
    return n


def require_date(value: Any, field_name: str = "Date") -> date:
    if isinstance(value, date):
        return value
    v = require_non_empty(value, field_name)
    try:
        return parse_iso_date(v)
    except ValueError:
        raise ValidationError(f"{field_name} must be YYYY-MM-DD")


def optional_time(value: Any, field_name: str = "Time") -> Optional[time]:
    if value is None or isinstance(value, time):
        return value
    v = str(value).strip()
    if not v:
        return None
    try:
        return parse_clock_time(v)
    except ValueError:
        raise ValidationError(f"{field_name} must be HH:MM or HH:MM:SS")


def require_status(value: Any) -> AttendanceStatus:
    if isinstance(value, AttendanceStatus):
        return value
    try:
        return AttendanceStatus(str(value).strip().lower())
    except ValueError:
        raise ValidationError(f"Unknown attendance status: {value!r}")


def optional_positive_int(value: Any, field_name: str) -> Optional[int]:
    if value is None or value == "":
        return None
    return require_positive_int(value, field_name)
