from __future__ import annotations

import math
from typing import Any, Optional

from ..core.exceptions import ValidationError


def require_non_empty(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_number(value: Any, field_name: str) -> float:
    # bool is an int subclass; JSON true/false must not pass as coordinates
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{field_name} must be a number")
    number = float(value)
    if math.isnan(number) or math.isinf(number):
        raise ValidationError(f"{field_name} must be a number")
    return number


def require_range(value: Any, field_name: str, lower: float, upper: float) -> float:
    number = require_number(value, field_name)
    if number < lower or number > upper:
        raise ValidationError(f"{field_name} must be between {lower:g} and {upper:g}")
    return number


def require_min(value: Any, field_name: str, lower: float) -> float:
    number = require_number(value, field_name)
    if number < lower:
        raise ValidationError(f"{field_name} must be greater than or equal to {lower:g}")
    return number


def optional_text(value: Any, field_name: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string")
    value = value.strip()
    return value or None
