from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional

from ..core.exceptions import ValidationError


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def require_max_length(value: str, field_name: str, max_len: int) -> str:
    if len(value) > max_len:
        raise ValidationError(f"{field_name} must be at most {max_len} characters")
    return value


def optional_text(value: Optional[str]) -> Optional[str]:
    return (value or "").strip() or None


def parse_decimal(
    value,
    field_name: str,
    *,
    minimum: Decimal = Decimal("0"),
    maximum: Optional[Decimal] = None,
    places: Decimal = Decimal("0.01"),
) -> Decimal:
    """Parse a money/hours value into a bounded Decimal rounded half-up to `places`.

    Floats go through str() to avoid binary noise. The bounds are checked
    before rounding so out-of-range input never reaches quantize().
    """
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, AttributeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if not result.is_finite() or result < minimum:
        raise ValidationError(f"{field_name} must be at least {minimum}")
    if maximum is not None and result > maximum:
        raise ValidationError(f"{field_name} cannot exceed {maximum}")
    return result.quantize(places, rounding=ROUND_HALF_UP)
