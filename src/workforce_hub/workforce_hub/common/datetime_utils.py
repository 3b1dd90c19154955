from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional

from ..core.exceptions import ValidationError


def parse_iso_date(value: Optional[str], field_name: str = "Date") -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime((value or "").strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"{field_name} must be a date (YYYY-MM-DD)")


def parse_iso_datetime(value: Optional[str], field_name: str = "Timestamp") -> datetime:
    """Parse an ISO-8601 timestamp (``Z`` suffix allowed) into a naive UTC datetime."""
    try:
        parsed = datetime.fromisoformat((value or "").strip().replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError(f"{field_name} must be an ISO-8601 timestamp")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def utc_now() -> datetime:
    """Current UTC time as a naive datetime (the DB stores naive UTC)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
