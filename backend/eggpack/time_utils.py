from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional

from .errors import ValidationError


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def today() -> date:
    """Business date used for due-date and interest calculations."""
    return date.today()


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 datetime string and normalize to UTC-naive datetime.

    - None / "" -> None
    - "YYYY-MM-DDTHH:MM" (naive) is interpreted as UTC
    - "...Z" or "...+/-HH:MM" is converted to UTC and tzinfo is stripped
    """
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None

    # Accept trailing Z
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    dt = datetime.fromisoformat(s)

    # Normalize to UTC-naive
    if dt.tzinfo is None:
        return dt

    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def parse_business_date(value, field: str = "date", *, default: Optional[date] = None) -> date:
    """
    Normalize a business date (transaction_date, due_date, ...).

    Accepts a date, a datetime (date part is kept) or an ISO-8601 string
    ("YYYY-MM-DD" or a full datetime). None falls back to `default`, or
    raises when no default is given.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        if default is not None:
            return default
        raise ValidationError(f"{field} is required")

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    if isinstance(value, str):
        s = value.strip()
        try:
            if len(s) == 10:
                return date.fromisoformat(s)
            dt = parse_iso_datetime(s)
        except ValueError:
            raise ValidationError(f"{field} must be an ISO-8601 date")
        if dt is None:
            raise ValidationError(f"{field} must be an ISO-8601 date")
        return dt.date()

    raise ValidationError(f"{field} must be an ISO-8601 date")


def parse_optional_date(value, field: str = "date") -> Optional[date]:
    """Like parse_business_date, but None / "" -> None (query-string filters)."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return parse_business_date(value, field)


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt_utc.isoformat().replace("+00:00", "Z")


def to_iso_date(d: Optional[date]) -> Optional[str]:
    return d.isoformat() if d is not None else None
