"""
Date helpers shared by the models, the reconciliation engine and the views.

All datetimes handled by the core are naive. Aware values (for example
ISO strings ending in "Z" coming from the hosted store) are converted to
UTC and stripped of their tzinfo so that comparisons never mix the two.
"""
from datetime import date, datetime, time, timezone
from typing import Optional, Union

import pandas as pd

DateLike = Union[str, date, datetime, pd.Timestamp]


def parse_datetime(value: DateLike) -> datetime:
    """
    Parse a timestamp into a naive datetime.

    Args:
        value: ISO string, date, datetime or pandas Timestamp

    Returns:
        Naive datetime (date-only values map to midnight)

    Raises:
        ValueError: If the value cannot be parsed
    """
    if value is pd.NaT:
        raise ValueError("Missing date value")
    if isinstance(value, pd.Timestamp):
        value = value.to_pydatetime()

    if isinstance(value, datetime):
        return _to_naive(value)

    if isinstance(value, date):
        return datetime.combine(value, time.min)

    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("Empty date string")
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return _to_naive(datetime.fromisoformat(text))
        except ValueError:
            pass
        for fmt in ("%Y/%m/%d", "%d/%m/%Y", "%Y%m%d"):
            try:
                return datetime.strptime(text, fmt)
            except ValueError:
                continue
        raise ValueError(f"Unrecognized date: {value!r}")

    raise ValueError(f"Unsupported date type: {type(value).__name__}")


def parse_optional_datetime(value: Optional[DateLike]) -> Optional[datetime]:
    """Like parse_datetime, but None/blank/NaN map to None."""
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    if not isinstance(value, (str, date, datetime)) and pd.isna(value):
        return None
    return parse_datetime(value)


def parse_calendar_date(value: DateLike) -> date:
    """Parse an as-of selector ("2024-01-31") into a calendar day."""
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    return parse_datetime(value).date()


def start_of_day(day: DateLike) -> datetime:
    """First instant of the calendar day."""
    return datetime.combine(parse_calendar_date(day), time.min)


def end_of_day(day: DateLike) -> datetime:
    """Last instant of the calendar day (23:59:59.999999)."""
    return datetime.combine(parse_calendar_date(day), time.max)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """Serialize for the database / API, keeping None."""
    return value.isoformat() if value else None


def _to_naive(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
