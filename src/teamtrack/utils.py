"""Provide utility helpers for timestamps and calendar dates."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Optional


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_iso(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        if not isinstance(value, str):
            value = str(value)
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        dt = datetime.fromisoformat(value)
        # If a naive timestamp slips in, assume UTC to avoid crashes.
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt
    except ValueError:
        return None


def _parse_date(value: Any) -> Optional[date]:
    """Parse a calendar date from a date or timestamp string.

    Accepts ``YYYY-MM-DD`` and full ISO timestamps. Anything else
    (``None``, empty strings, garbage) returns ``None`` so callers can treat
    the date as absent.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    if len(text) == 10:
        try:
            return date.fromisoformat(text)
        except ValueError:
            return None
    # Longer values must parse as a full timestamp.
    dt = _parse_iso(text)
    return dt.date() if dt else None
