"""Timestamp helpers shared by store, workflow and aggregation code."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def utc_now() -> datetime:
    """Return the current UTC time."""
    return datetime.now(timezone.utc)


def to_iso(moment: datetime) -> str:
    """Render a datetime as an ISO string, assuming UTC for naive values."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.isoformat()


def parse_timestamp(raw_value: object) -> datetime | None:
    """Parse a stored timestamp into an aware datetime.

    Accepts ISO strings (with or without a trailing ``Z``), datetimes,
    serialized ``{"seconds": ...}`` mappings and epoch seconds.

    Args:
        raw_value: Stored timestamp value.

    Returns:
        Aware UTC datetime, or None when missing or unparseable.
    """
    if raw_value is None or isinstance(raw_value, bool):
        return None
    if isinstance(raw_value, datetime):
        return raw_value if raw_value.tzinfo else raw_value.replace(tzinfo=timezone.utc)
    if isinstance(raw_value, (int, float)):
        return datetime.fromtimestamp(float(raw_value), tz=timezone.utc)
    if isinstance(raw_value, dict):
        seconds = raw_value.get("seconds", raw_value.get("_seconds"))
        if isinstance(seconds, (int, float)) and not isinstance(seconds, bool):
            return datetime.fromtimestamp(float(seconds), tz=timezone.utc)
        return None
    if isinstance(raw_value, str) and raw_value.strip():
        text = raw_value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return None
