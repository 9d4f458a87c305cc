"""
Time parsing and timezone normalization.

Entitlement expiry and day-log timestamps are stored as ISO-8601 strings and
compared as timezone-aware UTC datetimes, to avoid subtle bugs when mixing
naive and aware values.
"""

from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Attach UTC to naive datetimes; convert aware ones to UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_datetime(value: str) -> datetime:
    """Parse ISO-8601 datetime string and ensure tzinfo is present.

    Notes:
    - Accepts a trailing `Z` (UTC) and converts it to `+00:00` for `fromisoformat`.
    - If the parsed value is naive, UTC is attached.
    """
    value = value.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return ensure_utc(datetime.fromisoformat(value))


def to_iso(dt: datetime) -> str:
    """Serialize as ISO-8601 with a trailing `Z`."""
    return ensure_utc(dt).isoformat().replace("+00:00", "Z")
