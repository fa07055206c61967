"""Timestamp normalization for storage-service reading payloads."""

from __future__ import annotations

import re
from datetime import datetime, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo

_MICROSECOND_DIGITS = 6

_TIMESTAMP_RE = re.compile(
    r"^\s*(?P<year>\d{4})-(?P<month>\d{1,2})-(?P<day>\d{1,2})"
    r"[ T](?P<hour>\d{1,2}):(?P<minute>\d{1,2}):(?P<second>\d{1,2})"
    r"(?:\.(?P<fraction>\d+))?"
)


def resolve_timezone(name: Optional[str]) -> Optional[tzinfo]:
    """Map a configured zone name to a tzinfo; ``None`` means host local time."""
    if name is None:
        return None
    candidate = name.strip()
    if candidate.upper() in {"UTC", "Z"}:
        return timezone.utc
    return ZoneInfo(candidate)


def parse_timestamp(value: str, tz: Optional[tzinfo] = None) -> datetime:
    """Convert ``YYYY-MM-DD HH:MM:SS[.ffffff]`` wall-clock text to a UTC instant.

    The whole-second part is read as wall-clock time in ``tz`` (the host's
    local zone when ``tz`` is None) and shifted to UTC. The fractional digits
    are right-padded with zeros to microseconds; digits beyond the sixth are
    truncated. Text trailing the seconds is ignored.
    """
    match = _TIMESTAMP_RE.match(value)
    if match is None:
        raise ValueError(f"Invalid timestamp {value!r}")

    wall_clock = datetime(
        int(match["year"]),
        int(match["month"]),
        int(match["day"]),
        int(match["hour"]),
        int(match["minute"]),
        int(match["second"]),
    )
    if tz is None:
        instant = wall_clock.astimezone(timezone.utc)
    else:
        instant = wall_clock.replace(tzinfo=tz).astimezone(timezone.utc)

    fraction = (match["fraction"] or "")[:_MICROSECOND_DIGITS]
    microseconds = int(fraction.ljust(_MICROSECOND_DIGITS, "0"))
    return instant.replace(microsecond=microseconds)


def format_timestamp(value: datetime, tz: Optional[tzinfo] = None) -> str:
    """Render an instant back into wall-clock text in ``tz``."""
    if tz is None:
        local = value.astimezone()
    else:
        local = value.astimezone(tz)
    return local.strftime("%Y-%m-%d %H:%M:%S.%f")
