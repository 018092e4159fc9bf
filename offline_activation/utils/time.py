"""UTC and RFC3339 time helpers."""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone

_RFC3339_RE = re.compile(
    r"(?P<date>[0-9]{4}-[0-9]{2}-[0-9]{2})[Tt](?P<time>[0-9]{2}:[0-9]{2}:[0-9]{2})(?P<frac>\.[0-9]+)?"
    r"(?:(?P<utc>[Zz])|(?P<sign>[+-])(?P<oh>[0-9]{2}):(?P<om>[0-9]{2}))"
)


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def parse_rfc3339(value: str) -> datetime:
    """Parse an RFC3339 timestamp into an aware datetime.

    The offset is mandatory (``Z`` or ``+hh:mm``); fractional seconds are
    accepted at any precision and truncated to microseconds.
    """
    match = _RFC3339_RE.fullmatch(value)
    if match is None:
        raise ValueError(f"not an RFC3339 timestamp: {value!r}")

    frac = match.group("frac") or ""
    micro = int((frac[1:] + "000000")[:6]) if frac else 0
    parsed = datetime.strptime(f"{match.group('date')}T{match.group('time')}", "%Y-%m-%dT%H:%M:%S")

    if match.group("utc"):
        tz = timezone.utc
    else:
        hours, minutes = int(match.group("oh")), int(match.group("om"))
        if hours > 23 or minutes > 59:
            raise ValueError(f"invalid UTC offset in {value!r}")
        delta = timedelta(hours=hours, minutes=minutes)
        tz = timezone(-delta if match.group("sign") == "-" else delta)

    return parsed.replace(microsecond=micro, tzinfo=tz)


def format_rfc3339(value: datetime) -> str:
    """Format an aware datetime as second-precision RFC3339 in UTC."""
    if value.tzinfo is None:
        raise ValueError("naive datetimes are ambiguous; attach a timezone")
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
