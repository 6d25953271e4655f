"""Timezone offset parsing and birth-instant resolution.

Offsets are signed minutes east of UTC (``+08:00`` is ``480``).
"""

from __future__ import annotations

import logging
import math
import re
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Any, Mapping, Optional

from dateutil import tz

from config import DEFAULT_TZ
from core.numeric import coerce_number, is_integral
from core.schema import FrozenModel

logger = logging.getLogger("divination_bridge.timezones")

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

MAX_OFFSET_HOURS = 14
_ZERO_LABEL = re.compile(r"^(utc|gmt|z)$", re.IGNORECASE)
_OFFSET_LABEL = re.compile(r"^(?:utc|gmt)?\s*([+-])\s*(\d{1,2})(?::?(\d{2}))?$", re.IGNORECASE)


def resolve_zone(name: Any) -> Optional[tzinfo]:
    """tzinfo for an IANA name (or POSIX TZ string), None when unknown."""
    if not isinstance(name, str) or not name.strip():
        return None
    try:
        zone = tz.gettz(name.strip())
    except ValueError:
        zone = None
    if zone is None:
        logger.debug("unknown time zone %r", name)
    return zone


class BirthTimeMeta(FrozenModel):
    timezone_offset_minutes: Optional[int] = None
    birth_timestamp: Optional[int] = None
    birth_iso: Optional[str] = None


UNRESOLVED_BIRTH_TIME = BirthTimeMeta()


def format_timezone_offset(offset_minutes: Any) -> str:
    """Render signed minutes as ``UTC+05:30``; zero and non-numbers are ``UTC``."""
    if isinstance(offset_minutes, bool) or not isinstance(offset_minutes, (int, float)):
        return "UTC"
    if not math.isfinite(offset_minutes):
        return "UTC"
    minutes_total = int(round(offset_minutes))
    if minutes_total == 0:
        return "UTC"
    sign = "+" if minutes_total > 0 else "-"
    hours, minutes = divmod(abs(minutes_total), 60)
    return f"UTC{sign}{hours:02d}:{minutes:02d}"


def parse_timezone_offset_minutes(value: Any) -> Optional[int]:
    """Parse ``UTC``, ``Z``, ``GMT-05:30``, ``UTC+9``, ``+08:00`` and raw minutes."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value) if math.isfinite(value) else None
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    if _ZERO_LABEL.match(text):
        return 0

    match = _OFFSET_LABEL.match(text)
    if not match:
        return None
    sign = -1 if match.group(1) == "-" else 1
    hours = int(match.group(2))
    minutes = int(match.group(3) or 0)
    if hours > MAX_OFFSET_HOURS or minutes > 59:
        return None
    total = hours * 60 + minutes
    if total > MAX_OFFSET_HOURS * 60:
        return None
    return sign * total


def get_offset_minutes_from_time_zone(time_zone: Any, reference: datetime) -> Optional[int]:
    """Offset of an IANA zone at the given instant, DST included.

    Naive references are read as UTC.
    """
    zone = resolve_zone(time_zone)
    if zone is None:
        return None
    if reference.tzinfo is None:
        reference = reference.replace(tzinfo=timezone.utc)
    offset = reference.astimezone(zone).utcoffset()
    if offset is None:
        return None
    return int(round(offset.total_seconds() / 60))


def civil_offset_minutes(time_zone: Any, civil: datetime) -> Optional[int]:
    """Offset a zone applies to a wall-clock time (naive ``civil``)."""
    zone = resolve_zone(time_zone)
    if zone is None:
        return None
    offset = tz.resolve_imaginary(civil.replace(tzinfo=zone)).utcoffset()
    if offset is None:
        return None
    return int(round(offset.total_seconds() / 60))


def normalize_timezone(tz_name: Optional[str]) -> str:
    """If invalid timezone provided, fallback to DEFAULT_TZ."""
    if not tz_name:
        return DEFAULT_TZ
    if resolve_zone(tz_name) is None:
        return DEFAULT_TZ
    return tz_name


def to_iso_z(instant: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision, e.g. ``2000-01-01T10:00:00.000Z``."""
    return instant.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def civil_datetime(year: Any, month: Any, day: Any, hour: Any = 0, minute: Any = 0) -> Optional[datetime]:
    """Naive civil datetime from loosely typed parts, or None if not a real date.

    Missing or non-numeric hour/minute fall back to 0; fractional ones are truncated.
    """
    parts = [coerce_number(part) for part in (year, month, day)]
    if not all(is_integral(part) for part in parts):
        return None
    clock = [coerce_number(part) for part in (hour, minute)]
    clock = [int(part) if part is not None else 0 for part in clock]
    try:
        return datetime(parts[0], parts[1], parts[2], clock[0], clock[1])
    except (ValueError, OverflowError):
        return None


def build_birth_time_meta(payload: Mapping[str, Any]) -> BirthTimeMeta:
    """Resolve the birth instant from civil fields plus a timezone hint.

    Offset precedence: explicit ``timezoneOffsetMinutes``, then a UTC label in
    ``timezone``, then ``timezone`` read as an IANA name at the birth time.
    """
    civil = civil_datetime(
        payload.get("birthYear"),
        payload.get("birthMonth"),
        payload.get("birthDay"),
        payload.get("birthHour"),
        payload.get("birthMinute"),
    )
    if civil is None:
        return UNRESOLVED_BIRTH_TIME

    label = payload.get("timezone")
    offset = parse_timezone_offset_minutes(payload.get("timezoneOffsetMinutes"))
    if offset is None:
        offset = parse_timezone_offset_minutes(label)
    if offset is None:
        offset = civil_offset_minutes(label, civil)
    if offset is None:
        logger.debug("no usable timezone in payload (timezone=%r)", label)
        return UNRESOLVED_BIRTH_TIME

    try:
        instant = civil.replace(tzinfo=timezone.utc) - timedelta(minutes=offset)
    except OverflowError:
        return UNRESOLVED_BIRTH_TIME
    return BirthTimeMeta(
        timezone_offset_minutes=offset,
        birth_timestamp=(instant - EPOCH) // timedelta(milliseconds=1),
        birth_iso=to_iso_z(instant),
    )
