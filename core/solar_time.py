"""Location lookup and true solar time correction.

True solar time shifts the civil clock by 4 minutes per degree of longitude
between the birthplace and the central meridian of its timezone offset,
optionally adding the equation of time from Swiss Ephemeris.
"""

from __future__ import annotations

import logging
import math
import re
import unicodedata
from datetime import datetime, timedelta, timezone
from types import MappingProxyType
from typing import Any, Dict, List, Literal, Mapping, Optional

import swisseph as swe

from config import SOLAR_TIME_EOT
from core.numeric import coerce_number
from core.schema import FrozenModel
from core.timezones import (
    BirthTimeMeta,
    civil_datetime,
    civil_offset_minutes,
    parse_timezone_offset_minutes,
)

logger = logging.getLogger("divination_bridge.solar_time")

MINUTES_PER_DEGREE = 4.0
DEGREES_PER_HOUR = 15.0


class KnownLocation(FrozenModel):
    name: str
    latitude: float
    longitude: float
    timezone: str


class Location(FrozenModel):
    latitude: float
    longitude: float
    source: Literal["coordinates", "known"]
    name: Optional[str] = None
    timezone: Optional[str] = None


class CivilTime(FrozenModel):
    year: int
    month: int
    day: int
    hour: int
    minute: int


class SolarTimeCorrection(FrozenModel):
    applied: bool
    corrected_date: datetime
    correction_minutes: int
    longitude_correction: float
    equation_of_time: Optional[float] = None
    corrected: CivilTime


class TrueSolarMeta(FrozenModel):
    applied: bool
    location: Optional[Location] = None
    correction_minutes: Optional[int] = None
    corrected: Optional[CivilTime] = None
    corrected_iso: Optional[str] = None


def _known(name: str, latitude: float, longitude: float, tz_name: str) -> KnownLocation:
    return KnownLocation(name=name, latitude=latitude, longitude=longitude, timezone=tz_name)


_NEW_YORK = _known("New York", 40.7128, -74.006, "America/New_York")

# lookup key -> entry; aliases share an entry. Order matters for partial matches.
KNOWN_LOCATIONS: Mapping[str, KnownLocation] = MappingProxyType({
    "beijing": _known("Beijing", 39.9042, 116.4074, "Asia/Shanghai"),
    "shanghai": _known("Shanghai", 31.2304, 121.4737, "Asia/Shanghai"),
    "shenzhen": _known("Shenzhen", 22.5431, 114.0579, "Asia/Shanghai"),
    "guangzhou": _known("Guangzhou", 23.1291, 113.2644, "Asia/Shanghai"),
    "hong kong": _known("Hong Kong", 22.3193, 114.1694, "Asia/Hong_Kong"),
    "taipei": _known("Taipei", 25.033, 121.5654, "Asia/Taipei"),
    "tokyo": _known("Tokyo", 35.6762, 139.6503, "Asia/Tokyo"),
    "seoul": _known("Seoul", 37.5665, 126.978, "Asia/Seoul"),
    "singapore": _known("Singapore", 1.3521, 103.8198, "Asia/Singapore"),
    "london": _known("London", 51.5074, -0.1278, "Europe/London"),
    "paris": _known("Paris", 48.8566, 2.3522, "Europe/Paris"),
    "berlin": _known("Berlin", 52.52, 13.405, "Europe/Berlin"),
    "rome": _known("Rome", 41.9028, 12.4964, "Europe/Rome"),
    "madrid": _known("Madrid", 40.4168, -3.7038, "Europe/Madrid"),
    "new york": _NEW_YORK,
    "new york city": _NEW_YORK,
    "nyc": _NEW_YORK,
    "los angeles": _known("Los Angeles", 34.0522, -118.2437, "America/Los_Angeles"),
    "san francisco": _known("San Francisco", 37.7749, -122.4194, "America/Los_Angeles"),
    "chicago": _known("Chicago", 41.8781, -87.6298, "America/Chicago"),
    "toronto": _known("Toronto", 43.6532, -79.3832, "America/Toronto"),
    "vancouver": _known("Vancouver", 49.2827, -123.1207, "America/Vancouver"),
    "sydney": _known("Sydney", -33.8688, 151.2093, "Australia/Sydney"),
    "melbourne": _known("Melbourne", -37.8136, 144.9631, "Australia/Melbourne"),
    "sao paulo": _known("São Paulo", -23.5558, -46.6396, "America/Sao_Paulo"),
    "mexico city": _known("Mexico City", 19.4326, -99.1332, "America/Mexico_City"),
    "cape town": _known("Cape Town", -33.9249, 18.4241, "Africa/Johannesburg"),
    "nairobi": _known("Nairobi", -1.2921, 36.8219, "Africa/Nairobi"),
    "lagos": _known("Lagos", 6.5244, 3.3792, "Africa/Lagos"),
    "mumbai": _known("Mumbai", 19.076, 72.8777, "Asia/Kolkata"),
    "delhi": _known("Delhi", 28.7041, 77.1025, "Asia/Kolkata"),
    "new delhi": _known("Delhi", 28.7041, 77.1025, "Asia/Kolkata"),
    "bangalore": _known("Bangalore", 12.9716, 77.5946, "Asia/Kolkata"),
    "dubai": _known("Dubai", 25.2048, 55.2708, "Asia/Dubai"),
})

_COORDINATE_PAIR = re.compile(r"(-?\d{1,3}(?:\.\d+)?)\s*,\s*(-?\d{1,3}(?:\.\d+)?)")


def _fold(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).casefold()


def normalize_location_key(value: Any) -> str:
    """Lowercase, accent-free key with punctuation and asides removed.

    ``' New York (NYC) '`` -> ``'new york'``, ``'Los-Angeles, CA'`` -> ``'los angeles ca'``.
    """
    if not isinstance(value, str):
        return ""
    key = _fold(value)
    key = re.sub(r"\([^)]*\)", " ", key)
    key = re.sub(r"[^a-z0-9\s,.-]", " ", key)
    key = re.sub(r"[\s,.-]+", " ", key)
    return key.strip()


def parse_coordinate_pair(value: Any) -> Optional[Location]:
    """Read ``"lat, lng"``; a pair only valid as ``"lng, lat"`` is swapped."""
    if not isinstance(value, str):
        return None
    match = _COORDINATE_PAIR.search(value)
    if not match:
        return None
    first, second = float(match.group(1)), float(match.group(2))
    if abs(first) <= 90 and abs(second) <= 180:
        return Location(latitude=first, longitude=second, source="coordinates")
    if abs(first) <= 180 and abs(second) <= 90:
        return Location(latitude=second, longitude=first, source="coordinates")
    return None


def _from_known(entry: KnownLocation) -> Location:
    return Location(
        latitude=entry.latitude,
        longitude=entry.longitude,
        source="known",
        name=entry.name,
        timezone=entry.timezone,
    )


def resolve_location_coordinates(value: Any) -> Optional[Location]:
    """Coordinates first, then the gazetteer (exact key, then substring match)."""
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    if not trimmed:
        return None

    coords = parse_coordinate_pair(trimmed)
    if coords is not None:
        return coords

    key = normalize_location_key(trimmed)
    if not key:
        return None
    entry = KNOWN_LOCATIONS.get(key)
    if entry is not None:
        return _from_known(entry)
    for known_key, known in KNOWN_LOCATIONS.items():
        if known_key in key:
            return _from_known(known)
    logger.debug("no gazetteer match for %r", value)
    return None


def list_known_locations() -> List[KnownLocation]:
    """Gazetteer entries, one per name, sorted by name."""
    unique: Dict[str, KnownLocation] = {}
    for entry in KNOWN_LOCATIONS.values():
        unique.setdefault(entry.name, entry)
    return sorted(unique.values(), key=lambda entry: (_fold(entry.name), entry.name))


# =========================================================
# Swiss Ephemeris helpers
# =========================================================
def jd_from_utc(dt_utc: datetime) -> float:
    dt_utc = dt_utc.astimezone(timezone.utc)
    y, m, d = dt_utc.year, dt_utc.month, dt_utc.day
    h = dt_utc.hour + dt_utc.minute/60 + dt_utc.second/3600 + dt_utc.microsecond/3.6e9
    return swe.julday(y, m, d, h, swe.GREG_CAL)


def equation_of_time_minutes(instant_utc: datetime) -> Optional[float]:
    """Apparent minus mean solar time, in minutes."""
    try:
        days = swe.time_equ(jd_from_utc(instant_utc))
    except swe.Error as exc:
        logger.warning("equation of time unavailable: %s", exc)
        return None
    return float(days) * 1440.0


def _finite(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value) if math.isfinite(value) else None


def compute_true_solar_time(
    *,
    birth_year: Any,
    birth_month: Any,
    birth_day: Any,
    birth_hour: Any,
    birth_minute: Any = 0,
    timezone_offset_minutes: Any,
    longitude: Any,
    include_equation_of_time: Optional[bool] = None,
) -> Optional[SolarTimeCorrection]:
    offset = _finite(timezone_offset_minutes)
    lon = _finite(longitude)
    if offset is None or lon is None:
        return None
    if coerce_number(birth_hour) is None:
        return None
    civil = civil_datetime(birth_year, birth_month, birth_day, birth_hour, birth_minute)
    if civil is None:
        return None

    standard_meridian = offset / 60.0 * DEGREES_PER_HOUR
    # meridian difference wrapped into [-180, 180)
    delta = (lon - standard_meridian + 180.0) % 360.0 - 180.0
    longitude_correction = delta * MINUTES_PER_DEGREE
    total = longitude_correction

    if include_equation_of_time is None:
        include_equation_of_time = SOLAR_TIME_EOT
    eot: Optional[float] = None
    if include_equation_of_time:
        instant = civil.replace(tzinfo=timezone.utc) - timedelta(minutes=offset)
        eot = equation_of_time_minutes(instant)
        if eot is not None:
            total += eot

    try:
        corrected = civil + timedelta(minutes=total)
    except OverflowError:
        return None

    return SolarTimeCorrection(
        applied=True,
        corrected_date=corrected,
        correction_minutes=int(round(total)),
        longitude_correction=round(longitude_correction, 2),
        equation_of_time=round(eot, 2) if eot is not None else None,
        corrected=CivilTime(
            year=corrected.year,
            month=corrected.month,
            day=corrected.day,
            hour=corrected.hour,
            minute=corrected.minute,
        ),
    )


def build_true_solar_meta(
    payload: Mapping[str, Any],
    time_meta: Optional[BirthTimeMeta] = None,
) -> TrueSolarMeta:
    """Solar time block for a birth payload carrying ``birthLocation``.

    The offset comes from ``time_meta`` when resolved, else from the payload,
    else from the matched gazetteer entry's zone.
    """
    location = resolve_location_coordinates(payload.get("birthLocation"))
    if location is None:
        return TrueSolarMeta(applied=False)

    offset: Optional[int] = time_meta.timezone_offset_minutes if time_meta is not None else None
    if offset is None:
        raw = payload.get("timezoneOffsetMinutes")
        offset = parse_timezone_offset_minutes(raw if raw is not None else payload.get("timezone"))
    if offset is None and location.timezone:
        civil = civil_datetime(
            payload.get("birthYear"),
            payload.get("birthMonth"),
            payload.get("birthDay"),
            payload.get("birthHour"),
            payload.get("birthMinute"),
        )
        if civil is not None:
            offset = civil_offset_minutes(location.timezone, civil)

    solar = compute_true_solar_time(
        birth_year=payload.get("birthYear"),
        birth_month=payload.get("birthMonth"),
        birth_day=payload.get("birthDay"),
        birth_hour=payload.get("birthHour"),
        birth_minute=payload.get("birthMinute"),
        timezone_offset_minutes=offset,
        longitude=location.longitude,
    )
    if solar is None:
        return TrueSolarMeta(applied=False, location=location)

    return TrueSolarMeta(
        applied=True,
        location=location,
        correction_minutes=solar.correction_minutes,
        corrected=solar.corrected,
        corrected_iso=solar.corrected_date.isoformat(timespec="milliseconds"),
    )
