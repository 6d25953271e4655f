from datetime import datetime, timezone

import pytest

from core.solar_time import (
    KNOWN_LOCATIONS,
    build_true_solar_meta,
    compute_true_solar_time,
    equation_of_time_minutes,
    list_known_locations,
    normalize_location_key,
    resolve_location_coordinates,
)
from core.timezones import build_birth_time_meta


@pytest.mark.parametrize(
    "raw,expected",
    [
        (" New York (NYC) ", "new york"),
        ("Los-Angeles, CA", "los angeles ca"),
        ("São Paulo", "sao paulo"),
        ("London!", "london"),
        ("", ""),
        (None, ""),
    ],
)
def test_normalize_location_key(raw, expected):
    assert normalize_location_key(raw) == expected


def test_resolve_coordinate_pair():
    location = resolve_location_coordinates("31.23, 121.47")
    assert location.latitude == 31.23
    assert location.longitude == 121.47
    assert location.source == "coordinates"


def test_resolve_coordinate_pair_swapped():
    location = resolve_location_coordinates("120, 30")
    assert (location.latitude, location.longitude, location.source) == (30, 120, "coordinates")


def test_resolve_coordinate_pair_out_of_range():
    assert resolve_location_coordinates("200, 200") is None


@pytest.mark.parametrize(
    "raw,name",
    [
        ("NYC", "New York"),
        ("Beijing China", "Beijing"),
        ("I live in New York City", "New York"),
        ("  tokyo ", "Tokyo"),
        ("sao paulo", "São Paulo"),
        ("New Delhi, India", "Delhi"),
        ("Guangzhoushi", "Guangzhou"),
        ("Beijingshi", "Beijing"),
    ],
)
def test_resolve_known_location(raw, name):
    location = resolve_location_coordinates(raw)
    assert location.source == "known"
    assert location.name == name
    assert location.timezone


@pytest.mark.parametrize("raw", ["", "   ", "Atlantis", "newyorker", None, 42])
def test_resolve_unknown_location(raw):
    assert resolve_location_coordinates(raw) is None


def test_list_known_locations_unique_and_sorted():
    names = [entry.name for entry in list_known_locations()]
    assert len(names) == len(set(names))
    assert names == sorted(names, key=lambda name: normalize_location_key(name))
    assert len(names) < len(KNOWN_LOCATIONS)


def test_known_locations_are_read_only():
    with pytest.raises(TypeError):
        KNOWN_LOCATIONS["atlantis"] = KNOWN_LOCATIONS["london"]


def test_compute_true_solar_time_longitude_correction():
    solar = compute_true_solar_time(
        birth_year=2024,
        birth_month=1,
        birth_day=1,
        birth_hour=12,
        birth_minute=0,
        timezone_offset_minutes=0,
        longitude=30,
        include_equation_of_time=False,
    )
    assert solar.applied is True
    assert solar.longitude_correction == 120
    assert solar.correction_minutes == 120
    assert solar.corrected_date == datetime(2024, 1, 1, 14, 0)
    assert (solar.corrected.hour, solar.corrected.minute) == (14, 0)
    assert solar.equation_of_time is None


def test_compute_true_solar_time_uses_actual_offset():
    # Shanghai runs about 6 minutes ahead of its UTC+8 meridian
    solar = compute_true_solar_time(
        birth_year=1990,
        birth_month=5,
        birth_day=17,
        birth_hour=0,
        birth_minute=2,
        timezone_offset_minutes=480,
        longitude=121.4737,
        include_equation_of_time=False,
    )
    assert solar.correction_minutes == 6
    assert solar.corrected.day == 17
    assert solar.corrected.minute == 7

    west = compute_true_solar_time(
        birth_year=1990,
        birth_month=5,
        birth_day=17,
        birth_hour=0,
        birth_minute=2,
        timezone_offset_minutes=480,
        longitude=100,
        include_equation_of_time=False,
    )
    # crosses back into the previous day
    assert west.correction_minutes == -80
    assert (west.corrected.day, west.corrected.hour, west.corrected.minute) == (16, 22, 42)


def test_compute_true_solar_time_across_the_antimeridian():
    # Apia keeps UTC+13 (meridian 195E) while sitting at 171.77W
    solar = compute_true_solar_time(
        birth_year=2024,
        birth_month=1,
        birth_day=1,
        birth_hour=12,
        birth_minute=0,
        timezone_offset_minutes=780,
        longitude=-171.77,
        include_equation_of_time=False,
    )
    assert solar.longitude_correction == -27.08
    assert solar.correction_minutes == -27
    assert (solar.corrected.day, solar.corrected.hour, solar.corrected.minute) == (1, 11, 32)


def test_compute_true_solar_time_with_equation_of_time():
    solar = compute_true_solar_time(
        birth_year=2024,
        birth_month=11,
        birth_day=3,
        birth_hour=12,
        timezone_offset_minutes=0,
        longitude=0,
        include_equation_of_time=True,
    )
    # early November sits near the yearly maximum of about +16 minutes
    assert 10 < solar.equation_of_time < 18
    assert solar.correction_minutes == round(solar.equation_of_time)


def test_equation_of_time_stays_within_yearly_bounds():
    for month in range(1, 13):
        eot = equation_of_time_minutes(datetime(2024, month, 15, 12, tzinfo=timezone.utc))
        assert -17 < eot < 17


@pytest.mark.parametrize(
    "overrides",
    [
        {"timezone_offset_minutes": None},
        {"timezone_offset_minutes": float("nan")},
        {"longitude": None},
        {"birth_year": "abc"},
        {"birth_month": 2, "birth_day": 30},
        {"birth_hour": "noon"},
    ],
)
def test_compute_true_solar_time_invalid_input(overrides):
    kwargs = dict(
        birth_year=2024,
        birth_month=1,
        birth_day=1,
        birth_hour=12,
        birth_minute=0,
        timezone_offset_minutes=0,
        longitude=30,
        include_equation_of_time=False,
    )
    kwargs.update(overrides)
    assert compute_true_solar_time(**kwargs) is None


BIRTH = {"birthYear": 2000, "birthMonth": 1, "birthDay": 1, "birthHour": 12, "birthMinute": 0}


def test_true_solar_meta_without_location():
    meta = build_true_solar_meta(BIRTH)
    assert meta.to_payload() == {
        "applied": False,
        "location": None,
        "correctionMinutes": None,
        "corrected": None,
        "correctedIso": None,
    }


def test_true_solar_meta_uses_resolved_offset(monkeypatch):
    monkeypatch.setattr("core.solar_time.SOLAR_TIME_EOT", False)
    payload = {**BIRTH, "timezone": "UTC", "birthLocation": "30, 45"}
    meta = build_true_solar_meta(payload, build_birth_time_meta(payload))
    assert meta.applied is True
    assert meta.correction_minutes == 180
    assert meta.corrected_iso == "2000-01-01T15:00:00.000"
    assert meta.location.source == "coordinates"


def test_true_solar_meta_falls_back_to_gazetteer_zone(monkeypatch):
    monkeypatch.setattr("core.solar_time.SOLAR_TIME_EOT", False)
    meta = build_true_solar_meta({**BIRTH, "birthLocation": "London"})
    assert meta.applied is True
    assert meta.location.name == "London"
    assert meta.correction_minutes == -1


def test_true_solar_meta_location_without_offset():
    meta = build_true_solar_meta({**BIRTH, "birthLocation": "10, 20"})
    assert meta.applied is False
    assert meta.location.longitude == 20
