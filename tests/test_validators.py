# tests/test_validators.py
from __future__ import annotations

import pytest

from bigthree.core.validators import (
    ValidationError,
    has_clock_time,
    parse_bigthree_payload,
    parse_date,
    parse_latlon,
    parse_time_hm,
)


def test_coordinates_and_time() -> None:
    p = parse_bigthree_payload({"date": " 2000-01-01 ", "time": "14:30", "lat": "48.8566", "lon": 2.3522})
    assert p["date"] == "2000-01-01"
    assert p["time"] == "14:30"
    assert (p["lat"], p["lon"]) == (48.8566, 2.3522)
    assert p["lang"] is None

def test_longhand_keys_accepted() -> None:
    p = parse_bigthree_payload({"date": "2000-01-01", "latitude": 1.5, "longitude": -3})
    assert (p["lat"], p["lon"]) == (1.5, -3.0)

def test_place_only() -> None:
    p = parse_bigthree_payload({"date": "2000-01-01", "place": "  Paris, France "})
    assert p["place"] == "Paris, France"
    assert p["lat"] is None and p["lon"] is None

@pytest.mark.parametrize("time_s", [None, "", "1430", 1430, "noon"])
def test_time_without_colon_is_unknown(time_s) -> None:
    assert parse_bigthree_payload({"date": "2000-01-01", "place": "x", "time": time_s})["time"] is None

def test_missing_date() -> None:
    with pytest.raises(ValidationError) as ei:
        parse_bigthree_payload({"lat": 1, "lon": 2})
    assert str(ei.value) == "Missing date"
    assert ei.value.errors()[0]["loc"] == ["date"]

@pytest.mark.parametrize("body", [
    {"date": "2000-01-01"},
    {"date": "2000-01-01", "lat": 1.0},
    {"date": "2000-01-01", "lat": True, "lon": 2.0, "place": "  "},
])
def test_missing_location(body) -> None:
    with pytest.raises(ValidationError) as ei:
        parse_bigthree_payload(body)
    assert str(ei.value) == "Missing lat/lon or place"

def test_lang_normalized_and_checked() -> None:
    assert parse_bigthree_payload({"date": "2000-01-01", "place": "x", "lang": " EN "})["lang"] == "en"
    with pytest.raises(ValidationError):
        parse_bigthree_payload({"date": "2000-01-01", "place": "x", "lang": "de"})

def test_atomic_parsers() -> None:
    assert parse_date("2024-02-29").day == 29
    with pytest.raises(ValidationError):
        parse_date("2023-02-29")
    assert parse_time_hm("7:05") == (7, 5, 0)
    assert parse_time_hm("23:59:59") == (23, 59, 59)
    with pytest.raises(ValidationError):
        parse_time_hm("24:00")
    assert has_clock_time("10:00") and not has_clock_time(1000)
    with pytest.raises(ValidationError):
        parse_latlon(91, 0)
    with pytest.raises(ValidationError):
        parse_latlon(0, float("inf"))
