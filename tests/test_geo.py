# tests/test_geo.py
from __future__ import annotations

import pytest

from bigthree.core.geo import (
    GEOCODE_HINT,
    CoordinateResolver,
    GeocodingError,
    LocationError,
    PlaceResolver,
    geocode_place,
    resolver_for,
    timezone_at,
)

from fakes import DownGeocoder, FakeGeocoder

# ─────────────────────────────────────────────────────────────────────────────
# timezone lookup
# ─────────────────────────────────────────────────────────────────────────────

@pytest.mark.parametrize("lat,lon,tz", [
    (48.8566, 2.3522, "Europe/Paris"),
    (40.7128, -74.0060, "America/New_York"),
    (13.0827, 80.2707, "Asia/Kolkata"),
    (-33.8688, 151.2093, "Australia/Sydney"),
])
def test_timezone_at_cities(lat, lon, tz) -> None:
    assert timezone_at(lat, lon) == tz

@pytest.mark.parametrize("lat,lon", [(91.0, 0.0), (0.0, 181.0), (-90.5, 10.0)])
def test_timezone_at_out_of_range(lat, lon) -> None:
    with pytest.raises(LocationError):
        timezone_at(lat, lon)

@pytest.mark.parametrize("lat,lon", [(None, 2.0), ("abc", 2.0), (48.0, float("nan")), (True, 2.0)])
def test_timezone_at_non_numeric(lat, lon) -> None:
    with pytest.raises(LocationError):
        timezone_at(lat, lon)

# ─────────────────────────────────────────────────────────────────────────────
# geocoding
# ─────────────────────────────────────────────────────────────────────────────

def test_geocode_first_hit() -> None:
    gc = FakeGeocoder()
    assert geocode_place("  Paris, France ", gc) == (48.8566, 2.3522)
    assert gc.queries == ["Paris, France"]

def test_geocode_no_match_gives_hint() -> None:
    with pytest.raises(GeocodingError) as ei:
        geocode_place("Atlantis", FakeGeocoder())
    assert str(ei.value) == GEOCODE_HINT
    assert ei.value.code == "geocoding_error"

def test_geocode_empty_place() -> None:
    with pytest.raises(GeocodingError):
        geocode_place("   ", FakeGeocoder())

def test_geocode_service_failure_surfaces_as_geocoding_error() -> None:
    with pytest.raises(GeocodingError):
        geocode_place("Paris, France", DownGeocoder())

# ─────────────────────────────────────────────────────────────────────────────
# strategies
# ─────────────────────────────────────────────────────────────────────────────

def test_coordinates_win_over_place() -> None:
    r = resolver_for(48.8566, 2.3522, "New York, USA")
    assert isinstance(r, CoordinateResolver)
    loc = r.resolve()
    assert (loc.latitude, loc.longitude, loc.timezone, loc.source) == (48.8566, 2.3522, "Europe/Paris", "coordinates")

def test_place_strategy_when_coordinates_missing() -> None:
    gc = FakeGeocoder()
    r = resolver_for(None, None, "New York, USA", geocoder=gc)
    assert isinstance(r, PlaceResolver)
    loc = r.resolve()
    assert loc.timezone == "America/New_York"
    assert loc.source == "place"

def test_half_coordinates_fall_back_to_place() -> None:
    r = resolver_for(48.0, None, "Paris, France", geocoder=FakeGeocoder())
    assert isinstance(r, PlaceResolver)

def test_nothing_to_resolve() -> None:
    with pytest.raises(LocationError):
        resolver_for(None, None, None)
    with pytest.raises(LocationError):
        resolver_for(None, 2.0, "   ")
