# bigthree/core/geo.py
# -----------------------------------------------------------------------------
# Location collaborators
#
#   • timezone_at(lat, lon)      → IANA zone via timezonefinder (offline polygons)
#   • geocode_place(text)        → (lat, lon) via geopy/Nominatim, first hit only
#   • LocationResolver strategies: CoordinateResolver | PlaceResolver
#
# No result caching: every query is resolved afresh. The TimezoneFinder
# instance itself is a process-wide resource built once under a lock.
# -----------------------------------------------------------------------------
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Protocol, Tuple
import logging
import os
import threading

from geopy.exc import GeopyError
from geopy.geocoders import Nominatim
from timezonefinder import TimezoneFinder

from bigthree.core.validators import ValidationError, _as_float, _err

log = logging.getLogger(__name__)

GEOCODER_USER_AGENT_DEFAULT = os.getenv("BIGTHREE_GEOCODER_USER_AGENT", "Monologueworld-quiz/1.0")
GEOCODER_TIMEOUT_DEFAULT = float(os.getenv("BIGTHREE_GEOCODER_TIMEOUT", "10"))
GEOCODE_HINT = "Géocodage impossible. Essaie 'Ville, Pays'."

# ─────────────────────────────────────────────────────────────────────────────
# Exceptions
# ─────────────────────────────────────────────────────────────────────────────
class LocationError(ValidationError):
    """Coordinates missing, non-numeric, out of range, or without a time zone."""
    code = "location_error"

class GeocodingError(ValidationError):
    """Free-text place could not be resolved to coordinates."""
    code = "geocoding_error"

# ─────────────────────────────────────────────────────────────────────────────
# Timezone lookup
# ─────────────────────────────────────────────────────────────────────────────
_TF: Optional[TimezoneFinder] = None
_LOCK_TF = threading.Lock()

def _get_tf() -> TimezoneFinder:
    global _TF
    if _TF is not None:
        return _TF
    with _LOCK_TF:
        if _TF is None:
            _TF = TimezoneFinder()
    return _TF

def _checked_coords(lat: Any, lon: Any) -> Tuple[float, float]:
    lat_f = _as_float(lat); lon_f = _as_float(lon)
    if lat_f is None or lon_f is None:
        raise LocationError(_err(["lat", "lon"], "lat/lon must be finite numbers", "type_error.float"))
    if not (-90.0 <= lat_f <= 90.0) or not (-180.0 <= lon_f <= 180.0):
        raise LocationError(_err(["lat", "lon"], f"coordinates out of range: ({lat_f}, {lon_f})"))
    return lat_f, lon_f

def timezone_at(lat: Any, lon: Any) -> str:
    """IANA zone name for a point; raises LocationError when none is found."""
    lat_f, lon_f = _checked_coords(lat, lon)
    tz = _get_tf().timezone_at(lng=lon_f, lat=lat_f)
    if not tz:
        raise LocationError(_err(["lat", "lon"], f"no time zone found for ({lat_f}, {lon_f})"))
    return tz

# ─────────────────────────────────────────────────────────────────────────────
# Geocoding
# ─────────────────────────────────────────────────────────────────────────────
class Geocoder(Protocol):
    def geocode(self, query: str, *args: Any, **kwargs: Any) -> Any: ...

def default_geocoder(user_agent: Optional[str] = None, timeout: Optional[float] = None) -> Geocoder:
    return Nominatim(
        user_agent=user_agent or GEOCODER_USER_AGENT_DEFAULT,
        timeout=GEOCODER_TIMEOUT_DEFAULT if timeout is None else float(timeout),
    )

def geocode_place(place_text: str, geocoder: Optional[Geocoder] = None) -> Tuple[float, float]:
    """
    Resolve a free-text place ("Paris, France") to (lat, lon).
    Only the first match is used; no retry.
    """
    text = (place_text or "").strip()
    if not text:
        raise GeocodingError(_err("place", GEOCODE_HINT))
    gc = geocoder or default_geocoder()
    try:
        loc = gc.geocode(text, exactly_one=True)
    except GeopyError as e:
        log.warning("geocoder failed for %r: %s", text, e)
        raise GeocodingError(_err("place", f"{GEOCODE_HINT} ({type(e).__name__})")) from e
    if not loc:
        raise GeocodingError(_err("place", GEOCODE_HINT))
    lat_f = _as_float(getattr(loc, "latitude", None))
    lon_f = _as_float(getattr(loc, "longitude", None))
    if lat_f is None or lon_f is None:
        raise GeocodingError(_err("place", GEOCODE_HINT))
    log.debug("geocoded %r -> (%.5f, %.5f)", text, lat_f, lon_f)
    return lat_f, lon_f

# ─────────────────────────────────────────────────────────────────────────────
# Location-resolution strategies
# ─────────────────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class ResolvedLocation:
    latitude: float
    longitude: float
    timezone: str
    source: str  # "coordinates" | "place"

class LocationResolver(Protocol):
    def resolve(self) -> ResolvedLocation: ...

@dataclass(frozen=True)
class CoordinateResolver:
    latitude: float
    longitude: float

    def resolve(self) -> ResolvedLocation:
        lat, lon = _checked_coords(self.latitude, self.longitude)
        return ResolvedLocation(lat, lon, timezone_at(lat, lon), "coordinates")

@dataclass(frozen=True)
class PlaceResolver:
    place: str
    geocoder: Optional[Geocoder] = None

    def resolve(self) -> ResolvedLocation:
        lat, lon = geocode_place(self.place, self.geocoder)
        return ResolvedLocation(lat, lon, timezone_at(lat, lon), "place")

def resolver_for(
    latitude: Optional[float],
    longitude: Optional[float],
    place: Optional[str],
    *,
    geocoder: Optional[Geocoder] = None,
) -> LocationResolver:
    """Coordinates win when both are numeric; otherwise a non-empty place is geocoded."""
    if _as_float(latitude) is not None and _as_float(longitude) is not None:
        return CoordinateResolver(float(latitude), float(longitude))  # type: ignore[arg-type]
    if isinstance(place, str) and place.strip():
        return PlaceResolver(place.strip(), geocoder)
    raise LocationError(_err(["lat", "lon", "place"], "Missing lat/lon or place", "value_error.missing"))

__all__ = [
    "LocationError",
    "GeocodingError",
    "GEOCODE_HINT",
    "timezone_at",
    "Geocoder",
    "default_geocoder",
    "geocode_place",
    "ResolvedLocation",
    "LocationResolver",
    "CoordinateResolver",
    "PlaceResolver",
    "resolver_for",
]
