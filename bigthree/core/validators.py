from __future__ import annotations

import re
from datetime import datetime, date
from typing import Any, Dict, List, Optional, Tuple, Union, TypedDict

from bigthree.core.constants import SIGN_TABLES, DEFAULT_SIGN_LANG

# ───────────────────────── errors ─────────────────────────

class ValidationError(ValueError):
    """Structured input error (has .errors() and a stable .code for the API)."""
    code = "validation_error"

    def __init__(self, details: Union[str, Dict[str, Any], List[Dict[str, Any]]]):
        if isinstance(details, str):
            self._details = [{"loc": [], "msg": details, "type": "value_error"}]
            super().__init__(details)
        elif isinstance(details, dict):
            self._details = [details]
            super().__init__(details.get("msg", "validation_error"))
        elif isinstance(details, list):
            self._details = details
            super().__init__(self._details[0]["msg"] if self._details else "validation_error")
        else:
            self._details = [{"loc": [], "msg": "validation_error", "type": "value_error"}]
            super().__init__("validation_error")

    def errors(self) -> List[Dict[str, Any]]:
        return list(self._details)


# ───────────────────────── helpers ─────────────────────────

def _err(loc: List[str] | str, msg: str, typ: str = "value_error") -> Dict[str, Any]:
    return {"loc": [loc] if isinstance(loc, str) else loc, "msg": msg, "type": typ}

def _as_float(v: Any) -> Optional[float]:
    # bools are ints in Python; a JSON true is not a coordinate
    if v is None or isinstance(v, bool):
        return None
    try:
        x = float(v)
    except (TypeError, ValueError):
        return None
    if x != x or x in (float("inf"), float("-inf")):
        return None
    return x


# ───────────────────────── atomic parsers ─────────────────────────

_DATE_RE = re.compile(r"^\s*\d{4}-\d{2}-\d{2}\s*$")
_TIME_RE = re.compile(r"^\s*(?P<h>\d{1,2}):(?P<m>\d{2})(?::(?P<s>\d{2}))?\s*$")

def parse_date(s: Any) -> date:
    if not isinstance(s, str) or not _DATE_RE.match(s):
        raise ValidationError(_err("date", "date must be 'YYYY-MM-DD'", "value_error.date"))
    try:
        return datetime.strptime(s.strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(_err("date", f"'{s.strip()}' is not a calendar date", "value_error.date"))

def has_clock_time(s: Any) -> bool:
    """A time counts as known only when it is a string carrying a colon."""
    return isinstance(s, str) and ":" in s

def parse_time_hm(s: str) -> Tuple[int, int, int]:
    """
    Accept 'HH:MM' or 'HH:MM:SS'. Return (hour, minute, second).
    """
    m = _TIME_RE.match(s or "")
    if not m:
        raise ValidationError(_err("time", "time must be 'HH:MM'", "value_error.time"))
    hh = int(m.group("h")); mm = int(m.group("m")); ss = int(m.group("s") or 0)
    if not (0 <= hh <= 23 and 0 <= mm <= 59 and 0 <= ss <= 59):
        raise ValidationError(_err("time", "time fields out of range", "value_error.time"))
    return hh, mm, ss

def parse_latlon(lat: Any, lon: Any, lat_key="lat", lon_key="lon") -> Tuple[float, float]:
    lat_f = _as_float(lat); lon_f = _as_float(lon)
    if lat_f is None or lon_f is None:
        raise ValidationError(_err([lat_key, lon_key], "lat/lon must be finite numbers", "type_error.float"))
    if not (-90.0 <= lat_f <= 90.0):
        raise ValidationError(_err(lat_key, "latitude must be between -90 and 90"))
    if not (-180.0 <= lon_f <= 180.0):
        raise ValidationError(_err(lon_key, "longitude must be between -180 and 180"))
    return float(lat_f), float(lon_f)

def parse_lang(val: Any | None, default: str = DEFAULT_SIGN_LANG) -> str:
    s = str(val or default).strip().lower()
    if s not in SIGN_TABLES:
        raise ValidationError(_err("lang", f"lang must be one of {sorted(SIGN_TABLES)}", "value_error.lang"))
    return s


# ───────────────────────── big-three payload ─────────────────────────

class BigThreePayload(TypedDict, total=False):
    date: str
    time: Optional[str]
    lat: Optional[float]
    lon: Optional[float]
    place: Optional[str]
    lang: Optional[str]

def parse_bigthree_payload(body: Any) -> BigThreePayload:
    """
    Normalize the POST body of the big-three endpoint.

    - 'date' is required (shape only; calendar validity is checked by the time resolver).
    - 'time' is optional; anything that is not an 'HH:MM' string means "unknown".
    - Coordinates win over 'place' when both are numeric; 'lat'/'latitude' and
      'lon'/'longitude' are accepted.
    - Either a full coordinate pair or a non-empty 'place' is required.
    """
    if not isinstance(body, dict):
        raise ValidationError("payload must be an object")

    date_s = body.get("date")
    if not isinstance(date_s, str) or not date_s.strip():
        raise ValidationError(_err("date", "Missing date", "value_error.missing"))

    time_s = body.get("time")
    time_out: Optional[str] = time_s.strip() if has_clock_time(time_s) else None

    raw_lat = body.get("lat") if "lat" in body else body.get("latitude")
    raw_lon = body.get("lon") if "lon" in body else body.get("longitude")
    place = body.get("place")
    place_out = place.strip() if isinstance(place, str) and place.strip() else None

    lat_out: Optional[float] = None
    lon_out: Optional[float] = None
    if _as_float(raw_lat) is not None and _as_float(raw_lon) is not None:
        lat_out, lon_out = parse_latlon(raw_lat, raw_lon)
    elif place_out is None:
        raise ValidationError(_err(["lat", "lon", "place"], "Missing lat/lon or place", "value_error.missing"))

    return {
        "date": date_s.strip(),
        "time": time_out,
        "lat": lat_out,
        "lon": lon_out,
        "place": place_out,
        "lang": parse_lang(body.get("lang")) if body.get("lang") is not None else None,
    }
