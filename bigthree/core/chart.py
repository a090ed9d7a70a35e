from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from bigthree.core.astronomy import J2000_JD, ascendant_longitude
from bigthree.core.constants import DEFAULT_SIGN_LANG, sign_from_longitude
from bigthree.core.ephemeris_adapter import Ephemeris, get_default_adapter
from bigthree.core.geo import Geocoder, LocationResolver, resolver_for
from bigthree.core.timescales import InvalidDateTime, parse_civil, to_instant
from bigthree.core.validators import _err

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class BirthQuery:
    date: str
    time: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    place: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "BirthQuery":
        return cls(
            date=payload.get("date"),  # type: ignore[arg-type]
            time=payload.get("time"),
            latitude=payload.get("lat"),
            longitude=payload.get("lon"),
            place=payload.get("place"),
        )


@dataclass(frozen=True)
class ChartResult:
    timezone: str
    sun_sign: str
    moon_sign: Optional[str]
    ascendant_sign: Optional[str]
    latitude: float
    longitude: float
    utc: datetime
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tz": self.timezone,
            "sunSign": self.sun_sign,
            "moonSign": self.moon_sign,
            "ascendantSign": self.ascendant_sign,
            "lat": self.latitude,
            "lon": self.longitude,
            "utc": self.utc.isoformat(),
            "warnings": list(self.warnings),
        }


def _check_coverage(eph: Ephemeris, jd_tt: float, civil_date: datetime) -> None:
    first, last = eph.coverage_jd()
    if not (first <= jd_tt <= last):
        raise InvalidDateTime(_err(
            "date",
            f"{civil_date.date().isoformat()} is outside the supported date range "
            f"({_jd_year(first)}-{_jd_year(last)})",
            "value_error.date_range",
        ))


def _jd_year(jd: float) -> int:
    # civil year near a Julian date; only used for the error message
    return int(2000 + (jd - J2000_JD) / 365.25)


def compute_big_three(
    query: BirthQuery,
    *,
    ephemeris: Optional[Ephemeris] = None,
    locator: Optional[LocationResolver] = None,
    geocoder: Optional[Geocoder] = None,
    lang: str = DEFAULT_SIGN_LANG,
) -> ChartResult:
    """
    Sun sign always; moon and ascendant only when the birth time is known.

    The date and time are checked before any location lookup, so a malformed
    date never reaches the geocoder. The location comes from `locator` when
    given, otherwise coordinates on the query win over its place name. Dates
    the ephemeris does not cover raise InvalidDateTime. Any failure aborts
    the whole chart.
    """
    civil = parse_civil(query.date, query.time)
    eph = ephemeris or get_default_adapter()
    loc = (locator or resolver_for(query.latitude, query.longitude, query.place, geocoder=geocoder)).resolve()
    instant = to_instant(civil, loc.timezone)
    _check_coverage(eph, instant.jd_tt, civil.local)

    sun_lon = eph.apparent_ecliptic_longitude("Sun", instant.utc)
    sun_sign = sign_from_longitude(sun_lon, lang)

    moon_sign: Optional[str] = None
    asc_sign: Optional[str] = None
    if instant.time_known:
        moon_lon = eph.apparent_ecliptic_longitude("Moon", instant.utc)
        asc_lon = ascendant_longitude(instant.utc, loc.latitude, loc.longitude, eph)
        moon_sign = sign_from_longitude(moon_lon, lang)
        asc_sign = sign_from_longitude(asc_lon, lang)
        log.debug("chart %s: sun=%.4f moon=%.4f asc=%.4f", instant.utc.isoformat(), sun_lon, moon_lon, asc_lon)
    else:
        log.debug("chart %s: sun=%.4f (time unknown)", instant.utc.isoformat(), sun_lon)

    return ChartResult(
        timezone=loc.timezone,
        sun_sign=sun_sign,
        moon_sign=moon_sign,
        ascendant_sign=asc_sign,
        latitude=loc.latitude,
        longitude=loc.longitude,
        utc=instant.utc,
        warnings=list(instant.warnings),
    )
