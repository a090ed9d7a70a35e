# bigthree/core/astronomy.py
"""
Angles engine for the big-three chart.

- mean obliquity of the ecliptic (IAU 1980 / Meeus 22.2, no nutation)
- GMST hours → degrees, local sidereal time (east-positive longitude)
- ascendant ecliptic longitude, two-argument arctangent form

Everything here is pure math over floats; the only collaborator is the
ephemeris passed to `ascendant_longitude` (GMST + Julian date).
"""
from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
import math

from bigthree.core.constants import wrap_deg
from bigthree.core.validators import ValidationError, _err

if TYPE_CHECKING:  # pragma: no cover
    from bigthree.core.ephemeris_adapter import Ephemeris

__all__ = [
    "AscendantDomainError",
    "J2000_JD",
    "JULIAN_CENTURY_D",
    "POLAR_ABSOLUTE_LIMIT_DEG",
    "julian_centuries",
    "mean_obliquity_deg",
    "gmst_deg",
    "local_sidereal_deg",
    "ascendant_from_lst",
    "ascendant_longitude",
]

J2000_JD = 2451545.0
JULIAN_CENTURY_D = 36525.0
POLAR_ABSOLUTE_LIMIT_DEG = 89.999999  # tan(lat) diverges at the poles
_ATAN2_ZERO_TOL = 1e-12


class AscendantDomainError(ValidationError):
    """Ascendant undefined for the requested latitude/time."""
    code = "domain_error"


def julian_centuries(jd: float) -> float:
    return (float(jd) - J2000_JD) / JULIAN_CENTURY_D


def mean_obliquity_deg(jd: float) -> float:
    """
    Mean obliquity ε₀ in degrees:
      ε₀″ = 84381.448 − 46.8150 T − 0.00059 T² + 0.001813 T³
    with T in Julian centuries from J2000.0.
    """
    T = julian_centuries(jd)
    eps_arcsec = 84381.448 - 46.8150 * T - 0.00059 * T * T + 0.001813 * T * T * T
    return eps_arcsec / 3600.0


def gmst_deg(gmst_hours: float) -> float:
    return wrap_deg(float(gmst_hours) * 15.0)


def local_sidereal_deg(gmst_degrees: float, longitude_deg: float) -> float:
    return wrap_deg(float(gmst_degrees) + float(longitude_deg))


def ascendant_from_lst(lst_deg: float, latitude_deg: float, obliquity_deg: float) -> float:
    """
    Ecliptic longitude of the ascendant (degrees, [0, 360)).

      λ = atan2( cos θ, −(sin θ·cos ε + tan φ·sin ε) )

    θ local sidereal time, φ geographic latitude, ε obliquity.
    """
    lat = float(latitude_deg)
    if not math.isfinite(lat) or abs(lat) >= POLAR_ABSOLUTE_LIMIT_DEG:
        raise AscendantDomainError(_err(
            "lat", f"ascendant undefined at latitude {latitude_deg} (|lat| must be < {POLAR_ABSOLUTE_LIMIT_DEG})",
        ))

    th = math.radians(float(lst_deg))
    phi = math.radians(lat)
    eps = math.radians(float(obliquity_deg))

    y = math.cos(th)
    x = -(math.sin(th) * math.cos(eps) + math.tan(phi) * math.sin(eps))
    if abs(x) < _ATAN2_ZERO_TOL and abs(y) < _ATAN2_ZERO_TOL:
        # ecliptic coincides with the horizon
        raise AscendantDomainError(_err("lat", "ascendant undefined: ecliptic lies on the horizon"))

    lam = math.degrees(math.atan2(y, x))
    if not math.isfinite(lam):
        raise AscendantDomainError(_err("lat", "ascendant computation produced a non-finite value"))
    return wrap_deg(lam)


def ascendant_longitude(
    when: datetime,
    latitude_deg: float,
    longitude_deg: float,
    ephemeris: "Ephemeris",
) -> float:
    """Ascendant for a UTC instant and an observer (east-positive longitude)."""
    gmst = gmst_deg(ephemeris.sidereal_time_hours(when))
    lst = local_sidereal_deg(gmst, longitude_deg)
    eps = mean_obliquity_deg(ephemeris.julian_date(when))
    return ascendant_from_lst(lst, latitude_deg, eps)
