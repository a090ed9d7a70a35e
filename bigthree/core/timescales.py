# bigthree/core/timescales.py
# -----------------------------------------------------------------------------
# Birth-instant resolver (zoneinfo for civil time, ERFA for TT)
#
# Public API:
#   parse_civil(date_str, time_str)       -> CivilTime    (no zone needed)
#   to_instant(civil, tz_name)            -> ResolvedInstant
#   resolve_instant(date_str, time_str, tz_name) = to_instant(parse_civil(...))
#
# Guarantees:
#   • Local wall clock interpreted in the IANA zone with its historical rules.
#   • Unknown time (absent / no colon) → local 12:00, time_known=False.
#   • Non-existent wall clock (spring-forward gap) rejected.
#   • Ambiguous wall clock (fall-back) → first occurrence (fold=0), flagged.
#   • Wall clocks whose UTC equivalent leaves datetime's range rejected.
#   • ERFA chain: UTC (calendar → JD) → TAI → TT (dtf2d → utctai → taitt).
#   • Never reads the current clock.
# -----------------------------------------------------------------------------

from __future__ import annotations

from dataclasses import dataclass, asdict, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import math
import warnings as _warnings

import erfa  # pyERFA

from bigthree.core.geo import LocationError
from bigthree.core.validators import (
    ValidationError,
    _err,
    has_clock_time,
    parse_date,
    parse_time_hm,
)

__all__ = [
    "InvalidDateTime",
    "CivilTime",
    "ResolvedInstant",
    "DEFAULT_LOCAL_HOUR",
    "parse_civil",
    "to_instant",
    "resolve_instant",
]

DEFAULT_LOCAL_HOUR = 12

# ───────────────────────────── Errors ─────────────────────────────

class InvalidDateTime(ValidationError):
    """Date/time malformed, or not a real instant in the resolved zone."""
    code = "invalid_datetime"

# ───────────────────────────── Dataclasses ─────────────────────────────

@dataclass(frozen=True)
class CivilTime:
    local: datetime             # naive wall clock
    time_known: bool

@dataclass(frozen=True)
class ResolvedInstant:
    utc: datetime               # aware, tzinfo=UTC
    jd_tt: float
    timezone: str
    tz_offset_seconds: int
    time_known: bool
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["utc"] = self.utc.isoformat()
        return out

# ───────────────────────────── Parsing ─────────────────────────────

def parse_civil(date_str: Any, time_str: Any) -> CivilTime:
    """Naive local wall clock + time_known flag; InvalidDateTime on any parse failure."""
    try:
        d = parse_date(date_str)
    except ValidationError as e:
        raise InvalidDateTime(e.errors()) from e

    time_known = has_clock_time(time_str)
    if time_known:
        try:
            hh, mm, ss = parse_time_hm(time_str)
        except ValidationError as e:
            raise InvalidDateTime(e.errors()) from e
    else:
        hh, mm, ss = DEFAULT_LOCAL_HOUR, 0, 0

    return CivilTime(datetime(d.year, d.month, d.day, hh, mm, ss), time_known)

# ───────────────────────────── Time zone / UTC helpers ─────────────────────────────

def _zone(tz_name: str) -> ZoneInfo:
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise LocationError(_err("tz", f"Unknown IANA time zone '{tz_name}'")) from e

def _local_to_utc(naive_local: datetime, z: ZoneInfo) -> Tuple[datetime, int, List[str]]:
    """
    Convert a naive local wall clock to aware UTC.
    Rejects wall clocks skipped by a DST transition; flags ambiguous ones.
    """
    warnings: List[str] = []
    aware0 = naive_local.replace(tzinfo=z, fold=0)
    off0 = aware0.utcoffset()
    if off0 is None:
        raise InvalidDateTime(_err("time", f"time zone '{z.key}' has no UTC offset"))

    try:
        aware_utc = aware0.astimezone(timezone.utc)
        back = aware_utc.astimezone(z).replace(tzinfo=None)
    except OverflowError as e:
        # year 1 / year 9999 pushed past datetime's range by the zone offset
        raise InvalidDateTime(_err(
            "date",
            f"{naive_local.isoformat(timespec='minutes')} in {z.key} is outside the supported date range",
            "value_error.date",
        )) from e
    if back != naive_local:
        raise InvalidDateTime(_err(
            "time",
            f"{naive_local.isoformat(timespec='minutes')} does not exist in {z.key} (DST gap)",
            "value_error.dst_gap",
        ))

    off1 = naive_local.replace(tzinfo=z, fold=1).utcoffset()
    if off1 is not None and off1 != off0:
        warnings.append("dst_ambiguous")
    return aware_utc, int(off0.total_seconds()), warnings

def _jd_tt(utc: datetime) -> Tuple[float, List[str]]:
    """JD(TT) for an aware UTC datetime via ERFA; collects ERFA warnings."""
    notes: List[str] = []
    sec = utc.second + utc.microsecond / 1e6
    with _warnings.catch_warnings(record=True) as caught:
        _warnings.simplefilter("always", erfa.ErfaWarning)
        try:
            utc1, utc2 = erfa.dtf2d("UTC", utc.year, utc.month, utc.day, utc.hour, utc.minute, sec)
            tai1, tai2 = erfa.utctai(utc1, utc2)
            tt1, tt2 = erfa.taitt(tai1, tai2)
        except erfa.ErfaError as e:
            raise InvalidDateTime(_err("date", f"date outside supported range: {e}")) from e
    if any(issubclass(w.category, erfa.ErfaWarning) for w in caught):
        notes.append("erfa_dubious_year")
    return math.fsum((float(tt1), float(tt2))), notes

# ───────────────────────────── Public API ─────────────────────────────

def to_instant(civil: CivilTime, tz_name: str) -> ResolvedInstant:
    """Place an already-parsed wall clock in `tz_name`; LocationError for an unknown zone."""
    z = _zone(tz_name)
    aware_utc, tz_off, warnings = _local_to_utc(civil.local, z)
    jd_tt, notes = _jd_tt(aware_utc)
    warnings.extend(notes)
    if not civil.time_known:
        warnings.append("time_unknown_default_noon")

    return ResolvedInstant(
        utc=aware_utc,
        jd_tt=jd_tt,
        timezone=str(tz_name),
        tz_offset_seconds=tz_off,
        time_known=civil.time_known,
        warnings=warnings,
    )

def resolve_instant(date_str: Any, time_str: Optional[str], tz_name: str) -> ResolvedInstant:
    """
    Resolve a local civil birth date (+ optional 'HH:MM') in `tz_name` to UTC.

    Raises InvalidDateTime for malformed/impossible inputs and LocationError
    for an unknown zone.
    """
    return to_instant(parse_civil(date_str, time_str), tz_name)
