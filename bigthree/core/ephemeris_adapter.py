# bigthree/core/ephemeris_adapter.py
# -----------------------------------------------------------------------------
# Ephemeris Adapter (Skyfield + JPL DE kernel)
#
# Highlights
# • Deterministic Config + Adapter class (module API delegates to a default one)
# • Apparent geocentric ecliptic-of-date longitude for the Sun and the Moon
# • GMST and JD(UT1) straight from Skyfield's Time object
# • Kernel coverage (TDB Julian dates) so callers can reject dates it lacks
# • Thread-safe lazy kernel bootstrap; errors categorized by stage
# -----------------------------------------------------------------------------
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Protocol, Tuple
import logging
import math
import os
import threading

from skyfield.api import Loader, load_file
from skyfield.framelib import ecliptic_frame

from bigthree.core.constants import LUMINARIES, wrap_deg

log = logging.getLogger(__name__)

# ─────────────────────────────────────────────────────────────────────────────
# Constants / environment (converted into Config defaults)
# ─────────────────────────────────────────────────────────────────────────────
EPHEMERIS_NAME_DEFAULT = os.getenv("BIGTHREE_EPHEMERIS_NAME", "de440s.bsp")
EPHEMERIS_PATH_ENV = os.getenv("BIGTHREE_EPHEMERIS") or None
EPHEMERIS_DIR_DEFAULT = os.getenv("BIGTHREE_EPHEMERIS_DIR", "/tmp/skyfield-data")

_BODY_KEYS: Dict[str, str] = {
    "Sun": "sun",
    "Moon": "moon",
}
_BODY_CANON = {k.lower(): k for k in LUMINARIES}

# ─────────────────────────────────────────────────────────────────────────────
# Exceptions
# ─────────────────────────────────────────────────────────────────────────────
class EphemerisError(RuntimeError):
    """Categorized error for adapter callers (maps to an internal error)."""
    def __init__(self, stage: str, message: str, **context: Any):
        super().__init__(f"{stage}: {message}")
        self.stage = stage
        self.message = message
        self.context = context

# ─────────────────────────────────────────────────────────────────────────────
# Capability interface
# ─────────────────────────────────────────────────────────────────────────────
class Ephemeris(Protocol):
    def apparent_ecliptic_longitude(self, body: str, when: datetime) -> float: ...
    def sidereal_time_hours(self, when: datetime) -> float: ...
    def julian_date(self, when: datetime) -> float: ...
    def coverage_jd(self) -> Tuple[float, float]: ...

# ─────────────────────────────────────────────────────────────────────────────
# Adapter configuration
# ─────────────────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class Config:
    kernel_name: str = EPHEMERIS_NAME_DEFAULT
    kernel_path: Optional[str] = EPHEMERIS_PATH_ENV   # explicit file wins over download
    data_dir: str = EPHEMERIS_DIR_DEFAULT

# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────
def _canon_body(name: str) -> str:
    canon = _BODY_CANON.get((name or "").strip().lower())
    if canon is None:
        raise EphemerisError("validation", f"unsupported body '{name}'", supported=list(LUMINARIES))
    return canon

def _as_utc(when: datetime) -> datetime:
    if not isinstance(when, datetime) or when.tzinfo is None:
        raise EphemerisError("validation", "instant must be a timezone-aware datetime")
    return when.astimezone(timezone.utc)

def _looks_like_lfs_pointer(path: str) -> bool:
    try:
        if os.path.getsize(path) <= 512:
            with open(path, "rb") as f:
                head = f.read(128)
            return head.startswith(b"version https://git-lfs.github.com/spec/v1")
    except OSError:
        pass
    return False

# ─────────────────────────────────────────────────────────────────────────────
# Adapter class
# ─────────────────────────────────────────────────────────────────────────────
class EphemerisAdapter:
    def __init__(self, cfg: Optional[Config] = None):
        self.cfg = cfg or Config()
        self._lock = threading.Lock()
        self._ts = None
        self._kernel = None
        self._kernel_label: Optional[str] = None

    # ---- kernel I/O ---------------------------------------------------------
    def _bootstrap(self):
        if self._kernel is not None and self._ts is not None:
            return self._kernel, self._ts
        with self._lock:
            if self._kernel is None or self._ts is None:
                path = self.cfg.kernel_path
                try:
                    if path:
                        if not os.path.isfile(path):
                            raise EphemerisError("kernel", f"kernel file not found: {path}")
                        if _looks_like_lfs_pointer(path):
                            raise EphemerisError("kernel", f"kernel looks like a Git LFS pointer: {path}")
                        loader = Loader(os.path.dirname(os.path.abspath(path)))
                        kernel = load_file(path)
                        label = os.path.basename(path)
                    else:
                        os.makedirs(self.cfg.data_dir, exist_ok=True)
                        loader = Loader(self.cfg.data_dir)
                        kernel = loader(self.cfg.kernel_name)
                        label = self.cfg.kernel_name
                    ts = loader.timescale()
                except EphemerisError:
                    raise
                except Exception as e:
                    raise EphemerisError("kernel", "Skyfield failed to load kernel", error=str(e)) from e
                self._kernel, self._ts, self._kernel_label = kernel, ts, label
                log.info("ephemeris kernel loaded: %s", label)
        return self._kernel, self._ts

    def kernel_name(self) -> str:
        return self._kernel_label or os.path.basename(self.cfg.kernel_path or self.cfg.kernel_name)

    def _time(self, when: datetime):
        _, ts = self._bootstrap()
        return ts.from_datetime(_as_utc(when))

    # ---- public computations ------------------------------------------------
    def apparent_ecliptic_longitude(self, body: str, when: datetime) -> float:
        """Geocentric apparent (light-time + aberration) longitude, ecliptic of date, degrees."""
        name = _canon_body(body)
        kernel, _ = self._bootstrap()
        t = self._time(when)
        try:
            apparent = kernel["earth"].at(t).observe(kernel[_BODY_KEYS[name]]).apparent()
            _lat, lon, _dist = apparent.frame_latlon(ecliptic_frame)
            out = float(lon.degrees)
        except EphemerisError:
            raise
        except Exception as e:
            raise EphemerisError("compute", f"apparent longitude failed for {name}", error=str(e)) from e
        if not math.isfinite(out):
            raise EphemerisError("compute", f"non-finite longitude for {name}")
        return wrap_deg(out)

    def sidereal_time_hours(self, when: datetime) -> float:
        """Greenwich Mean Sidereal Time in hours."""
        try:
            return float(self._time(when).gmst)
        except EphemerisError:
            raise
        except Exception as e:
            raise EphemerisError("compute", "GMST failed", error=str(e)) from e

    def julian_date(self, when: datetime) -> float:
        """Julian date on the UT1 scale."""
        try:
            return float(self._time(when).ut1)
        except EphemerisError:
            raise
        except Exception as e:
            raise EphemerisError("compute", "Julian date failed", error=str(e)) from e

    def coverage_jd(self) -> Tuple[float, float]:
        """(first, last) TDB Julian date served by every segment of the kernel."""
        kernel, _ = self._bootstrap()
        try:
            spans = [(s.spk_segment.start_jd, s.spk_segment.end_jd) for s in kernel.segments]
        except AttributeError as e:
            raise EphemerisError("kernel", "kernel does not report segment coverage", error=str(e)) from e
        if not spans:
            raise EphemerisError("kernel", "kernel has no segments")
        return max(a for a, _ in spans), min(b for _, b in spans)

    def ephemeris_diagnostics(self) -> Dict[str, Any]:
        return {
            "kernel": self.kernel_name(),
            "kernel_path": self.cfg.kernel_path,
            "data_dir": self.cfg.data_dir,
            "loaded": self._kernel is not None,
            "bodies": list(LUMINARIES),
        }

# ─────────────────────────────────────────────────────────────────────────────
# Public module-level API (delegates to a process-global adapter)
# ─────────────────────────────────────────────────────────────────────────────
_default_adapter: Optional[EphemerisAdapter] = None
_LOCK_DEFAULT = threading.Lock()

def configure_default_adapter(cfg: Config) -> EphemerisAdapter:
    global _default_adapter
    with _LOCK_DEFAULT:
        _default_adapter = EphemerisAdapter(cfg)
    return _default_adapter

def get_default_adapter() -> EphemerisAdapter:
    global _default_adapter
    if _default_adapter is None:
        with _LOCK_DEFAULT:
            if _default_adapter is None:
                _default_adapter = EphemerisAdapter(Config())
    return _default_adapter

__all__ = [
    "Config",
    "Ephemeris",
    "EphemerisAdapter",
    "EphemerisError",
    "configure_default_adapter",
    "get_default_adapter",
]
