# -*- coding: utf-8 -*-
"""
Big three — core constants & small helpers

Purpose
-------
Single source of truth for:
- the ordered zodiac sign tables (French default, English alternative)
- luminaries handled by the ephemeris adapter
- tiny angle helpers (wrap / deg↔rad)
- longitude → sign lookup

Design
------
- Pure-Python, no external dependencies.
- Safe to import from any core module.
- Tables are tuples; functions are pure.
"""

from __future__ import annotations
from typing import Dict, Tuple
import math

__all__ = [
    # bodies
    "LUMINARIES",
    # signs
    "SIGNS_FR", "SIGNS_EN", "SIGN_TABLES", "DEFAULT_SIGN_LANG", "SIGN_WIDTH_DEG",
    # helpers
    "wrap_deg", "sign_index", "sign_from_longitude",
]

# ── bodies ───────────────────────────────────────────────────────────────────
LUMINARIES: Tuple[str, ...] = ("Sun", "Moon")

# ── zodiac ───────────────────────────────────────────────────────────────────
# Index 0 starts at 0° ecliptic longitude (vernal equinox).
SIGNS_FR: Tuple[str, ...] = (
    "Bélier", "Taureau", "Gémeaux", "Cancer", "Lion", "Vierge",
    "Balance", "Scorpion", "Sagittaire", "Capricorne", "Verseau", "Poissons",
)
SIGNS_EN: Tuple[str, ...] = (
    "Aries", "Taurus", "Gemini", "Cancer", "Leo", "Virgo",
    "Libra", "Scorpio", "Sagittarius", "Capricorn", "Aquarius", "Pisces",
)
SIGN_TABLES: Dict[str, Tuple[str, ...]] = {"fr": SIGNS_FR, "en": SIGNS_EN}
DEFAULT_SIGN_LANG: str = "fr"
SIGN_WIDTH_DEG: float = 30.0

# ── tiny angle helpers (no external imports) ──────────────────────────────────
def wrap_deg(x: float) -> float:
    """
    Wrap any finite angle to [0, 360).
    """
    x = math.fmod(float(x), 360.0)
    if x < 0.0:
        x += 360.0
        # -1e-15 + 360.0 rounds to 360.0
        if x >= 360.0:
            x = 0.0
    return x

# ── sign lookup ──────────────────────────────────────────────────────────────
def sign_index(lon_deg: float) -> int:
    """
    Index 0..11 of the 30° sector [30k, 30(k+1)) containing lon_deg.
    """
    k = int(wrap_deg(lon_deg) // SIGN_WIDTH_DEG)
    return min(max(k, 0), 11)

def sign_from_longitude(lon_deg: float, lang: str = DEFAULT_SIGN_LANG) -> str:
    """
    Zodiac sign name for an ecliptic longitude.

    Raises ValueError for an unknown language key.
    """
    table = SIGN_TABLES.get((lang or DEFAULT_SIGN_LANG).strip().lower())
    if table is None:
        raise ValueError(f"unknown sign language '{lang}' (expected one of {sorted(SIGN_TABLES)})")
    return table[sign_index(lon_deg)]
