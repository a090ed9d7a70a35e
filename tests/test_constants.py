# tests/test_constants.py
from __future__ import annotations

import pytest
from hypothesis import given, strategies as st

from bigthree.core.constants import (
    SIGNS_EN,
    SIGNS_FR,
    sign_from_longitude,
    sign_index,
    wrap_deg,
)

finite = st.floats(min_value=-1e9, max_value=1e9, allow_nan=False, allow_infinity=False)

# ─────────────────────────────────────────────────────────────────────────────
# wrap_deg
# ─────────────────────────────────────────────────────────────────────────────

@given(x=finite)
def test_wrap_deg_range(x) -> None:
    v = wrap_deg(x)
    assert 0.0 <= v < 360.0

@given(x=st.floats(min_value=-1e4, max_value=1e4, allow_nan=False, allow_infinity=False),
       k=st.integers(min_value=-50, max_value=50))
def test_wrap_deg_periodic(x, k) -> None:
    a = wrap_deg(x)
    b = wrap_deg(x + 360.0 * k)
    # float addition of 360k loses a few ulps; compare on the circle
    d = min(abs(a - b), 360.0 - abs(a - b))
    assert d < 1e-7

def test_wrap_deg_negative_and_tiny() -> None:
    assert wrap_deg(-30.0) == 330.0
    assert wrap_deg(720.0) == 0.0
    assert wrap_deg(-1e-15) == 0.0  # would round to 360.0 without the fold
    assert wrap_deg(-360.0) == 0.0

# ─────────────────────────────────────────────────────────────────────────────
# sign mapping
# ─────────────────────────────────────────────────────────────────────────────

def test_sign_boundaries_half_open() -> None:
    assert sign_from_longitude(0.0) == SIGNS_FR[0] == "Bélier"
    assert sign_from_longitude(29.999999) == SIGNS_FR[0]
    assert sign_from_longitude(30.0) == SIGNS_FR[1] == "Taureau"
    assert sign_from_longitude(359.999) == SIGNS_FR[11] == "Poissons"
    assert sign_from_longitude(360.0) == SIGNS_FR[0]
    assert sign_from_longitude(-0.001) == SIGNS_FR[11]

def test_each_sector_maps_in_order() -> None:
    for k in range(12):
        assert sign_index(30.0 * k) == k
        assert sign_index(30.0 * k + 15.0) == k
        assert sign_index(30.0 * k + 29.9999) == k

@given(lon=finite)
def test_sign_total_and_deterministic(lon) -> None:
    k = sign_index(lon)
    assert 0 <= k <= 11
    assert sign_from_longitude(lon) == sign_from_longitude(lon)
    assert sign_from_longitude(lon) in SIGNS_FR

def test_english_table() -> None:
    assert sign_from_longitude(280.0, "en") == "Capricorn"
    assert sign_from_longitude(280.0, "EN") == "Capricorn"
    assert sign_from_longitude(280.0) == "Capricorne"
    assert len(SIGNS_EN) == len(SIGNS_FR) == 12

def test_unknown_language_rejected() -> None:
    with pytest.raises(ValueError):
        sign_from_longitude(10.0, "de")
