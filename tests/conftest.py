# tests/conftest.py
from __future__ import annotations

"""
Pytest configuration for the big-three suite.

- Registers Hypothesis profiles for local dev and CI.
- Freezes the process TZ to UTC (zones are always passed explicitly).
- Fake ephemeris / geocoder fixtures so the core and the HTTP layer run
  without kernels or network (see tests/fakes.py).
- The real Skyfield adapter, skipping when no kernel can be loaded.
"""

import os
from datetime import datetime, timezone

import pytest
from hypothesis import settings, HealthCheck

from fakes import FakeEphemeris, FakeGeocoder


# ──────────────────────────────────────────────────────────────────────────────
# Hypothesis profiles
# ──────────────────────────────────────────────────────────────────────────────
settings.register_profile(
    "dev",
    settings(
        deadline=None,           # avoid flaky timeouts on slower runners
        max_examples=60,         # fast local runs
        suppress_health_check=[HealthCheck.too_slow],
    ),
)
settings.register_profile(
    "ci",
    settings(
        deadline=None,
        max_examples=120,        # a bit more coverage in CI
        suppress_health_check=[HealthCheck.too_slow],
    ),
)

_profile = (
    "ci"
    if (os.getenv("CI") or os.getenv("GITHUB_ACTIONS"))
    else os.getenv("HYPOTHESIS_PROFILE", "dev")
)
settings.load_profile(_profile)


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "kernel: needs a loadable JPL kernel (skipped otherwise)")
    config.addinivalue_line("filterwarnings", "ignore::DeprecationWarning")


def pytest_report_header(config: pytest.Config) -> str:
    return f"Hypothesis profile: '{_profile}'"


# ──────────────────────────────────────────────────────────────────────────────
# Global fixtures
# ──────────────────────────────────────────────────────────────────────────────

@pytest.fixture(scope="session", autouse=True)
def freeze_tz_env():
    """
    Ensure the process TZ is UTC so nothing accidentally depends on the
    machine's local zone.
    """
    prev = os.environ.get("TZ")
    os.environ["TZ"] = "UTC"
    try:
        yield
    finally:
        if prev is None:
            os.environ.pop("TZ", None)
        else:
            os.environ["TZ"] = prev


@pytest.fixture
def fake_ephemeris() -> FakeEphemeris:
    return FakeEphemeris()


@pytest.fixture
def fake_geocoder() -> FakeGeocoder:
    return FakeGeocoder()


@pytest.fixture
def app(fake_ephemeris, fake_geocoder):
    from bigthree.main import create_app
    app = create_app(ephemeris=fake_ephemeris, geocoder=fake_geocoder)
    app.testing = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture(scope="session")
def real_ephemeris():
    """Skyfield adapter with a real kernel; skip when none can be loaded (offline CI)."""
    from bigthree.core.ephemeris_adapter import Config, EphemerisAdapter, EphemerisError
    adapter = EphemerisAdapter(Config())
    probe = datetime(2000, 1, 1, 12, tzinfo=timezone.utc)
    try:
        adapter.apparent_ecliptic_longitude("Sun", probe)
    except EphemerisError as e:
        pytest.skip(f"ephemeris kernel unavailable: {e}")
    return adapter
