# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""Tests for Julian dates, epochs and sidereal time."""
import math
from datetime import datetime, timedelta, timezone

import pytest

from satephem.domain.errors import InvalidEpochError
from satephem.domain.time_systems import (
    J2000_JD,
    datetime_to_jd,
    epoch_to_jd,
    equation_of_equinoxes,
    gast_rad,
    gmst_rad,
    jd_to_datetime,
    julian_centuries,
    mean_obliquity,
    normalize_radians,
    nutation_angles,
)

_ARCSEC = math.pi / (180.0 * 3600.0)

# Meeus, Astronomical Algorithms, examples 12.a and 22.a: 1987 April 10, 0h
MEEUS_JD = 2446895.5


# ── Angle reduction ──────────────────────────────────────────────────

class TestNormalizeRadians:

    def test_negative_wraps(self):
        assert normalize_radians(-0.1) == pytest.approx(2.0 * math.pi - 0.1)

    def test_large_wraps(self):
        assert normalize_radians(7.0) == pytest.approx(7.0 - 2.0 * math.pi)

    def test_range(self):
        for angle in (-100.0, -2.0 * math.pi, 0.0, 3.0, 2.0 * math.pi, 1.0e4):
            value = normalize_radians(angle)
            assert 0.0 <= value < 2.0 * math.pi


# ── Julian dates ─────────────────────────────────────────────────────

class TestJulianDate:

    def test_j2000(self):
        assert datetime_to_jd(datetime(2000, 1, 1, 12, tzinfo=timezone.utc)) == J2000_JD

    def test_sputnik(self):
        # Meeus example 7.a: 1957 October 4.81
        dt = datetime(1957, 10, 4, tzinfo=timezone.utc) + timedelta(days=0.81)
        assert datetime_to_jd(dt) == pytest.approx(2436116.31, abs=1e-8)

    def test_naive_is_utc(self):
        naive = datetime(2024, 3, 20, 3, 6)
        aware = datetime(2024, 3, 20, 3, 6, tzinfo=timezone.utc)
        assert datetime_to_jd(naive) == datetime_to_jd(aware)

    def test_offset_converted(self):
        madrid = timezone(timedelta(hours=2))
        local = datetime(2024, 6, 1, 14, 0, tzinfo=madrid)
        utc = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
        assert datetime_to_jd(local) == pytest.approx(datetime_to_jd(utc), abs=1e-9)

    def test_inverse(self):
        dt = datetime(2011, 10, 27, 9, 24, 38, 250000, tzinfo=timezone.utc)
        back = jd_to_datetime(datetime_to_jd(dt))
        assert abs((back - dt).total_seconds()) < 1e-3

    def test_inverse_is_aware_utc(self):
        assert jd_to_datetime(J2000_JD).tzinfo is timezone.utc

    def test_julian_centuries(self):
        assert julian_centuries(J2000_JD + 36525.0) == pytest.approx(1.0)


# ── Element-set epochs ───────────────────────────────────────────────

class TestEpochToJd:

    def test_day_one_is_january_first(self):
        assert epoch_to_jd(2000, 1.5) == pytest.approx(J2000_JD)

    def test_leap_day_accepted(self):
        assert epoch_to_jd(2024, 366.5) == pytest.approx(
            datetime_to_jd(datetime(2024, 12, 31, 12, tzinfo=timezone.utc))
        )

    def test_year_out_of_range(self):
        with pytest.raises(InvalidEpochError, match="year"):
            epoch_to_jd(1850, 10.0)

    def test_day_out_of_range(self):
        with pytest.raises(InvalidEpochError):
            epoch_to_jd(2023, 367.5)

    def test_negative_day(self):
        with pytest.raises(InvalidEpochError):
            epoch_to_jd(2023, -1.0)


# ── Sidereal time and nutation ───────────────────────────────────────

class TestSiderealTime:

    def test_gmst_at_0h(self):
        # 13h10m46.3668s
        expected = math.radians((13.0 + 10.0 / 60.0 + 46.3668 / 3600.0) * 15.0)
        assert gmst_rad(MEEUS_JD) == pytest.approx(expected, abs=1e-7)

    def test_gmst_at_arbitrary_time(self):
        # Example 12.b: 19h21m00s UT gives 8h34m57.0896s
        jd = MEEUS_JD + (19.0 + 21.0 / 60.0) / 24.0
        expected = math.radians((8.0 + 34.0 / 60.0 + 57.0896 / 3600.0) * 15.0)
        assert gmst_rad(jd) == pytest.approx(expected, abs=1e-7)

    def test_gmst_advances_faster_than_solar_day(self):
        diff = normalize_radians(gmst_rad(J2000_JD + 1.0) - gmst_rad(J2000_JD))
        assert diff == pytest.approx(math.radians(0.98564736629), abs=1e-9)

    def test_nutation(self):
        dpsi, deps = nutation_angles(MEEUS_JD)
        assert dpsi / _ARCSEC == pytest.approx(-3.788, abs=0.5)
        assert deps / _ARCSEC == pytest.approx(9.443, abs=0.5)

    def test_mean_obliquity(self):
        expected = 23.0 + 26.0 / 60.0 + 27.407 / 3600.0
        assert math.degrees(mean_obliquity(MEEUS_JD)) == pytest.approx(expected, abs=1e-5)

    def test_equation_of_equinoxes(self):
        # Apparent sidereal time 13h10m46.1351s, i.e. -0.2317 s of time
        assert equation_of_equinoxes(MEEUS_JD) / _ARCSEC == pytest.approx(-0.2317 * 15.0, abs=0.5)

    def test_gast_is_gmst_plus_equation(self):
        jd = 2460000.25
        assert gast_rad(jd) == pytest.approx(
            normalize_radians(gmst_rad(jd) + equation_of_equinoxes(jd)), abs=1e-12
        )
