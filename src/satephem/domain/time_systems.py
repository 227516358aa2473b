# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Julian dates, element-set epochs, and Greenwich sidereal time.

All times are Julian days on the UTC scale; UT1 - UTC and TT - UTC are
below the accuracy of the analytic theories that consume these values
and are ignored.
"""
import math
from datetime import datetime, timedelta, timezone

import numpy as np

from satephem.domain.errors import InvalidEpochError

J2000_JD: float = 2451545.0
_SECONDS_PER_DAY = 86400.0
_ARCSEC_TO_RAD = math.pi / (180.0 * 3600.0)

# Principal terms of the IAU 1980 nutation series (Meeus, Table 22.A).
# Columns: multipliers of D, M, M', F, Omega.
_NUTATION_MULTIPLIERS = np.array([
    [0, 0, 0, 0, 1],
    [-2, 0, 0, 2, 2],
    [0, 0, 0, 2, 2],
    [0, 0, 0, 0, 2],
    [0, 1, 0, 0, 0],
    [0, 0, 1, 0, 0],
    [-2, 1, 0, 2, 2],
    [0, 0, 0, 2, 1],
    [0, 0, 1, 2, 2],
    [-2, -1, 0, 2, 2],
], dtype=float)

# Columns: dpsi sine coefficient, its T rate, deps cosine coefficient, its T rate
# (units of 0.0001 arcsec).
_NUTATION_COEFFICIENTS = np.array([
    [-171996.0, -174.2, 92025.0, 8.9],
    [-13187.0, -1.6, 5736.0, -3.1],
    [-2274.0, -0.2, 977.0, -0.5],
    [2062.0, 0.2, -895.0, 0.5],
    [1426.0, -3.4, 54.0, -0.1],
    [712.0, 0.1, -7.0, 0.0],
    [-517.0, 1.2, 224.0, -0.6],
    [-386.0, -0.4, 200.0, 0.0],
    [-301.0, 0.0, 129.0, -0.1],
    [217.0, -0.5, -95.0, 0.3],
])


def normalize_radians(angle: float) -> float:
    """Reduce an angle to [0, 2π)."""
    two_pi = 2.0 * math.pi
    value = math.fmod(angle, two_pi)
    if value < 0.0:
        value += two_pi
    return value


def datetime_to_jd(dt: datetime) -> float:
    """Convert a UTC datetime to Julian Date.

    Uses the standard algorithm (Meeus, Astronomical Algorithms, Ch. 7).
    Naive datetimes are taken as UTC.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    else:
        dt = dt.astimezone(timezone.utc)

    y = dt.year
    m = dt.month
    d = (dt.day
         + dt.hour / 24.0
         + dt.minute / 1440.0
         + dt.second / _SECONDS_PER_DAY
         + dt.microsecond / 86400_000_000.0)

    if m <= 2:
        y -= 1
        m += 12

    A = y // 100
    B = 2 - A + A // 4

    return (math.floor(365.25 * (y + 4716))
            + math.floor(30.6001 * (m + 1))
            + d + B - 1524.5)


def jd_to_datetime(jd: float) -> datetime:
    """Convert a Julian Date back to an aware UTC datetime (Meeus Ch. 7 inverse)."""
    jd_plus = jd + 0.5
    Z = int(jd_plus)
    F = jd_plus - Z

    if Z < 2299161:
        A = Z
    else:
        alpha = int((Z - 1867216.25) / 36524.25)
        A = Z + 1 + alpha - alpha // 4

    B = A + 1524
    C = int((B - 122.1) / 365.25)
    D = int(365.25 * C)
    E = int((B - D) / 30.6001)

    day_frac = B - D - int(30.6001 * E) + F
    month = E - 1 if E < 14 else E - 13
    year = C - 4716 if month > 2 else C - 4715

    day = int(day_frac)
    total_us = int(round((day_frac - day) * _SECONDS_PER_DAY * 1_000_000.0))
    base = datetime(year, month, day, tzinfo=timezone.utc)
    return base + timedelta(microseconds=total_us)


def epoch_to_jd(year: int, day_of_year: float) -> float:
    """Julian day of an element-set epoch given as year and fractional day.

    Day 1.0 is January 1st at 0h UTC, so the epoch is January 0.0 of
    ``year`` plus ``day_of_year``.

    Raises:
        InvalidEpochError: If the year or day cannot form a calendar date.
    """
    if not 1900 <= year <= 2200:
        raise InvalidEpochError(f"Epoch year out of range: {year}")
    days_in_year = 366 if _is_leap(year) else 365
    if not (0.0 <= day_of_year < days_in_year + 1.0) or math.isnan(day_of_year):
        raise InvalidEpochError(
            f"Epoch day {day_of_year} is not a valid day of year {year}"
        )
    jan_first = datetime_to_jd(datetime(year, 1, 1, tzinfo=timezone.utc))
    return jan_first - 1.0 + day_of_year


def _is_leap(year: int) -> bool:
    return year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)


def julian_centuries(jd: float) -> float:
    """Julian centuries elapsed since J2000.0."""
    return (jd - J2000_JD) / 36525.0


def gmst_rad(jd: float) -> float:
    """
    Greenwich Mean Sidereal Time for a UT Julian day.

    Uses the IAU formula based on Julian centuries from J2000.0:
        GMST(°) = 280.46061837 + 360.98564736629 * (JD - 2451545.0)
                  + 0.000387933 * T² - T³/38710000

    Returns:
        GMST in radians, normalized to [0, 2π).
    """
    days = jd - J2000_JD
    t = days / 36525.0
    gmst_deg = (
        280.46061837
        + 360.98564736629 * days
        + 0.000387933 * t ** 2
        - t ** 3 / 38710000.0
    )
    return normalize_radians(math.radians(gmst_deg % 360.0))


def mean_obliquity(jd: float) -> float:
    """Mean obliquity of the ecliptic in radians (IAU 1980)."""
    t = julian_centuries(jd)
    eps_arcsec = 84381.448 + t * (-46.8150 + t * (-0.00059 + t * 0.001813))
    return eps_arcsec * _ARCSEC_TO_RAD


def nutation_angles(jd: float) -> tuple[float, float]:
    """Nutation in longitude and obliquity (radians) from the principal IAU 1980 terms.

    Accuracy is about 0.5 arcsec, ample for the apparent-place corrections
    applied to satellite observations.
    """
    t = julian_centuries(jd)
    args_deg = np.array([
        297.85036 + 445267.111480 * t,
        357.52772 + 35999.050340 * t,
        134.96298 + 477198.867398 * t,
        93.27191 + 483202.017538 * t,
        125.04452 - 1934.136261 * t,
    ])
    phi = _NUTATION_MULTIPLIERS @ np.radians(args_deg % 360.0)
    c = _NUTATION_COEFFICIENTS
    dpsi = np.sum((c[:, 0] + c[:, 1] * t) * np.sin(phi))
    deps = np.sum((c[:, 2] + c[:, 3] * t) * np.cos(phi))
    unit = 1.0e-4 * _ARCSEC_TO_RAD
    return float(dpsi * unit), float(deps * unit)


def equation_of_equinoxes(jd: float) -> float:
    """Apparent minus mean sidereal time, in radians."""
    dpsi, deps = nutation_angles(jd)
    return dpsi * math.cos(mean_obliquity(jd) + deps)


def gast_rad(jd: float) -> float:
    """Greenwich Apparent Sidereal Time in radians, [0, 2π)."""
    return normalize_radians(gmst_rad(jd) + equation_of_equinoxes(jd))
