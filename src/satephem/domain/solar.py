# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Low-precision Sun and Moon for satellite visibility.

The Sun direction uses the classic satellite-tracking model (mean solar
longitude and anomaly from a 1999 December 31.0 reference, three-term
equation of centre, fixed obliquity). The Moon follows the truncated
lunar theory of "Calendrical Calculations" (about 0.01° in longitude),
which also yields the phase age used to aim lunar flares at the
illuminated disk.

No external dependencies beyond numpy for the term tables.
"""
import math
from dataclasses import dataclass

import numpy as np

from satephem.domain.constants import EARTH_RADIUS_KM, TROPICAL_YEAR_DAYS, TWO_PI
from satephem.domain.time_systems import julian_centuries, normalize_radians, nutation_angles

# Classic Sun model, referred to SUN_REFERENCE_JD (1999 December 31.0 UTC)
SUN_REFERENCE_JD = 2451543.5
_G0_DEG = 98.9821               # GHA of the mean Sun at the reference epoch
_MAS0_DEG = 356.0507            # mean anomaly at the reference epoch
_MASD_DEG = 0.98560028          # mean anomaly rate, deg/day
_EQC1 = 0.03342
_EQC2 = 0.00035
_EQC3 = 5.0e-6

OBLIQUITY_RAD = math.radians(23.4393)

SYNODIC_MONTH_DAYS = 29.530588853
AU_KM = 149597870.7
SUN_APPARENT_MAGNITUDE = -26.74

# Moon series. Columns: multipliers of D, M, M', F; power of E; coefficient (deg).
_MOON_LONGITUDE_TERMS = np.array([
    [0, 0, 1, 0, 0, 6.28875],
    [2, 0, -1, 0, 0, 1.274018],
    [2, 0, 0, 0, 0, 0.658309],
    [0, 0, 2, 0, 0, 0.213616],
    [0, 1, 0, 0, 1, -0.185596],
    [0, 0, 0, 2, 0, -0.114336],
    [2, 0, -2, 0, 0, 0.058793],
    [2, -1, -1, 0, 1, 0.057212],
    [2, 0, 1, 0, 0, 0.05332],
    [2, -1, 0, 0, 1, 0.045874],
    [0, -1, 1, 0, 1, 0.041024],
    [1, 0, 0, 0, 0, -0.034718],
    [0, 1, 1, 0, 1, -0.030465],
    [2, 0, 0, -2, 0, 0.015326],
    [0, 0, 1, 2, 0, -0.012528],
    [0, 0, -1, 2, 0, -0.01098],
    [4, 0, -1, 0, 0, 0.010674],
    [0, 0, 3, 0, 0, 0.010034],
    [4, 0, -2, 0, 0, 0.008548],
    [2, 1, -1, 0, 1, -0.00791],
    [2, 1, 0, 0, 1, -0.006783],
    [-1, 0, 1, 0, 0, 0.005162],
    [1, 1, 0, 0, 1, 0.005],
    [4, 0, 0, 0, 0, 0.003862],
    [2, -1, 1, 0, 1, 0.004049],
    [2, 0, 2, 0, 0, 0.003996],
    [2, 0, -3, 0, 0, 0.003665],
])

_MOON_LATITUDE_TERMS = np.array([
    [0, 0, 0, 1, 0, 5.128189],
    [0, 0, 1, 1, 0, 0.280606],
    [0, 0, 1, -1, 0, 0.277693],
    [2, 0, 0, -1, 0, 0.173238],
    [2, 0, -1, 1, 0, 0.055413],
    [2, 0, -1, -1, 0, 0.046272],
    [2, 0, 0, 1, 0, 0.032573],
    [0, 0, 2, 1, 0, 0.017198],
    [2, 0, 1, -1, 0, 0.009267],
    [0, 0, 2, -1, 0, 0.008823],
    [2, -1, 0, -1, 1, 0.008247],
    [2, 0, -2, -1, 0, 0.004323],
    [2, 0, 1, 1, 0, 0.0042],
    [-2, -1, 0, 1, 1, 0.003372],
])

_MOON_PARALLAX_TERMS = np.array([
    [0, 0, 0, 0, 0, 0.950724],
    [0, 0, 1, 0, 0, 0.051818],
    [2, 0, -1, 0, 0, 0.009531],
    [2, 0, 0, 0, 0, 0.007843],
    [0, 0, 2, 0, 0, 0.002824],
    [2, 0, 1, 0, 0, 0.000857],
    [2, -1, 0, 0, 1, 0.000533],
    [2, -1, -1, 0, 1, 0.000401],
    [0, -1, 1, 0, 1, 0.00032],
    [1, 0, 0, 0, 0, -0.000271],
    [0, 1, 1, 0, 1, -0.000264],
    [0, 0, -1, 2, 0, -0.000198],
])


@dataclass(frozen=True)
class MoonPosition:
    """Geocentric ecliptic Moon of date."""
    longitude_rad: float
    latitude_rad: float
    distance_earth_radii: float
    age_days: float


@dataclass(frozen=True)
class SunPosition:
    """Geocentric ecliptic Sun of date (apparent longitude)."""
    longitude_rad: float
    distance_au: float


def sun_true_longitude(jd: float) -> float:
    """True longitude of the Sun (rad, [0, 2π)) from the classic tracking model."""
    d = jd - SUN_REFERENCE_JD
    mean_anomaly = normalize_radians(math.radians(_MAS0_DEG + _MASD_DEG * d))
    mean_longitude = math.radians(_G0_DEG) + math.pi + d * TWO_PI / TROPICAL_YEAR_DAYS
    return normalize_radians(
        mean_longitude
        + _EQC1 * math.sin(mean_anomaly)
        + _EQC2 * math.sin(2.0 * mean_anomaly)
        + _EQC3 * math.sin(3.0 * mean_anomaly)
    )


def sun_direction(jd: float) -> np.ndarray:
    """Unit vector toward the Sun in the celestial (equator of date) frame."""
    tas = sun_true_longitude(jd)
    s = math.sin(tas)
    return np.array([
        math.cos(tas),
        s * math.cos(OBLIQUITY_RAD),
        s * math.sin(OBLIQUITY_RAD),
    ])


def sun_position(jd: float) -> SunPosition:
    """Apparent ecliptic longitude and distance of the Sun (error < 0.003°)."""
    t = julian_centuries(jd)
    lon = 280.46645 + 36000.76983 * t + 0.0003032 * t * t
    anomaly = math.radians((357.5291 + 35999.0503 * t - 0.0001559 * t * t - 4.8e-7 * t ** 3) % 360.0)
    c = ((1.9146 - 0.004817 * t - 0.000014 * t * t) * math.sin(anomaly)
         + (0.019993 - 0.000101 * t) * math.sin(2.0 * anomaly)
         + 0.00029 * math.sin(3.0 * anomaly))
    dpsi, _ = nutation_angles(jd)
    longitude = math.radians(lon + c - 0.00569) + dpsi
    ecc = 0.016708617 - 4.2037e-5 * t - 1.236e-7 * t * t
    v = anomaly + math.radians(c)
    distance = 1.000001018 * (1.0 - ecc * ecc) / (1.0 + ecc * math.cos(v))
    return SunPosition(longitude_rad=normalize_radians(longitude), distance_au=distance)


def _series(terms: np.ndarray, args: np.ndarray, e: float, func) -> float:
    phase = terms[:, :4] @ args
    factors = e ** terms[:, 4]
    return float(np.sum(terms[:, 5] * factors * func(phase)))


def moon_position(jd: float) -> MoonPosition:
    """Ecliptic Moon of date with phase age (days since new Moon)."""
    t = julian_centuries(jd)
    elongation = normalize_radians(math.radians(
        297.8502042 + 445267.1115168 * t - 0.00163 * t * t
        + t ** 3 / 538841.0 - t ** 4 / 65194000.0
    ))
    sun_anomaly = math.radians(
        (357.5291 + 35999.0503 * t - 0.0001559 * t * t - 4.8e-7 * t ** 3) % 360.0
    )
    moon_anomaly = math.radians(
        (134.9634114 + 477198.8676313 * t + 0.008997 * t * t
         + t ** 3 / 69699.0 - t ** 4 / 14712000.0) % 360.0
    )
    node = math.radians(
        (93.2720993 + 483202.0175273 * t - 0.0034029 * t * t
         - t ** 3 / 3526000.0 + t ** 4 / 863310000.0) % 360.0
    )
    e = 1.0 - (0.002495 + 7.52e-6 * (t + 1.0)) * (t + 1.0)
    args = np.array([elongation, sun_anomaly, moon_anomaly, node])

    mean_longitude = (218.31664563 + 481267.8811958 * t - 0.00146639 * t * t
                      + t ** 3 / 540135.03 - t ** 4 / 65193770.4)
    longitude = mean_longitude + _series(_MOON_LONGITUDE_TERMS, args, e, np.sin)
    latitude = _series(_MOON_LATITUDE_TERMS, args, e, np.sin)
    parallax = _series(_MOON_PARALLAX_TERMS, args, e, np.cos)
    dpsi, _ = nutation_angles(jd)

    return MoonPosition(
        longitude_rad=normalize_radians(math.radians(longitude) + dpsi),
        latitude_rad=math.radians(latitude),
        distance_earth_radii=1.0 / math.sin(math.radians(parallax)),
        age_days=SYNODIC_MONTH_DAYS * elongation / TWO_PI,
    )


def ecliptic_to_equatorial(longitude: float, latitude: float,
                           obliquity: float = OBLIQUITY_RAD) -> np.ndarray:
    """Unit vector in the equatorial frame for ecliptic coordinates (rad)."""
    cos_lat = math.cos(latitude)
    x = cos_lat * math.cos(longitude)
    y = cos_lat * math.sin(longitude)
    z = math.sin(latitude)
    ce = math.cos(obliquity)
    se = math.sin(obliquity)
    return np.array([x, y * ce - z * se, y * se + z * ce])


def moon_magnitude(jd: float) -> float:
    """Apparent visual magnitude of the Moon from its phase angle and distances."""
    moon = moon_position(jd)
    sun = sun_position(jd)
    rr = moon.distance_earth_radii * EARTH_RADIUS_KM / AU_KM * sun.distance_au
    phase_deg = math.degrees(normalize_radians(sun.longitude_rad - moon.longitude_rad + math.pi))
    if phase_deg > 180.0:
        phase_deg = 360.0 - phase_deg
    return 0.23 + 5.0 * math.log10(rr) + 0.026 * phase_deg + 4.0e-9 * phase_deg ** 4
