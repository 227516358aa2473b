# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Topocentric observation of a propagated satellite.

Rotates the TEME state by the Greenwich hour angle into an Earth-fixed
frame, places the observer on the reference ellipsoid, and derives
azimuth/elevation, range and range-rate, the sub-satellite point,
illumination and eclipse state against the classic Sun model, and the
flare angles for reflective-panel satellites.

The sub-satellite latitude and height are spherical (no ellipsoid
correction); the eclipse test is the cylindrical umbra of the classic
satellite-tracking programs.
"""
import math
from dataclasses import dataclass, replace
from enum import Enum

import numpy as np

from satephem.domain.constants import (
    EarthEllipsoid,
    SECONDS_PER_DAY,
    TROPICAL_YEAR_DAYS,
    TWO_PI,
    WGS84,
)
from satephem.domain.elements import OrbitalElementSet
from satephem.domain.errors import InvalidInputError
from satephem.domain.flare import (
    FLARE_ANGLE_NOT_APPLICABLE,
    MAXIMUM_FLARE_ANGLE_DEG,
    angular_separation,
    flare_angle,
    flare_magnitude,
)
from satephem.domain.propagator import Propagator, create_propagator
from satephem.domain.solar import (
    SYNODIC_MONTH_DAYS,
    ecliptic_to_equatorial,
    moon_position,
    sun_direction,
)
from satephem.domain.time_systems import equation_of_equinoxes, gmst_rad, normalize_radians

# Observer rotation rate relative to the mean Sun plus Earth's orbital motion, rad/s
EARTH_ROTATION_RAD_S = (TWO_PI + TWO_PI / TROPICAL_YEAR_DAYS) / SECONDS_PER_DAY

POSSIBLY_VISIBLE_SUN_ELEVATION_DEG = -10.0
REFRACTION_MIN_ELEVATION_DEG = -1.0

# Nominal antenna direction in the orbit-plane frame
_ANTENNA_LON_DEG = 180.0
_ANTENNA_LAT_DEG = 0.0

# Moon age window (days) in which lunar flares are evaluated
_LUNAR_FLARE_MIN_AGE = 3.0
_LUNAR_FLARE_MAX_AGE = 29.5306 - 3.0
_MOON_DISK_OFFSET_DEG = 0.25

# Extinction model terms, magnitudes per airmass
_RAYLEIGH_COEFF = 0.1451
_RAYLEIGH_SCALE_KM = 7.996
_AEROSOL_COEFF = 0.05 * 0.51 ** -1.3
_AEROSOL_SCALE_KM = 1.5
_OZONE_COEFF = 0.016


class Visibility(Enum):
    """Lighting condition of the satellite for a ground observer."""
    ECLIPSED = "Eclipsed"
    SUNLIT = "Visible with the sun"
    SUNLIT_AT_TWILIGHT = "Visible at sunset/sunrise"
    POSSIBLY_VISIBLE = "Possibly visible"


@dataclass(frozen=True)
class Observer:
    """A ground observer on a reference ellipsoid."""
    name: str
    lat_deg: float
    lon_deg: float
    height_km: float = 0.0
    ellipsoid: EarthEllipsoid = WGS84

    def __post_init__(self) -> None:
        if not -90.0 <= self.lat_deg <= 90.0:
            raise InvalidInputError(f"Latitude must be in [-90, 90], got {self.lat_deg}")
        if not -180.0 <= self.lon_deg <= 360.0:
            raise InvalidInputError(f"Longitude must be in [-180, 360], got {self.lon_deg}")


@dataclass(frozen=True)
class EphemerisConfig:
    """How observables are reduced.

    ``apparent`` adds the equation of the equinoxes to the hour angle and
    refraction to the elevation; ``geocentric`` puts the observer at the
    Earth's centre; ``correct_extinction`` adds atmospheric extinction to
    flare magnitudes and requires ``apparent``.
    """
    apparent: bool = False
    geocentric: bool = False
    correct_extinction: bool = False

    def __post_init__(self) -> None:
        if self.correct_extinction and not self.apparent:
            raise InvalidInputError("Extinction correction requires apparent coordinates")


@dataclass(frozen=True)
class RiseSetTransit:
    """Rise, set and transit of one pass (UTC Julian days; 0.0 = unknown)."""
    rise_jd: float
    set_jd: float
    transit_jd: float
    transit_elevation_deg: float


@dataclass(frozen=True)
class SatelliteEphemeris:
    """Observables of one satellite at one instant."""
    name: str
    jd: float
    right_ascension_deg: float
    declination_deg: float
    range_km: float
    azimuth_deg: float
    elevation_deg: float
    subsatellite_lon_deg: float
    subsatellite_lat_deg: float
    subsatellite_height_km: float
    range_rate_km_s: float
    elongation_deg: float
    illumination: float
    is_eclipsed: bool
    visibility: Visibility
    revolution: int
    sun_azimuth_deg: float
    sun_elevation_deg: float
    flare_angle_deg: float = FLARE_ANGLE_NOT_APPLICABLE
    lunar_flare_angle_deg: float = FLARE_ANGLE_NOT_APPLICABLE
    magnitude: float | None = None
    next_pass_jd: float | None = None
    rise_set_transit: RiseSetTransit | None = None


def atmospheric_extinction(zenith_distance_rad: float, height_km: float) -> float:
    """
    Extinction in magnitudes for a source at a zenith distance.

    Rozenberg airmass times the sum of Rayleigh, aerosol and ozone
    coefficients, each scaled for the observer height.

    Returns:
        Extinction in magnitudes; 0.0 below the horizon.
    """
    if zenith_distance_rad > math.pi / 2.0:
        return 0.0
    cos_z = math.cos(zenith_distance_rad)
    airmass = 1.0 / (cos_z + 0.025 * math.exp(-11.0 * cos_z))
    rayleigh = _RAYLEIGH_COEFF * math.exp(-height_km / _RAYLEIGH_SCALE_KM)
    aerosol = _AEROSOL_COEFF * math.exp(-height_km / _AEROSOL_SCALE_KM)
    return airmass * (rayleigh + aerosol + _OZONE_COEFF)


def refraction_deg(elevation_deg: float) -> float:
    """Bennett refraction (deg) for a geometric elevation; zero below -1°."""
    if elevation_deg < REFRACTION_MIN_ELEVATION_DEG:
        return 0.0
    arg = math.radians(elevation_deg + 7.31 / (elevation_deg + 4.4))
    return 1.0 / math.tan(arg) / 60.0


def flare_extinction(ephemeris: SatelliteEphemeris, observer: Observer,
                     config: EphemerisConfig) -> float:
    """Extinction to add to a flare magnitude under the given configuration."""
    if not (config.apparent and config.correct_extinction) or ephemeris.elevation_deg <= 0.0:
        return 0.0
    return atmospheric_extinction(math.radians(90.0 - ephemeris.elevation_deg), observer.height_km)


def greenwich_hour_angle(jd: float, config: EphemerisConfig) -> float:
    """GMST, plus the equation of the equinoxes for apparent reductions (rad)."""
    hour_angle = gmst_rad(jd)
    if config.apparent:
        hour_angle += equation_of_equinoxes(jd)
    return hour_angle


def _observer_vectors(observer: Observer, geocentric: bool) -> tuple[np.ndarray, ...]:
    lat = math.radians(observer.lat_deg)
    lon = math.radians(observer.lon_deg)
    cos_lat, sin_lat = math.cos(lat), math.sin(lat)
    cos_lon, sin_lon = math.cos(lon), math.sin(lon)

    up = np.array([cos_lat * cos_lon, cos_lat * sin_lon, sin_lat])
    east = np.array([-sin_lon, cos_lon, 0.0])
    north = np.array([-sin_lat * cos_lon, -sin_lat * sin_lon, cos_lat])

    if geocentric:
        return np.zeros(3), up, east, north

    re = observer.ellipsoid.equatorial_radius_km
    rp = observer.ellipsoid.polar_radius_km
    d = math.hypot(re * cos_lat, rp * sin_lat)
    rx = re * re / d + observer.height_km
    rz = rp * rp / d + observer.height_km
    return np.array([rx * up[0], rx * up[1], rz * up[2]]), up, east, north


def _earth_fixed(vector: np.ndarray, hour_angle: float) -> np.ndarray:
    c = math.cos(hour_angle)
    s = -math.sin(hour_angle)
    return np.array([
        vector[0] * c - vector[1] * s,
        vector[0] * s + vector[1] * c,
        vector[2],
    ])


def _horizontal(direction: np.ndarray, up: np.ndarray, east: np.ndarray,
                north: np.ndarray) -> tuple[float, float]:
    u = float(np.dot(direction, up))
    e = float(np.dot(direction, east))
    n = float(np.dot(direction, north))
    return normalize_radians(math.atan2(e, n)), math.asin(max(-1.0, min(1.0, u)))


def _revolution_and_illumination(elements: OrbitalElementSet, jd: float,
                                 ellipsoid: EarthEllipsoid,
                                 sun: np.ndarray) -> tuple[int, float]:
    """Orbit number with linear drag and the antenna illumination fraction."""
    elapsed_days = jd - elements.epoch_jd
    n_rad_day = elements.mean_motion_rev_per_day * TWO_PI
    drag = -2.0 * elements.mean_motion_dot / (3.0 * elements.mean_motion_rev_per_day)
    dt = drag * elapsed_days / 2.0
    kdp = 1.0 - 7.0 * dt
    mean_anomaly = math.radians(elements.mean_anomaly_deg) + n_rad_day * elapsed_days * (1.0 - 3.0 * dt)
    revolution = elements.rev_at_epoch + math.floor(mean_anomaly / TWO_PI)

    n = n_rad_day / SECONDS_PER_DAY
    a = (ellipsoid.gm_km3_s2 / (n * n)) ** (1.0 / 3.0)
    b = a * math.sqrt(1.0 - elements.eccentricity ** 2)
    incl = math.radians(elements.inclination_deg)
    cos_i, sin_i = math.cos(incl), math.sin(incl)
    pc = ellipsoid.equatorial_radius_km * a / (b * b)
    pc = 1.5 * ellipsoid.j2 * pc * pc * n_rad_day
    node_rate = -pc * cos_i
    perigee_rate = pc * (5.0 * cos_i * cos_i - 1.0) / 2.0

    argp = math.radians(elements.arg_perigee_deg) + perigee_rate * elapsed_days * kdp
    node = math.radians(elements.raan_deg) + node_rate * elapsed_days * kdp
    cw, sw = math.cos(argp), math.sin(argp)
    cn, sn = math.cos(node), math.sin(node)
    plane_to_celestial = np.array([
        [cw * cn - sw * cos_i * sn, -sw * cn - cw * cos_i * sn, sin_i * sn],
        [cw * sn + sw * cos_i * cn, -sw * sn + cw * cos_i * cn, -sin_i * cn],
        [sw * sin_i, cw * sin_i, cos_i],
    ])
    alon = math.radians(_ANTENNA_LON_DEG)
    alat = math.radians(_ANTENNA_LAT_DEG)
    antenna = np.array([
        -math.cos(alat) * math.cos(alon),
        -math.cos(alat) * math.sin(alon),
        -math.sin(alat),
    ])
    sin_sun_angle = -float(np.dot(plane_to_celestial @ antenna, sun))
    illumination = math.sqrt(max(0.0, 1.0 - sin_sun_angle * sin_sun_angle))
    return int(revolution), illumination


def _classify(position: np.ndarray, radius: float, sun: np.ndarray,
              equatorial_radius_km: float, sun_elevation: float) -> Visibility:
    cos_umbral = -float(np.dot(position, sun)) / radius
    umbral_distance = radius * math.sqrt(max(0.0, 1.0 - cos_umbral * cos_umbral)) / equatorial_radius_km

    label = Visibility.SUNLIT_AT_TWILIGHT
    if cos_umbral <= 0.0:
        label = Visibility.SUNLIT
    if umbral_distance <= 1.0 and cos_umbral >= 0.0:
        return Visibility.ECLIPSED
    if math.degrees(sun_elevation) < POSSIBLY_VISIBLE_SUN_ELEVATION_DEG:
        return Visibility.POSSIBLY_VISIBLE
    return label


def _moon_flare_direction(jd: float, hour_angle: float) -> np.ndarray | None:
    """Earth-fixed direction to the Moon's illuminated disk, if the phase allows a flare."""
    moon = moon_position(jd)
    if not _LUNAR_FLARE_MIN_AGE < moon.age_days < _LUNAR_FLARE_MAX_AGE:
        return None
    offset = math.radians(_MOON_DISK_OFFSET_DEG) * (moon.age_days - SYNODIC_MONTH_DAYS / 2.0) / 15.0
    celestial = ecliptic_to_equatorial(moon.longitude_rad + offset, moon.latitude_rad)
    return _earth_fixed(celestial, hour_angle)


def observe(
    target: OrbitalElementSet | Propagator,
    jd: float,
    observer: Observer,
    config: EphemerisConfig = EphemerisConfig(),
) -> SatelliteEphemeris:
    """
    Compute the observables of a satellite at a UTC Julian day.

    Args:
        target: Element set, or a propagator built from one (reused by searches).
        jd: UTC Julian day.
        observer: Ground observer.
        config: Reduction options.

    Returns:
        SatelliteEphemeris; ``magnitude`` is set when the flare angle is
        within the flare threshold.
    """
    propagator = target if isinstance(target, Propagator) else create_propagator(target)
    elements = propagator.elements
    state = propagator.propagate(jd)

    hour_angle = greenwich_hour_angle(jd, config)

    obs_pos, up, east, north = _observer_vectors(observer, config.geocentric)
    obs_vel = np.array([-obs_pos[1], obs_pos[0], 0.0]) * EARTH_ROTATION_RAD_S

    position_teme = np.array(state.position_km)
    sat_pos = _earth_fixed(position_teme, hour_angle)
    sat_vel = _earth_fixed(np.array(state.velocity_km_s), hour_angle)

    line_of_sight = sat_pos - obs_pos
    range_km = float(np.linalg.norm(line_of_sight))
    range_unit = line_of_sight / range_km
    azimuth, elevation = _horizontal(range_unit, up, east, north)

    radius = float(np.linalg.norm(sat_pos))
    sub_lon = math.atan2(sat_pos[1], sat_pos[0])
    sub_lat = math.asin(sat_pos[2] / radius)
    equatorial_radius = observer.ellipsoid.equatorial_radius_km
    height = radius - equatorial_radius

    range_rate = float(np.dot(sat_vel - obs_vel, range_unit))

    sun = sun_direction(jd)
    revolution, illumination = _revolution_and_illumination(
        elements, jd, observer.ellipsoid, sun,
    )
    sun_fixed = _earth_fixed(sun, hour_angle)
    sun_azimuth, sun_elevation = _horizontal(sun_fixed, up, east, north)
    visibility = _classify(position_teme, radius, sun, equatorial_radius, sun_elevation)

    flare = FLARE_ANGLE_NOT_APPLICABLE
    lunar_flare = FLARE_ANGLE_NOT_APPLICABLE
    if elements.is_reflective_panel:
        flare = flare_angle(sat_pos, sat_vel, line_of_sight, sun_fixed)
        moon_fixed = _moon_flare_direction(jd, hour_angle)
        if moon_fixed is not None:
            lunar_flare = flare_angle(sat_pos, sat_vel, line_of_sight, moon_fixed)

    sat_dir = np.array([
        math.cos(elevation) * math.sin(azimuth),
        math.cos(elevation) * math.cos(azimuth),
        math.sin(elevation),
    ])
    sun_dir = np.array([
        math.cos(sun_elevation) * math.sin(sun_azimuth),
        math.cos(sun_elevation) * math.cos(sun_azimuth),
        math.sin(sun_elevation),
    ])
    elongation = angular_separation(sat_dir, sun_dir)

    right_ascension = normalize_radians(math.atan2(range_unit[1], range_unit[0]) + hour_angle)
    declination = math.asin(max(-1.0, min(1.0, float(range_unit[2]))))

    elevation_deg = math.degrees(elevation)
    if config.apparent:
        elevation_deg += refraction_deg(elevation_deg)

    ephemeris = SatelliteEphemeris(
        name=elements.display_name,
        jd=jd,
        right_ascension_deg=math.degrees(right_ascension),
        declination_deg=math.degrees(declination),
        range_km=range_km,
        azimuth_deg=math.degrees(azimuth),
        elevation_deg=elevation_deg,
        subsatellite_lon_deg=math.degrees(sub_lon),
        subsatellite_lat_deg=math.degrees(sub_lat),
        subsatellite_height_km=height,
        range_rate_km_s=range_rate,
        elongation_deg=math.degrees(elongation),
        illumination=illumination,
        is_eclipsed=visibility is Visibility.ECLIPSED,
        visibility=visibility,
        revolution=revolution,
        sun_azimuth_deg=math.degrees(sun_azimuth),
        sun_elevation_deg=math.degrees(sun_elevation),
        flare_angle_deg=flare,
        lunar_flare_angle_deg=lunar_flare,
    )
    if flare <= MAXIMUM_FLARE_ANGLE_DEG:
        magnitude = flare_magnitude(flare) + flare_extinction(ephemeris, observer, config)
        ephemeris = replace(ephemeris, magnitude=magnitude)
    return ephemeris


def line_of_sight(observer: Observer, jd: float, config: EphemerisConfig,
                  geocentric_km: np.ndarray) -> np.ndarray:
    """Unit vector from the observer to a geocentric celestial position (km)."""
    hour_angle = greenwich_hour_angle(jd, config)
    obs_pos, _, _, _ = _observer_vectors(observer, config.geocentric)
    direction = geocentric_km - _earth_fixed(obs_pos, -hour_angle)
    return direction / np.linalg.norm(direction)


def equatorial_unit_vector(ra_deg: float, dec_deg: float) -> np.ndarray:
    ra = math.radians(ra_deg)
    dec = math.radians(dec_deg)
    return np.array([
        math.cos(dec) * math.cos(ra),
        math.cos(dec) * math.sin(ra),
        math.sin(dec),
    ])
