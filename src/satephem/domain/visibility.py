# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Visibility searches built on repeated observations.

Next pass, rise/set/transit refinement, solar and lunar flares from
reflective-panel satellites, and transits across the Sun or Moon. Every
search walks time in fixed steps with an explicit step cap; nothing is
bisected. A search that runs out of steps or days returns a sentinel
(0.0 or an empty list) and logs at DEBUG.
"""
import logging
import math
from dataclasses import dataclass, replace

import numpy as np

from satephem.domain.constants import EARTH_RADIUS_KM, SECONDS_PER_DAY, WGS84
from satephem.domain.elements import OrbitalElementSet
from satephem.domain.errors import InvalidInputError
from satephem.domain.flare import (
    MAXIMUM_FLARE_ANGLE_DEG,
    MAXIMUM_LUNAR_FLARE_ANGLE_DEG,
    angular_separation,
    flare_magnitude,
    lunar_flare_magnitude,
)
from satephem.domain.observation import (
    EphemerisConfig,
    Observer,
    RiseSetTransit,
    SatelliteEphemeris,
    equatorial_unit_vector,
    flare_extinction,
    line_of_sight,
    observe,
)
from satephem.domain.propagator import Propagator, create_propagator
from satephem.domain.solar import (
    AU_KM,
    ecliptic_to_equatorial,
    moon_magnitude,
    moon_position,
    sun_position,
)
from satephem.domain.time_systems import mean_obliquity, nutation_angles

logger = logging.getLogger(__name__)

PASS_STEP_DAYS = 0.5 / 1440.0
QUICK_SEARCH_MAX = 8
DEEP_BELOW_HORIZON_DEG = -25.0
BELOW_HORIZON_DEG = -15.0

DEFAULT_HORIZON_DEG = 34.0 / 60.0
RISE_SET_STEP_DAYS = 1.0 / SECONDS_PER_DAY
RISE_SET_MAX_ITERATIONS = 5000

FLARE_SCAN_MAX_STEPS = 10000
FLARE_PASS_JUMP_DAYS = 10.0 / 1440.0

TRANSIT_STEP_SECONDS = 0.5
TRANSIT_SKIP_DEG = 5.0
DEFAULT_TRANSIT_DISTANCE_DEG = 0.25
TRANSIT_PASSES_PER_DAY = 144

FULL_EPHEMERIS_MIN_ELEVATION_DEG = 15.0
FULL_EPHEMERIS_MAX_DAYS = 7.0


@dataclass(frozen=True)
class FlareEvent:
    """A flare seen from one observer; times are UTC Julian days."""
    source: str
    start_jd: float
    end_jd: float
    peak_jd: float
    min_angle_deg: float
    start: SatelliteEphemeris
    end: SatelliteEphemeris
    peak: SatelliteEphemeris


@dataclass(frozen=True)
class BodyTransit:
    """Satellite crossing in front of the Sun or the Moon."""
    body: str
    start_jd: float
    end_jd: float
    elevation_deg: float
    is_eclipsed: bool


@dataclass(frozen=True)
class _HorizonWalk:
    jd: float
    converged: bool
    peak_jd: float
    peak_elevation_deg: float


def _as_propagator(target: OrbitalElementSet | Propagator) -> Propagator:
    if isinstance(target, Propagator):
        return target
    return create_propagator(target)


def _check_min_elevation(min_elevation_deg: float) -> None:
    if not 0.0 <= min_elevation_deg < 90.0:
        raise InvalidInputError(
            f"Minimum elevation must be in [0, 90) degrees, got {min_elevation_deg}"
        )


def sky_traverse_days(elements: OrbitalElementSet, min_elevation_deg: float) -> float:
    """Rough time (days) for the satellite to cross the sky above a minimum elevation."""
    n = elements.mean_motion_rev_per_day * 2.0 * math.pi / SECONDS_PER_DAY
    a = (WGS84.gm_km3_s2 / (n * n)) ** (1.0 / 3.0)
    b = a * math.sqrt(1.0 - elements.eccentricity ** 2)
    altitude = (a + b) / 2.0 - EARTH_RADIUS_KM
    arc = (math.pi / 2.0 - 2.0 * math.radians(min_elevation_deg)) * altitude
    return arc / (2.0 * math.pi * (altitude + EARTH_RADIUS_KM))


def quick_search_multiplier(elements: OrbitalElementSet, min_elevation_deg: float) -> int:
    """Coarse-step multiplier for the pass search, in 1..QUICK_SEARCH_MAX."""
    steps = sky_traverse_days(elements, min_elevation_deg) / PASS_STEP_DAYS
    return min(max(int(0.5 + steps / 2.0), 1), QUICK_SEARCH_MAX)


def next_pass(
    target: OrbitalElementSet | Propagator,
    jd: float,
    observer: Observer,
    config: EphemerisConfig = EphemerisConfig(),
    min_elevation_deg: float = 15.0,
    max_days: float = 7.0,
    include_current: bool = True,
) -> float:
    """
    Time of the next pass above a minimum elevation.

    Steps in half-minute units, skipping faster while the satellite is
    far below the horizon, and backs off to the last step below the
    threshold.

    Args:
        target: Element set or propagator.
        jd: UTC Julian day to search from.
        observer: Ground observer.
        config: Reduction options.
        min_elevation_deg: Elevation threshold, [0, 90).
        max_days: Search window.
        include_current: Return ``jd`` itself when already above the threshold.

    Returns:
        UTC Julian day of the pass, negated if the satellite is eclipsed
        then, or 0.0 if no pass is found in the window.

    Raises:
        InvalidInputError: If the minimum elevation is out of range.
    """
    _check_min_elevation(min_elevation_deg)
    propagator = _as_propagator(target)
    quick = quick_search_multiplier(propagator.elements, min_elevation_deg)
    max_step = math.floor(max_days / PASS_STEP_DAYS)

    def at(step: int) -> SatelliteEphemeris:
        return observe(propagator, jd + step * PASS_STEP_DAYS, observer, config)

    nstep = 0
    ephem = at(0)
    while not include_current and ephem.elevation_deg > min_elevation_deg and nstep < max_step:
        nstep += 1
        ephem = at(nstep)
    if nstep >= max_step:
        logger.debug("%s: no pass start within %.2f days", ephem.name, max_days)
        return 0.0

    while ephem.elevation_deg < min_elevation_deg and nstep < max_step:
        if ephem.elevation_deg < DEEP_BELOW_HORIZON_DEG:
            nstep += quick
        elif ephem.elevation_deg < BELOW_HORIZON_DEG:
            nstep += max(quick // 2, 1)
        elif ephem.elevation_deg > 0.0:
            nstep += 1
        else:
            nstep += max(quick // 4, 1)
        ephem = at(nstep)
    if ephem.elevation_deg < min_elevation_deg:
        logger.debug("%s: no pass above %.1f° within %.2f days",
                     ephem.name, min_elevation_deg, max_days)
        return 0.0

    while ephem.elevation_deg > min_elevation_deg and nstep > 0:
        nstep -= 1
        ephem = at(nstep)

    pass_jd = jd + nstep * PASS_STEP_DAYS
    if pass_jd >= jd + max_days:
        logger.debug("%s: pass falls outside the %.2f-day window", ephem.name, max_days)
        return 0.0
    return -pass_jd if ephem.is_eclipsed else pass_jd


def _walk_to_horizon(
    propagator: Propagator,
    start: SatelliteEphemeris,
    observer: Observer,
    config: EphemerisConfig,
    horizon_deg: float,
    direction: int,
) -> _HorizonWalk:
    jd = start.jd
    peak_jd = start.jd
    peak_el = start.elevation_deg
    for _ in range(RISE_SET_MAX_ITERATIONS):
        jd += direction * RISE_SET_STEP_DAYS
        ephem = observe(propagator, jd, observer, config)
        if ephem.elevation_deg > peak_el:
            peak_el = ephem.elevation_deg
            peak_jd = jd
        if ephem.elevation_deg <= -horizon_deg:
            return _HorizonWalk(jd, True, peak_jd, peak_el)
    logger.debug("%s: horizon not reached after %d steps", start.name, RISE_SET_MAX_ITERATIONS)
    return _HorizonWalk(jd, False, peak_jd, peak_el)


def rise_set_transit(
    target: OrbitalElementSet | Propagator,
    ephemeris: SatelliteEphemeris,
    observer: Observer,
    config: EphemerisConfig = EphemerisConfig(),
    horizon_deg: float = DEFAULT_HORIZON_DEG,
) -> RiseSetTransit:
    """
    Rise, set and transit of the pass containing (or following) an ephemeris.

    When the satellite is below the horizon, the search first jumps to its
    next pass (``ephemeris.next_pass_jd`` if known). Times advance in
    one-second steps until the elevation drops to ``-horizon_deg``.

    Returns:
        RiseSetTransit; a rise or set that could not be resolved is 0.0.
        The transit is the highest sample seen by either walk, so it is
        kept even when a walk runs out of steps.
    """
    propagator = _as_propagator(target)
    reference = ephemeris
    if reference.elevation_deg < 0.0:
        pass_jd = reference.next_pass_jd
        if pass_jd is None:
            pass_jd = next_pass(
                propagator, reference.jd, observer, config,
                FULL_EPHEMERIS_MIN_ELEVATION_DEG, FULL_EPHEMERIS_MAX_DAYS, True,
            )
        if pass_jd == 0.0:
            return RiseSetTransit(0.0, 0.0, 0.0, 0.0)
        reference = observe(propagator, abs(pass_jd), observer, config)

    rise = _walk_to_horizon(propagator, reference, observer, config, horizon_deg, -1)
    setting = _walk_to_horizon(propagator, reference, observer, config, horizon_deg, 1)
    if rise.peak_elevation_deg > setting.peak_elevation_deg:
        transit_jd, transit_el = rise.peak_jd, rise.peak_elevation_deg
    else:
        transit_jd, transit_el = setting.peak_jd, setting.peak_elevation_deg

    return RiseSetTransit(
        rise_jd=rise.jd if rise.converged else 0.0,
        set_jd=setting.jd if setting.converged else 0.0,
        transit_jd=transit_jd,
        transit_elevation_deg=transit_el,
    )


@dataclass(frozen=True)
class _FlareSource:
    name: str
    threshold_deg: float
    lunar: bool

    def angle(self, ephem: SatelliteEphemeris) -> float:
        return ephem.lunar_flare_angle_deg if self.lunar else ephem.flare_angle_deg

    def with_magnitude(self, ephem: SatelliteEphemeris, observer: Observer,
                       config: EphemerisConfig) -> SatelliteEphemeris:
        angle = self.angle(ephem)
        if self.lunar:
            magnitude = lunar_flare_magnitude(angle, moon_magnitude(ephem.jd))
        else:
            magnitude = flare_magnitude(angle)
        return replace(ephem, magnitude=magnitude + flare_extinction(ephem, observer, config))


_SUN = _FlareSource("sun", MAXIMUM_FLARE_ANGLE_DEG, lunar=False)
_MOON = _FlareSource("moon", MAXIMUM_LUNAR_FLARE_ANGLE_DEG, lunar=True)


def _scan_pass_for_flare(
    propagator: Propagator,
    pass_jd: float,
    observer: Observer,
    config: EphemerisConfig,
    min_elevation_deg: float,
    precision_seconds: int,
    source: _FlareSource,
) -> tuple[float, FlareEvent | None]:
    """Coarse scan of one pass followed by a one-second rescan of the flare."""
    jd = pass_jd
    ephem = observe(propagator, jd, observer, config)
    start = end = peak = None
    min_angle = 0.0
    if source.angle(ephem) <= source.threshold_deg:
        ephem = source.with_magnitude(ephem, observer, config)
        start = end = peak = ephem
        min_angle = source.angle(ephem)

    coarse = precision_seconds / SECONDS_PER_DAY
    above = False
    found = False
    for _ in range(FLARE_SCAN_MAX_STEPS):
        jd += coarse
        ephem = observe(propagator, jd, observer, config)
        if ephem.elevation_deg > min_elevation_deg:
            above = True
        if above and source.angle(ephem) <= source.threshold_deg:
            found = True
            break
        if above and ephem.elevation_deg < min_elevation_deg:
            break
    else:
        logger.debug("%s: flare scan cap reached", ephem.name)

    if found:
        jd -= coarse
        above = False
        for _ in range(FLARE_SCAN_MAX_STEPS):
            jd += 1.0 / SECONDS_PER_DAY
            ephem = source.with_magnitude(
                observe(propagator, jd, observer, config), observer, config,
            )
            angle = source.angle(ephem)
            if ephem.elevation_deg > min_elevation_deg:
                above = True
            if start is None and angle <= source.threshold_deg:
                if ephem.elevation_deg < min_elevation_deg or ephem.is_eclipsed:
                    break
                start = end = peak = ephem
                min_angle = angle
            if start is not None and (angle > source.threshold_deg
                                      or ephem.elevation_deg < min_elevation_deg
                                      or ephem.is_eclipsed):
                end = ephem
                break
            if start is not None and angle < min_angle:
                min_angle = angle
                peak = ephem
            if above and ephem.elevation_deg < min_elevation_deg:
                start = None
                break
        else:
            logger.debug("%s: flare rescan cap reached", ephem.name)

    if start is None or peak.is_eclipsed:
        return jd, None
    return jd, FlareEvent(
        source=source.name,
        start_jd=start.jd,
        end_jd=end.jd,
        peak_jd=peak.jd,
        min_angle_deg=min_angle,
        start=start,
        end=end,
        peak=peak,
    )


def _search_flares(
    target: OrbitalElementSet | Propagator,
    jd: float,
    observer: Observer,
    config: EphemerisConfig,
    min_elevation_deg: float,
    max_days: float,
    precision_seconds: int,
    include_current: bool,
    source: _FlareSource,
) -> list[FlareEvent]:
    if not 1 <= precision_seconds <= 10:
        raise InvalidInputError(
            f"Precision must be 1-10 seconds, got {precision_seconds}"
        )
    _check_min_elevation(min_elevation_deg)
    propagator = _as_propagator(target)
    if not propagator.elements.is_reflective_panel:
        return []

    events: list[FlareEvent] = []
    limit = jd + max_days
    current = jd
    max_passes = math.ceil(max_days / FLARE_PASS_JUMP_DAYS) + 1
    for _ in range(max_passes):
        if current >= limit:
            break
        pass_jd = abs(next_pass(
            propagator, current, observer, config,
            min_elevation_deg, limit - current, include_current,
        ))
        if pass_jd == 0.0 or pass_jd >= limit:
            break
        include_current = False
        current, event = _scan_pass_for_flare(
            propagator, pass_jd, observer, config,
            min_elevation_deg, precision_seconds, source,
        )
        if event is not None:
            events.append(event)
        current += FLARE_PASS_JUMP_DAYS

    if not events:
        logger.debug("%s: no %s flares within %.2f days",
                     propagator.elements.name, source.name, max_days)
    return events


def next_flares(
    target: OrbitalElementSet | Propagator,
    jd: float,
    observer: Observer,
    config: EphemerisConfig = EphemerisConfig(),
    min_elevation_deg: float = 0.0,
    max_days: float = 1.0,
    precision_seconds: int = 5,
    include_current: bool = True,
) -> list[FlareEvent]:
    """
    Solar flares of a reflective-panel satellite.

    Each qualifying pass is scanned at ``precision_seconds`` until the flare
    angle drops to the threshold, then rescanned at one second to fix the
    start, end and peak. Flares whose peak is eclipsed are discarded.

    Raises:
        InvalidInputError: If precision is outside 1..10 or the minimum
            elevation outside [0, 90).
    """
    return _search_flares(
        target, jd, observer, config, min_elevation_deg, max_days,
        precision_seconds, include_current, _SUN,
    )


def next_lunar_flares(
    target: OrbitalElementSet | Propagator,
    jd: float,
    observer: Observer,
    config: EphemerisConfig = EphemerisConfig(),
    min_elevation_deg: float = 0.0,
    max_days: float = 1.0,
    precision_seconds: int = 5,
    include_current: bool = True,
) -> list[FlareEvent]:
    """Flares from moonlight; same search as ``next_flares`` with a tighter threshold."""
    return _search_flares(
        target, jd, observer, config, min_elevation_deg, max_days,
        precision_seconds, include_current, _MOON,
    )


def _body_positions(jd: float) -> dict[str, np.ndarray]:
    """Geocentric equatorial positions of the Sun and Moon (km, true equator of date)."""
    _, deps = nutation_angles(jd)
    obliquity = mean_obliquity(jd) + deps
    sun = sun_position(jd)
    moon = moon_position(jd)
    return {
        "sun": ecliptic_to_equatorial(sun.longitude_rad, 0.0, obliquity) * sun.distance_au * AU_KM,
        "moon": (ecliptic_to_equatorial(moon.longitude_rad, moon.latitude_rad, obliquity)
                 * moon.distance_earth_radii * EARTH_RADIUS_KM),
    }


def _body_directions(observer: Observer, jd: float,
                     config: EphemerisConfig) -> dict[str, np.ndarray]:
    return {
        body: line_of_sight(observer, jd, config, position)
        for body, position in _body_positions(jd).items()
    }


def next_body_transits(
    target: OrbitalElementSet | Propagator,
    jd: float,
    observer: Observer,
    config: EphemerisConfig = EphemerisConfig(),
    max_days: float = 1.0,
    min_distance_deg: float = DEFAULT_TRANSIT_DISTANCE_DEG,
) -> list[BodyTransit]:
    """
    Transits of the satellite across the Sun or the Moon.

    Every pass above the horizon is walked in half-second steps; a transit
    opens when the satellite comes within ``min_distance_deg`` of a body
    and closes when it moves away. Transits still open when the pass ends
    are dropped.
    """
    propagator = _as_propagator(target)
    step_days = TRANSIT_STEP_SECONDS / SECONDS_PER_DAY
    limit = jd + max_days
    max_steps = math.ceil(max_days / step_days) + 1
    max_passes = math.ceil(max_days * TRANSIT_PASSES_PER_DAY) + 1
    transits: list[BodyTransit] = []
    current = jd
    include_current = True

    for _ in range(max_passes):
        if current >= limit:
            break
        pass_jd = next_pass(propagator, current, observer, config, 0.0,
                            limit - current, include_current)
        if pass_jd == 0.0:
            break
        include_current = False
        base = abs(pass_jd)
        open_transits: dict[str, SatelliteEphemeris] = {}
        ephem = observe(propagator, base, observer, config)
        nstep = 0
        while (ephem.elevation_deg > 0.0 or nstep == 0) and nstep < max_steps:
            nstep += 1
            t = base + nstep * step_days
            ephem = observe(propagator, t, observer, config)
            sat_dir = equatorial_unit_vector(ephem.right_ascension_deg, ephem.declination_deg)
            distances = {
                body: math.degrees(angular_separation(sat_dir, direction))
                for body, direction in _body_directions(observer, t, config).items()
            }
            for body, distance in distances.items():
                if distance < min_distance_deg and body not in open_transits:
                    open_transits[body] = ephem
                elif body in open_transits and distance >= min_distance_deg:
                    first = open_transits.pop(body)
                    transits.append(BodyTransit(
                        body=body,
                        start_jd=first.jd,
                        end_jd=t - step_days,
                        elevation_deg=first.elevation_deg,
                        is_eclipsed=first.is_eclipsed,
                    ))
            nearest = min(distances.values())
            if nearest > TRANSIT_SKIP_DEG and not open_transits:
                nstep += int(nearest / TRANSIT_STEP_SECONDS)
        current = base + nstep * step_days
    else:
        if current < limit:
            logger.debug("%s: transit pass cap of %d reached",
                         propagator.elements.name, max_passes)

    return transits


def compute_full_ephemeris(
    target: OrbitalElementSet | Propagator,
    jd: float,
    observer: Observer,
    config: EphemerisConfig = EphemerisConfig(),
) -> SatelliteEphemeris:
    """Ephemeris at ``jd`` with the next pass above 15° in 7 days and its rise/set/transit."""
    propagator = _as_propagator(target)
    ephem = observe(propagator, jd, observer, config)
    pass_jd = next_pass(
        propagator, jd, observer, config,
        FULL_EPHEMERIS_MIN_ELEVATION_DEG, FULL_EPHEMERIS_MAX_DAYS, True,
    )
    ephem = replace(ephem, next_pass_jd=pass_jd)
    if pass_jd != 0.0:
        ephem = replace(
            ephem, rise_set_transit=rise_set_transit(propagator, ephem, observer, config),
        )
    return ephem
