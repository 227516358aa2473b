"""
Satellite Ephemeris

Propagate NORAD element sets with the SGP4/SDP4 theory and reduce them to
what a ground observer sees: azimuth, elevation, range and range-rate,
right ascension and declination, illumination and eclipse state. Builds
visibility searches on top: next pass, rise/set/transit, solar and lunar
flares from reflective-panel satellites, and transits across the Sun and
the Moon.
"""

from satephem.domain.errors import (
    InvalidInputError,
    InvalidEpochError,
)
from satephem.domain.elements import (
    OperationalStatus,
    OrbitalElementSet,
    parse_tle,
    parse_tle_catalog,
    parse_omm_record,
    tle_checksum,
)
from satephem.domain.time_systems import (
    datetime_to_jd,
    jd_to_datetime,
    epoch_to_jd,
    gmst_rad,
    gast_rad,
)
from satephem.domain.propagator import (
    Propagator,
    create_propagator,
    propagate,
)
from satephem.domain.near_earth import PositionVelocity
from satephem.domain.solar import (
    MoonPosition,
    SunPosition,
    moon_position,
    sun_position,
    moon_magnitude,
)
from satephem.domain.flare import (
    flare_angle,
    flare_magnitude,
    lunar_flare_magnitude,
)
from satephem.domain.observation import (
    EphemerisConfig,
    Observer,
    RiseSetTransit,
    SatelliteEphemeris,
    Visibility,
    observe,
)
from satephem.domain.visibility import (
    BodyTransit,
    FlareEvent,
    compute_full_ephemeris,
    next_body_transits,
    next_flares,
    next_lunar_flares,
    next_pass,
    rise_set_transit,
)

__all__ = [
    "InvalidInputError",
    "InvalidEpochError",
    "OperationalStatus",
    "OrbitalElementSet",
    "parse_tle",
    "parse_tle_catalog",
    "parse_omm_record",
    "tle_checksum",
    "datetime_to_jd",
    "jd_to_datetime",
    "epoch_to_jd",
    "gmst_rad",
    "gast_rad",
    "Propagator",
    "create_propagator",
    "propagate",
    "PositionVelocity",
    "MoonPosition",
    "SunPosition",
    "moon_position",
    "sun_position",
    "moon_magnitude",
    "flare_angle",
    "flare_magnitude",
    "lunar_flare_magnitude",
    "EphemerisConfig",
    "Observer",
    "RiseSetTransit",
    "SatelliteEphemeris",
    "Visibility",
    "observe",
    "BodyTransit",
    "FlareEvent",
    "compute_full_ephemeris",
    "next_body_transits",
    "next_flares",
    "next_lunar_flares",
    "next_pass",
    "rise_set_transit",
]
