# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Recovery of the original (Brouwer) mean motion and semi-major axis.

TLE mean motion is a Kozai mean; SGP4 works with the un-Kozai'd values
a″ and n″ obtained by one J2 corrective pass. The recovered period also
selects the near-Earth or deep-space branch.
"""
import logging
import math
from dataclasses import dataclass

from satephem.domain.constants import SGP4Constants, TWO_PI, TWO_THIRDS
from satephem.domain.elements import OrbitalElementSet

logger = logging.getLogger(__name__)

_C = SGP4Constants


@dataclass(frozen=True)
class RecoveredElements:
    """Propagator-ready mean elements (radians, minutes, Earth radii)."""
    epoch_jd: float
    inclination: float
    raan: float
    eccentricity: float
    arg_perigee: float
    mean_anomaly: float
    mean_motion: float          # recovered n″, rad/min
    semi_major_axis: float      # recovered a″, Earth radii
    bstar: float
    cos_i: float
    sin_i: float
    theta2: float               # cos² i
    beta0: float                # sqrt(1 - e²)
    beta0_sq: float
    is_deep_space: bool

    @property
    def period_minutes(self) -> float:
        return TWO_PI / self.mean_motion

    @property
    def perigee_km(self) -> float:
        return (self.semi_major_axis * (1.0 - self.eccentricity) - _C.AE) * _C.XKMPER


def recover_elements(elements: OrbitalElementSet) -> RecoveredElements:
    """
    Convert raw mean elements to the recovered set.

    Raises:
        InvalidEpochError: If the epoch cannot be resolved to a date.
    """
    epoch_jd = elements.epoch_jd

    n0 = elements.mean_motion_rev_per_day * TWO_PI / _C.MINUTES_PER_DAY
    e0 = elements.eccentricity
    i0 = math.radians(elements.inclination_deg)

    cos_i = math.cos(i0)
    theta2 = cos_i * cos_i
    x3thm1 = 3.0 * theta2 - 1.0
    beta0_sq = 1.0 - e0 * e0
    beta0 = math.sqrt(beta0_sq)

    a1 = (_C.XKE / n0) ** TWO_THIRDS
    del1 = 1.5 * _C.CK2 * x3thm1 / (a1 * a1 * beta0 * beta0_sq)
    ao = a1 * (1.0 - del1 * (0.5 * TWO_THIRDS + del1 * (1.0 + 134.0 / 81.0 * del1)))
    delo = 1.5 * _C.CK2 * x3thm1 / (ao * ao * beta0 * beta0_sq)
    n_recovered = n0 / (1.0 + delo)
    a_recovered = ao / (1.0 - delo)

    is_deep = TWO_PI / n_recovered >= _C.DEEP_SPACE_PERIOD_MIN
    logger.info(
        "%s: period %.1f min, %s model",
        elements.name, TWO_PI / n_recovered, "SDP4" if is_deep else "SGP4",
    )

    return RecoveredElements(
        epoch_jd=epoch_jd,
        inclination=i0,
        raan=math.radians(elements.raan_deg),
        eccentricity=e0,
        arg_perigee=math.radians(elements.arg_perigee_deg),
        mean_anomaly=math.radians(elements.mean_anomaly_deg),
        mean_motion=n_recovered,
        semi_major_axis=a_recovered,
        bstar=elements.bstar,
        cos_i=cos_i,
        sin_i=math.sin(i0),
        theta2=theta2,
        beta0=beta0,
        beta0_sq=beta0_sq,
        is_deep_space=is_deep,
    )
