# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Physical constants for the SGP4/SDP4 theory and the observer ellipsoid.

The propagator constants are the WGS-72 based values of Spacetrack
Report #3. Mixing them with WGS-84 values would break the consistency
of the mean elements, so they live apart from the ellipsoid used for
observer positions.
"""
import math
from dataclasses import dataclass


@dataclass(frozen=True)
class _SGP4Constants:
    """Spacetrack Report #3 constants (distance unit: Earth radii, time: minutes)."""
    XKE: float = 0.0743669161            # sqrt(GM) in (earth radii)^1.5 / min
    XKMPER: float = 6378.135             # km per Earth radius
    XJ2: float = 1.082616e-3
    XJ3: float = -0.253881e-5
    XJ4: float = -1.65597e-6
    AE: float = 1.0
    QO: float = 120.0                    # km, upper bound of density function
    SO: float = 78.0                     # km, density function parameter
    MINUTES_PER_DAY: float = 1440.0
    KEPLER_TOLERANCE: float = 1.0e-6     # rad
    KEPLER_MAX_ITERATIONS: int = 10
    DEEP_SPACE_PERIOD_MIN: float = 225.0

    @property
    def CK2(self) -> float:
        return 0.5 * self.XJ2 * self.AE ** 2

    @property
    def CK4(self) -> float:
        return -0.375 * self.XJ4 * self.AE ** 4

    @property
    def QOMS2T(self) -> float:
        return ((self.QO - self.SO) * self.AE / self.XKMPER) ** 4

    @property
    def S(self) -> float:
        return self.AE * (1.0 + self.SO / self.XKMPER)

    @property
    def A3OVK2(self) -> float:
        return -self.XJ3 / self.CK2 * self.AE ** 3


SGP4Constants: _SGP4Constants = _SGP4Constants()

TWO_THIRDS: float = 2.0 / 3.0
TWO_PI: float = 2.0 * math.pi
SECONDS_PER_DAY: float = 86400.0
TROPICAL_YEAR_DAYS: float = 365.242190402


@dataclass(frozen=True)
class EarthEllipsoid:
    """Reference ellipsoid for observer positions (km)."""
    equatorial_radius_km: float = 6378.137
    inverse_flattening: float = 298.257223563
    gm_km3_s2: float = 398600.433       # DE405 value used by the illumination model
    j2: float = 0.00108263

    @property
    def flattening(self) -> float:
        return 1.0 / self.inverse_flattening

    @property
    def polar_radius_km(self) -> float:
        return self.equatorial_radius_km * (1.0 - self.flattening)


WGS84: EarthEllipsoid = EarthEllipsoid()

# IERS 2003 equatorial radius, used by the sky-traverse estimate of the pass search.
EARTH_RADIUS_KM: float = 6378.1366
