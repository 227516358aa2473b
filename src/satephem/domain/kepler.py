# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Kepler's equation in the modified form used by SGP4.

Solves for E + ω given the long-period-corrected mean longitude
U = L - Ω and the eccentricity components axN = e cos ω, ayN = e sin ω.
"""
import logging
import math
from dataclasses import dataclass

from satephem.domain.constants import SGP4Constants

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KeplerSolution:
    """Eccentric-longitude iterate and whether the tolerance was met."""
    value: float
    converged: bool


def solve_kepler(
    capital_u: float,
    axn: float,
    ayn: float,
    tolerance: float = SGP4Constants.KEPLER_TOLERANCE,
    max_iterations: int = SGP4Constants.KEPLER_MAX_ITERATIONS,
) -> KeplerSolution:
    """
    Fixed-point iteration on E + ω = U - ayN cos(E+ω) + axN sin(E+ω).

    Never raises; on non-convergence the last iterate is returned with
    ``converged=False``.
    """
    epw = capital_u
    for _ in range(max_iterations):
        sin_epw = math.sin(epw)
        cos_epw = math.cos(epw)
        numerator = capital_u - ayn * cos_epw + axn * sin_epw - epw
        denominator = 1.0 - axn * cos_epw - ayn * sin_epw
        delta = numerator / denominator
        epw += delta
        if abs(delta) <= tolerance:
            return KeplerSolution(value=epw, converged=True)
    logger.debug(
        "Kepler iteration did not converge after %d steps (U=%.6f)",
        max_iterations, capital_u,
    )
    return KeplerSolution(value=epw, converged=False)
