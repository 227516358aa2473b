# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""Tests for the SGP4 form of Kepler's equation."""
import math

import pytest

from satephem.domain.kepler import KeplerSolution, solve_kepler


def _residual(u, axn, ayn, epw):
    return u - ayn * math.cos(epw) + axn * math.sin(epw) - epw


class TestSolveKepler:

    def test_circular_returns_mean_longitude(self):
        result = solve_kepler(1.234, 0.0, 0.0)
        assert result.converged
        assert result.value == pytest.approx(1.234)

    @pytest.mark.parametrize("u", [0.0, 0.5, 2.0, 3.1, 4.5, 6.2])
    def test_moderate_eccentricity_satisfies_equation(self, u):
        axn, ayn = 0.1 * math.cos(0.7), 0.1 * math.sin(0.7)
        result = solve_kepler(u, axn, ayn)
        assert result.converged
        assert abs(_residual(u, axn, ayn, result.value)) < 1e-6

    def test_high_eccentricity(self):
        axn, ayn = 0.7, 0.0
        result = solve_kepler(0.3, axn, ayn, max_iterations=50)
        assert result.converged
        assert abs(_residual(0.3, axn, ayn, result.value)) < 1e-6

    def test_non_convergence_returns_last_iterate(self):
        result = solve_kepler(0.3, 0.7, 0.0, max_iterations=1)
        assert isinstance(result, KeplerSolution)
        assert not result.converged
        assert math.isfinite(result.value)

    def test_frozen(self):
        result = solve_kepler(1.0, 0.0, 0.0)
        with pytest.raises(AttributeError):
            result.value = 2.0
