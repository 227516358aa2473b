# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""Tests for the SGP4 drag model, secular update and state assembly."""
import math

import pytest

from satephem.domain.elements import OrbitalElementSet
from satephem.domain.near_earth import (
    NearEarthCoefficients,
    PositionVelocity,
    assemble_state,
    compute_coefficients,
    secular_update,
)
from satephem.domain.recovery import recover_elements

_MU = 398600.8  # km³/s², WGS-72


def _leo(mean_motion=15.5, bstar=1.0e-4, eccentricity=0.001):
    return OrbitalElementSet(
        name="TEST", catalog_number=1, epoch_year=2024, epoch_day=100.0,
        inclination_deg=51.6, raan_deg=30.0, eccentricity=eccentricity,
        arg_perigee_deg=90.0, mean_anomaly_deg=10.0,
        mean_motion_rev_per_day=mean_motion, bstar=bstar,
    )


# ── Coefficients ─────────────────────────────────────────────────────

class TestComputeCoefficients:

    def test_frozen(self):
        coeffs = compute_coefficients(recover_elements(_leo()))
        assert isinstance(coeffs, NearEarthCoefficients)
        with pytest.raises(AttributeError):
            coeffs.c1 = 0.0

    def test_full_model_above_220_km(self):
        assert not compute_coefficients(recover_elements(_leo())).is_simplified

    def test_simplified_model_below_220_km(self):
        coeffs = compute_coefficients(recover_elements(_leo(mean_motion=16.4)))
        assert coeffs.is_simplified

    def test_very_low_perigee_finite(self):
        coeffs = compute_coefficients(recover_elements(_leo(mean_motion=16.3, eccentricity=0.02)))
        for value in (coeffs.c1, coeffs.c4, coeffs.eta, coeffs.t2cof):
            assert math.isfinite(value)

    def test_drag_coefficient_scales_with_bstar(self):
        c1_a = compute_coefficients(recover_elements(_leo(bstar=1.0e-4))).c1
        c1_b = compute_coefficients(recover_elements(_leo(bstar=2.0e-4))).c1
        assert c1_b == pytest.approx(2.0 * c1_a)

    def test_prograde_node_regresses(self):
        coeffs = compute_coefficients(recover_elements(_leo()))
        assert coeffs.xnodot < 0.0


# ── Secular update ───────────────────────────────────────────────────

class TestSecularUpdate:

    def test_epoch_state_matches_elements(self):
        rec = recover_elements(_leo())
        state = secular_update(rec, compute_coefficients(rec), 0.0)
        assert state.semi_major_axis == pytest.approx(rec.semi_major_axis)
        assert state.eccentricity == pytest.approx(rec.eccentricity)
        assert state.raan == pytest.approx(rec.raan)

    def test_drag_lowers_semi_major_axis(self):
        rec = recover_elements(_leo(bstar=5.0e-4))
        coeffs = compute_coefficients(rec)
        later = secular_update(rec, coeffs, 1440.0 * 5)
        assert later.semi_major_axis < rec.semi_major_axis

    def test_no_drag_keeps_semi_major_axis(self):
        rec = recover_elements(_leo(bstar=0.0))
        later = secular_update(rec, compute_coefficients(rec), 1440.0)
        assert later.semi_major_axis == pytest.approx(rec.semi_major_axis)


# ── State assembly ───────────────────────────────────────────────────

class TestAssembleState:

    def test_returns_position_velocity(self):
        rec = recover_elements(_leo())
        coeffs = compute_coefficients(rec)
        pv = assemble_state(rec, coeffs, secular_update(rec, coeffs, 0.0))
        assert isinstance(pv, PositionVelocity)
        assert len(pv.position_km) == 3
        assert len(pv.velocity_km_s) == 3

    @pytest.mark.parametrize("tsince", [0.0, 45.0, 720.0, -300.0])
    def test_vis_viva(self, tsince):
        rec = recover_elements(_leo())
        coeffs = compute_coefficients(rec)
        pv = assemble_state(rec, coeffs, secular_update(rec, coeffs, tsince))
        r = math.sqrt(sum(c * c for c in pv.position_km))
        v2 = sum(c * c for c in pv.velocity_km_s)
        a_km = rec.semi_major_axis * 6378.135
        assert v2 == pytest.approx(_MU * (2.0 / r - 1.0 / a_km), rel=0.01)

    def test_radius_near_orbit(self):
        rec = recover_elements(_leo())
        coeffs = compute_coefficients(rec)
        pv = assemble_state(rec, coeffs, secular_update(rec, coeffs, 30.0))
        r = math.sqrt(sum(c * c for c in pv.position_km))
        assert 6600.0 < r < 6900.0

