# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""Tests for the SGP4/SDP4 propagator facade."""
import math

import pytest

from satephem.domain.elements import parse_tle
from satephem.domain.near_earth import PositionVelocity
from satephem.domain.propagator import Propagator, create_propagator, propagate


ISS_LINE1 = "1 25544U 98067A   08264.51782528 -.00002182  00000-0 -11606-4 0  2927"
ISS_LINE2 = "2 25544  51.6416 247.4627 0006703 130.5360 325.0288 15.72125391563537"

VANGUARD_LINE1 = "1 00005U 58002B   00179.78495062  .00000023  00000-0  28098-4 0  4753"
VANGUARD_LINE2 = "2 00005  34.2682 348.7242 1859667 331.7664  19.3264 10.82419157413667"

GPS_LINE1 = "1 28129U 03058A   06175.57071136 -.00000104  00000-0  10000-3 0   459"
GPS_LINE2 = "2 28129  54.7298 324.8098 0048506 266.2640  93.1663  2.00562768 18443"

# Spacetrack Report #3 / Vallado verification output for 00005 at epoch
VANGUARD_EPOCH_R = (7022.46529266, -1400.08296755, 0.03995155)
VANGUARD_EPOCH_V = (1.893841015, 6.405893759, 4.534807250)


def _norm(v):
    return math.sqrt(sum(c * c for c in v))


class TestCreatePropagator:

    def test_near_earth_selected(self):
        prop = create_propagator(parse_tle("ISS", ISS_LINE1, ISS_LINE2))
        assert isinstance(prop, Propagator)
        assert not prop.is_deep_space
        assert prop.deep_space is None
        assert prop.resonance_state is None

    def test_deep_space_selected(self):
        prop = create_propagator(parse_tle("GPS", GPS_LINE1, GPS_LINE2))
        assert prop.is_deep_space
        assert prop.resonance_state is not None

    def test_keeps_elements(self):
        el = parse_tle("ISS", ISS_LINE1, ISS_LINE2)
        prop = create_propagator(el)
        assert prop.elements is el
        assert prop.epoch_jd == pytest.approx(el.epoch_jd)


class TestPropagate:

    def test_vanguard_at_epoch(self):
        prop = create_propagator(parse_tle("VANGUARD 1", VANGUARD_LINE1, VANGUARD_LINE2))
        pv = prop.propagate_minutes(0.0)
        for ours, ref in zip(pv.position_km, VANGUARD_EPOCH_R):
            assert ours == pytest.approx(ref, abs=1.0)
        for ours, ref in zip(pv.velocity_km_s, VANGUARD_EPOCH_V):
            assert ours == pytest.approx(ref, abs=1.0e-3)

    def test_iss_altitude_over_a_day(self):
        prop = create_propagator(parse_tle("ISS", ISS_LINE1, ISS_LINE2))
        for minutes in range(0, 1440, 17):
            pv = prop.propagate_minutes(float(minutes))
            altitude = _norm(pv.position_km) - 6378.135
            assert 300.0 < altitude < 420.0
            assert 7.5 < _norm(pv.velocity_km_s) < 7.8

    def test_julian_day_and_minutes_agree(self):
        prop = create_propagator(parse_tle("ISS", ISS_LINE1, ISS_LINE2))
        by_jd = prop.propagate(prop.epoch_jd + 0.25)
        by_minutes = prop.propagate_minutes(360.0)
        for a, b in zip(by_jd.position_km, by_minutes.position_km):
            assert a == pytest.approx(b, abs=1e-4)

    def test_before_epoch(self):
        prop = create_propagator(parse_tle("ISS", ISS_LINE1, ISS_LINE2))
        pv = prop.propagate_minutes(-600.0)
        assert 6600.0 < _norm(pv.position_km) < 6800.0

    def test_velocity_matches_finite_difference(self):
        prop = create_propagator(parse_tle("ISS", ISS_LINE1, ISS_LINE2))
        dt = 1.0 / 60.0
        before = prop.propagate_minutes(100.0 - dt).position_km
        after = prop.propagate_minutes(100.0 + dt).position_km
        velocity = prop.propagate_minutes(100.0).velocity_km_s
        for i in range(3):
            assert (after[i] - before[i]) / 2.0 == pytest.approx(velocity[i], abs=1e-3)

    def test_one_shot_helper(self):
        el = parse_tle("ISS", ISS_LINE1, ISS_LINE2)
        jd = el.epoch_jd + 1.0
        pv = propagate(el, jd)
        assert isinstance(pv, PositionVelocity)
        assert pv == create_propagator(el).propagate(jd)
