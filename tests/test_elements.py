# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""Tests for TLE/OMM parsing into OrbitalElementSet."""
import logging
import math

import pytest

from satephem.domain.elements import (
    OperationalStatus,
    OrbitalElementSet,
    parse_omm_record,
    parse_tle,
    parse_tle_catalog,
    tle_checksum,
)
from satephem.domain.errors import InvalidEpochError, InvalidInputError


ISS_NAME = "ISS (ZARYA)"
ISS_LINE1 = "1 25544U 98067A   08264.51782528 -.00002182  00000-0 -11606-4 0  2927"
ISS_LINE2 = "2 25544  51.6416 247.4627 0006703 130.5360 325.0288 15.72125391563537"

VANGUARD_LINE1 = "1 00005U 58002B   00179.78495062  .00000023  00000-0  28098-4 0  4753"
VANGUARD_LINE2 = "2 00005  34.2682 348.7242 1859667 331.7664  19.3264 10.82419157413667"

SAMPLE_OMM = {
    "OBJECT_NAME": "ISS (ZARYA)",
    "OBJECT_ID": "1998-067A",
    "EPOCH": "2026-02-11T04:21:12.145248",
    "MEAN_MOTION": 15.4854011,
    "ECCENTRICITY": 0.00110736,
    "INCLINATION": 51.6314,
    "RA_OF_ASC_NODE": 203.3958,
    "ARG_OF_PERICENTER": 86.686,
    "MEAN_ANOMALY": 273.5395,
    "EPHEMERIS_TYPE": 0,
    "CLASSIFICATION_TYPE": "U",
    "NORAD_CAT_ID": 25544,
    "ELEMENT_SET_NO": 999,
    "REV_AT_EPOCH": 54321,
    "BSTAR": 0.00022024123,
    "MEAN_MOTION_DOT": 0.00011529,
    "MEAN_MOTION_DDOT": 0,
}


def _with_checksum(line68):
    """Append the correct checksum digit to a 68-column line."""
    return line68 + str(tle_checksum(line68))


def _elements(name="TEST", **overrides):
    fields = dict(
        name=name, catalog_number=1, epoch_year=2024, epoch_day=1.0,
        inclination_deg=51.6, raan_deg=0.0, eccentricity=0.001,
        arg_perigee_deg=0.0, mean_anomaly_deg=0.0, mean_motion_rev_per_day=15.5,
    )
    fields.update(overrides)
    return OrbitalElementSet(**fields)


# ── Checksum ─────────────────────────────────────────────────────────

class TestChecksum:

    def test_iss_lines(self):
        assert tle_checksum(ISS_LINE1) == 7
        assert tle_checksum(ISS_LINE2) == 7

    def test_minus_counts_as_one(self):
        assert tle_checksum("-" * 68) == 68 % 10

    def test_letters_and_spaces_ignored(self):
        assert tle_checksum("ABC  .+" + " " * 61) == 0


# ── Two-line element sets ────────────────────────────────────────────

class TestParseTle:

    def test_iss_fields(self):
        el = parse_tle(ISS_NAME, ISS_LINE1, ISS_LINE2)
        assert el.name == ISS_NAME
        assert el.catalog_number == 25544
        assert el.epoch_year == 2008
        assert el.epoch_day == pytest.approx(264.51782528)
        assert el.inclination_deg == pytest.approx(51.6416)
        assert el.raan_deg == pytest.approx(247.4627)
        assert el.eccentricity == pytest.approx(0.0006703)
        assert el.arg_perigee_deg == pytest.approx(130.5360)
        assert el.mean_anomaly_deg == pytest.approx(325.0288)
        assert el.mean_motion_rev_per_day == pytest.approx(15.72125391)
        assert el.rev_at_epoch == 56353
        assert el.international_designator == "98067A"
        assert el.classification == "U"

    def test_drag_terms(self):
        el = parse_tle(ISS_NAME, ISS_LINE1, ISS_LINE2)
        assert el.mean_motion_dot == pytest.approx(-0.00002182)
        assert el.mean_motion_ddot == 0.0
        assert el.bstar == pytest.approx(-0.11606e-4)

    def test_epoch_jd(self):
        el = parse_tle(ISS_NAME, ISS_LINE1, ISS_LINE2)
        # 2008 January 0.0 is JD 2454465.5
        assert el.epoch_jd == pytest.approx(2454465.5 + 264.51782528, abs=1e-8)

    def test_two_digit_year_pivot(self):
        line1 = _with_checksum(VANGUARD_LINE1[:18] + "57" + VANGUARD_LINE1[20:68])
        el = parse_tle("OLD", line1, VANGUARD_LINE2)
        assert el.epoch_year == 1957
        assert parse_tle("NEW", VANGUARD_LINE1, VANGUARD_LINE2).epoch_year == 2000

    def test_blank_name_uses_catalog_number(self):
        el = parse_tle("  ", VANGUARD_LINE1, VANGUARD_LINE2)
        assert el.name == "5"

    def test_trailing_whitespace_tolerated(self):
        el = parse_tle(ISS_NAME, ISS_LINE1 + "   ", ISS_LINE2 + "\r")
        assert el.catalog_number == 25544

    def test_checksum_mismatch_rejected(self):
        bad = ISS_LINE1[:68] + "0"
        with pytest.raises(InvalidInputError, match="checksum"):
            parse_tle(ISS_NAME, bad, ISS_LINE2)

    def test_short_line_rejected(self):
        with pytest.raises(InvalidInputError, match="too short"):
            parse_tle(ISS_NAME, ISS_LINE1[:60], ISS_LINE2)

    def test_swapped_lines_rejected(self):
        with pytest.raises(InvalidInputError, match="Expected TLE line 1"):
            parse_tle(ISS_NAME, ISS_LINE2, ISS_LINE1)

    def test_catalog_mismatch_rejected(self):
        line2 = _with_checksum("2 25545" + ISS_LINE2[7:68])
        with pytest.raises(InvalidInputError, match="Catalog numbers differ"):
            parse_tle(ISS_NAME, ISS_LINE1, line2)

    def test_malformed_field_rejected(self):
        line2 = _with_checksum(ISS_LINE2[:8] + " 51.6x16" + ISS_LINE2[16:68])
        with pytest.raises(InvalidInputError, match="Malformed"):
            parse_tle(ISS_NAME, ISS_LINE1, line2)

    def test_is_value_error(self):
        with pytest.raises(ValueError):
            parse_tle(ISS_NAME, ISS_LINE1[:68] + "0", ISS_LINE2)


# ── Catalogs ─────────────────────────────────────────────────────────

class TestParseTleCatalog:

    def test_three_line_entries(self):
        text = "\n".join([ISS_NAME, ISS_LINE1, ISS_LINE2, "VANGUARD 1", VANGUARD_LINE1, VANGUARD_LINE2])
        elements = parse_tle_catalog(text)
        assert [e.name for e in elements] == [ISS_NAME, "VANGUARD 1"]

    def test_two_line_entries(self):
        text = "\n".join([ISS_LINE1, ISS_LINE2, VANGUARD_LINE1, VANGUARD_LINE2])
        elements = parse_tle_catalog(text)
        assert [e.catalog_number for e in elements] == [25544, 5]
        assert elements[0].name == "25544"

    def test_zero_prefixed_names(self):
        text = "\n".join(["0 ISS (ZARYA)", ISS_LINE1, ISS_LINE2])
        assert parse_tle_catalog(text)[0].name == ISS_NAME

    def test_blank_lines_ignored(self):
        text = "\n\n" + "\n\n".join([ISS_NAME, ISS_LINE1, ISS_LINE2]) + "\n\n"
        assert len(parse_tle_catalog(text)) == 1

    def test_bad_entry_skipped_with_warning(self, caplog):
        text = "\n".join(["BROKEN", ISS_LINE1[:68] + "0", ISS_LINE2,
                          "VANGUARD 1", VANGUARD_LINE1, VANGUARD_LINE2])
        with caplog.at_level(logging.WARNING, logger="satephem.domain.elements"):
            elements = parse_tle_catalog(text)
        assert [e.name for e in elements] == ["VANGUARD 1"]
        assert "BROKEN" in caplog.text

    def test_empty_text(self):
        assert parse_tle_catalog("") == []


# ── Element-set value object ─────────────────────────────────────────

class TestOrbitalElementSet:

    def test_frozen(self):
        el = _elements()
        with pytest.raises(AttributeError):
            el.eccentricity = 0.1

    def test_rejects_non_positive_mean_motion(self):
        with pytest.raises(InvalidInputError, match="Mean motion"):
            _elements(mean_motion_rev_per_day=0.0)

    def test_rejects_hyperbolic_eccentricity(self):
        with pytest.raises(InvalidInputError, match="Eccentricity"):
            _elements(eccentricity=1.0)

    def test_epoch_out_of_range(self):
        el = _elements(epoch_year=1800)
        with pytest.raises(InvalidEpochError):
            el.epoch_jd

    @pytest.mark.parametrize("name, status", [
        ("IRIDIUM 31 [+]", OperationalStatus.IN_SERVICE),
        ("IRIDIUM 17 [-]", OperationalStatus.FAILED),
        ("IRIDIUM 90 [S]", OperationalStatus.SPARE),
        ("IRIDIUM 91", OperationalStatus.UNKNOWN),
        ("IRIDIUM 92 [X]", OperationalStatus.UNKNOWN),
    ])
    def test_status_suffix(self, name, status):
        assert _elements(name=name).status is status

    def test_display_name_strips_status(self):
        assert _elements(name="IRIDIUM 31 [+]").display_name == "IRIDIUM 31"
        assert _elements(name="ISS (ZARYA)").display_name == "ISS (ZARYA)"

    def test_reflective_panel_by_name(self):
        assert _elements(name="IRIDIUM 5 [+]").is_reflective_panel
        assert _elements(name="Iridium 62").is_reflective_panel
        assert not _elements(name="ISS (ZARYA)").is_reflective_panel


# ── OMM records ──────────────────────────────────────────────────────

class TestParseOmmRecord:

    def test_fields(self):
        el = parse_omm_record(SAMPLE_OMM)
        assert el.name == "ISS (ZARYA)"
        assert el.catalog_number == 25544
        assert el.inclination_deg == pytest.approx(51.6314)
        assert el.mean_motion_rev_per_day == pytest.approx(15.4854011)
        assert el.bstar == pytest.approx(0.00022024123)
        assert el.rev_at_epoch == 54321
        assert el.international_designator == "1998-067A"

    def test_epoch_converted_to_day_of_year(self):
        el = parse_omm_record(SAMPLE_OMM)
        assert el.epoch_year == 2026
        expected = 42.0 + (4 * 3600 + 21 * 60 + 12.145248) / 86400.0
        assert el.epoch_day == pytest.approx(expected, abs=1e-9)

    def test_zulu_suffix_accepted(self):
        record = dict(SAMPLE_OMM, EPOCH="2026-02-11T04:21:12.145248Z")
        assert parse_omm_record(record).epoch_day == pytest.approx(parse_omm_record(SAMPLE_OMM).epoch_day)

    def test_optional_fields_default(self):
        record = {k: v for k, v in SAMPLE_OMM.items()
                  if k not in ("BSTAR", "MEAN_MOTION_DOT", "MEAN_MOTION_DDOT", "REV_AT_EPOCH")}
        el = parse_omm_record(record)
        assert el.bstar == 0.0
        assert el.rev_at_epoch == 0

    def test_missing_required_field(self):
        record = {k: v for k, v in SAMPLE_OMM.items() if k != "MEAN_MOTION"}
        with pytest.raises(KeyError):
            parse_omm_record(record)

    def test_bad_epoch(self):
        with pytest.raises(InvalidEpochError):
            parse_omm_record(dict(SAMPLE_OMM, EPOCH="yesterday"))

    def test_epoch_jd(self):
        el = parse_omm_record(SAMPLE_OMM)
        assert math.isfinite(el.epoch_jd)
        # 2026 January 0.0 is JD 2461040.5
        assert el.epoch_jd == pytest.approx(2461040.5 + 42.181390570, abs=1e-6)
