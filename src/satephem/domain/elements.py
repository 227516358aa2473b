# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Mean-element sets and their text formats.

Parses NORAD two-line element sets (with checksum validation), multi-entry
TLE catalogs, and CelesTrak OMM JSON records into immutable
OrbitalElementSet values. No external dependencies, only stdlib.
"""
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from satephem.domain.errors import InvalidInputError, InvalidEpochError
from satephem.domain.time_systems import epoch_to_jd

logger = logging.getLogger(__name__)

_STATUS_SUFFIX = re.compile(r"\s*\[([^\]]*)\]\s*$")


class OperationalStatus(Enum):
    """Catalog status flag carried as a bracketed suffix on the name."""
    IN_SERVICE = "+"
    FAILED = "-"
    SPARE = "S"
    UNKNOWN = "?"


@dataclass(frozen=True)
class OrbitalElementSet:
    """Classical SGP4 mean elements at an epoch.

    Angles in degrees, mean motion in rev/day. ``mean_motion_dot`` and
    ``mean_motion_ddot`` follow the TLE convention (ṅ/2 in rev/day²,
    n̈/6 in rev/day³). ``bstar`` is in inverse Earth radii.
    """
    name: str
    catalog_number: int
    epoch_year: int
    epoch_day: float
    inclination_deg: float
    raan_deg: float
    eccentricity: float
    arg_perigee_deg: float
    mean_anomaly_deg: float
    mean_motion_rev_per_day: float
    mean_motion_dot: float = 0.0
    mean_motion_ddot: float = 0.0
    bstar: float = 0.0
    rev_at_epoch: int = 0
    international_designator: str = ""
    classification: str = "U"

    def __post_init__(self) -> None:
        if not self.mean_motion_rev_per_day > 0.0:
            raise InvalidInputError(
                f"Mean motion must be positive, got {self.mean_motion_rev_per_day}"
            )
        if not 0.0 <= self.eccentricity < 1.0:
            raise InvalidInputError(
                f"Eccentricity must be in [0, 1), got {self.eccentricity}"
            )

    @property
    def epoch_jd(self) -> float:
        """UTC Julian day of the epoch; raises InvalidEpochError if unresolvable."""
        return epoch_to_jd(self.epoch_year, self.epoch_day)

    @property
    def is_reflective_panel(self) -> bool:
        """True for satellites carrying the flat mirror-like antenna panels (Iridium)."""
        return "iridium" in self.name.lower()

    @property
    def status(self) -> OperationalStatus:
        match = _STATUS_SUFFIX.search(self.name)
        if match is None:
            return OperationalStatus.UNKNOWN
        flag = match.group(1).strip().upper()
        for status in OperationalStatus:
            if status.value == flag:
                return status
        return OperationalStatus.UNKNOWN

    @property
    def display_name(self) -> str:
        return _STATUS_SUFFIX.sub("", self.name).strip()


def tle_checksum(line: str) -> int:
    """Modulo-10 checksum over the first 68 columns (digits, minus signs count 1)."""
    total = 0
    for ch in line[:68]:
        if ch.isdigit():
            total += int(ch)
        elif ch == "-":
            total += 1
    return total % 10


def _implied_decimal(field: str) -> float:
    """Parse the TLE ``±NNNNN±E`` notation, e.g. ``-11606-4`` → -0.11606e-4."""
    text = field.strip()
    if not text:
        return 0.0
    sign = -1.0 if text[0] == "-" else 1.0
    text = text.lstrip("+-")
    if len(text) < 2 or text[-2] not in "+-":
        return sign * float("0." + text)
    mantissa = float("0." + text[:-2])
    exponent = int(text[-2:])
    return sign * mantissa * 10.0 ** exponent


def _validate_line(line: str, number: str) -> None:
    if len(line) < 69:
        raise InvalidInputError(f"TLE line {number} is too short: {line!r}")
    if line[0] != number:
        raise InvalidInputError(f"Expected TLE line {number}, got {line!r}")
    expected = tle_checksum(line)
    if not line[68].isdigit() or int(line[68]) != expected:
        raise InvalidInputError(
            f"TLE line {number} checksum mismatch: "
            f"expected {expected}, found {line[68]!r}"
        )


def parse_tle(name: str, line1: str, line2: str) -> OrbitalElementSet:
    """
    Parse a NORAD two-line element set.

    Args:
        name: Satellite name (title line); may carry a ``[+]``/``[-]``/``[S]`` suffix.
        line1: First element line (69 columns).
        line2: Second element line (69 columns).

    Returns:
        OrbitalElementSet.

    Raises:
        InvalidInputError: Wrong line number, short line, checksum mismatch,
            unparseable field or mismatched catalog numbers.
    """
    line1 = line1.rstrip()
    line2 = line2.rstrip()
    _validate_line(line1, "1")
    _validate_line(line2, "2")

    try:
        catalog_1 = int(line1[2:7])
        catalog_2 = int(line2[2:7])
        two_digit_year = int(line1[18:20])
        epoch_day = float(line1[20:32])
        ndot = float(line1[33:43])
        nddot = _implied_decimal(line1[44:52])
        bstar = _implied_decimal(line1[53:61])

        inclination = float(line2[8:16])
        raan = float(line2[17:25])
        eccentricity = float("0." + line2[26:33].strip())
        arg_perigee = float(line2[34:42])
        mean_anomaly = float(line2[43:51])
        mean_motion = float(line2[52:63])
        rev_field = line2[63:68].strip()
        rev_at_epoch = int(rev_field) if rev_field else 0
    except ValueError as e:
        raise InvalidInputError(f"Malformed TLE field: {e}") from e

    if catalog_1 != catalog_2:
        raise InvalidInputError(
            f"Catalog numbers differ between lines: {catalog_1} != {catalog_2}"
        )

    # Two-digit years: 57-99 → 1900s, 00-56 → 2000s.
    year = two_digit_year + (1900 if two_digit_year >= 57 else 2000)

    return OrbitalElementSet(
        name=name.strip() or str(catalog_1),
        catalog_number=catalog_1,
        epoch_year=year,
        epoch_day=epoch_day,
        inclination_deg=inclination,
        raan_deg=raan,
        eccentricity=eccentricity,
        arg_perigee_deg=arg_perigee,
        mean_anomaly_deg=mean_anomaly,
        mean_motion_rev_per_day=mean_motion,
        mean_motion_dot=ndot,
        mean_motion_ddot=nddot,
        bstar=bstar,
        rev_at_epoch=rev_at_epoch,
        international_designator=line1[9:17].strip(),
        classification=line1[7].strip() or "U",
    )


def parse_tle_catalog(text: str) -> list[OrbitalElementSet]:
    """Parse a catalog of 2- or 3-line entries.

    Entries that fail to parse are skipped with a warning. Two-line
    entries are named after their catalog number.
    """
    lines = [ln.rstrip() for ln in text.splitlines() if ln.strip()]
    results: list[OrbitalElementSet] = []
    name = ""
    i = 0
    while i < len(lines):
        line = lines[i]
        if line.startswith("1 ") and i + 1 < len(lines) and lines[i + 1].startswith("2 "):
            try:
                results.append(parse_tle(name, line, lines[i + 1]))
            except InvalidInputError as e:
                logger.warning("Skipping element set %r: %s", name or line[2:7], e)
            name = ""
            i += 2
            continue
        name = line[2:].strip() if line.startswith("0 ") else line.strip()
        i += 1
    return results


def _omm_epoch(epoch: str) -> tuple[int, float]:
    try:
        dt = datetime.fromisoformat(epoch.replace("Z", "+00:00"))
    except ValueError as e:
        raise InvalidEpochError(f"Unparseable OMM epoch: {epoch!r}") from e
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    start = datetime(dt.year, 1, 1, tzinfo=timezone.utc)
    day = 1.0 + (dt - start).total_seconds() / 86400.0
    return dt.year, day


def parse_omm_record(record: dict) -> OrbitalElementSet:
    """
    Parse a CelesTrak OMM JSON record into an OrbitalElementSet.

    Args:
        record: Dict from the CelesTrak JSON API with OMM fields.

    Returns:
        OrbitalElementSet.

    Raises:
        KeyError: If a required field is missing.
        InvalidInputError: If mean motion or eccentricity is out of range.
        InvalidEpochError: If EPOCH is not an ISO timestamp.
    """
    year, day = _omm_epoch(record["EPOCH"])
    return OrbitalElementSet(
        name=record["OBJECT_NAME"],
        catalog_number=int(record["NORAD_CAT_ID"]),
        epoch_year=year,
        epoch_day=day,
        inclination_deg=float(record["INCLINATION"]),
        raan_deg=float(record["RA_OF_ASC_NODE"]),
        eccentricity=float(record["ECCENTRICITY"]),
        arg_perigee_deg=float(record["ARG_OF_PERICENTER"]),
        mean_anomaly_deg=float(record["MEAN_ANOMALY"]),
        mean_motion_rev_per_day=float(record["MEAN_MOTION"]),
        mean_motion_dot=float(record.get("MEAN_MOTION_DOT", 0.0)),
        mean_motion_ddot=float(record.get("MEAN_MOTION_DDOT", 0.0)),
        bstar=float(record.get("BSTAR", 0.0)),
        rev_at_epoch=int(record.get("REV_AT_EPOCH", 0)),
        international_designator=record.get("OBJECT_ID", ""),
        classification=record.get("CLASSIFICATION_TYPE", "U"),
    )
