# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Command-line interface for satellite ephemerides and visibility searches.

Usage:
    # Element sets from a local TLE catalog
    satephem passes --tle stations.txt --lat 40.4 --lon -3.7 --days 2
    satephem ephemeris --tle stations.txt --satellite "ISS" --lat 40.4 --lon -3.7

    # Live element sets from CelesTrak
    satephem flares --group IRIDIUM --lat 40.4 --lon -3.7 --precision 2
    satephem flares --group IRIDIUM --lat 40.4 --lon -3.7 --lunar
    satephem transits --catnr 25544 --lat 40.4 --lon -3.7 --days 7
"""
import argparse
import logging
import sys
from datetime import datetime, timezone

from satephem.domain.elements import OrbitalElementSet, parse_tle_catalog
from satephem.domain.observation import EphemerisConfig, Observer, observe
from satephem.domain.propagator import create_propagator
from satephem.domain.time_systems import datetime_to_jd, jd_to_datetime
from satephem.domain.visibility import (
    compute_full_ephemeris,
    next_body_transits,
    next_flares,
    next_lunar_flares,
    next_pass,
    rise_set_transit,
)


def _format_jd(jd: float) -> str:
    if jd == 0.0:
        return "unknown"
    return jd_to_datetime(abs(jd)).strftime("%Y-%m-%d %H:%M:%S UTC")


def load_elements(args: argparse.Namespace) -> list[OrbitalElementSet]:
    """Element sets from a TLE file or CelesTrak, filtered by ``--satellite``."""
    if args.tle:
        with open(args.tle, encoding="utf-8") as f:
            elements = parse_tle_catalog(f.read())
    else:
        from satephem.adapters.celestrak import CelesTrakAdapter

        celestrak = CelesTrakAdapter()
        if args.group:
            elements = celestrak.fetch_group(args.group)
        elif args.name:
            elements = celestrak.fetch_by_name(args.name)
        else:
            elements = celestrak.fetch_by_catnr(args.catnr)

    if args.satellite:
        needle = args.satellite.lower()
        elements = [e for e in elements if needle in e.name.lower()]
    if not elements:
        raise ValueError("No element sets matched the selection")
    return elements


def run_passes(elements, jd, observer, config, args) -> None:
    for element_set in elements:
        propagator = create_propagator(element_set)
        pass_jd = next_pass(propagator, jd, observer, config,
                            args.min_elevation, args.days, True)
        if pass_jd == 0.0:
            print(f"{element_set.display_name}: no pass")
            continue
        ephem = observe(propagator, abs(pass_jd), observer, config)
        rst = rise_set_transit(propagator, ephem, observer, config)
        eclipsed = " (eclipsed)" if pass_jd < 0.0 else ""
        print(
            f"{element_set.display_name}: rise {_format_jd(rst.rise_jd)}, "
            f"transit {_format_jd(rst.transit_jd)} at {rst.transit_elevation_deg:.1f}°, "
            f"set {_format_jd(rst.set_jd)}{eclipsed}"
        )


def run_flares(elements, jd, observer, config, args) -> None:
    search = next_lunar_flares if args.lunar else next_flares
    count = 0
    for element_set in elements:
        if not element_set.is_reflective_panel:
            continue
        events = search(element_set, jd, observer, config,
                        args.min_elevation, args.days, args.precision)
        for event in events:
            count += 1
            print(
                f"{element_set.display_name}: peak {_format_jd(event.peak_jd)}, "
                f"mag {event.peak.magnitude:.1f}, angle {event.min_angle_deg:.2f}°, "
                f"az {event.peak.azimuth_deg:.1f}° el {event.peak.elevation_deg:.1f}°"
            )
    print(f"{count} flares found")


def run_ephemeris(elements, jd, observer, config, args) -> None:
    for element_set in elements:
        ephem = compute_full_ephemeris(element_set, jd, observer, config)
        print(
            f"{ephem.name}: az {ephem.azimuth_deg:.2f}° el {ephem.elevation_deg:.2f}° "
            f"range {ephem.range_km:.1f} km, RA {ephem.right_ascension_deg:.3f}° "
            f"Dec {ephem.declination_deg:.3f}°, {ephem.visibility.value}, "
            f"next pass {_format_jd(ephem.next_pass_jd or 0.0)}"
        )


def run_transits(elements, jd, observer, config, args) -> None:
    for element_set in elements:
        for transit in next_body_transits(element_set, jd, observer, config, args.days):
            print(
                f"{element_set.display_name} crosses the {transit.body}: "
                f"{_format_jd(transit.start_jd)} to {_format_jd(transit.end_jd)}, "
                f"el {transit.elevation_deg:.1f}°"
            )


_COMMANDS = {
    "passes": run_passes,
    "flares": run_flares,
    "ephemeris": run_ephemeris,
    "transits": run_transits,
}


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Satellite ephemerides, passes and flares (SGP4/SDP4)"
    )
    parser.add_argument('--verbose', '-v', action='store_true', help="Debug logging")
    parser.add_argument('command', choices=sorted(_COMMANDS), help="What to compute")

    source = parser.add_argument_group('element sets')
    exclusive = source.add_mutually_exclusive_group(required=True)
    exclusive.add_argument('--tle', help="Path to a 2- or 3-line TLE catalog")
    exclusive.add_argument('--group', help="CelesTrak group (e.g. STATIONS, IRIDIUM)")
    exclusive.add_argument('--name', help="CelesTrak name search")
    exclusive.add_argument('--catnr', type=int, help="NORAD catalog number")
    source.add_argument('--satellite', help="Keep only names containing this text")

    site = parser.add_argument_group('observer')
    site.add_argument('--lat', type=float, required=True, help="Latitude (deg, + north)")
    site.add_argument('--lon', type=float, required=True, help="Longitude (deg, + east)")
    site.add_argument('--height-km', type=float, default=0.0, help="Height (km, default: 0)")

    search = parser.add_argument_group('search')
    search.add_argument('--start', help="UTC start time, ISO 8601 (default: now)")
    search.add_argument('--days', type=float, default=1.0, help="Search window (default: 1)")
    search.add_argument('--min-elevation', type=float, default=10.0,
                        help="Minimum elevation in degrees (default: 10)")
    search.add_argument('--precision', type=int, default=5,
                        help="Flare scan step, 1-10 s (default: 5)")
    search.add_argument('--lunar', action='store_true', help="Search lunar flares")
    search.add_argument('--apparent', action='store_true',
                        help="Apparent coordinates (nutation in hour angle, refraction)")
    search.add_argument('--extinction', action='store_true',
                        help="Correct flare magnitudes for extinction (implies --apparent)")
    return parser


def main():
    parser = _build_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        start = datetime.fromisoformat(args.start) if args.start else datetime.now(tz=timezone.utc)
        jd = datetime_to_jd(start)
        observer = Observer("observer", args.lat, args.lon, args.height_km)
        config = EphemerisConfig(
            apparent=args.apparent or args.extinction,
            correct_extinction=args.extinction,
        )
        elements = load_elements(args)
        _COMMANDS[args.command](elements, jd, observer, config, args)
    except FileNotFoundError as e:
        print(f"Error: TLE file not found: {e.filename}", file=sys.stderr)
        sys.exit(1)
    except (ValueError, ConnectionError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
