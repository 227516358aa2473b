# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
CelesTrak adapter: fetches element sets and converts them to domain objects.

External I/O (urllib, json) is confined to this layer.

Data sources:
    CelesTrak GP API — https://celestrak.org/NORAD/elements/gp.php
    Groups: STATIONS, IRIDIUM, IRIDIUM-NEXT, GPS-OPS, GEO, VISUAL, etc.

Both the OMM JSON and the classic three-line TLE formats are supported;
JSON is the default because it carries the full catalog number range.
"""
import json
import logging
import urllib.error
import urllib.request
from typing import Any
from urllib.parse import quote

from satephem.domain.elements import OrbitalElementSet, parse_omm_record, parse_tle_catalog
from satephem.ports.element_source import ElementSource

_log = logging.getLogger(__name__)

BASE_URL = "https://celestrak.org/NORAD/elements/gp.php"
USER_AGENT = "satephem/0.3"

_NO_DATA = "No GP data found"


class CelesTrakAdapter(ElementSource):
    """
    Fetches mean-element sets from CelesTrak's GP API.

    Rate limiting: CelesTrak updates at most every 2 hours; callers that
    poll should cache results.
    """

    def __init__(self, base_url: str = BASE_URL, timeout: int = 30,
                 fmt: str = "JSON"):
        if fmt not in ("JSON", "TLE"):
            raise ValueError(f"Format must be JSON or TLE, got {fmt!r}")
        self._base_url = base_url
        self._timeout = timeout
        self._fmt = fmt

    def fetch_group(self, group_name: str) -> list[OrbitalElementSet]:
        return self._fetch(f"GROUP={quote(group_name)}")

    def fetch_by_name(self, name: str) -> list[OrbitalElementSet]:
        return self._fetch(f"NAME={quote(name)}")

    def fetch_by_catnr(self, catalog_number: int) -> list[OrbitalElementSet]:
        return self._fetch(f"CATNR={int(catalog_number)}")

    def _fetch(self, query: str) -> list[OrbitalElementSet]:
        url = f"{self._base_url}?{query}&FORMAT={self._fmt}"
        text = self._fetch_text(url)
        if text.strip() == _NO_DATA:
            return []
        if self._fmt == "TLE":
            return parse_tle_catalog(text)
        return records_to_elements(json.loads(text))

    def _fetch_text(self, url: str) -> str:
        """Fetch a response body from the CelesTrak API."""
        req = urllib.request.Request(url, headers={"User-Agent": USER_AGENT})
        _log.debug("GET %s", url)
        try:
            with urllib.request.urlopen(req, timeout=self._timeout) as response:
                return response.read().decode("utf-8")
        except urllib.error.HTTPError as e:
            raise ConnectionError(f"CelesTrak API error {e.code}: {e.reason}") from e
        except urllib.error.URLError as e:
            raise ConnectionError(f"CelesTrak connection failed: {e.reason}") from e


def records_to_elements(records: list[dict[str, Any]]) -> list[OrbitalElementSet]:
    """Convert OMM records, skipping (and logging) any that do not parse."""
    elements = []
    for record in records:
        try:
            elements.append(parse_omm_record(record))
        except (ValueError, KeyError, TypeError) as e:
            _log.warning("Skipping %s: %s", record.get("OBJECT_NAME", "?"), e)
            continue
    return elements
