# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Port interface for external element-set sources.

Adapters handle the actual HTTP/API calls.
"""
from typing import Protocol, runtime_checkable

from satephem.domain.elements import OrbitalElementSet


@runtime_checkable
class ElementSource(Protocol):
    """Port for fetching mean-element sets from external catalogs."""

    def fetch_group(self, group_name: str) -> list[OrbitalElementSet]:
        """Fetch element sets for a named satellite group."""
        ...

    def fetch_by_name(self, name: str) -> list[OrbitalElementSet]:
        """Fetch element sets whose name matches."""
        ...

    def fetch_by_catnr(self, catalog_number: int) -> list[OrbitalElementSet]:
        """Fetch the element set for a NORAD catalog number."""
        ...
