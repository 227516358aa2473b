# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Port interfaces for element-set sources.

Adapters implement these to fetch catalogs over the network.
"""
from satephem.ports.element_source import ElementSource

__all__ = ["ElementSource"]
