# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Adapters for external element-set sources.

Network I/O is confined to this layer.
"""
from satephem.adapters.celestrak import CelesTrakAdapter, records_to_elements

__all__ = ["CelesTrakAdapter", "records_to_elements"]
