# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Exceptions raised at construction and validation time.

Propagation and search never raise; they degrade to the last iterate or
to a sentinel value instead.
"""


class InvalidInputError(ValueError):
    """Malformed element set, configuration, or search parameter."""


class InvalidEpochError(ValueError):
    """Element-set epoch cannot be resolved to a calendar date."""
