# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Specular flares from flat satellite panels.

The satellite body frame is built from the velocity (forward), the
orbit normal (left) and their cross product (roughly up). Each panel is
that frame tilted by -40° about the left axis and then yawed by 0°,
120° or 240°. The observer line of sight is mirrored in each panel and
compared with the direction of the light source; the smallest angle over
the panels is the flare angle. The Iridium-class geometry and the
angle-to-magnitude fit follow Randy John's SKYSAT model.
"""
import math

import numpy as np

from satephem.domain.solar import SUN_APPARENT_MAGNITUDE

PANEL_TILT_RAD = math.radians(-40.0)
PANEL_YAWS_RAD = (0.0, math.radians(120.0), math.radians(240.0))

# Rear panels are evaluated only while the best angle exceeds this
PANEL_SHORTCUT_DEG = 2.0

MAXIMUM_FLARE_ANGLE_DEG = 5.0
MAXIMUM_LUNAR_FLARE_ANGLE_DEG = 0.25
FLARE_ANGLE_NOT_APPLICABLE = 100.0

_MAG_SLOPE = 2.1013871
_MAG_OFFSET = -1.6738664
_MIN_ANGLE_DEG = 1.0e-3


def angular_separation(a: np.ndarray, b: np.ndarray) -> float:
    """Angle between two vectors in radians, stable near 0 and π."""
    return math.atan2(float(np.linalg.norm(np.cross(a, b))), float(np.dot(a, b)))


def _body_frame(position: np.ndarray, velocity: np.ndarray) -> np.ndarray:
    forward = velocity / np.linalg.norm(velocity)
    left = np.cross(position, velocity)
    left = left / np.linalg.norm(left)
    up = np.cross(forward, left)
    up = up / np.linalg.norm(up)
    return np.column_stack((forward, left, up))


def _panel_rotation(tilt: float, yaw: float) -> np.ndarray:
    c1, s1 = math.cos(tilt), math.sin(tilt)
    c2, s2 = math.cos(yaw), math.sin(yaw)
    tilt_matrix = np.array([
        [c1, 0.0, -s1],
        [0.0, 1.0, 0.0],
        [s1, 0.0, c1],
    ])
    yaw_matrix = np.array([
        [c2, s2, 0.0],
        [-s2, c2, 0.0],
        [0.0, 0.0, 1.0],
    ])
    return yaw_matrix @ tilt_matrix


def reflection_angle(
    position: np.ndarray,
    velocity: np.ndarray,
    line_of_sight: np.ndarray,
    source: np.ndarray,
    tilt: float,
    yaw: float,
) -> float:
    """
    Angle (rad) between the source and the line of sight mirrored in one panel.

    Args:
        position: Geocentric satellite position, any unit.
        velocity: Satellite velocity in the same frame.
        line_of_sight: Observer-to-satellite vector.
        source: Direction of the light source (Sun or Moon).
        tilt: Panel rotation about the left axis (rad).
        yaw: Panel rotation about the up axis (rad).

    Returns:
        Angle in radians, or π when the source is behind the panel.
    """
    mirror = _body_frame(position, velocity) @ _panel_rotation(tilt, yaw)
    local = mirror.T @ line_of_sight
    local[0] = -local[0]
    if local[0] < 0.0:
        return math.pi
    return angular_separation(source, mirror @ local)


def flare_angle(
    position: np.ndarray,
    velocity: np.ndarray,
    line_of_sight: np.ndarray,
    source: np.ndarray,
) -> float:
    """Smallest reflection angle over the three panels, in degrees."""
    def panel(yaw: float) -> float:
        return math.degrees(reflection_angle(
            position, velocity, line_of_sight, source, PANEL_TILT_RAD, yaw,
        ))

    best = panel(PANEL_YAWS_RAD[0])
    left = best + 3.0
    if best > PANEL_SHORTCUT_DEG:
        left = panel(PANEL_YAWS_RAD[1])
        best = min(best, left)
    if best > PANEL_SHORTCUT_DEG and left > PANEL_SHORTCUT_DEG:
        best = min(best, panel(PANEL_YAWS_RAD[2]))
    return best


def flare_magnitude(angle_deg: float) -> float:
    """Visual magnitude of a solar flare for a given flare angle (deg)."""
    return _MAG_SLOPE * math.log(max(angle_deg, _MIN_ANGLE_DEG)) + _MAG_OFFSET


def lunar_flare_magnitude(angle_deg: float, moon_magnitude: float) -> float:
    """Flare magnitude scaled from sunlight to moonlight."""
    return flare_magnitude(angle_deg) - SUN_APPARENT_MAGNITUDE + moon_magnitude
