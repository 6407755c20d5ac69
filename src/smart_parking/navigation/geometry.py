"""Planar geometry helpers in normalized lot coordinates."""

import math


def distance(a: tuple[float, float], b: tuple[float, float]) -> float:
    """Euclidean distance between two points."""
    return math.hypot(b[0] - a[0], b[1] - a[1])


def bearing(origin: tuple[float, float], target: tuple[float, float]) -> float:
    """Direction from ``origin`` to ``target`` in degrees, atan2 convention."""
    return math.degrees(math.atan2(target[1] - origin[1], target[0] - origin[0]))


def angle_difference(target_angle: float, heading: float) -> float:
    """
    Signed angle from ``heading`` to ``target_angle`` in (-180, 180].

    Positive means the target is clockwise of the heading (a right turn when
    y grows downward).
    """
    diff = ((target_angle - heading + 540.0) % 360.0) - 180.0
    # The modulo lands exactly-behind targets on -180
    return 180.0 if diff == -180.0 else diff


def normalize_heading(heading: float) -> float:
    """Wrap a heading into [0, 360)."""
    return heading % 360.0
