#!/usr/bin/env python3
"""
sim/physics.py
==============
Low-level geometry and motion helpers used by :mod:`sim.network` and
:mod:`sim.car`.

Keeping these in a separate module avoids circular imports and makes unit
testing straightforward.
"""

from __future__ import annotations

import math
from typing import Tuple

VERTICAL_TOLERANCE = 1e-9
"""Below this ``|dx|`` a tangent is treated as vertical."""


def ms_to_s(delta_ms: float) -> float:
    """Convert a tick duration in milliseconds to seconds."""
    return float(delta_ms) / 1000.0


def clamp(value: float, lo: float, hi: float) -> float:
    """Clamp *value* into ``[lo, hi]``."""
    return max(lo, min(hi, value))


def tangent_angle(dx: float, dy: float, tolerance: float = VERTICAL_TOLERANCE) -> float:
    """Heading of the chord ``(dx, dy)``.

    Uses ``atan(dy / dx)`` and resolves the quadrant by adding π when the
    chord points towards negative ``x`` (or straight down when vertical).
    The result lies in ``[-π/2, 3π/2)``.

    Parameters
    ----------
    dx, dy : float
        Chord between two samples of a trajectory.
    tolerance : float
        ``|dx|`` below which the chord is considered vertical.
    """
    if abs(dx) < tolerance:
        angle = math.pi / 2
        if dy < 0:
            angle += math.pi
        return angle
    angle = math.atan(dy / dx)
    if dx < 0:
        angle += math.pi
    return angle


def lane_change_tilt(dvdt: float, lane_width: float, speed: float) -> float:
    """Body tilt (rad) while drifting across lanes at *dvdt* lanes/s.

    Zero when the vehicle is stationary.
    """
    if speed == 0:
        return 0.0
    return math.atan(-(dvdt * lane_width) / speed)


def right_normal(angle: float) -> Tuple[float, float]:
    """Unit vector pointing to the right of a heading *angle*."""
    return (math.sin(angle), -math.cos(angle))


def distance(x0: float, y0: float, x1: float, y1: float) -> float:
    """Euclidean distance between two points."""
    return math.hypot(x1 - x0, y1 - y0)


def accelerate(speed: float, rate: float, dt: float, cap: float) -> float:
    """Speed after accelerating at *rate* for *dt* seconds, capped at *cap*."""
    return min(cap, speed + rate * dt)
