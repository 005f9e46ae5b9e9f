#!/usr/bin/env python3
"""
sim/traffic_policy.py
=====================
Tunable geometry, motion and scheduling parameters for the intersection
simulation.  Every constant lives in the frozen :class:`TrafficPolicy`
dataclass so that experiments can swap policies without touching code.

Also provides :class:`SimSettings`, the small mutable snapshot (spawn rate,
speed, turn rate) the UI may replace while the simulation runs.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple

TURN_STRATEGIES: Tuple[str, ...] = ("trajectory", "teleport")

VEHICLE_COLORS: Tuple[Tuple[int, int, int], ...] = (
    ( 86, 168, 255),
    (255,  88,  88),
    (100, 226, 170),
    (246, 191,  90),
    (180, 120, 255),
    (255, 160, 100),
)


@dataclass(frozen=True)
class TrafficPolicy:
    """Immutable bag of every tunable simulation parameter.

    Groups: geometry, vehicle body, longitudinal control, turning,
    spawn envelope, signal timing, palette.  Geometry values are read
    once when the road network is built.
    """

    # ── Geometry ──────────────────────────────────────────────────────────
    lane_width_m: float = 3.5
    """Width of a single lane."""

    lanes_per_road: int = 2
    """Lanes per one-way road; a street carries two opposing roads."""

    intersection_entry_u: float = 100.0
    """Station of the stop line (footprint edge) on every approach road."""

    heading_epsilon_m: float = 0.05
    """Half step of the central difference used for tangent headings."""

    # ── Vehicle body ──────────────────────────────────────────────────────
    car_length_m: float = 4.5
    car_width_m: float = 1.9
    car_height_m: float = 1.5

    # ── Longitudinal control ──────────────────────────────────────────────
    spawn_u: float = 10.0
    """Station at which new vehicles appear."""

    approach_accel_mps2: float = 10.0
    """Acceleration while approaching the intersection."""

    crossing_accel_mps2: float = 15.0
    """Acceleration of straight-through vehicles inside the box."""

    crossing_speed_factor: float = 1.2
    """Speed cap inside the box, relative to ``max_speed``."""

    stop_zone_m: float = 30.0
    """Distance before the stop line inside which a red light stops a car."""

    min_following_gap_m: float = 8.0
    """Car-following gap below which an approaching car stops."""

    lane_change_rate: float = 0.0
    """Lanes per second for the tactical lane change; 0 means immediate."""

    # ── Turning ───────────────────────────────────────────────────────────
    right_turn_radius_m: float = 3.0
    """Radius of the road-centreline arc for right turns."""

    left_turn_radius_m: float = 7.0
    """Radius of the road-centreline arc for left turns."""

    turn_window_m: float = 1.5
    """Length of the station window in which a turn can be taken."""

    turn_speed_factor: float = 0.8
    """Speed cap after switching onto a turn, relative to ``max_speed``."""

    turn_strategy: str = "trajectory"
    """``"trajectory"`` follows the turn curve; ``"teleport"`` hides the
    car for ``turn_delays_s`` and relocates it past the curve."""

    turn_delays_s: Tuple[Tuple[str, float], ...] = (
        ("straight", 0.0),
        ("left", 1.2),
        ("right", 0.8),
    )
    """Hidden time per turn type under the teleport strategy, as
    ``(turn_type, seconds)`` pairs so the policy stays hashable."""

    # ── Spawn envelope ────────────────────────────────────────────────────
    spawn_clearance_m: float = 12.0
    """No spawn while a car of the same direction is this close to the spawn point."""

    # ── Signal timing ─────────────────────────────────────────────────────
    signal_green_s: float = 8.0
    signal_yellow_s: float = 2.0
    signal_all_red_s: float = 1.0

    # ── Palette ───────────────────────────────────────────────────────────
    vehicle_colors: Tuple[Tuple[int, int, int], ...] = VEHICLE_COLORS

    def __post_init__(self) -> None:
        if self.turn_strategy not in TURN_STRATEGIES:
            raise ValueError(
                f"turn_strategy must be one of {TURN_STRATEGIES}, got {self.turn_strategy!r}"
            )
        if self.lanes_per_road < 1:
            raise ValueError("lanes_per_road must be at least 1")

    @property
    def road_half_width_m(self) -> float:
        """Half width of a two-way street (= half side of the intersection box)."""
        return self.lanes_per_road * self.lane_width_m

    @property
    def arm_length_m(self) -> float:
        """Distance from the intersection centre to the outer end of an arm."""
        return self.intersection_entry_u + self.road_half_width_m

    def turn_delay_s(self, turn_type: str) -> float:
        return float(dict(self.turn_delays_s).get(turn_type, 0.0))


@dataclass
class SimSettings:
    """Mutable run-time settings; replace via ``VehicleManager.update_settings``."""

    spawn_rate: float = 4.0
    """Relative spawn frequency; the spawn interval is ``10000 / spawn_rate`` ms."""

    car_speed: float = 12.0
    """Cruise speed (m/s) applied to every vehicle's ``max_speed``."""

    turn_rate: float = 0.4
    """Probability that a new vehicle turns (split evenly left / right)."""

    @property
    def spawn_interval_ms(self) -> float:
        if self.spawn_rate <= 0:
            return math.inf
        return 10000.0 / self.spawn_rate
