#!/usr/bin/env python3
"""
sim/network.py
==============
Road geometry for a single four-way intersection.

Defines :class:`Trajectory` (a piecewise line/arc path parametrised by arc
length), :class:`AlternativeTrajectory` (a turn that overrides a road over a
short station window), :class:`RoadSegment` and :class:`RoadNetwork`, which
maps a vehicle's ``(road_id, u, v)`` to a world pose.

:func:`build_network` lays out the four straight approach roads and the
eight turn roads for a :class:`~sim.traffic_policy.TrafficPolicy`.

World frame: metres, origin at the intersection centre, ``x`` east,
``y`` north.  Traffic keeps to the right.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np

from sim.physics import clamp, lane_change_tilt, right_normal, tangent_angle
from sim.traffic_policy import TrafficPolicy

log = logging.getLogger("network")

Point = Tuple[float, float]


# ── Directions and turns ──────────────────────────────────────────────────────

class Direction(Enum):
    """Arm of the intersection a vehicle comes from."""
    NORTH = "N"
    EAST = "E"
    SOUTH = "S"
    WEST = "W"

    @classmethod
    def parse(cls, value: Any) -> Optional["Direction"]:
        """Return the matching direction, or ``None`` when *value* is not one."""
        if isinstance(value, cls):
            return value
        text = str(value).strip().upper()
        for member in cls:
            if text in (member.value, member.name):
                return member
        return None


class TurnType(Enum):
    """Manoeuvre a vehicle performs inside the box."""
    STRAIGHT = "straight"
    LEFT = "left"
    RIGHT = "right"


# Clockwise order; index arithmetic gives the destination arm.
_CLOCKWISE: Tuple[Direction, ...] = (
    Direction.NORTH, Direction.EAST, Direction.SOUTH, Direction.WEST,
)
_TURN_STEPS: Dict[TurnType, int] = {
    TurnType.LEFT: 1,
    TurnType.STRAIGHT: 2,
    TurnType.RIGHT: 3,
}

# Heading of travel (rad) for traffic entering from each arm.
_TRAVEL_HEADING: Dict[Direction, float] = {
    Direction.NORTH: -math.pi / 2,
    Direction.EAST: math.pi,
    Direction.SOUTH: math.pi / 2,
    Direction.WEST: 0.0,
}


def destination(from_direction: Direction, turn_type: TurnType) -> Direction:
    """Arm a vehicle leaves through after performing *turn_type*."""
    idx = _CLOCKWISE.index(from_direction)
    return _CLOCKWISE[(idx + _TURN_STEPS[turn_type]) % 4]


def opposite(direction: Direction) -> Direction:
    return destination(direction, TurnType.STRAIGHT)


def road_id_for(from_direction: Direction, to_direction: Direction) -> str:
    """Road ids read ``"<from>><to>"``, e.g. ``"N>S"`` or ``"W>N"``."""
    return f"{from_direction.value}>{to_direction.value}"


# ── Path pieces ───────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class _Line:
    x0: float
    y0: float
    heading: float
    length: float

    def point(self, s: float) -> Point:
        return (self.x0 + s * math.cos(self.heading),
                self.y0 + s * math.sin(self.heading))


@dataclass(frozen=True)
class _Arc:
    cx: float
    cy: float
    radius: float
    start_angle: float
    sweep: float  # signed, positive = counter-clockwise

    @property
    def length(self) -> float:
        return self.radius * abs(self.sweep)

    def point(self, s: float) -> Point:
        a = self.start_angle + math.copysign(s / self.radius, self.sweep)
        return (self.cx + self.radius * math.cos(a),
                self.cy + self.radius * math.sin(a))


class Trajectory:
    """Continuous path made of consecutive lines and arcs.

    ``x(u)`` / ``y(u)`` are defined for ``u`` in ``[0, length]``; inputs
    outside the domain are clamped to the nearest end.
    """

    def __init__(self, pieces: Sequence[Union[_Line, _Arc]]) -> None:
        if not pieces:
            raise ValueError("a trajectory needs at least one piece")
        self._pieces = tuple(pieces)
        starts: List[float] = []
        total = 0.0
        for piece in self._pieces:
            starts.append(total)
            total += piece.length
        self._starts = tuple(starts)
        self.length = total

    def point(self, u: float) -> Point:
        u = clamp(u, 0.0, self.length)
        last = len(self._pieces) - 1
        for i, piece in enumerate(self._pieces):
            start = self._starts[i]
            if i == last or u <= start + piece.length:
                return piece.point(u - start)
        raise AssertionError("unreachable")

    def x(self, u: float) -> float:
        return self.point(u)[0]

    def y(self, u: float) -> float:
        return self.point(u)[1]


class _PathBuilder:
    """Turtle-style builder: walk forward and turn along arcs."""

    def __init__(self, x: float, y: float, heading: float) -> None:
        self.x = x
        self.y = y
        self.heading = heading
        self.pieces: List[Union[_Line, _Arc]] = []

    def forward(self, length: float) -> "_PathBuilder":
        if length <= 0.0:
            return self
        line = _Line(self.x, self.y, self.heading, length)
        self.pieces.append(line)
        self.x, self.y = line.point(length)
        return self

    def arc(self, radius: float, sweep: float) -> "_PathBuilder":
        """Turn by *sweep* radians (positive = left) on a circle of *radius*."""
        side = 1.0 if sweep > 0 else -1.0
        cx = self.x - side * radius * math.sin(self.heading)
        cy = self.y + side * radius * math.cos(self.heading)
        start = math.atan2(self.y - cy, self.x - cx)
        arc = _Arc(cx, cy, radius, start, sweep)
        self.pieces.append(arc)
        self.x, self.y = arc.point(arc.length)
        self.heading += sweep
        return self

    @property
    def travelled(self) -> float:
        return sum(p.length for p in self.pieces)

    def build(self) -> Trajectory:
        return Trajectory(self.pieces)


def _tangent_at(traj: Trajectory, s: float, eps: float) -> float:
    """Tangent angle of *traj* at station *s* by central difference."""
    s = clamp(s, eps, max(eps, traj.length - eps))
    x0, y0 = traj.point(s - eps)
    x1, y1 = traj.point(s + eps)
    return tangent_angle(x1 - x0, y1 - y0)


def _offset_point(traj: Trajectory, s: float, lateral: float, eps: float) -> Point:
    """Point at station *s*, displaced *lateral* metres to the right."""
    bx, by = traj.point(s)
    if lateral == 0.0:
        return (bx, by)
    nx, ny = right_normal(_tangent_at(traj, s, eps))
    return (bx + lateral * nx, by + lateral * ny)


# ── Road segment ──────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class AlternativeTrajectory:
    """A turn that takes over from a road's primary trajectory.

    Applies to vehicles whose station lies in ``[u_min, u_max]`` and whose
    committed lane lies in ``[lane_min, lane_max]``.  Taking it moves the
    vehicle onto ``road_id`` at ``u_min``; the curve itself ends at station
    ``exit_u`` of that road.
    """

    road_id: str
    turn_type: TurnType
    u_min: float
    u_max: float
    lane_min: int
    lane_max: int
    exit_u: float
    trajectory: Trajectory = field(repr=False, compare=False)
    shift: float = 0.0
    epsilon: float = 0.05

    def applies(self, u: float, lane: float, u_from: Optional[float] = None) -> bool:
        """Lane matches and *u* lies in the window.

        With *u_from* the test is whether the stretch ``[u_from, u]`` driven
        since the last check overlaps the window, so a coarse tick cannot
        step over it.
        """
        if not self.lane_min <= lane <= self.lane_max:
            return False
        if u_from is None:
            return self.u_min <= u <= self.u_max
        return min(u_from, u) <= self.u_max and u >= self.u_min

    def curve_point(self, s: float, lateral: float = 0.0) -> Point:
        """Position *s* metres after the turn start."""
        return _offset_point(self.trajectory, self.u_min - self.shift + s, lateral, self.epsilon)

    def point(self, u: float, lateral: float = 0.0) -> Point:
        """Position at vehicle station *u* (same convention as ``position_on``)."""
        return self.curve_point(u - self.u_min, lateral)

    @property
    def curve_length(self) -> float:
        return self.exit_u - self.u_min


@dataclass(frozen=True)
class RoadSegment:
    """A one-way road with ``lane_count`` lanes.

    ``from_direction``/``to_direction`` name the arms it connects;
    ``alternatives`` lists the turns that may be taken from it.
    """

    id: str
    from_direction: Direction
    to_direction: Direction
    lane_count: int
    trajectory: Trajectory = field(repr=False, compare=False)
    alternatives: Tuple[AlternativeTrajectory, ...] = ()

    @property
    def length(self) -> float:
        return self.trajectory.length

    @property
    def turn_type(self) -> TurnType:
        steps = (_CLOCKWISE.index(self.to_direction)
                 - _CLOCKWISE.index(self.from_direction)) % 4
        for turn, n in _TURN_STEPS.items():
            if n == steps:
                return turn
        return TurnType.STRAIGHT


# ── Road network ──────────────────────────────────────────────────────────────

class RoadNetwork:
    """Every road of the intersection plus the coordinate transforms.

    Provides helpers used by :class:`~sim.car.Car`,
    :class:`~sim.world.VehicleManager` and the UI:

    * **position_on / heading_on**: ``(road_id, u, v)`` → world pose.
    * **find_alternative_trajectory**: which turn, if any, applies.
    * **entry/exit/spawn/stop-line/light points**: static geometry.
    * **is_within_intersection_footprint**: the central box test.

    Unknown road ids and directions yield ``None`` rather than raising.
    """

    def __init__(
        self,
        roads: Sequence[RoadSegment],
        policy: Optional[TrafficPolicy] = None,
        *,
        center: Point = (0.0, 0.0),
    ) -> None:
        self.policy = policy or TrafficPolicy()
        self.roads: Dict[str, RoadSegment] = {r.id: r for r in roads}
        self.center_x, self.center_y = center
        self.lane_width = self.policy.lane_width_m
        self.half_width = self.policy.road_half_width_m
        self.vehicle_shift = self.policy.car_length_m / 2.0
        self._eps = self.policy.heading_epsilon_m

    # ── lookup ────────────────────────────────────────────────────────────

    def road(self, road_id: str) -> Optional[RoadSegment]:
        road = self.roads.get(road_id)
        if road is None:
            log.warning("Unknown road id %r", road_id)
        return road

    def road_for(self, from_direction: Any, turn_type: TurnType) -> Optional[RoadSegment]:
        d = Direction.parse(from_direction)
        if d is None:
            log.warning("Invalid direction %r", from_direction)
            return None
        return self.roads.get(road_id_for(d, destination(d, turn_type)))

    def straight_road_id(self, from_direction: Any) -> Optional[str]:
        road = self.road_for(from_direction, TurnType.STRAIGHT)
        return road.id if road else None

    # ── pose ──────────────────────────────────────────────────────────────

    def position_on(self, road_id: str, u: float, v: float) -> Optional[Point]:
        """World position of a vehicle at station *u* in lane offset *v*.

        The primary trajectory is sampled half a vehicle length behind
        ``u`` so that ``u`` marks the vehicle's leading edge; the lane
        offset is applied along the right-hand normal.
        """
        road = self.road(road_id)
        if road is None:
            return None
        lateral = self.lane_width * (v - 0.5 * (road.lane_count - 1))
        return _offset_point(road.trajectory, u - self.vehicle_shift, lateral, self._eps)

    def heading_on(
        self, road_id: str, u: float, dvdt: float = 0.0, speed: float = 0.0,
    ) -> Optional[float]:
        """Body heading (rad) at station *u*, tilted into any lane change."""
        road = self.road(road_id)
        if road is None:
            return None
        base = _tangent_at(road.trajectory, u - self.vehicle_shift, self._eps)
        return base + lane_change_tilt(dvdt, self.lane_width, speed)

    def find_alternative_trajectory(
        self, road_id: str, u: float, lane: float, u_from: Optional[float] = None,
    ) -> Optional[AlternativeTrajectory]:
        road = self.roads.get(road_id)
        if road is None:
            return None
        for alt in road.alternatives:
            if alt.applies(u, lane, u_from):
                return alt
        return None

    # ── static geometry ───────────────────────────────────────────────────

    def is_within_intersection_footprint(self, x: float, y: float) -> bool:
        h = self.half_width
        return (self.center_x - h <= x <= self.center_x + h
                and self.center_y - h <= y <= self.center_y + h)

    def entry_point(self, direction: Any) -> Optional[Point]:
        """Centreline start of the approach road from *direction*."""
        road = self.road_for(direction, TurnType.STRAIGHT)
        return road.trajectory.point(0.0) if road else None

    def exit_point(self, direction: Any) -> Optional[Point]:
        """Centreline end of the road leaving the box towards *direction*."""
        d = Direction.parse(direction)
        if d is None:
            log.warning("Invalid direction %r", direction)
            return None
        road = self.road_for(opposite(d), TurnType.STRAIGHT)
        return road.trajectory.point(road.length) if road else None

    def spawn_point(self, direction: Any) -> Optional[Point]:
        road = self.road_for(direction, TurnType.STRAIGHT)
        if road is None:
            return None
        return self.position_on(road.id, self.policy.spawn_u, 0.5 * (road.lane_count - 1))

    def stop_line_position(self, direction: Any) -> Optional[Tuple[Point, Point]]:
        """Segment across the approach lanes at the stop-line station."""
        road = self.road_for(direction, TurnType.STRAIGHT)
        if road is None:
            return None
        s = self.policy.intersection_entry_u
        half = 0.5 * road.lane_count * self.lane_width
        return (_offset_point(road.trajectory, s, -half, self._eps),
                _offset_point(road.trajectory, s, half, self._eps))

    def light_position(self, direction: Any) -> Optional[Point]:
        """Where the signal head for *direction* stands (kerb, before the line)."""
        road = self.road_for(direction, TurnType.STRAIGHT)
        if road is None:
            return None
        s = self.policy.intersection_entry_u - 2.0
        lateral = 0.5 * road.lane_count * self.lane_width + 1.5
        return _offset_point(road.trajectory, s, lateral, self._eps)

    def sample_road(
        self, road_id: str, v: Optional[float] = None, step: float = 1.0,
    ) -> np.ndarray:
        """``(N, 2)`` polyline of a lane (centreline when *v* is None)."""
        road = self.roads.get(road_id)
        if road is None:
            return np.empty((0, 2))
        n = max(2, int(math.ceil(road.length / max(step, 1e-3))) + 1)
        stations = np.linspace(0.0, road.length, n)
        lateral = 0.0
        if v is not None:
            lateral = self.lane_width * (v - 0.5 * (road.lane_count - 1))
        return np.array([
            _offset_point(road.trajectory, float(s), lateral, self._eps)
            for s in stations
        ])

    def sample_turn(
        self, alt: AlternativeTrajectory, lane_count: int, step: float = 0.5,
    ) -> np.ndarray:
        """``(N, 2)`` polyline of the lane a turn sweeps, from ``u_min`` to ``exit_u``."""
        n = max(2, int(math.ceil(alt.curve_length / max(step, 1e-3))) + 1)
        lateral = self.lane_width * (alt.lane_min - 0.5 * (lane_count - 1))
        return np.array([
            alt.curve_point(float(s), lateral)
            for s in np.linspace(0.0, alt.curve_length, n)
        ])

    def approach_roads(self) -> List[RoadSegment]:
        return [r for r in self.roads.values() if r.turn_type is TurnType.STRAIGHT]

    def turn_roads(self) -> List[RoadSegment]:
        return [r for r in self.roads.values() if r.turn_type is not TurnType.STRAIGHT]


# ── Default layout ────────────────────────────────────────────────────────────

def build_network(policy: Optional[TrafficPolicy] = None) -> RoadNetwork:
    """Build the straight and turn roads of one four-way intersection.

    Each arm carries a one-way road of ``lanes_per_road`` lanes in each
    direction.  A right turn is a clockwise arc of ``right_turn_radius_m``
    taken from the outer lane; a left turn is a short straight followed by
    a counter-clockwise arc of ``left_turn_radius_m`` taken from the inner
    lane.  Both start at the same turn-entry station inside the box.
    """
    policy = policy or TrafficPolicy()
    arm = policy.arm_length_m
    offset = 0.5 * policy.lanes_per_road * policy.lane_width_m
    r_right = policy.right_turn_radius_m
    r_left = policy.left_turn_radius_m
    shift = policy.car_length_m / 2.0
    last_lane = policy.lanes_per_road - 1

    if r_right <= 0 or r_left <= 0:
        raise ValueError("turn radii must be positive")
    if offset + r_right > policy.road_half_width_m:
        log.warning("Right turn radius %.1f starts outside the box", r_right)

    right_entry = arm - offset - r_right
    left_arc_start = arm + offset - r_left
    left_entry = min(right_entry, left_arc_start)

    roads: List[RoadSegment] = []
    for d in _CLOCKWISE:
        h = _TRAVEL_HEADING[d]
        sx = -arm * math.cos(h) + offset * math.sin(h)
        sy = -arm * math.sin(h) - offset * math.cos(h)

        right = (_PathBuilder(sx, sy, h)
                 .forward(right_entry)
                 .arc(r_right, -math.pi / 2)
                 .forward(arm - offset - r_right))
        right_curve_end = right_entry + (math.pi / 2) * r_right

        left = (_PathBuilder(sx, sy, h)
                .forward(left_entry)
                .forward(left_arc_start - left_entry)
                .arc(r_left, math.pi / 2)
                .forward(arm + offset - r_left))
        left_curve_end = left_arc_start + (math.pi / 2) * r_left

        right_id = road_id_for(d, destination(d, TurnType.RIGHT))
        left_id = road_id_for(d, destination(d, TurnType.LEFT))
        right_traj = right.build()
        left_traj = left.build()

        alternatives = (
            AlternativeTrajectory(
                road_id=left_id,
                turn_type=TurnType.LEFT,
                u_min=left_entry + shift,
                u_max=left_entry + shift + policy.turn_window_m,
                lane_min=0,
                lane_max=0,
                exit_u=left_curve_end + shift,
                trajectory=left_traj,
                shift=shift,
                epsilon=policy.heading_epsilon_m,
            ),
            AlternativeTrajectory(
                road_id=right_id,
                turn_type=TurnType.RIGHT,
                u_min=right_entry + shift,
                u_max=right_entry + shift + policy.turn_window_m,
                lane_min=last_lane,
                lane_max=last_lane,
                exit_u=right_curve_end + shift,
                trajectory=right_traj,
                shift=shift,
                epsilon=policy.heading_epsilon_m,
            ),
        )

        straight = _PathBuilder(sx, sy, h).forward(2.0 * arm).build()
        roads.append(RoadSegment(
            id=road_id_for(d, opposite(d)),
            from_direction=d,
            to_direction=opposite(d),
            lane_count=policy.lanes_per_road,
            trajectory=straight,
            alternatives=alternatives,
        ))
        roads.append(RoadSegment(
            id=left_id,
            from_direction=d,
            to_direction=destination(d, TurnType.LEFT),
            lane_count=policy.lanes_per_road,
            trajectory=left_traj,
        ))
        roads.append(RoadSegment(
            id=right_id,
            from_direction=d,
            to_direction=destination(d, TurnType.RIGHT),
            lane_count=policy.lanes_per_road,
            trajectory=right_traj,
        ))

    log.debug("Built %d roads (arm %.1f m, entry station %.1f m)",
              len(roads), arm, policy.intersection_entry_u)
    return RoadNetwork(roads, policy)
