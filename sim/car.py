#!/usr/bin/env python3
"""
sim/car.py
==========
A single vehicle and its finite-state machine.  Each car:
  - owns its physical position ``(road_id, u, v)`` and speed
  - reads the light for its direction and the gap to the car ahead
  - turns by switching onto a turn road (or, under the teleport strategy,
    by hiding for a delay and reappearing past the curve)
  - recomputes its world pose ``(x, y, angle)`` from the road network
"""

from __future__ import annotations

import logging
import math
import random
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Protocol, Tuple

from sim.network import AlternativeTrajectory, Direction, RoadNetwork, TurnType, destination
from sim.physics import accelerate, clamp, ms_to_s
from sim.signals import LightState
from sim.traffic_policy import SimSettings, TrafficPolicy

log = logging.getLogger("car")

Clock = Callable[[], float]


class CarState(Enum):
    APPROACHING = "approaching"
    WAITING = "waiting"
    CROSSING = "crossing"
    TURNING = "turning"
    EXITING = "exiting"
    COMPLETED = "completed"


class TrafficView(Protocol):
    """What a car may ask about its neighbours."""

    def distance_ahead(self, road_id: str, u: float, excluding_id: int) -> float:
        ...


@dataclass(frozen=True)
class CompletionRecord:
    """Final record of a car that left the simulation."""

    id: int
    from_direction: Direction
    to_direction: Direction
    turn_type: TurnType
    total_wait_time: float


def pick_turn_type(rng: random.Random, turn_rate: float) -> TurnType:
    """Left with probability ``turn_rate/2``, right with ``turn_rate/2``."""
    roll = rng.random()
    if roll < turn_rate / 2:
        return TurnType.LEFT
    if roll < turn_rate:
        return TurnType.RIGHT
    return TurnType.STRAIGHT


class Car:
    """One vehicle travelling through the intersection.

    Parameters
    ----------
    car_id : int
        Unique identifier assigned by the manager.
    direction : Direction
        Arm the car enters from.
    network : RoadNetwork
        Geometry used for pose and turn lookups.
    lane : int
        Initial lane index on the approach road.
    policy : TrafficPolicy or None
        Tunable constants; uses defaults when *None*.
    turn_type : TurnType or None
        Intended manoeuvre; drawn from *rng* and ``turn_rate`` when *None*.
    max_speed : float or None
        Cruise speed (m/s); defaults to :class:`SimSettings` ``car_speed``.
    rng : random.Random or None
        Source for turn type and colour.
    clock : callable or None
        Seconds clock used for wait time and turn delays.
    """

    def __init__(
        self,
        car_id: int,
        direction: Direction,
        network: RoadNetwork,
        lane: int = 0,
        policy: Optional[TrafficPolicy] = None,
        turn_type: Optional[TurnType] = None,
        turn_rate: float = 0.0,
        max_speed: Optional[float] = None,
        rng: Optional[random.Random] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.policy = policy or network.policy
        self._rng = rng or random.Random()
        self._clock = clock or time.monotonic
        self.network = network

        self.id = car_id
        self.from_direction = direction
        self.direction = direction
        self.turn_type = turn_type or pick_turn_type(self._rng, turn_rate)
        self.to_direction = destination(direction, self.turn_type)

        # Physical position
        self.road_id = network.straight_road_id(direction) or ""
        self.lane = lane
        self.u = self.policy.spawn_u
        # Station up to which turn windows on this road have been checked
        self._turn_scan_u = self.u
        self.v = float(lane)
        self.dvdt = 0.0

        # Body
        self.length = self.policy.car_length_m
        self.width = self.policy.car_width_m
        self.height = self.policy.car_height_m
        self.color = self._rng.choice(self.policy.vehicle_colors)

        self.speed = 0.0
        self.max_speed = SimSettings().car_speed if max_speed is None else max_speed

        self.state = CarState.APPROACHING
        self.wait_start_time: Optional[float] = None
        self.total_wait_time = 0.0
        self._wait_base = 0.0
        self.turn_start_time: Optional[float] = None
        self.path_progress = 0.0
        self.hidden = False
        self.in_intersection = False
        self._pending_turn: Optional[AlternativeTrajectory] = None

        self.x = 0.0
        self.y = 0.0
        self.angle = 0.0
        self.target: Optional[Tuple[float, float]] = None

        self._update_pose()
        self._calculate_target()

    def __repr__(self) -> str:
        return (f"Car(id={self.id}, {self.from_direction.value}->{self.to_direction.value}, "
                f"state={self.state.value}, road={self.road_id}, u={self.u:.1f}, v={self.v:.2f})")

    # ── Tick ──────────────────────────────────────────────────────────────────

    def update(
        self,
        delta_ms: float,
        light_states: Mapping[Direction, LightState],
        traffic: TrafficView,
    ) -> None:
        """Advance the state machine and motion by *delta_ms*."""
        dt = ms_to_s(delta_ms)
        road = self.network.road(self.road_id)
        if road is not None:
            handler = self._HANDLERS.get(self.state)
            if handler is not None:
                handler(self, dt, light_states, traffic)
            self._integrate(dt)
        else:
            log.warning("Car %s: road %r unresolved, motion skipped", self.id, self.road_id)

        self._update_pose()
        self.in_intersection = self.network.is_within_intersection_footprint(self.x, self.y)

    def _integrate(self, dt: float) -> None:
        if self.speed > 0 and not self.hidden:
            self.u += self.speed * dt

        road = self.network.road(self.road_id)
        if road is None:
            return
        if abs(self.dvdt) > 0.001:
            self.v += self.dvdt * dt
            if (self.dvdt > 0 and self.v >= self.lane) or (self.dvdt < 0 and self.v <= self.lane):
                self.v = float(self.lane)
                self.dvdt = 0.0
        self.v = clamp(self.v, 0.0, road.lane_count - 1)

        if self.state is CarState.EXITING and self.u >= road.length:
            self.state = CarState.COMPLETED
            log.debug("Car %s completed (wait %.2f s)", self.id, self.total_wait_time)

    # ── State handlers ────────────────────────────────────────────────────────

    def _update_approaching(
        self, dt: float, light_states: Mapping[Direction, LightState], traffic: TrafficView,
    ) -> None:
        self._prepare_for_turn()

        distance_to_stop = max(0.0, self.policy.intersection_entry_u - self.u)
        gap = traffic.distance_ahead(self.road_id, self.u, self.id)
        too_close = gap < self.policy.min_following_gap_m

        if distance_to_stop <= self.policy.stop_zone_m or too_close:
            light = light_states.get(self.direction, LightState.RED)
            if light is LightState.RED or too_close:
                self.state = CarState.WAITING
                self.speed = 0.0
                if not too_close:
                    self.wait_start_time = self._clock()
                    self._wait_base = self.total_wait_time
                log.debug("Car %s waiting (%s) at u=%.1f",
                          self.id, "spacing" if too_close else "light", self.u)
                return

        self.speed = accelerate(self.speed, self.policy.approach_accel_mps2, dt, self.max_speed)

        if self.in_intersection:
            self.state = CarState.CROSSING

    def _update_waiting(
        self, dt: float, light_states: Mapping[Direction, LightState], traffic: TrafficView,
    ) -> None:
        self.speed = 0.0

        if self.wait_start_time is not None:
            self.total_wait_time = self._wait_base + (self._clock() - self.wait_start_time)

        light = light_states.get(self.direction, LightState.RED)
        if light in (LightState.GREEN, LightState.YELLOW):
            self.state = CarState.CROSSING
            self.wait_start_time = None

    def _update_crossing(
        self, dt: float, light_states: Mapping[Direction, LightState], traffic: TrafficView,
    ) -> None:
        if self.turn_type is not TurnType.STRAIGHT:
            self._follow_alternative_trajectory()
            if self.state is CarState.TURNING:
                return
            cap = self.max_speed * self.policy.turn_speed_factor
        else:
            cap = self.max_speed * self.policy.crossing_speed_factor
        self.speed = accelerate(self.speed, self.policy.crossing_accel_mps2, dt, cap)

        if not self.in_intersection and self.path_progress > 0:
            self.state = CarState.EXITING

        # Time spent inside the box; a car released short of the line keeps crossing
        if self.in_intersection:
            self.path_progress += dt

    def _update_turning(
        self, dt: float, light_states: Mapping[Direction, LightState], traffic: TrafficView,
    ) -> None:
        if self.turn_start_time is None or self._pending_turn is None:
            # Nothing to wait for; resume on the current road.
            self.hidden = False
            self.state = CarState.EXITING
            return

        delay = self.policy.turn_delay_s(self.turn_type.value)
        if self._clock() - self.turn_start_time < delay:
            return

        alt = self._pending_turn
        self.road_id = alt.road_id
        self.u = alt.exit_u
        self._turn_scan_u = self.u
        self.direction = self.to_direction
        self.hidden = False
        self.speed = self.max_speed
        self.state = CarState.EXITING
        self.turn_start_time = None
        self._pending_turn = None
        log.debug("Car %s reappeared on %s", self.id, self.road_id)

    def _update_exiting(
        self, dt: float, light_states: Mapping[Direction, LightState], traffic: TrafficView,
    ) -> None:
        self.speed = self.max_speed

    _HANDLERS: Dict[CarState, Callable[..., None]] = {
        CarState.APPROACHING: _update_approaching,
        CarState.WAITING: _update_waiting,
        CarState.CROSSING: _update_crossing,
        CarState.TURNING: _update_turning,
        CarState.EXITING: _update_exiting,
    }

    # ── Lanes and turns ───────────────────────────────────────────────────────

    def _prepare_for_turn(self) -> None:
        """Tactical lane change: left turns use lane 0, right turns the last lane."""
        road = self.network.road(self.road_id)
        if road is None:
            return
        if self.turn_type is TurnType.LEFT:
            target = 0
        elif self.turn_type is TurnType.RIGHT:
            target = road.lane_count - 1
        else:
            return
        if self.lane == target and self.dvdt == 0.0:
            return
        rate = self.policy.lane_change_rate
        if rate > 0:
            self.begin_lane_change(target, rate)
        else:
            self.lane = target
            self.v = float(target)

    def begin_lane_change(self, target_lane: int, rate: float) -> None:
        """Drift towards *target_lane* at *rate* lanes per second."""
        self.lane = target_lane
        if math.isclose(self.v, target_lane):
            self.dvdt = 0.0
            return
        self.dvdt = abs(rate) if target_lane > self.v else -abs(rate)

    def _follow_alternative_trajectory(self) -> None:
        alt = self.network.find_alternative_trajectory(
            self.road_id, self.u, self.lane, u_from=self._turn_scan_u)
        self._turn_scan_u = self.u
        if alt is None:
            return

        if self.policy.turn_strategy == "teleport":
            self._pending_turn = alt
            self.turn_start_time = self._clock()
            self.hidden = True
            self.state = CarState.TURNING
            log.debug("Car %s turning %s (hidden)", self.id, self.turn_type.value)
            return

        self.road_id = alt.road_id
        self.u = alt.u_min
        self._turn_scan_u = self.u
        self.speed = min(self.max_speed * self.policy.turn_speed_factor, self.speed)
        log.debug("Car %s switched onto %s", self.id, self.road_id)

    # ── Pose ──────────────────────────────────────────────────────────────────

    def _update_pose(self) -> None:
        pos = self.network.position_on(self.road_id, self.u, self.v)
        if pos is None:
            return
        angle = self.network.heading_on(self.road_id, self.u, self.dvdt, self.speed)
        self.x, self.y = pos
        if angle is not None:
            self.angle = angle

    def _calculate_target(self) -> None:
        target = self.network.exit_point(self.to_direction)
        if target is None:
            log.warning("Car %s: no exit point towards %s", self.id, self.to_direction)
            return
        self.target = target

    @property
    def pose(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.angle)

    # ── Queries ───────────────────────────────────────────────────────────────

    def is_waiting(self) -> bool:
        return self.state is CarState.WAITING

    def is_completed(self) -> bool:
        return self.state is CarState.COMPLETED

    def get_wait_time(self) -> float:
        return self.total_wait_time

    def get_direction(self) -> Direction:
        return self.direction

    def completion_record(self) -> CompletionRecord:
        return CompletionRecord(
            id=self.id,
            from_direction=self.from_direction,
            to_direction=self.to_direction,
            turn_type=self.turn_type,
            total_wait_time=self.total_wait_time,
        )

    def as_dict(self) -> Dict[str, Any]:
        """Render dict for the UI."""
        return {
            "id":        self.id,
            "x":         self.x,
            "y":         self.y,
            "angle":     self.angle,
            "length":    self.length,
            "width":     self.width,
            "color":     self.color,
            "hidden":    self.hidden,
            "state":     self.state.value,
            "speed":     self.speed,
            "direction": self.direction.value,
            "from":      self.from_direction.value,
            "to":        self.to_direction.value,
            "turn":      self.turn_type.value,
            "road_id":   self.road_id,
            "wait_time": self.total_wait_time,
        }
