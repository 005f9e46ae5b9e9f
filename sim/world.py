#!/usr/bin/env python3
"""
sim/world.py
============
Vehicle population manager.

:class:`VehicleManager` owns every live :class:`~sim.car.Car`, spawns new
ones on a timer (respecting a clearance around each spawn point), advances
them once per tick, answers their car-following queries, and retires
completed cars through a completion callback.
"""

from __future__ import annotations

import logging
import math
import random
import time
from dataclasses import replace
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from sim.car import Car, Clock, CompletionRecord
from sim.network import Direction, RoadNetwork
from sim.physics import distance
from sim.signals import LightState, normalize_light_states
from sim.traffic_policy import SimSettings, TrafficPolicy

log = logging.getLogger("world")

_DIRECTIONS: Tuple[Direction, ...] = tuple(Direction)


class VehicleManager:
    """Owns the live vehicle population of one intersection.

    Parameters
    ----------
    network : RoadNetwork
        The road layout cars drive on.
    policy : TrafficPolicy or None
        Tunable constants; the network's policy when *None*.
    settings : SimSettings or None
        Initial spawn rate / speed / turn rate.
    seed : int or None
        Seed for the spawn / turn / colour random source.
    rng : random.Random or None
        Explicit random source (takes precedence over *seed*).
    clock : callable or None
        Seconds clock handed to every car (wait time, turn delays).
    on_car_completed : callable or None
        Called once with a :class:`~sim.car.CompletionRecord` per retired car.
    """

    def __init__(
        self,
        network: RoadNetwork,
        policy: Optional[TrafficPolicy] = None,
        settings: Optional[SimSettings] = None,
        seed: Optional[int] = None,
        rng: Optional[random.Random] = None,
        clock: Optional[Clock] = None,
        on_car_completed: Optional[Callable[[CompletionRecord], None]] = None,
    ) -> None:
        self.network = network
        self.policy = policy or network.policy
        self.settings = replace(settings) if settings else SimSettings()
        self._rng = rng or random.Random(seed)
        self._clock = clock or time.monotonic
        self.on_car_completed = on_car_completed

        self.cars: Dict[int, Car] = {}
        self.next_car_id = 1
        self.spawn_timer_ms = 0.0
        self._stations: Optional[Dict[int, Tuple[Car, str, float]]] = None

    # ── initialisation / reset ────────────────────────────────────────────

    def reset(self) -> None:
        """Drop every car and restart ids and the spawn timer."""
        self.cars = {}
        self.next_car_id = 1
        self.spawn_timer_ms = 0.0
        self._stations = None
        log.info("Vehicle population reset")

    def update_settings(self, settings: SimSettings) -> None:
        """Replace the settings snapshot; takes effect on the next tick."""
        self.settings = replace(settings)
        log.info("Settings updated: %s", self.settings)

    # ── queries ───────────────────────────────────────────────────────────

    def get_cars(self) -> List[Car]:
        return list(self.cars.values())

    def get_car(self, car_id: int) -> Optional[Car]:
        return self.cars.get(car_id)

    def get_waiting_cars(self, direction: Any) -> List[Car]:
        d = Direction.parse(direction)
        if d is None:
            return []
        return [c for c in self.cars.values() if c.get_direction() is d and c.is_waiting()]

    def car_count(self) -> int:
        return len(self.cars)

    def _station_table(self) -> Dict[int, Tuple[Car, str, float]]:
        if self._stations is not None:
            return self._stations
        return {c.id: (c, c.road_id, c.u) for c in self.cars.values()}

    def nearest_ahead(self, road_id: str, u: float, excluding_id: int) -> Optional[Car]:
        """Closest car on *road_id* with a station strictly ahead of *u*.

        During a tick the lookup reads the station snapshot taken before any
        car moved, so every car sees the same positions.
        """
        closest: Optional[Car] = None
        closest_gap = math.inf
        for car, other_road, other_u in self._station_table().values():
            if car.id == excluding_id or other_road != road_id:
                continue
            gap = other_u - u
            if 0 < gap < closest_gap:
                closest_gap = gap
                closest = car
        return closest

    def distance_ahead(self, road_id: str, u: float, excluding_id: int) -> float:
        """Gap (m) to :meth:`nearest_ahead`, ``inf`` when the road is clear."""
        leader = self.nearest_ahead(road_id, u, excluding_id)
        if leader is None:
            return math.inf
        return self._station_table()[leader.id][2] - u

    # ── spawning ──────────────────────────────────────────────────────────

    def spawn_eligible(self, direction: Any) -> bool:
        """True when no car from *direction* is near that direction's spawn point."""
        d = Direction.parse(direction)
        if d is None:
            return False
        spawn = self.network.spawn_point(d)
        if spawn is None:
            return False
        sx, sy = spawn
        for car in self.cars.values():
            if car.get_direction() is not d:
                continue
            if distance(car.x, car.y, sx, sy) < self.policy.spawn_clearance_m:
                return False
        return True

    def spawn(self, direction: Any = None, lane: Optional[int] = None) -> Optional[Car]:
        """Create one car, or return ``None`` when the spawn point is occupied."""
        if direction is None:
            d: Optional[Direction] = self._rng.choice(_DIRECTIONS)
        else:
            d = Direction.parse(direction)
        if d is None:
            log.warning("Cannot spawn from invalid direction %r", direction)
            return None

        road_id = self.network.straight_road_id(d)
        road = self.network.roads.get(road_id) if road_id else None
        if road is None:
            return None
        if lane is None:
            lane = self._rng.randrange(road.lane_count)
        elif not 0 <= lane < road.lane_count:
            log.warning("Cannot spawn in lane %r of %s", lane, road.id)
            return None

        if not self.spawn_eligible(d):
            log.debug("Spawn from %s skipped: clearance", d.value)
            return None

        car = Car(
            car_id=self.next_car_id,
            direction=d,
            network=self.network,
            lane=lane,
            policy=self.policy,
            turn_rate=self.settings.turn_rate,
            max_speed=self.settings.car_speed,
            rng=self._rng,
            clock=self._clock,
        )
        self.next_car_id += 1
        self.cars[car.id] = car
        log.debug("Spawned %r", car)
        return car

    # ── tick ──────────────────────────────────────────────────────────────

    def tick(self, delta_ms: float, light_states: Mapping[Any, Any]) -> List[CompletionRecord]:
        """Advance the whole population by *delta_ms*.

        Returns the records of the cars retired during this tick.
        """
        lights: Dict[Direction, LightState] = normalize_light_states(light_states)

        self.spawn_timer_ms += delta_ms
        if self.spawn_timer_ms >= self.settings.spawn_interval_ms:
            self.spawn()
            self.spawn_timer_ms = 0.0

        self._stations = {c.id: (c, c.road_id, c.u) for c in self.cars.values()}
        try:
            for car in self.cars.values():
                car.max_speed = self.settings.car_speed
                car.update(delta_ms, lights, self)
        finally:
            self._stations = None

        completed = [c for c in self.cars.values() if c.is_completed()]
        records: List[CompletionRecord] = []
        for car in completed:
            record = car.completion_record()
            records.append(record)
            if self.on_car_completed is not None:
                self.on_car_completed(record)
        for car in completed:
            del self.cars[car.id]
        return records
