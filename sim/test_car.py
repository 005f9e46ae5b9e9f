#!/usr/bin/env python3
"""
State-machine tests for a single car: red-light waits, green release,
turn execution under both strategies, lane discipline and completion.
"""

from __future__ import annotations

import math
import random
import unittest

from sim.car import Car, CarState, pick_turn_type
from sim.network import Direction, TurnType, build_network, destination, road_id_for
from sim.signals import LightState
from sim.traffic_policy import TrafficPolicy


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class OpenRoad:
    """Traffic view with nobody ahead."""

    def distance_ahead(self, road_id: str, u: float, excluding_id: int) -> float:
        return math.inf


class FixedGap:
    def __init__(self, gap: float) -> None:
        self.gap = gap

    def distance_ahead(self, road_id: str, u: float, excluding_id: int) -> float:
        return self.gap


RED = {d: LightState.RED for d in Direction}
GREEN = {d: LightState.GREEN for d in Direction}


class CarTestBase(unittest.TestCase):
    policy = TrafficPolicy()

    def setUp(self) -> None:
        self.net = build_network(self.policy)
        self.clock = FakeClock()

    def make_car(self, turn_type=TurnType.STRAIGHT, lane=0, max_speed=10.0, **kwargs) -> Car:
        return Car(
            car_id=1,
            direction=Direction.NORTH,
            network=self.net,
            lane=lane,
            policy=self.policy,
            turn_type=turn_type,
            max_speed=max_speed,
            rng=random.Random(0),
            clock=self.clock,
            **kwargs,
        )

    def tick(self, car: Car, lights, delta_ms: float = 100.0, traffic=None) -> None:
        self.clock.advance(delta_ms / 1000.0)
        car.update(delta_ms, lights, traffic or OpenRoad())


class ApproachAndWaitTests(CarTestBase):
    def test_new_car_starts_approaching_at_spawn(self) -> None:
        car = self.make_car()
        self.assertIs(car.state, CarState.APPROACHING)
        self.assertEqual(car.road_id, "N>S")
        self.assertAlmostEqual(self.policy.intersection_entry_u - car.u, 90.0)
        self.assertEqual(car.target, self.net.exit_point(Direction.SOUTH))
        self.assertIs(car.to_direction, Direction.SOUTH)

    def test_red_light_stops_car_and_accumulates_wait(self) -> None:
        car = self.make_car(max_speed=10.0)
        for _ in range(300):
            self.tick(car, RED)
            if car.is_waiting():
                break
        self.assertIs(car.state, CarState.WAITING)
        self.assertEqual(car.speed, 0.0)
        self.assertLessEqual(self.policy.intersection_entry_u - car.u, self.policy.stop_zone_m)
        self.assertIsNotNone(car.wait_start_time)

        stopped_at = car.u
        previous = car.get_wait_time()
        for _ in range(5):
            self.tick(car, RED)
            self.assertGreater(car.get_wait_time(), previous)
            previous = car.get_wait_time()
        self.assertEqual(car.u, stopped_at)
        self.assertAlmostEqual(car.get_wait_time(), 0.5, places=6)

    def test_green_releases_waiting_car(self) -> None:
        car = self.make_car()
        while not car.is_waiting():
            self.tick(car, RED)
        self.tick(car, RED)
        waited = car.get_wait_time()

        self.tick(car, {Direction.NORTH: LightState.GREEN})
        self.assertIs(car.state, CarState.CROSSING)
        self.assertIsNone(car.wait_start_time)
        self.assertGreaterEqual(car.get_wait_time(), waited)

        frozen = car.get_wait_time()
        self.tick(car, GREEN)
        self.assertEqual(car.get_wait_time(), frozen)

    def test_yellow_also_releases(self) -> None:
        car = self.make_car()
        while not car.is_waiting():
            self.tick(car, RED)
        self.tick(car, {Direction.NORTH: LightState.YELLOW})
        self.assertIs(car.state, CarState.CROSSING)

    def test_missing_light_counts_as_red(self) -> None:
        car = self.make_car()
        for _ in range(300):
            self.tick(car, {})
            if car.is_waiting():
                break
        self.assertTrue(car.is_waiting())

    def test_spacing_stop_records_no_wait_start(self) -> None:
        car = self.make_car()
        self.tick(car, GREEN, traffic=FixedGap(self.policy.min_following_gap_m - 1.0))
        self.assertIs(car.state, CarState.WAITING)
        self.assertEqual(car.speed, 0.0)
        self.assertIsNone(car.wait_start_time)
        self.tick(car, RED)
        self.assertEqual(car.get_wait_time(), 0.0)

    def test_green_light_lets_car_through_the_box(self) -> None:
        car = self.make_car(max_speed=12.0)
        seen = [car.state]
        for _ in range(1000):
            self.tick(car, GREEN, delta_ms=50.0)
            if car.state is not seen[-1]:
                seen.append(car.state)
            if car.is_completed():
                break
        self.assertEqual(seen, [CarState.APPROACHING, CarState.CROSSING,
                                CarState.EXITING, CarState.COMPLETED])
        self.assertEqual(car.get_wait_time(), 0.0)

    def test_car_released_short_of_the_line_still_crosses_the_box(self) -> None:
        car = self.make_car(turn_type=TurnType.LEFT)
        while not car.is_waiting():
            self.tick(car, RED)
        entered_box = False
        for _ in range(400):
            self.tick(car, GREEN, delta_ms=50.0)
            entered_box = entered_box or car.in_intersection
            if car.state is CarState.EXITING:
                break
        self.assertTrue(entered_box)
        self.assertEqual(car.road_id, "N>E")


class ExitTests(CarTestBase):
    def test_exiting_car_completes_at_road_end(self) -> None:
        car = self.make_car(max_speed=10.0)
        road = self.net.road(car.road_id)
        car.state = CarState.EXITING
        car.u = road.length - 1.0
        car.speed = car.max_speed
        self.tick(car, GREEN, delta_ms=200.0)
        self.assertTrue(car.is_completed())
        record = car.completion_record()
        self.assertEqual(record.id, 1)
        self.assertIs(record.from_direction, Direction.NORTH)
        self.assertIs(record.to_direction, Direction.SOUTH)

    def test_exiting_car_short_of_the_end_keeps_going(self) -> None:
        car = self.make_car(max_speed=10.0)
        road = self.net.road(car.road_id)
        car.state = CarState.EXITING
        car.u = road.length - 5.0
        self.tick(car, GREEN, delta_ms=100.0)
        self.assertIs(car.state, CarState.EXITING)
        self.assertEqual(car.speed, car.max_speed)


class LaneAndTurnTests(CarTestBase):
    def test_tactical_lane_change_is_immediate(self) -> None:
        left = self.make_car(turn_type=TurnType.LEFT, lane=1)
        self.tick(left, GREEN)
        self.assertEqual(left.lane, 0)
        self.assertEqual(left.v, 0.0)

        right = self.make_car(turn_type=TurnType.RIGHT, lane=0)
        self.tick(right, GREEN)
        self.assertEqual(right.lane, 1)
        self.assertEqual(right.v, 1.0)

        straight = self.make_car(turn_type=TurnType.STRAIGHT, lane=1)
        self.tick(straight, GREEN)
        self.assertEqual(straight.lane, 1)

    def test_trajectory_turn_switches_road_at_u_min(self) -> None:
        car = self.make_car(turn_type=TurnType.LEFT, lane=0)
        alt = self.net.find_alternative_trajectory("N>S", 103.0, 0)
        car.state = CarState.CROSSING
        car.u = 103.0
        car.speed = 5.0
        self.tick(car, GREEN, delta_ms=20.0)
        self.assertEqual(car.road_id, "N>E")
        self.assertGreaterEqual(car.u, alt.u_min)
        self.assertLess(car.u, alt.u_min + 0.5)
        self.assertLessEqual(car.speed, car.max_speed * self.policy.turn_speed_factor)
        self.assertIs(car.state, CarState.CROSSING)
        self.assertFalse(car.hidden)

    def test_left_turn_leaves_heading_east(self) -> None:
        car = self.make_car(turn_type=TurnType.LEFT, lane=0, max_speed=10.0)
        for _ in range(3000):
            self.tick(car, GREEN, delta_ms=20.0)
            if car.is_completed():
                break
        self.assertTrue(car.is_completed())
        self.assertEqual(car.road_id, "N>E")
        self.assertAlmostEqual(math.cos(car.angle), 1.0, places=3)
        self.assertGreater(car.x, 100.0)

    def test_right_turn_leaves_heading_west(self) -> None:
        car = self.make_car(turn_type=TurnType.RIGHT, lane=1, max_speed=10.0)
        for _ in range(3000):
            self.tick(car, GREEN, delta_ms=20.0)
            if car.is_completed():
                break
        self.assertTrue(car.is_completed())
        self.assertEqual(car.road_id, "N>W")
        self.assertAlmostEqual(math.cos(car.angle), -1.0, places=3)
        self.assertLess(car.x, -100.0)

    def test_pick_turn_type_splits_turn_rate(self) -> None:
        rng = random.Random(42)
        counts = {t: 0 for t in TurnType}
        for _ in range(4000):
            counts[pick_turn_type(rng, 0.5)] += 1
        self.assertAlmostEqual(counts[TurnType.STRAIGHT] / 4000, 0.5, delta=0.05)
        self.assertAlmostEqual(counts[TurnType.LEFT] / 4000, 0.25, delta=0.05)
        self.assertAlmostEqual(counts[TurnType.RIGHT] / 4000, 0.25, delta=0.05)
        self.assertIs(pick_turn_type(rng, 0.0), TurnType.STRAIGHT)

    def test_as_dict_exposes_render_fields(self) -> None:
        d = self.make_car().as_dict()
        for key in ("id", "x", "y", "angle", "length", "width", "color",
                    "hidden", "state", "direction", "from", "to", "turn"):
            self.assertIn(key, d)
        self.assertEqual(d["state"], "approaching")
        self.assertEqual(d["from"], "N")


class GradualLaneChangeTests(CarTestBase):
    policy = TrafficPolicy(lane_change_rate=1.0)

    def test_lane_drift_stays_within_lanes(self) -> None:
        car = self.make_car(turn_type=TurnType.RIGHT, lane=0)
        self.tick(car, GREEN)
        self.assertEqual(car.lane, 1)
        self.assertGreater(car.dvdt, 0.0)
        tilted = False
        for _ in range(30):
            self.tick(car, GREEN)
            self.assertGreaterEqual(car.v, 0.0)
            self.assertLessEqual(car.v, 1.0)
            if car.dvdt and car.speed > 0:
                tilted = tilted or abs(car.angle - self.net.heading_on(car.road_id, car.u)) > 1e-6
        self.assertEqual(car.v, 1.0)
        self.assertEqual(car.dvdt, 0.0)
        self.assertTrue(tilted)


class TeleportTurnTests(CarTestBase):
    policy = TrafficPolicy(turn_strategy="teleport")

    def test_turning_car_hides_then_reappears_past_the_curve(self) -> None:
        car = self.make_car(turn_type=TurnType.LEFT, lane=0)
        alt = self.net.find_alternative_trajectory("N>S", 103.0, 0)
        car.state = CarState.CROSSING
        car.u = 103.0
        car.speed = 5.0

        self.tick(car, GREEN, delta_ms=20.0)
        self.assertIs(car.state, CarState.TURNING)
        self.assertTrue(car.hidden)
        self.assertIsNotNone(car.turn_start_time)
        hidden_u = car.u

        self.tick(car, GREEN, delta_ms=500.0)
        self.assertIs(car.state, CarState.TURNING)
        self.assertEqual(car.u, hidden_u)

        self.tick(car, GREEN, delta_ms=1000.0)
        self.assertIs(car.state, CarState.EXITING)
        self.assertFalse(car.hidden)
        self.assertEqual(car.road_id, "N>E")
        self.assertGreaterEqual(car.u, alt.exit_u)
        self.assertIs(car.get_direction(), Direction.EAST)
        self.assertIs(car.from_direction, Direction.NORTH)


class CoarseTickTurnTests(unittest.TestCase):
    """Turners must take their turn whatever the tick size and start offset."""

    HEADING = {Direction.EAST: (1.0, 0.0), Direction.WEST: (-1.0, 0.0)}

    def _drive(self, policy: TrafficPolicy, turn_type: TurnType, delta_ms: float,
               offset: float) -> Car:
        net = build_network(policy)
        clock = FakeClock()
        car = Car(car_id=1, direction=Direction.NORTH, network=net, lane=0, policy=policy,
                  turn_type=turn_type, max_speed=12.0, rng=random.Random(0), clock=clock)
        car.u += offset
        for _ in range(2000):
            clock.advance(delta_ms / 1000.0)
            car.update(delta_ms, GREEN, OpenRoad())
            if car.is_completed():
                break
        return car

    def _check(self, policy: TrafficPolicy) -> None:
        for delta_ms in (100.0, 200.0):
            for turn_type in (TurnType.LEFT, TurnType.RIGHT):
                for step in range(14):
                    offset = 0.15 * step
                    with self.subTest(dt=delta_ms, turn=turn_type.value, offset=offset):
                        car = self._drive(policy, turn_type, delta_ms, offset)
                        expected = destination(Direction.NORTH, turn_type)
                        self.assertTrue(car.is_completed())
                        self.assertEqual(car.road_id, road_id_for(Direction.NORTH, expected))
                        self.assertIs(car.completion_record().to_direction, expected)
                        hx, hy = self.HEADING[expected]
                        self.assertAlmostEqual(math.cos(car.angle), hx, places=3)
                        self.assertAlmostEqual(math.sin(car.angle), hy, places=3)

    def test_trajectory_turns_at_coarse_ticks(self) -> None:
        self._check(TrafficPolicy())

    def test_teleport_turns_at_coarse_ticks(self) -> None:
        self._check(TrafficPolicy(turn_strategy="teleport"))


class TrafficPolicyTests(unittest.TestCase):
    def test_policy_is_hashable_and_reads_turn_delays(self) -> None:
        policy = TrafficPolicy()
        self.assertEqual(hash(policy), hash(TrafficPolicy()))
        self.assertEqual(policy.turn_delay_s("left"), 1.2)
        self.assertEqual(policy.turn_delay_s("u-turn"), 0.0)
        custom = TrafficPolicy(turn_delays_s=(("left", 2.0),))
        self.assertEqual(custom.turn_delay_s("left"), 2.0)
        self.assertEqual(custom.turn_delay_s("right"), 0.0)


if __name__ == "__main__":
    unittest.main()
