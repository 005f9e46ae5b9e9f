#!/usr/bin/env python3
"""
Signal-cycle tests.
"""

from __future__ import annotations

import unittest

from sim.network import Direction
from sim.signals import LightState, SignalController, normalize_light_states
from sim.traffic_policy import TrafficPolicy


class SignalControllerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.policy = TrafficPolicy(signal_green_s=8.0, signal_yellow_s=2.0, signal_all_red_s=1.0)
        self.signals = SignalController(self.policy)

    def test_starts_with_north_south_green(self) -> None:
        self.assertIs(self.signals.state_for("N"), LightState.GREEN)
        self.assertIs(self.signals.state_for(Direction.SOUTH), LightState.GREEN)
        self.assertIs(self.signals.state_for("E"), LightState.RED)
        self.assertIs(self.signals.state_for("W"), LightState.RED)

    def test_full_cycle(self) -> None:
        self.signals.update(7900.0)
        self.assertIs(self.signals.state_for("N"), LightState.GREEN)
        self.signals.update(200.0)
        self.assertIs(self.signals.state_for("N"), LightState.YELLOW)
        self.assertIs(self.signals.state_for("E"), LightState.RED)
        self.signals.update(2000.0)
        self.assertTrue(all(s is LightState.RED for s in self.signals.light_states().values()))
        self.signals.update(1000.0)
        self.assertIs(self.signals.state_for("E"), LightState.GREEN)
        self.assertIs(self.signals.state_for("W"), LightState.GREEN)
        self.assertIs(self.signals.state_for("N"), LightState.RED)
        self.signals.update(11000.0)
        self.assertIs(self.signals.state_for("N"), LightState.GREEN)

    def test_large_step_crosses_several_phases(self) -> None:
        self.signals.update(11000.0)
        self.assertEqual(self.signals.green_axis, "EW")
        self.assertIs(self.signals.phase, LightState.GREEN)
        self.assertAlmostEqual(self.signals.timer, 8.0)

    def test_never_two_axes_green(self) -> None:
        for _ in range(1000):
            self.signals.update(50.0)
            states = self.signals.light_states()
            ns_go = states[Direction.NORTH] is not LightState.RED
            ew_go = states[Direction.EAST] is not LightState.RED
            self.assertFalse(ns_go and ew_go)
            self.assertIs(states[Direction.NORTH], states[Direction.SOUTH])
            self.assertIs(states[Direction.EAST], states[Direction.WEST])

    def test_force_and_reset(self) -> None:
        self.signals.force("EW", LightState.YELLOW)
        self.assertIs(self.signals.state_for("E"), LightState.YELLOW)
        self.assertIs(self.signals.state_for("N"), LightState.RED)
        with self.assertRaises(ValueError):
            self.signals.force("XY", LightState.GREEN)
        self.signals.reset()
        self.assertIs(self.signals.state_for("N"), LightState.GREEN)

    def test_start_axis(self) -> None:
        signals = SignalController(self.policy, start_axis="EW")
        self.assertIs(signals.state_for("W"), LightState.GREEN)
        with self.assertRaises(ValueError):
            SignalController(self.policy, start_axis="NE")

    def test_as_dict(self) -> None:
        d = self.signals.as_dict()
        self.assertEqual(d["green_axis"], "NS")
        self.assertEqual(d["phase"], "GREEN")
        self.assertEqual(d["colors"], {"N": "GREEN", "E": "RED", "S": "GREEN", "W": "RED"})
        self.assertIsNone(self.signals.state_for("Q"))


class NormalizeLightStatesTests(unittest.TestCase):
    def test_coerces_and_drops_bad_entries(self) -> None:
        with self.assertLogs("signals", level="WARNING"):
            states = normalize_light_states({"n": "green", "X": "RED", "E": "BLUE",
                                             Direction.WEST: LightState.YELLOW})
        self.assertEqual(states, {Direction.NORTH: LightState.GREEN,
                                  Direction.WEST: LightState.YELLOW})


if __name__ == "__main__":
    unittest.main()
