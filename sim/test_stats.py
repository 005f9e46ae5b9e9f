#!/usr/bin/env python3
"""
Completion statistics tests.
"""

from __future__ import annotations

import unittest

from sim.car import CompletionRecord
from sim.network import Direction, TurnType
from sim.stats import TrafficStats


def _record(car_id: int, frm: Direction, to: Direction, turn: TurnType, wait: float) -> CompletionRecord:
    return CompletionRecord(id=car_id, from_direction=frm, to_direction=to,
                            turn_type=turn, total_wait_time=wait)


class TrafficStatsTests(unittest.TestCase):
    def test_empty_report(self) -> None:
        report = TrafficStats().report()
        self.assertEqual(report["completed"], 0)
        self.assertEqual(report["average_wait"], 0.0)
        self.assertEqual(report["by_direction"], {"N": 0, "E": 0, "S": 0, "W": 0})
        self.assertEqual(report["by_turn"], {"straight": 0, "left": 0, "right": 0})

    def test_record_aggregates(self) -> None:
        stats = TrafficStats()
        stats.record(_record(1, Direction.NORTH, Direction.SOUTH, TurnType.STRAIGHT, 2.0))
        stats.record(_record(2, Direction.NORTH, Direction.EAST, TurnType.LEFT, 4.0))
        stats.record(_record(3, Direction.WEST, Direction.SOUTH, TurnType.RIGHT, 0.0))

        self.assertEqual(stats.completed, 3)
        self.assertAlmostEqual(stats.average_wait_time(), 2.0)
        self.assertEqual(stats.max_wait_time, 4.0)
        report = stats.report()
        self.assertEqual(report["by_direction"]["N"], 2)
        self.assertEqual(report["by_direction"]["W"], 1)
        self.assertEqual(report["by_turn"], {"straight": 1, "left": 1, "right": 1})
        self.assertAlmostEqual(report["average_wait_by_direction"]["N"], 3.0)
        self.assertEqual(report["average_wait_by_direction"]["E"], 0.0)

    def test_reset(self) -> None:
        stats = TrafficStats()
        stats.record(_record(1, Direction.EAST, Direction.WEST, TurnType.STRAIGHT, 1.5))
        stats.reset()
        self.assertEqual(stats.completed, 0)
        self.assertEqual(stats.total_wait_time, 0.0)
        self.assertEqual(stats.by_direction["E"], 0)


if __name__ == "__main__":
    unittest.main()
