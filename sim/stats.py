"""
TrafficStats: Tracks simple statistics for vehicles leaving the intersection.
"""

from typing import Dict

from sim.car import CompletionRecord
from sim.network import Direction, TurnType


class TrafficStats:
    """
    Aggregates completion records delivered by the vehicle manager.

    Attributes:
        completed (int): Number of vehicles that left the intersection.
        total_wait_time (float): Sum of every completed vehicle's wait (s).
        max_wait_time (float): Longest single wait seen so far (s).
        by_direction (dict): Completed vehicles per entry direction.
        by_turn (dict): Completed vehicles per turn type.
    """

    def __init__(self):
        """Initialize all counters to zero."""
        self.reset()

    def reset(self):
        self.completed = 0
        self.total_wait_time = 0.0
        self.max_wait_time = 0.0
        self.by_direction: Dict[str, int] = {d.value: 0 for d in Direction}
        self.by_turn: Dict[str, int] = {t.value: 0 for t in TurnType}
        self._wait_by_direction: Dict[str, float] = {d.value: 0.0 for d in Direction}

    def record(self, record: CompletionRecord) -> None:
        """Account for one completed vehicle."""
        wait = max(0.0, float(record.total_wait_time))
        self.completed += 1
        self.total_wait_time += wait
        self.max_wait_time = max(self.max_wait_time, wait)
        self.by_direction[record.from_direction.value] += 1
        self.by_turn[record.turn_type.value] += 1
        self._wait_by_direction[record.from_direction.value] += wait

    def average_wait_time(self) -> float:
        if self.completed == 0:
            return 0.0
        return self.total_wait_time / self.completed

    def average_wait_by_direction(self) -> Dict[str, float]:
        return {
            d: (self._wait_by_direction[d] / n if n else 0.0)
            for d, n in self.by_direction.items()
        }

    def report(self) -> dict:
        """
        Return a snapshot of current statistics.

        Returns:
            dict: 'completed', 'average_wait', 'max_wait', 'by_direction',
            'by_turn' and 'average_wait_by_direction'.
        """
        return {
            "completed": self.completed,
            "average_wait": self.average_wait_time(),
            "max_wait": self.max_wait_time,
            "by_direction": dict(self.by_direction),
            "by_turn": dict(self.by_turn),
            "average_wait_by_direction": self.average_wait_by_direction(),
        }
