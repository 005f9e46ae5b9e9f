#!/usr/bin/env python3
"""
sim/signals.py
==============
Fixed-cycle traffic-light controller.

The two axes take turns: ``GREEN`` → ``YELLOW`` → all-red clearance →
the other axis goes ``GREEN``.  The vehicle core only ever reads
:meth:`SignalController.light_states`; it never drives the cycle.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from sim.network import Direction
from sim.physics import ms_to_s
from sim.traffic_policy import TrafficPolicy

log = logging.getLogger("signals")


class LightState(Enum):
    RED = "RED"
    YELLOW = "YELLOW"
    GREEN = "GREEN"

    @classmethod
    def parse(cls, value: Any) -> Optional["LightState"]:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return None


# Which approaches share a green phase
AXIS_APPROACHES: Dict[str, tuple] = {
    "NS": (Direction.NORTH, Direction.SOUTH),
    "EW": (Direction.EAST, Direction.WEST),
}
_OTHER_AXIS: Dict[str, str] = {"EW": "NS", "NS": "EW"}
_AXIS_OF: Dict[Direction, str] = {
    d: axis for axis, dirs in AXIS_APPROACHES.items() for d in dirs
}


def normalize_light_states(raw: Mapping[Any, Any]) -> Dict[Direction, LightState]:
    """Coerce ``{"N": "GREEN", ...}``-style mappings; bad entries are dropped."""
    out: Dict[Direction, LightState] = {}
    for key, value in raw.items():
        d = Direction.parse(key)
        state = LightState.parse(value)
        if d is None or state is None:
            log.warning("Ignoring light entry %r=%r", key, value)
            continue
        out[d] = state
    return out


class SignalController:
    """Two-phase signal cycle.

    Parameters
    ----------
    policy : TrafficPolicy or None
        Supplies ``signal_green_s``, ``signal_yellow_s`` and
        ``signal_all_red_s``.
    start_axis : str
        ``'NS'`` or ``'EW'``, the axis that is green first.
    """

    def __init__(self, policy: Optional[TrafficPolicy] = None, start_axis: str = "NS") -> None:
        self.policy = policy or TrafficPolicy()
        if start_axis not in AXIS_APPROACHES:
            raise ValueError(f"start_axis must be 'NS' or 'EW', got {start_axis!r}")
        self._start_axis = start_axis
        self.reset()

    def reset(self) -> None:
        self.green_axis = self._start_axis
        self.phase = LightState.GREEN
        self.timer = self.policy.signal_green_s
        self._all_red = False

    def update(self, delta_ms: float) -> None:
        """Advance the cycle by *delta_ms*; may cross several phases."""
        self.timer -= ms_to_s(delta_ms)
        while self.timer <= 0.0:
            if self._all_red:
                self._all_red = False
                self.green_axis = _OTHER_AXIS[self.green_axis]
                self.phase = LightState.GREEN
                self.timer += self.policy.signal_green_s
            elif self.phase is LightState.GREEN:
                self.phase = LightState.YELLOW
                self.timer += self.policy.signal_yellow_s
            else:
                self._all_red = True
                self.phase = LightState.RED
                self.timer += self.policy.signal_all_red_s
            log.debug("Signal: axis=%s phase=%s", self.green_axis, self.phase.value)
            if self.timer <= 0.0 and self._cycle_length() <= 0.0:
                break

    def _cycle_length(self) -> float:
        p = self.policy
        return p.signal_green_s + p.signal_yellow_s + p.signal_all_red_s

    def force(self, axis: str, phase: LightState) -> None:
        """Jump straight to *phase* on *axis* (the other axis shows red)."""
        if axis not in AXIS_APPROACHES:
            raise ValueError(f"axis must be 'NS' or 'EW', got {axis!r}")
        self.green_axis = axis
        self.phase = phase
        self._all_red = phase is LightState.RED
        self.timer = {
            LightState.GREEN: self.policy.signal_green_s,
            LightState.YELLOW: self.policy.signal_yellow_s,
            LightState.RED: self.policy.signal_all_red_s,
        }[phase]

    def state_for(self, direction: Any) -> Optional[LightState]:
        d = Direction.parse(direction)
        if d is None:
            return None
        if _AXIS_OF[d] == self.green_axis and not self._all_red:
            return self.phase
        return LightState.RED

    def light_states(self) -> Dict[Direction, LightState]:
        return {d: self.state_for(d) for d in Direction}

    def as_dict(self) -> Dict[str, Any]:
        """Signal state for the UI."""
        return {
            "green_axis": self.green_axis,
            "phase": self.phase.value,
            "timer": round(self.timer, 1),
            "colors": {d.value: s.value for d, s in self.light_states().items()},
        }
