"""
sim/sim_bridge.py
=================
Background-thread orchestrator tying :mod:`sim.world`, :mod:`sim.signals`
and :mod:`sim.stats` together.  The UI polls the bridge for the latest
snapshot without blocking.

Public API consumed by :mod:`ui.pygame_view`
--------------------------------------------
* ``get_vehicles()``      → ``List[dict]``
* ``get_intersection()``  → ``dict``
* ``get_network()``       → :class:`~sim.network.RoadNetwork`
* ``get_settings()``      → :class:`~sim.traffic_policy.SimSettings`
* ``reset()``             → ``None``
* ``set_paused(bool)``    → ``None``
* ``update_settings(s)``  → ``None``
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import asdict, replace
from typing import Any, Dict, List, Optional

from sim.car import Clock, CompletionRecord
from sim.network import RoadNetwork, build_network
from sim.signals import SignalController
from sim.stats import TrafficStats
from sim.traffic_policy import SimSettings, TrafficPolicy
from sim.world import VehicleManager

log = logging.getLogger("sim_bridge")


class SimBridge:
    """Simulation orchestrator running in a background thread.

    The thread calls :meth:`step` at ``tick_rate_hz``, advancing the
    :class:`~sim.signals.SignalController` and the
    :class:`~sim.world.VehicleManager`, feeding completions into
    :class:`~sim.stats.TrafficStats`, and caching render snapshots for
    the UI thread.

    Parameters
    ----------
    tick_rate_hz : float
        Simulation ticks per second.
    random_seed : int or None
        Seed for reproducibility.
    policy : TrafficPolicy or None
        Tunable constants.
    settings : SimSettings or None
        Initial spawn rate / speed / turn rate.
    clock : callable or None
        Seconds clock for wait-time accounting (injectable for tests).
    """

    def __init__(
        self,
        tick_rate_hz: float = 60.0,
        random_seed: Optional[int] = None,
        policy: Optional[TrafficPolicy] = None,
        settings: Optional[SimSettings] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        if tick_rate_hz <= 0:
            raise ValueError("tick_rate_hz must be positive")
        self._tick_rate_hz = tick_rate_hz
        self.policy = policy or TrafficPolicy()

        self._network = build_network(self.policy)
        self._stats = TrafficStats()
        self._signals = SignalController(self.policy)
        self._manager = VehicleManager(
            self._network,
            policy=self.policy,
            settings=settings,
            seed=random_seed,
            clock=clock,
            on_car_completed=self._on_car_completed,
        )

        self._lock = threading.Lock()
        # Serialises step() against reset()/update_settings() from the UI thread
        self._step_lock = threading.Lock()

        # Cached state: written by sim thread, read by UI thread
        self._vehicles: List[Dict[str, Any]] = []
        self._intersection: Dict[str, Any] = {}
        self._ticks = 0
        self._sim_time_s = 0.0

        self._thread: Optional[threading.Thread] = None
        self._running = False
        self._paused = False
        self._publish()

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    def start(self) -> None:
        """Spawn the background simulation thread."""
        if self._running:
            return
        self._running = True
        self._thread = threading.Thread(
            target=self._loop, daemon=True, name="SimBridge"
        )
        self._thread.start()
        log.info("SimBridge started at %.1f Hz", self._tick_rate_hz)

    def stop(self) -> None:
        """Signal the thread to stop and wait for it to join."""
        self._running = False
        if self._thread:
            self._thread.join(timeout=2.0)
            self._thread = None
        log.info("SimBridge stopped")

    @property
    def running(self) -> bool:
        return self._running

    # ── UI API ────────────────────────────────────────────────────────────────

    def get_vehicles(self) -> List[Dict[str, Any]]:
        with self._lock:
            return list(self._vehicles)

    def get_intersection(self) -> Dict[str, Any]:
        """Return intersection metadata (lights, stats, settings)."""
        with self._lock:
            return dict(self._intersection)

    def get_network(self) -> RoadNetwork:
        return self._network

    def get_settings(self) -> SimSettings:
        return replace(self._manager.settings)

    @property
    def stats(self) -> TrafficStats:
        return self._stats

    def is_paused(self) -> bool:
        return self._paused

    def set_paused(self, paused: bool) -> None:
        """Pause / unpause the simulation tick."""
        self._paused = paused
        log.info("SimBridge %s", "paused" if paused else "resumed")

    def update_settings(self, settings: SimSettings) -> None:
        with self._step_lock:
            self._manager.update_settings(settings)
        self._publish()

    def reset(self) -> None:
        """Clear the population, statistics and signal cycle."""
        with self._step_lock:
            self._manager.reset()
            self._signals.reset()
            self._stats.reset()
            self._ticks = 0
            self._sim_time_s = 0.0
        self._publish()
        log.info("SimBridge reset")

    # ── Background loop ───────────────────────────────────────────────────────

    def _loop(self) -> None:
        dt = 1.0 / self._tick_rate_hz
        while self._running:
            t0 = time.perf_counter()
            if not self._paused:
                try:
                    self.step(dt * 1000.0)
                except Exception:
                    log.exception("SimBridge tick error")
            time.sleep(max(0.0, dt - (time.perf_counter() - t0)))

    # ── tick ──────────────────────────────────────────────────────────────────

    def step(self, delta_ms: float) -> List[CompletionRecord]:
        """Advance signals and vehicles by *delta_ms* and publish a snapshot."""
        with self._step_lock:
            self._signals.update(delta_ms)
            records = self._manager.tick(delta_ms, self._signals.light_states())
            self._ticks += 1
            self._sim_time_s += delta_ms / 1000.0
        self._publish()
        return records

    def _on_car_completed(self, record: CompletionRecord) -> None:
        self._stats.record(record)
        log.debug("Car %s completed %s->%s (%s), waited %.2f s",
                  record.id, record.from_direction.value, record.to_direction.value,
                  record.turn_type.value, record.total_wait_time)

    def _publish(self) -> None:
        vehicles = [car.as_dict() for car in self._manager.get_cars()]
        intersection: Dict[str, Any] = {
            "lights": self._signals.as_dict(),
            "stats": self._stats.report(),
            "vehicle_count": len(vehicles),
            "waiting": sum(1 for v in vehicles if v["state"] == "waiting"),
            "settings": asdict(self._manager.settings),
            "ticks": self._ticks,
            "sim_time_s": self._sim_time_s,
            "paused": self._paused,
            "turn_strategy": self.policy.turn_strategy,
        }
        # Atomic swap: UI thread reads these via public methods.
        with self._lock:
            self._vehicles = vehicles
            self._intersection = intersection
