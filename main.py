#!/usr/bin/env python3
"""
main.py
=======
Entry point: builds a :class:`~sim.sim_bridge.SimBridge` and runs either the
Pygame view or a headless loop that logs statistics.

Environment overrides
---------------------
``SIM_SEED``            integer random seed
``SIM_TICK_HZ``         simulation ticks per second
``SIM_HEADLESS``        ``1`` / ``true`` to run without a window
``SIM_TURN_STRATEGY``   ``trajectory`` or ``teleport``
``SIM_DURATION_S``      simulated seconds for the headless run
"""

import logging
import os
from typing import Any, Dict, Optional

import config
from logging_setup import setup_logging
from sim.sim_bridge import SimBridge
from sim.traffic_policy import TrafficPolicy

log = logging.getLogger("main")

_TRUTHY = {"1", "true", "yes", "on"}


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        log.warning("Ignoring %s=%r: not an integer", name, raw)
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        log.warning("Ignoring %s=%r: not a number", name, raw)
        return default


def load_options() -> Dict[str, Any]:
    """Collect run options from :mod:`config` and the environment."""
    headless_raw = os.environ.get("SIM_HEADLESS")
    headless = config.DEFAULT_HEADLESS
    if headless_raw is not None:
        headless = headless_raw.strip().lower() in _TRUTHY
    return {
        "seed": _env_int("SIM_SEED", config.DEFAULT_SEED),
        "tick_hz": _env_float("SIM_TICK_HZ", config.DEFAULT_TICK_RATE_HZ),
        "headless": headless,
        "turn_strategy": os.environ.get("SIM_TURN_STRATEGY", config.DEFAULT_TURN_STRATEGY),
        "duration_s": _env_float("SIM_DURATION_S", config.DEFAULT_DURATION_S),
    }


def run_headless(bridge: SimBridge, duration_s: float, tick_hz: float) -> Dict[str, Any]:
    """Step the bridge synchronously for *duration_s* simulated seconds."""
    delta_ms = 1000.0 / tick_hz
    ticks = int(duration_s * tick_hz)
    report_every = max(1, int(config.REPORT_EVERY_S * tick_hz))
    for i in range(1, ticks + 1):
        bridge.step(delta_ms)
        if i % report_every == 0:
            info = bridge.get_intersection()
            log.info("t=%.0fs vehicles=%d waiting=%d stats=%s",
                     info["sim_time_s"], info["vehicle_count"], info["waiting"],
                     info["stats"])
    report = bridge.stats.report()
    log.info("Finished: %s", report)
    return report


def main() -> None:
    setup_logging(logging.INFO)
    options = load_options()
    log.info("Starting intersection simulation: %s", options)

    policy = TrafficPolicy(turn_strategy=options["turn_strategy"])
    bridge = SimBridge(
        tick_rate_hz=options["tick_hz"],
        random_seed=options["seed"],
        policy=policy,
    )

    if options["headless"]:
        run_headless(bridge, options["duration_s"], options["tick_hz"])
        return

    from ui import run_pygame_view

    bridge.start()
    try:
        run_pygame_view(
            bridge,
            width=config.WINDOW_WIDTH,
            height=config.WINDOW_HEIGHT,
            fps=config.TARGET_FPS,
        )
    except KeyboardInterrupt:
        log.info("Shutting down...")
    finally:
        bridge.stop()


if __name__ == "__main__":
    main()
