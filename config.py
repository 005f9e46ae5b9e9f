#!/usr/bin/env python3
"""
config.py
=========
Application-wide configuration constants.

Values can be overridden via environment variables (see :mod:`main`).
This module is a thin, import-safe leaf; it never imports from
other project packages.
"""

# ── Simulation defaults ──────────────────────────────────────────────────────
DEFAULT_TICK_RATE_HZ: float = 60.0
DEFAULT_SEED = None
DEFAULT_TURN_STRATEGY: str = "trajectory"

# ── Headless run defaults ────────────────────────────────────────────────────
DEFAULT_HEADLESS: bool = False
DEFAULT_DURATION_S: float = 120.0
REPORT_EVERY_S: float = 10.0

# ── UI defaults ──────────────────────────────────────────────────────────────
WINDOW_WIDTH: int = 1000
WINDOW_HEIGHT: int = 700
TARGET_FPS: int = 60

# ── Logging ──────────────────────────────────────────────────────────────────
LOG_FILE: str = "intersection.log"
WORLD_DEBUG_LOG_FILE: str = "world_debug.log"
