#!/usr/bin/env python3
"""Visual constants shared across all renderers."""

from __future__ import annotations

from typing import Sequence

from .types import ColorRGB

# ── Map palette ───────────────────────────────────────────────────────────────
COLOR_GRASS: ColorRGB = (58, 92, 54)
COLOR_ROAD: ColorRGB = (48, 48, 52)
COLOR_ROAD_EDGE: ColorRGB = (210, 210, 210)
COLOR_SIDEWALK: ColorRGB = (150, 150, 145)
COLOR_INTERSECTION: ColorRGB = (56, 56, 60)
COLOR_LANE_WHITE: ColorRGB = (225, 225, 225)
COLOR_CENTER_YELLOW: ColorRGB = (235, 190, 60)
COLOR_STOP_LINE: ColorRGB = (245, 245, 245)
COLOR_SIGN_POLE: ColorRGB = (90, 90, 90)

COLOR_LIGHT_RED: ColorRGB = (255, 60, 60)
COLOR_LIGHT_YELLOW: ColorRGB = (255, 200, 40)
COLOR_LIGHT_GREEN: ColorRGB = (0, 230, 110)
COLOR_LIGHT_OFF: ColorRGB = (45, 45, 45)
COLOR_LIGHT_HOUSING: ColorRGB = (20, 20, 20)

SIDEWALK_W = 2.0
DASH_LEN = 3.0
DASH_GAP = 4.0


class ViewConstants:
    """Mixin providing every visual / layout constant."""

    BG_COLOR: ColorRGB = (15, 15, 15)
    HUD_BG_COLOR: ColorRGB = (22, 22, 22)
    HUD_BORDER_COLOR: ColorRGB = (42, 42, 42)
    HUD_TEXT_COLOR: ColorRGB = (230, 230, 235)
    HUD_DIM_COLOR: ColorRGB = (140, 140, 140)
    WAITING_COLOR: ColorRGB = (255, 60, 60)
    TURN_PATH_ALPHA = 90

    # Visible world half-extent around the intersection centre (m)
    VIEW_HALF_EXTENT_M = 60.0

    # Keyboard setting steps and bounds
    SPAWN_RATE_STEP = 0.5
    SPAWN_RATE_MAX = 20.0
    CAR_SPEED_STEP = 1.0
    CAR_SPEED_MIN = 1.0
    CAR_SPEED_MAX = 30.0
    TURN_RATE_STEP = 0.1

    HELP_LINES: Sequence[str] = (
        "SPACE  Pause/Resume",
        "R      Reset",
        "UP/DN  Spawn rate",
        "LT/RT  Car speed",
        "T      Turn rate",
        "P      Turn paths",
        "S      Screenshot",
        "ESC    Quit",
    )

    SCREENSHOT_DIR = "screenshots"
