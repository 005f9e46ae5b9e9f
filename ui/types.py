"""
ui/types.py
===========
Lightweight data containers used across every UI module.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Tuple

import numpy as np

ColorRGB = Tuple[int, int, int]
ColorRGBA = Tuple[int, int, int, int]


@dataclass
class Camera:
    """Viewport mapping world coordinates (metres, y north) to screen pixels."""
    screen_w: int
    screen_h: int
    world_x: float = 0.0
    world_y: float = 0.0
    zoom: float = 3.0

    def world_to_screen(self, wx: float, wy: float) -> Tuple[float, float]:
        cx = self.screen_w / 2
        cy = self.screen_h / 2
        sx = cx + (wx - self.world_x) * self.zoom
        sy = cy - (wy - self.world_y) * self.zoom
        return sx, sy

    def screen_to_world(self, sx: float, sy: float) -> Tuple[float, float]:
        cx = self.screen_w / 2
        cy = self.screen_h / 2
        wx = (sx - cx) / self.zoom + self.world_x
        wy = -((sy - cy) / self.zoom) + self.world_y
        return wx, wy

    def points_to_screen(self, pts: np.ndarray) -> np.ndarray:
        """Vectorised :meth:`world_to_screen` for an ``(N, 2)`` array."""
        pts = np.asarray(pts, dtype=float).reshape(-1, 2)
        out = np.empty_like(pts)
        out[:, 0] = self.screen_w / 2 + (pts[:, 0] - self.world_x) * self.zoom
        out[:, 1] = self.screen_h / 2 - (pts[:, 1] - self.world_y) * self.zoom
        return out

    def fit(self, half_extent_m: float, margin: float = 0.92) -> None:
        """Zoom so a square of *half_extent_m* around the origin fills the view."""
        if half_extent_m <= 0:
            return
        self.zoom = margin * min(self.screen_w, self.screen_h) / (2.0 * half_extent_m)

    def resize(self, screen_w: int, screen_h: int) -> None:
        self.screen_w = screen_w
        self.screen_h = screen_h
