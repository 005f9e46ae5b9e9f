#!/usr/bin/env python3
"""Vehicle body rendering from the bridge's pose snapshots (mixin)."""

from __future__ import annotations

import math
from typing import Any, Sequence

import pygame

from .helpers import vehicle_corners
from .types import ColorRGB


class VehicleRenderer:
    """Mixin that draws every visible vehicle as a rotated body."""

    # ------------------------------------------------------------------ #
    #  Public draw methods                                                 #
    # ------------------------------------------------------------------ #

    def draw_vehicles(self, surface: pygame.Surface, vehicles: Sequence[Any]) -> int:
        """Draw all non-hidden vehicles; returns how many were drawn."""
        drawn = 0
        for index, vehicle in enumerate(vehicles):
            if self._get(vehicle, "hidden", default=False):
                continue
            self.draw_vehicle(surface, vehicle, index)
            drawn += 1
        return drawn

    def draw_vehicle(self, surface: pygame.Surface, vehicle: Any, index: int = 0) -> None:
        x = float(self._get(vehicle, "x", default=0.0))
        y = float(self._get(vehicle, "y", default=0.0))
        angle = float(self._get(vehicle, "angle", default=0.0))
        length = float(self._get(vehicle, "length", default=4.5))
        width = float(self._get(vehicle, "width", default=1.9))
        color = self._vehicle_color(vehicle, index)

        corners = self.camera.points_to_screen(vehicle_corners(x, y, angle, length, width))
        pts = [(int(px), int(py)) for px, py in corners]
        pygame.draw.polygon(surface, color, pts)

        # Windshield: front quarter of the body, darkened
        front = self.camera.points_to_screen(vehicle_corners(
            x + 0.3 * length * math.cos(angle),
            y + 0.3 * length * math.sin(angle),
            angle, 0.2 * length, 0.8 * width,
        ))
        r, g, b = color
        glass = (max(0, r - 60), max(0, g - 60), max(0, b - 60))
        pygame.draw.polygon(surface, glass, [(int(px), int(py)) for px, py in front])

        outline = self.WAITING_COLOR if self._get(vehicle, "state") == "waiting" else (235, 235, 235)
        pygame.draw.polygon(surface, outline, pts, 1)

    # ------------------------------------------------------------------ #
    #  Helpers                                                             #
    # ------------------------------------------------------------------ #

    def _vehicle_color(self, vehicle: Any, index: int) -> ColorRGB:
        parsed = self._parse_color(self._get(vehicle, "color", "colour"))
        if parsed is not None:
            return parsed
        palette = self.network.policy.vehicle_colors
        return palette[index % len(palette)]
