#!/usr/bin/env python3
"""
Main view class: combines all UI mixins into one runnable Pygame window.

Module layout
─────────────
    ui/
    ├── types.py           – Camera, ColorRGB, ColorRGBA
    ├── constants.py       – ViewConstants mixin and map palette
    ├── helpers.py         – ViewHelpers mixin  (static utilities)
    ├── draw_road.py       – RoadRenderer mixin (roads, lanes, lights)
    ├── draw_vehicles.py   – VehicleRenderer mixin (vehicle bodies)
    ├── hud.py             – HudRenderer mixin  (stats, help, pause)
    └── pygame_view.py     – PygameIntersectionView (this file – main loop)
"""

from __future__ import annotations

import logging
import os
from dataclasses import replace
from datetime import datetime
from typing import Any, Dict, List, Optional

import pygame

from .constants import ViewConstants
from .draw_road import RoadRenderer
from .draw_vehicles import VehicleRenderer
from .helpers import ViewHelpers
from .hud import HudRenderer
from .types import Camera

log = logging.getLogger("ui")


class PygameIntersectionView(
    ViewConstants,
    ViewHelpers,
    RoadRenderer,
    VehicleRenderer,
    HudRenderer,
):
    """Intersection visualiser powered by Pygame.

    Reads snapshots from a :class:`~sim.sim_bridge.SimBridge` and forwards
    keyboard controls to it.  Inherits drawing logic from focused mixin
    modules so each file stays small and single-purpose.
    """

    def __init__(self, bridge: Any, width: int = 1000, height: int = 700, fps: int = 60):
        self.bridge = bridge
        self.network = bridge.get_network()
        self.width = width
        self.height = height
        self.fps = fps

        self.screen: Optional[pygame.Surface] = None
        self.clock: Optional[pygame.time.Clock] = None
        self.font_small: Optional[pygame.font.Font] = None
        self.font_tiny: Optional[pygame.font.Font] = None
        self.font_title: Optional[pygame.font.Font] = None

        self.camera = Camera(width, height)
        self.camera.fit(self.VIEW_HALF_EXTENT_M)
        self.time_seconds = 0.0

        # UI state
        self.paused = False
        self.show_turn_paths = False
        self._screenshot_flash_until = 0.0

    # ------------------------------------------------------------------ #
    #  Resize                                                              #
    # ------------------------------------------------------------------ #
    def _handle_resize(self, new_w: int, new_h: int) -> None:
        self.width = max(400, new_w)
        self.height = max(300, new_h)
        self.camera.resize(self.width, self.height)
        self.camera.fit(self.VIEW_HALF_EXTENT_M)
        self.screen = pygame.display.set_mode(
            (self.width, self.height), pygame.RESIZABLE
        )

    # ------------------------------------------------------------------ #
    #  Screenshot                                                          #
    # ------------------------------------------------------------------ #
    def _take_screenshot(self) -> Optional[str]:
        if self.screen is None:
            return None
        os.makedirs(self.SCREENSHOT_DIR, exist_ok=True)
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        path = os.path.join(self.SCREENSHOT_DIR, f"sim_{stamp}.png")
        pygame.image.save(self.screen, path)
        self._screenshot_flash_until = self.time_seconds + 0.35
        log.info("Screenshot saved to %s", path)
        return path

    # ------------------------------------------------------------------ #
    #  Controls                                                            #
    # ------------------------------------------------------------------ #
    def _adjust_settings(self, **changes: float) -> None:
        settings = replace(self.bridge.get_settings(), **changes)
        self.bridge.update_settings(settings)

    def handle_key(self, key: int) -> bool:
        """Apply one key press; returns ``False`` when the view should close."""
        settings = self.bridge.get_settings()
        if key == pygame.K_ESCAPE:
            return False
        if key == pygame.K_SPACE:
            self.paused = not self.paused
            self.bridge.set_paused(self.paused)
        elif key == pygame.K_r:
            self.paused = False
            self.bridge.reset()
            self.bridge.set_paused(False)
        elif key == pygame.K_UP:
            self._adjust_settings(spawn_rate=min(
                self.SPAWN_RATE_MAX, settings.spawn_rate + self.SPAWN_RATE_STEP))
        elif key == pygame.K_DOWN:
            self._adjust_settings(spawn_rate=max(
                0.0, settings.spawn_rate - self.SPAWN_RATE_STEP))
        elif key == pygame.K_RIGHT:
            self._adjust_settings(car_speed=min(
                self.CAR_SPEED_MAX, settings.car_speed + self.CAR_SPEED_STEP))
        elif key == pygame.K_LEFT:
            self._adjust_settings(car_speed=max(
                self.CAR_SPEED_MIN, settings.car_speed - self.CAR_SPEED_STEP))
        elif key == pygame.K_t:
            # Cycles 0.0 → 1.0 then wraps
            nxt = round(settings.turn_rate + self.TURN_RATE_STEP, 2)
            self._adjust_settings(turn_rate=0.0 if nxt > 1.0 else nxt)
        elif key == pygame.K_p:
            self.show_turn_paths = not self.show_turn_paths
        elif key == pygame.K_s:
            self._take_screenshot()
        return True

    # ------------------------------------------------------------------ #
    #  Rendering                                                           #
    # ------------------------------------------------------------------ #
    def render_frame(self, surface: pygame.Surface) -> Dict[str, Any]:
        """Draw one full frame; returns the snapshot that was drawn."""
        vehicles: List[Dict[str, Any]] = self.bridge.get_vehicles()
        intersection = self.bridge.get_intersection()

        surface.fill(self.BG_COLOR)
        self.draw_road(surface, intersection)
        drawn = self.draw_vehicles(surface, vehicles)

        self.draw_hud(surface, intersection)
        self._draw_help(surface)
        if self.paused:
            self._draw_pause_banner(surface)
        if self.time_seconds < self._screenshot_flash_until:
            flash = pygame.Surface((self.width, self.height), pygame.SRCALPHA)
            flash.fill((255, 255, 255, 40))
            surface.blit(flash, (0, 0))
        return {"vehicles": len(vehicles), "drawn": drawn, "intersection": intersection}

    # ------------------------------------------------------------------ #
    #  Main loop                                                           #
    # ------------------------------------------------------------------ #
    def run(self) -> None:
        pygame.init()
        pygame.display.set_caption("INTERSECTION TRAFFIC SIM")
        self.screen = pygame.display.set_mode(
            (self.width, self.height), pygame.RESIZABLE
        )
        self.clock = pygame.time.Clock()
        self.font_small = self._load_font(13, bold=False)
        self.font_tiny = self._load_font(11, bold=False)
        self.font_title = self._load_font(28, bold=True)

        running = True
        while running:
            delta_time = self.clock.tick(self.fps) / 1000.0
            self.time_seconds += delta_time

            # ---- events ------------------------------------------------- #
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == pygame.VIDEORESIZE:
                    self._handle_resize(event.w, event.h)
                elif event.type == pygame.KEYDOWN:
                    running = self.handle_key(event.key) and running

            # ---- render ------------------------------------------------- #
            self.render_frame(self.screen)
            pygame.display.flip()

        pygame.quit()


# ---------------------------------------------------------------------- #
#  Convenience entry point                                                 #
# ---------------------------------------------------------------------- #
def run_pygame_view(
    bridge: Any, width: int = 1000, height: int = 700, fps: int = 60
) -> None:
    view = PygameIntersectionView(bridge=bridge, width=width, height=height, fps=fps)
    view.run()


if __name__ == "__main__":
    raise SystemExit(
        "pygame_view.py needs a SimBridge. Run `python main.py` "
        "or call run_pygame_view(your_bridge)."
    )
