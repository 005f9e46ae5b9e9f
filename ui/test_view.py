#!/usr/bin/env python3
"""
Headless viewer tests: frame rendering, HUD text, key controls and the
camera mapping.  Runs on SDL's dummy video driver.
"""

from __future__ import annotations

import math
import os
import unittest

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")

import numpy as np
import pygame

from sim.sim_bridge import SimBridge
from sim.traffic_policy import SimSettings
from ui.helpers import vehicle_corners
from ui.pygame_view import PygameIntersectionView
from ui.types import Camera


class ViewTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        pygame.init()

    @classmethod
    def tearDownClass(cls) -> None:
        pygame.quit()

    def setUp(self) -> None:
        self.bridge = SimBridge(
            random_seed=2,
            settings=SimSettings(spawn_rate=6.0, car_speed=12.0, turn_rate=0.5),
        )
        for _ in range(300):
            self.bridge.step(50.0)
        self.view = PygameIntersectionView(self.bridge, width=400, height=300)
        self.view.font_small = self.view._load_font(13)
        self.view.font_tiny = self.view._load_font(11)
        self.view.font_title = self.view._load_font(28, bold=True)

    def test_render_frame_draws_visible_vehicles(self) -> None:
        surface = pygame.Surface((400, 300))
        result = self.view.render_frame(surface)
        vehicles = self.bridge.get_vehicles()
        self.assertEqual(result["vehicles"], len(vehicles))
        self.assertEqual(result["drawn"], sum(1 for v in vehicles if not v["hidden"]))
        self.assertIn("lights", result["intersection"])

    def test_render_with_turn_paths_and_pause(self) -> None:
        self.view.show_turn_paths = True
        self.view.paused = True
        surface = pygame.Surface((400, 300))
        self.view.render_frame(surface)
        self.assertEqual(surface.get_size(), (400, 300))

    def test_hud_lines(self) -> None:
        lines = self.view.hud_lines(self.bridge.get_intersection())
        self.assertTrue(lines[0].startswith("TIME"))
        self.assertTrue(any(line.startswith("COMPLETED") for line in lines))
        self.assertTrue(any(line.startswith("GREEN") for line in lines))
        self.assertTrue(self.view.hud_lines({}))

    def test_spawn_and_speed_keys(self) -> None:
        self.assertTrue(self.view.handle_key(pygame.K_UP))
        self.assertAlmostEqual(self.bridge.get_settings().spawn_rate, 6.5)
        self.view.handle_key(pygame.K_DOWN)
        self.view.handle_key(pygame.K_DOWN)
        self.assertAlmostEqual(self.bridge.get_settings().spawn_rate, 5.5)
        self.view.handle_key(pygame.K_RIGHT)
        self.assertAlmostEqual(self.bridge.get_settings().car_speed, 13.0)
        self.view.handle_key(pygame.K_LEFT)
        self.view.handle_key(pygame.K_LEFT)
        self.assertAlmostEqual(self.bridge.get_settings().car_speed, 11.0)

    def test_turn_rate_key_wraps(self) -> None:
        self.view.handle_key(pygame.K_t)
        self.assertAlmostEqual(self.bridge.get_settings().turn_rate, 0.6)
        for _ in range(4):
            self.view.handle_key(pygame.K_t)
        self.assertAlmostEqual(self.bridge.get_settings().turn_rate, 1.0)
        self.view.handle_key(pygame.K_t)
        self.assertEqual(self.bridge.get_settings().turn_rate, 0.0)

    def test_pause_reset_paths_and_escape(self) -> None:
        self.view.handle_key(pygame.K_SPACE)
        self.assertTrue(self.view.paused)
        self.assertTrue(self.bridge.is_paused())

        self.view.handle_key(pygame.K_r)
        self.assertFalse(self.view.paused)
        self.assertFalse(self.bridge.is_paused())
        self.assertEqual(self.bridge.get_vehicles(), [])

        self.view.handle_key(pygame.K_p)
        self.assertTrue(self.view.show_turn_paths)
        self.assertFalse(self.view.handle_key(pygame.K_ESCAPE))

    def test_screenshot_without_window_is_skipped(self) -> None:
        self.assertIsNone(self.view._take_screenshot())


class CameraTests(unittest.TestCase):
    def test_round_trip_and_orientation(self) -> None:
        cam = Camera(400, 300, zoom=2.0)
        self.assertEqual(cam.world_to_screen(0.0, 0.0), (200.0, 150.0))
        sx, sy = cam.world_to_screen(10.0, 10.0)
        self.assertGreater(sx, 200.0)
        self.assertLess(sy, 150.0)
        wx, wy = cam.screen_to_world(sx, sy)
        self.assertAlmostEqual(wx, 10.0)
        self.assertAlmostEqual(wy, 10.0)

        pts = cam.points_to_screen(np.array([[10.0, 10.0], [-5.0, 0.0]]))
        self.assertAlmostEqual(pts[0, 0], sx)
        self.assertAlmostEqual(pts[1, 0], 190.0)

    def test_fit(self) -> None:
        cam = Camera(400, 300)
        cam.fit(60.0, margin=1.0)
        self.assertAlmostEqual(cam.zoom, 2.5)

    def test_vehicle_corners(self) -> None:
        corners = vehicle_corners(1.0, 2.0, math.pi / 2, 4.0, 2.0)
        self.assertEqual(corners.shape, (4, 2))
        np.testing.assert_allclose(corners.mean(axis=0), [1.0, 2.0], atol=1e-9)
        # Nose points north
        self.assertAlmostEqual(corners[:, 1].max(), 4.0)


if __name__ == "__main__":
    unittest.main()
