"""
ui/draw_road.py
===============
Renders the 2D map of the intersection:
  grass background, road surfaces, sidewalks, lane markings, the
  intersection box, stop lines, traffic-light heads and turn paths.

All functions are *pure renderers*: they read the road network and the
light snapshot and draw to a surface.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Tuple

import pygame

from sim.network import Direction, RoadNetwork, TurnType
from ui.constants import (
    COLOR_GRASS, COLOR_ROAD, COLOR_ROAD_EDGE, COLOR_SIDEWALK,
    COLOR_INTERSECTION, COLOR_LANE_WHITE, COLOR_CENTER_YELLOW,
    COLOR_STOP_LINE, COLOR_SIGN_POLE,
    COLOR_LIGHT_RED, COLOR_LIGHT_YELLOW, COLOR_LIGHT_GREEN,
    COLOR_LIGHT_OFF, COLOR_LIGHT_HOUSING,
    SIDEWALK_W, DASH_LEN,
)
from ui.helpers import draw_alpha_lines, draw_alpha_rect
from ui.types import Camera

_COLOR_FOR_PHASE = {
    "GREEN":  COLOR_LIGHT_GREEN,
    "YELLOW": COLOR_LIGHT_YELLOW,
    "RED":    COLOR_LIGHT_RED,
}


# ══════════════════════════════════════════════════════════════════════════════
#  PUBLIC  draw_map()  : single entry point
# ══════════════════════════════════════════════════════════════════════════════

def draw_map(
    screen: pygame.Surface,
    camera: Camera,
    network: RoadNetwork,
    lights: Mapping[str, Any],
) -> None:
    """Draw the complete intersection background in z-order."""
    arm = network.policy.arm_length_m
    hw = network.half_width

    screen.fill(COLOR_GRASS)
    _draw_sidewalks(screen, camera, arm, hw)
    _draw_road_surfaces(screen, camera, arm, hw)
    _draw_intersection_box(screen, camera, hw)
    _draw_lane_markings(screen, camera, network)
    _draw_center_lines(screen, camera, arm, hw)
    _draw_edge_lines(screen, camera, arm, hw)
    _draw_stop_lines(screen, camera, network)
    _draw_lights(screen, camera, network, lights.get("colors", {}))


def draw_turn_paths(
    screen: pygame.Surface,
    camera: Camera,
    network: RoadNetwork,
    alpha: int = 90,
) -> None:
    """Overlay the curve each turn sweeps through the box."""
    for road in network.approach_roads():
        for alt in road.alternatives:
            pts = network.sample_turn(alt, road.lane_count, step=0.5)
            color = COLOR_LIGHT_YELLOW if alt.turn_type is TurnType.LEFT else COLOR_LIGHT_GREEN
            draw_alpha_lines(screen, (*color, alpha), camera.points_to_screen(pts), 2)


# ══════════════════════════════════════════════════════════════════════════════
#  PRIVATE helpers
# ══════════════════════════════════════════════════════════════════════════════

def _world_rect(cam: Camera, x1: float, y1: float, x2: float, y2: float) -> pygame.Rect:
    """Convert two world-space corners to a screen-space Rect (y-flipped)."""
    sx1, sy1 = cam.world_to_screen(min(x1, x2), max(y1, y2))
    sx2, sy2 = cam.world_to_screen(max(x1, x2), min(y1, y2))
    return pygame.Rect(int(sx1), int(sy1), max(1, int(sx2 - sx1)), max(1, int(sy2 - sy1)))


# ── Road surfaces ────────────────────────────────────────────────────────────

def _draw_road_surfaces(screen: pygame.Surface, cam: Camera, arm: float, hw: float) -> None:
    pygame.draw.rect(screen, COLOR_ROAD, _world_rect(cam, -arm, -hw, arm, hw))
    pygame.draw.rect(screen, COLOR_ROAD, _world_rect(cam, -hw, -arm, hw, arm))


# ── Sidewalks ────────────────────────────────────────────────────────────────

def _draw_sidewalks(screen: pygame.Surface, cam: Camera, arm: float, hw: float) -> None:
    outer = hw + SIDEWALK_W
    pygame.draw.rect(screen, COLOR_SIDEWALK, _world_rect(cam, -arm, -outer, arm, outer))
    pygame.draw.rect(screen, COLOR_SIDEWALK, _world_rect(cam, -outer, -arm, outer, arm))


# ── Intersection box ─────────────────────────────────────────────────────────

def _draw_intersection_box(screen: pygame.Surface, cam: Camera, hw: float) -> None:
    rect = _world_rect(cam, -hw, -hw, hw, hw)
    shadow = rect.copy()
    shadow.move_ip(3, 3)
    draw_alpha_rect(screen, (0, 0, 0, 35), shadow)
    pygame.draw.rect(screen, COLOR_INTERSECTION, rect)


# ── Lane markings ────────────────────────────────────────────────────────────

def _draw_lane_markings(screen: pygame.Surface, cam: Camera, network: RoadNetwork) -> None:
    """Dashed separators between neighbouring lanes, outside the box."""
    thickness = max(1, int(cam.zoom * 0.25))
    for road in network.approach_roads():
        for k in range(1, road.lane_count):
            pts = network.sample_road(road.id, v=k - 0.5, step=DASH_LEN)
            screen_pts = cam.points_to_screen(pts)
            for i in range(0, len(pts) - 1, 2):
                if (network.is_within_intersection_footprint(*pts[i])
                        or network.is_within_intersection_footprint(*pts[i + 1])):
                    continue
                pygame.draw.line(screen, COLOR_LANE_WHITE,
                                 _i2(screen_pts[i]), _i2(screen_pts[i + 1]), thickness)


def _draw_center_lines(screen: pygame.Surface, cam: Camera, arm: float, hw: float) -> None:
    thickness = max(1, int(cam.zoom * 0.3))
    segments = [
        ((-arm, 0.0), (-hw, 0.0)),
        ((hw, 0.0), (arm, 0.0)),
        ((0.0, -arm), (0.0, -hw)),
        ((0.0, hw), (0.0, arm)),
    ]
    for p1, p2 in segments:
        pygame.draw.line(screen, COLOR_CENTER_YELLOW,
                         _i2(cam.world_to_screen(*p1)), _i2(cam.world_to_screen(*p2)), thickness)


# ── Road edge lines ──────────────────────────────────────────────────────────

def _draw_edge_lines(screen: pygame.Surface, cam: Camera, arm: float, hw: float) -> None:
    thickness = max(1, int(cam.zoom * 0.2))
    edges = []
    for sign in (1.0, -1.0):
        edges.append(((-arm, sign * hw), (-hw, sign * hw)))
        edges.append(((hw, sign * hw), (arm, sign * hw)))
        edges.append(((sign * hw, -arm), (sign * hw, -hw)))
        edges.append(((sign * hw, hw), (sign * hw, arm)))
    for p1, p2 in edges:
        pygame.draw.line(screen, COLOR_ROAD_EDGE,
                         _i2(cam.world_to_screen(*p1)), _i2(cam.world_to_screen(*p2)), thickness)


# ── Stop lines ───────────────────────────────────────────────────────────────

def _draw_stop_lines(screen: pygame.Surface, cam: Camera, network: RoadNetwork) -> None:
    thickness = max(2, int(cam.zoom * 0.5))
    for d in Direction:
        segment = network.stop_line_position(d)
        if segment is None:
            continue
        p1, p2 = segment
        pygame.draw.line(screen, COLOR_STOP_LINE,
                         _i2(cam.world_to_screen(*p1)), _i2(cam.world_to_screen(*p2)), thickness)


# ── Traffic-light heads ───────────────────────────────────────────────────────

def _draw_lights(
    screen: pygame.Surface, cam: Camera,
    network: RoadNetwork, colors: Dict[str, str],
) -> None:
    for d in Direction:
        pos = network.light_position(d)
        if pos is None:
            continue
        phase = str(colors.get(d.value, "RED")).upper()
        sx, sy = cam.world_to_screen(*pos)
        _draw_single_light(screen, cam, int(sx), int(sy), phase)


def _draw_single_light(
    screen: pygame.Surface, cam: Camera, sx: int, sy: int, phase: str,
) -> None:
    bulb_r = max(2, int(0.6 * cam.zoom))
    spacing = int(bulb_r * 2.3)
    housing_w = bulb_r * 2 + max(1, int(cam.zoom * 0.4))
    housing_h = spacing * 2 + bulb_r * 2 + max(1, int(cam.zoom * 0.4))

    pole_h = int(bulb_r * 2.5)
    pw = max(1, int(cam.zoom * 0.35))
    pygame.draw.line(screen, COLOR_SIGN_POLE,
                     (sx, sy + housing_h // 2),
                     (sx, sy + housing_h // 2 + pole_h), pw)

    hr = pygame.Rect(sx - housing_w // 2, sy - housing_h // 2,
                     housing_w, housing_h)
    pygame.draw.rect(screen, COLOR_LIGHT_HOUSING, hr,
                     border_radius=max(1, bulb_r // 2))

    bulb_defs = [
        ("RED",    sy - spacing),
        ("YELLOW", sy),
        ("GREEN",  sy + spacing),
    ]
    for bulb_phase, by in bulb_defs:
        c = _COLOR_FOR_PHASE[bulb_phase] if bulb_phase == phase else COLOR_LIGHT_OFF
        pygame.draw.circle(screen, c, (sx, by), bulb_r)


# ── tiny helpers ──────────────────────────────────────────────────────────────

def _i2(pair: Tuple[float, float]) -> Tuple[int, int]:
    return int(pair[0]), int(pair[1])


class RoadRenderer:
    """Mixin exposing the map renderers to the view."""

    def draw_road(self, surface: pygame.Surface, intersection: Mapping[str, Any]) -> None:
        draw_map(surface, self.camera, self.network, intersection.get("lights", {}))
        if self.show_turn_paths:
            draw_turn_paths(surface, self.camera, self.network, self.TURN_PATH_ALPHA)
