"""
ui/helpers.py
=============
Pure utility functions shared across UI modules:
vehicle outline geometry, alpha-surface drawing, text rendering, and the
:class:`ViewHelpers` mixin.
"""

from __future__ import annotations

import math
from typing import Any, Mapping, Optional, Tuple

import numpy as np
import pygame

# ── Vehicle geometry ──────────────────────────────────────────────────────────

def vehicle_corners(
    x: float, y: float, angle: float, length: float, width: float,
) -> np.ndarray:
    """World-space corners ``(4, 2)`` of a body centred at ``(x, y)``."""
    hl = length / 2.0
    hw = width / 2.0
    local = np.array([[hl, hw], [hl, -hw], [-hl, -hw], [-hl, hw]])
    c, s = math.cos(angle), math.sin(angle)
    rot = np.array([[c, -s], [s, c]])
    return local @ rot.T + np.array([x, y])


# ── Alpha drawing helpers ────────────────────────────────────────────────────

def draw_alpha_rect(
    target: pygame.Surface,
    color: Tuple[int, ...],
    rect: pygame.Rect,
    border_radius: int = 0,
) -> None:
    """Draw a semi-transparent rectangle (colour tuple with 4 channels)."""
    tmp = pygame.Surface((rect.w, rect.h), pygame.SRCALPHA)
    pygame.draw.rect(tmp, color, (0, 0, rect.w, rect.h), border_radius=border_radius)
    target.blit(tmp, rect.topleft)


def draw_alpha_lines(
    target: pygame.Surface,
    color: Tuple[int, ...],
    points: np.ndarray,
    width: int = 2,
) -> None:
    """Draw a semi-transparent open polyline given screen points ``(N, 2)``."""
    if len(points) < 2:
        return
    tmp = pygame.Surface(target.get_size(), pygame.SRCALPHA)
    pygame.draw.lines(tmp, color, False, [(int(px), int(py)) for px, py in points], width)
    target.blit(tmp, (0, 0))


# ── Text helper ──────────────────────────────────────────────────────────────

def render_text(
    surface: pygame.Surface,
    font: pygame.font.Font,
    text: str,
    pos: Tuple[int, int],
    color: Tuple[int, ...] = (230, 230, 235),
    anchor: str = "topleft",
) -> pygame.Rect:
    """Render text with flexible *anchor* ('topleft', 'center', 'midright' …)."""
    img = font.render(text, True, color)
    rect = img.get_rect(**{anchor: pos})
    surface.blit(img, rect)
    return rect


class ViewHelpers:
    """Mixin with small static utilities used by the renderers."""

    @staticmethod
    def _load_font(size: int, bold: bool = False) -> pygame.font.Font:
        if not pygame.font.get_init():
            pygame.font.init()
        font = pygame.font.Font(None, int(size * 1.35))
        font.set_bold(bold)
        return font

    @staticmethod
    def _get(item: Any, *keys: str, default: Any = None) -> Any:
        """First present key of a dict-like or attribute of an object."""
        for key in keys:
            if isinstance(item, Mapping):
                if key in item:
                    return item[key]
            elif hasattr(item, key):
                return getattr(item, key)
        return default

    @staticmethod
    def _parse_color(raw: Any) -> Optional[Tuple[int, int, int]]:
        if isinstance(raw, (tuple, list)) and len(raw) >= 3:
            try:
                return (int(raw[0]), int(raw[1]), int(raw[2]))
            except (TypeError, ValueError):
                return None
        return None
