#!/usr/bin/env python3
"""HUD panel, help overlay, and pause banner (mixin)."""

from __future__ import annotations

from typing import Any, List, Mapping

import pygame

from .helpers import render_text


class HudRenderer:
    """Mixin that draws every overlay / HUD element."""

    # ------------------------------------------------------------------ #
    #  Main HUD panel                                                      #
    # ------------------------------------------------------------------ #

    def hud_lines(self, intersection: Mapping[str, Any]) -> List[str]:
        """Text rows of the statistics panel."""
        stats = intersection.get("stats", {})
        settings = intersection.get("settings", {})
        lights = intersection.get("lights", {})
        lines = [
            f"TIME      {intersection.get('sim_time_s', 0.0):7.1f} s",
            f"VEHICLES  {intersection.get('vehicle_count', 0):4d}",
            f"WAITING   {intersection.get('waiting', 0):4d}",
            f"COMPLETED {stats.get('completed', 0):4d}",
            f"AVG WAIT  {stats.get('average_wait', 0.0):6.2f} s",
            f"MAX WAIT  {stats.get('max_wait', 0.0):6.2f} s",
            "",
            f"SPAWN     {settings.get('spawn_rate', 0.0):4.1f}",
            f"SPEED     {settings.get('car_speed', 0.0):4.1f} m/s",
            f"TURNS     {settings.get('turn_rate', 0.0) * 100:3.0f} %",
            f"STRATEGY  {intersection.get('turn_strategy', '')}",
        ]
        if lights:
            lines.append(f"GREEN     {lights.get('green_axis', '')} "
                         f"{lights.get('phase', '')} {lights.get('timer', 0.0):.1f}s")
        return lines

    def draw_hud(self, surface: pygame.Surface, intersection: Mapping[str, Any]) -> None:
        if self.font_small is None:
            return
        lines = self.hud_lines(intersection)
        row_h = 17
        panel_rect = pygame.Rect(16, 16, 230, len(lines) * row_h + 16)
        pygame.draw.rect(surface, self.HUD_BG_COLOR, panel_rect, border_radius=6)
        pygame.draw.rect(surface, self.HUD_BORDER_COLOR, panel_rect, width=1, border_radius=6)

        y = panel_rect.y + 8
        for line in lines:
            if line:
                text = self.font_small.render(line, True, self.HUD_TEXT_COLOR)
                surface.blit(text, (panel_rect.x + 10, y))
            y += row_h

    # ------------------------------------------------------------------ #
    #  Help                                                                #
    # ------------------------------------------------------------------ #

    def _draw_help(self, surface: pygame.Surface) -> None:
        if self.font_tiny is None:
            return
        x = self.width - 150
        y = self.height - 16 - len(self.HELP_LINES) * 15
        for line in self.HELP_LINES:
            render_text(surface, self.font_tiny, line, (x, y), self.HUD_DIM_COLOR)
            y += 15

    # ------------------------------------------------------------------ #
    #  Pause banner                                                        #
    # ------------------------------------------------------------------ #

    def _draw_pause_banner(self, surface: pygame.Surface) -> None:
        overlay = pygame.Surface((self.width, self.height), pygame.SRCALPHA)
        overlay.fill((0, 0, 0, 100))
        surface.blit(overlay, (0, 0))
        if self.font_title:
            render_text(surface, self.font_title, "PAUSED",
                        (self.width // 2, self.height // 2), (220, 220, 220), anchor="center")
