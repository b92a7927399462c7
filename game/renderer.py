from typing import Dict, Iterable, Optional, Sequence, Tuple

import pygame

from game.tasks.base import Glyph, StimulusLines

Color = Tuple[int, int, int]


class Renderer:
    """
    Draws what it is given. It does not time, score or advance anything.
    """

    def __init__(self, screen: pygame.Surface) -> None:
        self.screen = screen
        self.w, self.h = screen.get_size()

        self.font_big = pygame.font.SysFont(None, 96)
        self.font_mid = pygame.font.SysFont(None, 42)
        self.font_small = pygame.font.SysFont(None, 28)

        self.center = (self.w // 2, self.h // 2)
        self.bg_color: Color = (15, 15, 20)
        self.ui_color: Color = (230, 230, 230)
        self.ok_color: Color = (60, 200, 120)
        self.error_color: Color = (220, 60, 60)

        self.color_map: Dict[str, Color] = {
            "red": (220, 60, 60),
            "green": (60, 200, 120),
            "blue": (70, 120, 240),
            "yellow": (240, 210, 60),
            "purple": (150, 80, 200),
            "orange": (255, 102, 0),
            "pink": (240, 130, 190),
            "cyan": (60, 210, 220),
        }

    def clear(self) -> None:
        self.screen.fill(self.bg_color)

    def present(self) -> None:
        pygame.display.flip()

    def color(self, name: Optional[str]) -> Color:
        if name is None:
            return self.ui_color
        return self.color_map.get(name, self.ui_color)

    def draw_stimulus(self, lines: StimulusLines) -> None:
        if not lines:
            return
        rows = [[self._render_glyph(g) for g in line] for line in lines]
        spacing = 16
        heights = [max((s.get_height() for s in row), default=0) for row in rows]
        total_h = sum(heights) + spacing * (len(rows) - 1)
        y = self.center[1] - total_h // 2
        for row, row_h in zip(rows, heights):
            row_w = sum(s.get_width() for s in row) + spacing * (len(row) - 1)
            x = self.center[0] - row_w // 2
            for surf in row:
                self.screen.blit(surf, (x, y + (row_h - surf.get_height()) // 2))
                x += surf.get_width() + spacing
            y += row_h + spacing

    def draw_progress(self, label: str, current: int, total: int) -> None:
        surf = self.font_small.render(f"{label}  {current}/{total}", True, self.ui_color)
        self.screen.blit(surf, (20, 15))

    def draw_feedback(self, message: str, ok: bool) -> None:
        surf = self.font_mid.render(message, True, self.ok_color if ok else self.error_color)
        rect = surf.get_rect(center=(self.center[0], int(self.h * 0.78)))
        self.screen.blit(surf, rect)

    def draw_text_screen(self, title: str, lines: Iterable[str], footer: str = "") -> None:
        title_surf = self.font_mid.render(title, True, self.ui_color)
        self.screen.blit(title_surf, title_surf.get_rect(center=(self.center[0], int(self.h * 0.2))))
        y = int(self.h * 0.32)
        for line in lines:
            surf = self.font_small.render(line, True, self.ui_color)
            self.screen.blit(surf, surf.get_rect(center=(self.center[0], y)))
            y += 34
        if footer:
            surf = self.font_small.render(footer, True, self.ok_color)
            self.screen.blit(surf, surf.get_rect(center=(self.center[0], int(self.h * 0.88))))

    def _render_glyph(self, glyph: Glyph) -> pygame.Surface:
        surf = self.font_big.render(glyph.text, True, self.color(glyph.color))
        if glyph.mirrored:
            surf = pygame.transform.flip(surf, True, False)
        if glyph.angle:
            # pygame rotates counterclockwise
            surf = pygame.transform.rotate(surf, -glyph.angle)
        return surf


def format_stats(stats: Optional[Dict], keys: Sequence[str]) -> list:
    if not stats:
        return []
    lines = []
    for key in keys:
        value = stats.get(key)
        if value is None:
            continue
        label = key.replace("_", " ")
        lines.append(f"{label}: {value:.1f}" if isinstance(value, float) else f"{label}: {value}")
    return lines
