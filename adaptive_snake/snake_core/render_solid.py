"""
Solid Renderer
==============

Fast numpy-based renderer that draws the board as solid-color cells.
The background is tinted by the movement heatmap and shifts from dark blue
to red as visual intensity rises; a HUD strip shows difficulty and
intensity as bars, with the score drawn between them when OpenCV is
available.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

import numpy as np

from adaptive_snake.snake_core.config_loader import GameConfig, get_config

# Try to import cv2 for text rendering
try:
    import cv2
    CV2_AVAILABLE = True
except ImportError:
    CV2_AVAILABLE = False

HUD_HEIGHT = 30


def background_color(intensity: float) -> Tuple[int, int, int]:
    """
    Background RGB for an intensity on a 1-10 scale.

    Low: dark blue to purple. Medium: purple to red. High: red to orange.
    """
    level = max(1.0, min(10.0, float(intensity)))
    if level <= 3:
        factor = (level - 1) / 2
        return int(factor * 30), 0, int(20 + factor * 40)
    if level <= 7:
        factor = (level - 3) / 4
        return int(30 + factor * 80), 0, int(60 - factor * 40)
    factor = (level - 7) / 3
    return int(110 + factor * 60), int(factor * 40), int(20 - factor * 20)


def scale_intensity(intensity: float, max_intensity: int) -> float:
    """Map an intensity in 1..max_intensity onto the 1-10 color scale."""
    span = max(1, max_intensity - 1)
    return 1 + (intensity - 1) * 9 / span


def snake_color(is_head: bool, intensity: float, danger: float) -> Tuple[int, int, int]:
    """Green snake, brighter at higher intensity; the head reddens with danger."""
    red, green, blue = (0.0, 255.0, 0.0) if is_head else (0.0, 136.0, 0.0)
    if is_head and danger > 0:
        tint = min(1.0, danger) * 255
        red = min(255.0, red + tint)
        green = max(0.0, green - tint * 0.5)

    glow = (max(1.0, min(10.0, float(intensity))) - 1) / 9
    multiplier = 1 + glow * 0.3
    return tuple(int(min(255.0, c * multiplier)) for c in (red, green, blue))


class SolidRenderer:
    """
    Renders the game board as solid-color cells.

    Features:
    - Heatmap-tinted background
    - Danger-tinted snake head
    - HUD strip with difficulty and intensity bars
    - Score text (requires cv2)
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        show_hud: bool = True,
        show_score: bool = True
    ):
        """
        Initialize renderer.

        Args:
            config: Game configuration. Uses default if None.
            show_hud: Whether to reserve the top strip for the HUD.
            show_score: Whether to draw the score text in the HUD.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._show_hud = show_hud
        self._show_score = show_score

        self._hud_color = np.array([20, 20, 25], dtype=np.uint8)
        self._separator_color = np.array([60, 60, 70], dtype=np.uint8)
        self._heat_color = np.array([90, 60, 0], dtype=np.float32)
        self._food_color = np.array([255, 0, 0], dtype=np.uint8)
        self._food_highlight = np.array([255, 100, 100], dtype=np.uint8)
        self._text_color = (255, 255, 255)
        self._text_shadow = (0, 0, 0)

    def render(
        self,
        render_data: Dict[str, Any],
        width: int,
        height: int
    ) -> np.ndarray:
        """
        Render the game state to an RGB array.

        Args:
            render_data: Data from SnakeGame.get_render_data().
            width: Output image width.
            height: Output image height.

        Returns:
            (height, width, 3) uint8 array.
        """
        hud_height = HUD_HEIGHT if self._show_hud else 0
        game_height = height - hud_height

        img = np.zeros((height, width, 3), dtype=np.uint8)

        heatmap = np.asarray(render_data["heatmap"], dtype=np.float32)
        rows, columns = heatmap.shape
        cell = render_data["cell_size"]

        scale = min(width / render_data["board_width"], game_height / render_data["board_height"])
        area_w = max(1, int(render_data["board_width"] * scale))
        area_h = max(1, int(render_data["board_height"] * scale))
        offset_x = (width - area_w) // 2
        offset_y = hud_height + (game_height - area_h) // 2

        # Cell boundaries in image pixels
        xs = offset_x + (np.arange(columns + 1) * area_w) // columns
        ys = offset_y + (np.arange(rows + 1) * area_h) // rows

        intensity = render_data.get("visual_intensity", 1)
        max_intensity = render_data.get("max_intensity", 5)
        scaled = scale_intensity(intensity, max_intensity)
        cell_colors = self._cell_colors(heatmap, intensity, max_intensity)

        # Nearest-neighbour upscale of the cell colors
        col_index = (np.arange(area_w) * columns) // area_w
        row_index = (np.arange(area_h) * rows) // area_h
        img[offset_y:offset_y + area_h, offset_x:offset_x + area_w] = (
            cell_colors[row_index[:, None], col_index[None, :]]
        )

        food = render_data.get("food")
        if food is not None:
            self._draw_food(img, food[0] // cell, food[1] // cell, xs, ys, columns, rows)

        danger = render_data.get("danger_level", 0.0)
        # Body first so the head stays visible on self-collision
        segments = list(render_data.get("snake", []))
        for index in range(len(segments) - 1, -1, -1):
            x, y = segments[index]
            color = np.array(snake_color(index == 0, scaled, danger), dtype=np.uint8)
            self._fill_cell(img, x // cell, y // cell, xs, ys, columns, rows, color, inset=1)

        if self._show_hud:
            self._draw_hud(img, render_data, width)
            if self._show_score:
                self._draw_score(img, render_data.get("score", 0), width)

        return img

    def _cell_colors(self, heatmap: np.ndarray, intensity: int, max_intensity: int) -> np.ndarray:
        """(rows, columns, 3) background colors with the heat tint applied."""
        base = np.array(background_color(scale_intensity(intensity, max_intensity)), dtype=np.float32)
        strength = intensity / max(1, max_intensity)
        colors = base + heatmap[..., None] * self._heat_color * strength
        return np.clip(colors, 0, 255).astype(np.uint8)

    def _fill_cell(
        self,
        img: np.ndarray,
        column: int,
        row: int,
        xs: np.ndarray,
        ys: np.ndarray,
        columns: int,
        rows: int,
        color: np.ndarray,
        inset: int = 0
    ) -> None:
        if not (0 <= column < columns and 0 <= row < rows):
            return
        x0, x1 = int(xs[column]), int(xs[column + 1])
        y0, y1 = int(ys[row]), int(ys[row + 1])
        if x1 - x0 > 2 * inset and y1 - y0 > 2 * inset:
            x0, x1, y0, y1 = x0 + inset, x1 - inset, y0 + inset, y1 - inset
        img[y0:y1, x0:x1] = color

    def _draw_food(self, img, column, row, xs, ys, columns, rows) -> None:
        self._fill_cell(img, column, row, xs, ys, columns, rows, self._food_color, inset=1)
        if 0 <= column < columns and 0 <= row < rows:
            x0, y0 = int(xs[column]), int(ys[row])
            size = max(1, int((xs[column + 1] - x0) * 0.4))
            img[y0 + 1:y0 + 1 + size, x0 + 1:x0 + 1 + size] = self._food_highlight

    def _draw_hud(self, img: np.ndarray, render_data: Dict[str, Any], width: int) -> None:
        """Difficulty bar in the left third, intensity pips in the right third."""
        img[:HUD_HEIGHT, :] = self._hud_color
        img[HUD_HEIGHT - 2:HUD_HEIGHT, :] = self._separator_color

        difficulty = render_data.get("difficulty", 1)
        max_difficulty = render_data.get("max_difficulty", 10)
        bar_width = max(0, width // 3 - 20)
        filled = int(bar_width * difficulty / max(1, max_difficulty))
        img[10:20, 10:10 + bar_width] = self._separator_color
        bar_color = (255, 165, 0) if difficulty > max_difficulty // 2 else (0, 200, 200)
        img[10:20, 10:10 + filled] = np.array(bar_color, dtype=np.uint8)

        intensity = render_data.get("visual_intensity", 1)
        max_intensity = render_data.get("max_intensity", 5)
        pip = 10
        start = width - 10 - max_intensity * (pip + 4)
        for i in range(max_intensity):
            x0 = start + i * (pip + 4)
            if x0 < width * 2 // 3:
                continue
            if i < intensity:
                color = np.array([255, max(0, 220 - i * 50), 60], dtype=np.uint8)
            else:
                color = self._separator_color
            img[10:10 + pip, x0:x0 + pip] = color

    def _draw_score(self, img: np.ndarray, score: int, width: int) -> None:
        """Draw the score centered in the HUD strip."""
        if not CV2_AVAILABLE:
            return

        text = f"Score: {score}"
        font = cv2.FONT_HERSHEY_SIMPLEX
        font_scale = 0.5
        thickness = 1

        text_size = cv2.getTextSize(text, font, font_scale, thickness)[0]
        x = (width - text_size[0]) // 2
        cv2.putText(img, text, (x + 1, 21), font, font_scale, self._text_shadow, thickness + 1)
        cv2.putText(img, text, (x, 20), font, font_scale, self._text_color, thickness)

    def close(self) -> None:
        """Clean up resources (no-op for solid renderer)."""
        pass
