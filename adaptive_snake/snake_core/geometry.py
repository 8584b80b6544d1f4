"""
Grid Geometry
=============

Conversion between external (pixel) positions and grid indices.

The engine stores everything grid-indexed; callers speak in pixels that are
multiples of the cell size.
"""

from __future__ import annotations

import math
import numbers
from typing import Any, Iterable, NamedTuple, Optional, Set, Tuple

from adaptive_snake.snake_core.config_loader import BoardConfig


class Position(NamedTuple):
    """A grid cell in external (pixel) units."""
    x: int
    y: int


def as_position(value: Any) -> Optional[Position]:
    """
    Coerce an (x, y) pair or an {"x", "y"} mapping to a Position.

    Returns None for anything that is not a pair of numbers.
    """
    if isinstance(value, Position):
        return value
    try:
        if isinstance(value, dict):
            x, y = value["x"], value["y"]
        else:
            x, y = value
    except (KeyError, TypeError, ValueError):
        return None
    if isinstance(x, bool) or isinstance(y, bool):
        return None
    if not isinstance(x, numbers.Real) or not isinstance(y, numbers.Real):
        return None
    if not (math.isfinite(x) and math.isfinite(y)):
        return None
    return Position(math.floor(x), math.floor(y))


class GridGeometry:
    """Grid dimensions and pixel/grid conversions for one board."""

    def __init__(self, board: BoardConfig):
        self._cell_size = board.cell_size
        self._width = board.grid_width
        self._height = board.grid_height

    @property
    def cell_size(self) -> int:
        return self._cell_size

    @property
    def width(self) -> int:
        """Number of columns."""
        return self._width

    @property
    def height(self) -> int:
        """Number of rows."""
        return self._height

    @property
    def total_cells(self) -> int:
        return self._width * self._height

    def to_grid(self, position: Position) -> Tuple[int, int]:
        """Pixel position to (column, row), flooring like the canvas does."""
        return (int(position[0] // self._cell_size), int(position[1] // self._cell_size))

    def to_external(self, column: int, row: int) -> Position:
        """(column, row) to pixel position of the cell's top-left corner."""
        return Position(column * self._cell_size, row * self._cell_size)

    def in_bounds(self, column: int, row: int) -> bool:
        return 0 <= column < self._width and 0 <= row < self._height

    def contains(self, position: Position) -> bool:
        """True if the pixel position falls on the grid."""
        return self.in_bounds(*self.to_grid(position))

    def exclusion_set(self, positions: Iterable[Any]) -> Set[Position]:
        """
        Normalize a collection of excluded positions.

        Each entry is snapped to the top-left corner of its cell; malformed
        entries are dropped.
        """
        excluded = set()
        for value in positions:
            position = as_position(value)
            if position is not None:
                excluded.add(self.snap(position))
        return excluded

    def snap(self, position: Position) -> Position:
        """Top-left corner of the cell containing a pixel position."""
        return self.to_external(*self.to_grid(position))
