"""
Frequency Grid
==============

Bounded 2D occupancy counter over the play grid (the movement heatmap).

Counts are stored as an (H, W) int64 array indexed [row, column]. All scans
are row-major, which is what hotspot/coldspot tie-breaking relies on.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List

import numpy as np

from adaptive_snake.snake_core.geometry import GridGeometry, Position

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Spot:
    """A grid cell with its heat, in external units plus grid indices."""
    x: int
    y: int
    grid_x: int
    grid_y: int
    intensity: float
    raw_count: int

    @property
    def position(self) -> Position:
        return Position(self.x, self.y)


@dataclass(frozen=True)
class HeatmapStatistics:
    """Summary of the counts; min/average are taken over visited cells only."""
    total_moves: int
    max_value: int
    min_value: int
    average_value: float
    coverage: float
    non_zero_cells: int
    total_cells: int


class FrequencyGrid:
    """
    Visit counter per grid cell.

    Counts only grow, except through reset() and load(). The shape is fixed
    at construction.
    """

    def __init__(self, geometry: GridGeometry):
        self._geometry = geometry
        self._counts = np.zeros((geometry.height, geometry.width), dtype=np.int64)

    @property
    def geometry(self) -> GridGeometry:
        return self._geometry

    @property
    def shape(self):
        """(rows, columns)."""
        return self._counts.shape

    def record(self, column: int, row: int) -> bool:
        """
        Count one visit to (column, row).

        Out-of-bounds cells are ignored; collision frames routinely report
        a head position just past the wall.

        Returns:
            True if the cell was counted.
        """
        if not self._geometry.in_bounds(column, row):
            logger.debug("Ignoring out-of-bounds cell (%d, %d)", column, row)
            return False
        self._counts[row, column] += 1
        return True

    def record_position(self, position: Position) -> bool:
        """Count one visit to the cell containing a pixel position."""
        column, row = self._geometry.to_grid(position)
        return self.record(column, row)

    def normalized(self) -> np.ndarray:
        """Counts divided by the current maximum; all zeros when nothing was recorded."""
        max_value = int(self._counts.max())
        if max_value == 0:
            return np.zeros(self._counts.shape, dtype=np.float64)
        return self._counts / max_value

    def raw(self) -> np.ndarray:
        """Copy of the counts."""
        return self._counts.copy()

    def hotspots(self, threshold: float) -> List[Spot]:
        """Cells with normalized value >= threshold, hottest first."""
        normalized = self.normalized()
        spots = self._collect(normalized, normalized >= threshold)
        return sorted(spots, key=lambda s: s.intensity, reverse=True)

    def coldspots(self, threshold: float) -> List[Spot]:
        """Cells with normalized value <= threshold, coldest first."""
        normalized = self.normalized()
        spots = self._collect(normalized, normalized <= threshold)
        return sorted(spots, key=lambda s: s.intensity)

    def _collect(self, normalized: np.ndarray, mask: np.ndarray) -> List[Spot]:
        # np.argwhere yields indices in row-major order
        spots = []
        for row, column in np.argwhere(mask):
            row, column = int(row), int(column)
            x, y = self._geometry.to_external(column, row)
            spots.append(Spot(
                x=x,
                y=y,
                grid_x=column,
                grid_y=row,
                intensity=float(normalized[row, column]),
                raw_count=int(self._counts[row, column])
            ))
        return spots

    def reset(self) -> None:
        """Zero all counts."""
        self._counts.fill(0)

    def load(self, counts: np.ndarray) -> None:
        """Replace counts with a same-shaped, non-negative integer matrix."""
        counts = np.asarray(counts, dtype=np.int64)
        if counts.shape != self._counts.shape:
            raise ValueError(
                f"Heatmap shape {counts.shape} does not match grid {self._counts.shape}"
            )
        if (counts < 0).any():
            raise ValueError("Heatmap counts must be non-negative")
        self._counts[:] = counts

    def statistics(self) -> HeatmapStatistics:
        """Totals, extremes and coverage of the counts."""
        visited = self._counts[self._counts > 0]
        total_cells = int(self._counts.size)
        non_zero = int(visited.size)
        total = int(self._counts.sum())
        return HeatmapStatistics(
            total_moves=total,
            max_value=int(self._counts.max()),
            min_value=int(visited.min()) if non_zero else 0,
            average_value=total / non_zero if non_zero else 0.0,
            coverage=non_zero / total_cells,
            non_zero_cells=non_zero,
            total_cells=total_cells
        )
