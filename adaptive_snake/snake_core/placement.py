"""
Placement Strategist
====================

Chooses where the next food item goes.

Three strategies:
- SPARSE: rarely visited cells (pulls the player out of habitual routes)
- MODERATE: cells of middling traffic (easy to reach)
- RANDOM: uniform over the grid

Every strategy falls back to RANDOM when it has no candidate, and RANDOM
falls back to the origin cell when 100 draws all hit excluded cells.
"""

from __future__ import annotations

import logging
import math
import random
from enum import Enum
from typing import List, Optional, Set

from adaptive_snake.snake_core.config_loader import PlacementConfig
from adaptive_snake.snake_core.geometry import Position
from adaptive_snake.snake_core.heatmap import FrequencyGrid
from adaptive_snake.snake_core.movement_log import MovementAnalysis

logger = logging.getLogger(__name__)

ORIGIN = Position(0, 0)


class PlacementStrategy(str, Enum):
    """Closed set of food placement strategies."""
    RANDOM = "random"
    SPARSE = "sparse"
    MODERATE = "moderate"

    @classmethod
    def _missing_(cls, value):
        # Tags written by older saves
        legacy = {"challenging": cls.SPARSE, "accessible": cls.MODERATE}
        if isinstance(value, str):
            return legacy.get(value)
        return None

    @classmethod
    def parse(cls, value) -> Optional["PlacementStrategy"]:
        """Strategy from a member or tag (legacy tags included), else None."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value)
        except ValueError:
            return None


class PlacementStrategist:
    """
    Strategy selection and cell resolution over a frequency grid.

    The strategist holds no game state of its own; it reads the grid it was
    given and draws from the injected random generator.
    """

    def __init__(
        self,
        grid: FrequencyGrid,
        config: PlacementConfig,
        rng: Optional[random.Random] = None
    ):
        """
        Args:
            grid: Frequency grid to read (not modified).
            config: Placement thresholds.
            rng: Random generator. A fresh unseeded one if None.
        """
        self._grid = grid
        self._config = config
        self._rng = rng if rng is not None else random.Random()

    def strategy_for_difficulty(self, difficulty: int) -> PlacementStrategy:
        """Strategy from difficulty alone."""
        if difficulty >= self._config.sparse_difficulty:
            return PlacementStrategy.SPARSE
        if difficulty <= self._config.moderate_difficulty:
            return PlacementStrategy.MODERATE
        return PlacementStrategy.RANDOM

    def choose_strategy(
        self,
        analysis: MovementAnalysis,
        difficulty: int,
        cold_start_movements: int = 20
    ) -> PlacementStrategy:
        """
        Pick a strategy from movement diversity and difficulty.

        Args:
            analysis: Current movement analysis.
            difficulty: Current difficulty level.
            cold_start_movements: Below this many movements only difficulty counts.
        """
        if analysis.total_movements < cold_start_movements:
            return self.strategy_for_difficulty(difficulty)

        diversity = analysis.movement_diversity
        if diversity < self._config.low_diversity:
            strategy = PlacementStrategy.SPARSE
        elif diversity > self._config.high_diversity:
            strategy = PlacementStrategy.MODERATE
        else:
            strategy = self.strategy_for_difficulty(difficulty)

        if difficulty >= self._config.sparse_difficulty:
            strategy = PlacementStrategy.SPARSE
        elif difficulty <= self._config.soften_difficulty and strategy is PlacementStrategy.SPARSE:
            strategy = PlacementStrategy.RANDOM

        return strategy

    def resolve(self, strategy: PlacementStrategy, excluded: Set[Position]) -> Position:
        """Concrete cell for a strategy, honoring the exclusion set."""
        if strategy is PlacementStrategy.SPARSE:
            return self.sparse_position(excluded)
        if strategy is PlacementStrategy.MODERATE:
            return self.moderate_position(excluded)
        if strategy is PlacementStrategy.RANDOM:
            return self.random_position(excluded)
        raise ValueError(f"Unknown placement strategy: {strategy!r}")

    def sparse_candidates(self, excluded: Set[Position]) -> List[Position]:
        """The coldest non-excluded cells (first 30% of the coldspot list, at least one)."""
        spots = [
            spot.position
            for spot in self._grid.coldspots(self._config.sparse_threshold)
            if spot.position not in excluded
        ]
        if not spots:
            return []
        keep = max(1, math.floor(len(spots) * self._config.sparse_fraction))
        return spots[:keep]

    def sparse_position(self, excluded: Set[Position]) -> Position:
        candidates = self.sparse_candidates(excluded)
        if not candidates:
            logger.debug("No sparse candidates, falling back to random placement")
            return self.random_position(excluded)
        return self._rng.choice(candidates)

    def moderate_candidates(self, excluded: Set[Position]) -> List[Position]:
        """Non-excluded cells whose normalized heat lies in [moderate_min, moderate_max]."""
        normalized = self._grid.normalized()
        geometry = self._grid.geometry
        low, high = self._config.moderate_min, self._config.moderate_max

        candidates = []
        for row in range(geometry.height):
            for column in range(geometry.width):
                if low <= normalized[row, column] <= high:
                    position = geometry.to_external(column, row)
                    if position not in excluded:
                        candidates.append(position)
        return candidates

    def moderate_position(self, excluded: Set[Position]) -> Position:
        candidates = self.moderate_candidates(excluded)
        if not candidates:
            logger.debug("No moderate candidates, falling back to random placement")
            return self.random_position(excluded)
        return self._rng.choice(candidates)

    def random_position(self, excluded: Set[Position]) -> Position:
        """
        Uniform draw that avoids excluded cells.

        After `random_attempts` collisions this returns the origin cell. That
        is a deterministic tie-break for degenerate inputs (e.g. an exclusion
        set covering the whole grid), not an exclusion guarantee.
        """
        geometry = self._grid.geometry
        for _ in range(self._config.random_attempts):
            column = self._rng.randrange(geometry.width)
            row = self._rng.randrange(geometry.height)
            position = geometry.to_external(column, row)
            if position not in excluded:
                return position

        logger.debug("Random placement exhausted %d attempts, using origin",
                     self._config.random_attempts)
        return ORIGIN

