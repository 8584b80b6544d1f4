"""
Adaptive Engine
===============

Single owner of all behavior-adaptive state: the frequency grid, the
movement log, the performance record and the adaptation outputs.

Collaborators (game loop, renderer, storage) talk to the engine only
through this facade. Every accessor returns an independent copy.

Usage:
    engine = AdaptiveEngine(seed=42)
    engine.start_session()
    engine.record_movement((100, 60), "right", {"score": 10, "length": 4})
    food = engine.suggest_placement(excluded=snake_segments)
    engine.end_session(final_score=120)
"""

from __future__ import annotations

import copy
import logging
import random
import time
from collections.abc import Mapping
from dataclasses import replace
from typing import Any, Callable, Dict, Iterable, List, Optional

import numpy as np

from adaptive_snake.snake_core.config_loader import GameConfig, get_config
from adaptive_snake.snake_core.difficulty import (
    DifficultyController,
    PerformanceState,
    move_interval_ms,
)
from adaptive_snake.snake_core.geometry import GridGeometry, Position, as_position
from adaptive_snake.snake_core.heatmap import FrequencyGrid, HeatmapStatistics, Spot
from adaptive_snake.snake_core.movement_log import (
    Direction,
    MovementAnalysis,
    MovementContext,
    MovementEvent,
    MovementLog,
)
from adaptive_snake.snake_core.placement import PlacementStrategist, PlacementStrategy
from adaptive_snake.snake_core.state_snapshot import (
    AdaptationState,
    build_snapshot,
    parse_snapshot,
)
from adaptive_snake.snake_core.visual_intensity import combine_intensity, movement_intensity

logger = logging.getLogger(__name__)


def wall_clock_ms() -> float:
    """Milliseconds since the epoch."""
    return time.time() * 1000.0


class AdaptiveEngine:
    """
    Behavior-adaptive core of the snake game.

    Observes movement, keeps a spatial frequency model, and derives food
    placement, difficulty and visual intensity from it. Lives across many
    games; one instance per player.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        seed: Optional[int] = None,
        clock: Optional[Callable[[], float]] = None
    ):
        """
        Initialize the engine.

        Args:
            config: Game configuration. Uses the global config if None.
            seed: Seed for placement randomness.
            clock: Zero-argument callable returning milliseconds. Wall clock if None.
        """
        self._config = config or get_config()
        self._clock = clock or wall_clock_ms
        self._seed = seed
        self._rng = random.Random(seed)

        history = self._config.history
        self._geometry = GridGeometry(self._config.board)
        self._grid = FrequencyGrid(self._geometry)
        self._log = MovementLog(history.max_movements, history.min_pattern_events)
        self._strategist = PlacementStrategist(self._grid, self._config.placement, self._rng)
        self._difficulty = DifficultyController(
            self._config.difficulty,
            max_recent_outcomes=history.max_recent_outcomes,
            on_change=self._on_difficulty_change
        )

        self._placement_strategy = PlacementStrategy.RANDOM
        self._movement_intensity = self._config.intensity.min_level
        self._visual_intensity = self._config.intensity.min_level
        self.update_visual_intensity()

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def config(self) -> GameConfig:
        return self._config

    @property
    def geometry(self) -> GridGeometry:
        return self._geometry

    @property
    def seed(self) -> Optional[int]:
        return self._seed

    def reseed(self, seed: Optional[int]) -> None:
        """Re-seed placement randomness in place."""
        self._seed = seed
        self._rng.seed(seed)

    @property
    def difficulty_level(self) -> int:
        return self._difficulty.level

    @property
    def placement_strategy(self) -> PlacementStrategy:
        """Strategy chosen by the last placement decision."""
        return self._placement_strategy

    @property
    def visual_intensity(self) -> int:
        """Combined visual intensity, 1-5."""
        return self._visual_intensity

    @property
    def movement_intensity(self) -> int:
        """Movement-only intensity term, 1-5."""
        return self._movement_intensity

    @property
    def move_interval_ms(self) -> int:
        """Snake step interval for the current difficulty."""
        return move_interval_ms(
            self._difficulty.level,
            self._config.difficulty,
            self._config.speed
        )

    @property
    def in_session(self) -> bool:
        return self._difficulty.in_session

    # -------------------------------------------------------------------------
    # Movement
    # -------------------------------------------------------------------------

    def record_movement(
        self,
        position: Any,
        direction: Any,
        context: Optional[Any] = None
    ) -> bool:
        """
        Record one discrete grid step.

        The event is appended to the movement log, the heatmap cell under
        `position` is incremented (off-grid positions leave the heatmap
        untouched) and visual intensity is refreshed.

        Args:
            position: (x, y) pair or {"x", "y"} mapping in pixels.
            direction: Direction or one of "up", "down", "left", "right".
            context: MovementContext or mapping with score/length/distance.

        Returns:
            False if the position or direction was malformed (nothing recorded).
        """
        parsed_direction = Direction.parse(direction)
        if parsed_direction is None:
            logger.debug("Ignoring movement with unknown direction %r", direction)
            return False

        parsed_position = as_position(position)
        if parsed_position is None:
            logger.debug("Ignoring movement with malformed position %r", position)
            return False

        if not isinstance(context, MovementContext):
            context = MovementContext.from_mapping(context if isinstance(context, Mapping) else None)

        self._log.append(MovementEvent(
            timestamp_ms=self._clock(),
            position=parsed_position,
            direction=parsed_direction,
            context=context
        ))
        self._grid.record_position(parsed_position)

        self._movement_intensity = movement_intensity(
            [event.direction for event in self._log.recent(self._config.intensity.window)],
            self._config.intensity
        )
        self.update_visual_intensity()
        return True

    def movement_history(self) -> List[MovementEvent]:
        """All retained movement events, oldest first."""
        return self._log.events()

    def analyze_movement_patterns(self) -> MovementAnalysis:
        return self._log.analyze()

    # -------------------------------------------------------------------------
    # Placement
    # -------------------------------------------------------------------------

    def determine_placement_strategy(self) -> PlacementStrategy:
        """Choose and remember the strategy for the next placement."""
        strategy = self._strategist.choose_strategy(
            self._log.analyze(),
            self._difficulty.level,
            self._config.history.cold_start_movements
        )
        if strategy is not self._placement_strategy:
            logger.debug("Placement strategy %s -> %s",
                         self._placement_strategy.value, strategy.value)
        self._placement_strategy = strategy
        return strategy

    def set_placement_strategy(self, strategy: Any) -> bool:
        """Override the remembered strategy. Unknown tags are ignored."""
        parsed = PlacementStrategy.parse(strategy)
        if parsed is None:
            logger.debug("Ignoring unknown placement strategy %r", strategy)
            return False
        self._placement_strategy = parsed
        return True

    def suggest_placement(self, excluded: Iterable[Any] = ()) -> Position:
        """
        Pick a cell for the next food item.

        Args:
            excluded: Positions (pixels) the food must not land on, typically
                the snake's segments.

        Returns:
            Top-left pixel position of the chosen cell. Never raises; with
            an exclusion set that leaves no reachable cell this is the origin.
        """
        strategy = self.determine_placement_strategy()
        return self._strategist.resolve(strategy, self._geometry.exclusion_set(excluded))

    # -------------------------------------------------------------------------
    # Heatmap
    # -------------------------------------------------------------------------

    def generate_heatmap(self) -> List[List[float]]:
        """Normalized heatmap as nested lists [row][column]."""
        return self._grid.normalized().tolist()

    def raw_heatmap(self) -> List[List[int]]:
        """Raw visit counts as nested lists [row][column]."""
        return self._grid.raw().tolist()

    def hotspots(self, threshold: float = 0.7) -> List[Spot]:
        return self._grid.hotspots(threshold)

    def coldspots(self, threshold: float = 0.1) -> List[Spot]:
        return self._grid.coldspots(threshold)

    def heatmap_statistics(self) -> HeatmapStatistics:
        return self._grid.statistics()

    def reset_heatmap(self) -> None:
        self._grid.reset()

    def normalized_heatmap(self) -> np.ndarray:
        """Normalized counts as a fresh array, for renderers and observations."""
        return self._grid.normalized()

    # -------------------------------------------------------------------------
    # Sessions and difficulty
    # -------------------------------------------------------------------------

    def start_session(self) -> None:
        self._difficulty.start_session(self._clock())

    def end_session(self, final_score: float) -> int:
        """
        Close the current session and re-evaluate difficulty.

        Returns:
            Difficulty level after evaluation.
        """
        level = self._difficulty.end_session(final_score, self._clock())
        logger.debug("Session ended with score %s, difficulty %d", final_score, level)
        return level

    def calculate_difficulty(self) -> int:
        return self._difficulty.calculate_difficulty()

    def set_difficulty(self, level: Any) -> bool:
        """Set difficulty directly; values outside [1, 10] are ignored."""
        return self._difficulty.set_difficulty(level)

    def performance_state(self) -> PerformanceState:
        return self._difficulty.state

    def adaptation_state(self) -> AdaptationState:
        return AdaptationState(
            difficulty_level=self._difficulty.level,
            placement_strategy=self._placement_strategy,
            visual_intensity=self._visual_intensity,
            movement_intensity=self._movement_intensity
        )

    def _on_difficulty_change(self, level: int) -> None:
        self.update_visual_intensity()

    # -------------------------------------------------------------------------
    # Visual intensity
    # -------------------------------------------------------------------------

    def update_visual_intensity(self) -> int:
        """Recompute combined intensity from movement intensity and difficulty."""
        self._visual_intensity = combine_intensity(
            self._movement_intensity,
            self._difficulty.level,
            self._config.intensity
        )
        return self._visual_intensity

    # -------------------------------------------------------------------------
    # Snapshot
    # -------------------------------------------------------------------------

    def export_state(self) -> Dict[str, Any]:
        """JSON-serializable snapshot of grid, performance and adaptation state."""
        return build_snapshot(
            self._grid.raw(),
            self._difficulty.state,
            self.adaptation_state()
        )

    def import_state(self, snapshot: Any) -> bool:
        """
        Restore state from a snapshot produced by export_state().

        Missing or individually invalid fields keep their current values.
        A structurally invalid snapshot changes nothing.

        Returns:
            True if the snapshot was applied.
        """
        update = parse_snapshot(
            snapshot,
            self._grid.shape,
            self._config.difficulty,
            self._config.intensity,
            self._config.history.max_recent_outcomes
        )
        if update is None:
            logger.warning("Rejected malformed state snapshot")
            return False

        performance = replace(self._difficulty.state, **copy.deepcopy(update.performance))
        adaptation = update.adaptation
        level = adaptation.get("difficulty_level", self._difficulty.level)

        if update.counts is not None:
            self._grid.load(update.counts)
        if "placement_strategy" in adaptation:
            self._placement_strategy = adaptation["placement_strategy"]
        if "movement_intensity" in adaptation:
            self._movement_intensity = adaptation["movement_intensity"]
        self._difficulty.restore(level, performance)
        self.update_visual_intensity()

        logger.debug("Imported state snapshot (difficulty %d)", level)
        return True
