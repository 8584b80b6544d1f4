"""
Core Game
=========

Headless snake game wired to the adaptive engine.

One step = one grid move. Before every move the game reports the head
position and direction to the engine; food is always placed by the engine,
and every finished game is reported as a session outcome.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from adaptive_snake.snake_core.config_loader import GameConfig
from adaptive_snake.snake_core.engine import AdaptiveEngine
from adaptive_snake.snake_core.geometry import GridGeometry, Position
from adaptive_snake.snake_core.movement_log import Direction

# Board occupancy codes
EMPTY = 0
BODY = 1
HEAD = 2
FOOD = 3


@dataclass
class StepResult:
    """Result of a single game step."""
    terminated: bool
    truncated: bool
    termination_reason: str
    delta_score: int
    ate_food: bool
    direction: Direction


class Snake:
    """
    Snake body on a pixel grid, head first.

    Spawns centered, facing right, with the body trailing to the left.
    """

    def __init__(self, geometry: GridGeometry, length: int = 3):
        self._geometry = geometry
        cell = geometry.cell_size
        center_x = (geometry.width // 2) * cell
        center_y = (geometry.height // 2) * cell

        self._segments: List[Position] = [
            Position(center_x - i * cell, center_y) for i in range(length)
        ]
        self._direction = Direction.RIGHT
        self._next_direction = Direction.RIGHT

    @property
    def head(self) -> Position:
        return self._segments[0]

    @property
    def segments(self) -> List[Position]:
        """Copy of the segments, head first."""
        return list(self._segments)

    @property
    def direction(self) -> Direction:
        """Direction of the last move."""
        return self._direction

    @property
    def next_direction(self) -> Direction:
        """Direction the next move will take."""
        return self._next_direction

    def __len__(self) -> int:
        return len(self._segments)

    def set_direction(self, direction: Any) -> bool:
        """
        Queue a direction change.

        Reversing straight into the neck is refused.

        Returns:
            True if the direction was accepted.
        """
        parsed = Direction.parse(direction)
        if parsed is None or parsed is self._direction.opposite:
            return False
        self._next_direction = parsed
        return True

    def move(self) -> Position:
        """Advance one cell in the queued direction. Returns the new head."""
        self._direction = self._next_direction
        dx, dy = self._direction.delta
        cell = self._geometry.cell_size
        head = Position(self.head.x + dx * cell, self.head.y + dy * cell)
        self._segments.insert(0, head)
        self._segments.pop()
        return head

    def grow(self) -> None:
        """Extend the tail by one cell, continuing the tail's direction."""
        tail = self._segments[-1]
        if len(self._segments) > 1:
            before = self._segments[-2]
            self._segments.append(Position(2 * tail.x - before.x, 2 * tail.y - before.y))
        else:
            self._segments.append(tail)

    def hit_wall(self) -> bool:
        return not self._geometry.contains(self.head)

    def hit_self(self) -> bool:
        return self.head in self._segments[1:]

    def check_collision(self) -> bool:
        """True if the head left the board or overlaps the body."""
        return self.hit_wall() or self.hit_self()


class SnakeGame:
    """
    Main game simulation class.

    Owns the snake, food and score of one play-through at a time, and
    shares a long-lived AdaptiveEngine across play-throughs.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        seed: Optional[int] = None,
        engine: Optional[AdaptiveEngine] = None,
        clock: Optional[Callable[[], float]] = None
    ):
        """
        Initialize game. Call reset() before the first step().

        Args:
            config: Game configuration. Ignored when `engine` is given.
            seed: Random seed for food placement.
            engine: Engine to share. A new one is created if None.
            clock: Millisecond clock for a newly created engine.
        """
        if engine is None:
            engine = AdaptiveEngine(config, seed=seed, clock=clock)

        self._engine = engine
        self._config = engine.config
        self._geometry = engine.geometry

        self._snake: Optional[Snake] = None
        self._food: Optional[Position] = None
        self._score: int = 0
        self._high_score: int = 0
        self._steps: int = 0
        self._terminated: bool = False
        self._truncated: bool = False
        self._termination_reason: str = ""

    @property
    def config(self) -> GameConfig:
        return self._config

    @property
    def engine(self) -> AdaptiveEngine:
        """The adaptive engine (shared across resets)."""
        return self._engine

    @property
    def snake(self) -> Snake:
        self._require_started()
        return self._snake

    @property
    def food(self) -> Optional[Position]:
        return self._food

    @property
    def score(self) -> int:
        return self._score

    @property
    def high_score(self) -> int:
        """Best score seen by this game object."""
        return self._high_score

    @high_score.setter
    def high_score(self, value: int) -> None:
        self._high_score = max(self._high_score, int(value))

    @property
    def steps(self) -> int:
        return self._steps

    @property
    def is_over(self) -> bool:
        """True if game has ended."""
        return self._terminated or self._truncated

    @property
    def termination_reason(self) -> str:
        """Reason for game end, or empty string."""
        return self._termination_reason

    def _require_started(self) -> None:
        if self._snake is None:
            raise RuntimeError("Call reset() before using the game")

    def reset(self, seed: Optional[int] = None) -> None:
        """
        Start a new play-through.

        A play-through that was abandoned after at least one step is first
        reported to the engine with its current score.

        Args:
            seed: Re-seeds food placement if given.
        """
        if seed is not None:
            self._engine.reseed(seed)

        if self._snake is not None and not self.is_over and self._steps > 0:
            self._engine.end_session(self._score)

        self._snake = Snake(self._geometry, self._config.game.initial_length)
        self._score = 0
        self._steps = 0
        self._terminated = False
        self._truncated = False
        self._termination_reason = ""

        self._engine.start_session()
        self._spawn_food()

    def _spawn_food(self) -> None:
        self._food = self._engine.suggest_placement(self._snake.segments)

    def food_distance(self) -> int:
        """Manhattan distance from head to food in pixels, 0 without food."""
        if self._food is None:
            return 0
        head = self._snake.head
        return abs(head.x - self._food.x) + abs(head.y - self._food.y)

    def step(self, direction: Any = None) -> StepResult:
        """
        Execute one move.

        Args:
            direction: Requested direction (Direction or its name). None or
                a refused reversal keeps the current heading.

        Returns:
            StepResult with termination flags and score change.
        """
        self._require_started()
        snake = self._snake

        if self.is_over:
            return StepResult(
                terminated=self._terminated,
                truncated=self._truncated,
                termination_reason=self._termination_reason,
                delta_score=0,
                ate_food=False,
                direction=snake.direction
            )

        if direction is not None:
            snake.set_direction(direction)

        self._engine.record_movement(
            snake.head,
            snake.next_direction,
            {
                "score": self._score,
                "length": len(snake),
                "distance_to_target": self.food_distance(),
            }
        )

        snake.move()
        self._steps += 1

        if snake.check_collision():
            self._terminated = True
            self._termination_reason = "wall" if snake.hit_wall() else "self"
            self._finish()
            return StepResult(
                terminated=True,
                truncated=False,
                termination_reason=self._termination_reason,
                delta_score=0,
                ate_food=False,
                direction=snake.direction
            )

        delta_score = 0
        ate_food = self._food is not None and snake.head == self._food
        if ate_food:
            snake.grow()
            delta_score = self.points_per_food()
            self._score += delta_score
            self._high_score = max(self._high_score, self._score)
            self._spawn_food()

        if self._steps >= self._config.game.max_steps:
            self._truncated = True
            self._termination_reason = "max_steps"
            self._finish()

        return StepResult(
            terminated=False,
            truncated=self._truncated,
            termination_reason=self._termination_reason,
            delta_score=delta_score,
            ate_food=ate_food,
            direction=snake.direction
        )

    def _finish(self) -> None:
        self._high_score = max(self._high_score, self._score)
        self._engine.end_session(self._score)

    def points_per_food(self) -> int:
        """Points for the next food item at the current difficulty."""
        scoring = self._config.scoring
        return scoring.base_points + (self._engine.difficulty_level - 1) * scoring.difficulty_bonus

    def danger_level(self) -> float:
        """
        Proximity of the head to walls and to its own body, 0-1.

        Walls: 0.8 within one cell, 0.4 within two. Body: 1.0 when a segment
        is adjacent, 0.6 within two cells. The two segments right behind the
        head are always that close and are skipped.
        """
        if self._snake is None or self.is_over:
            return 0.0

        column, row = self._geometry.to_grid(self._snake.head)
        wall_distance = min(
            column,
            row,
            self._geometry.width - 1 - column,
            self._geometry.height - 1 - row
        )

        danger = 0.0
        if wall_distance <= 1:
            danger = 0.8
        elif wall_distance <= 2:
            danger = 0.4

        cell = self._geometry.cell_size
        head = self._snake.head
        for segment in self._snake.segments[3:]:
            distance = (abs(head.x - segment.x) + abs(head.y - segment.y)) // cell
            if distance <= 1:
                return 1.0
            if distance <= 2:
                danger = max(danger, 0.6)
        return danger

    def board_array(self) -> np.ndarray:
        """(rows, columns) int8 occupancy grid: EMPTY, BODY, HEAD, FOOD."""
        board = np.full(
            (self._geometry.height, self._geometry.width), EMPTY, dtype=np.int8
        )
        if self._food is not None and self._geometry.contains(self._food):
            column, row = self._geometry.to_grid(self._food)
            board[row, column] = FOOD
        if self._snake is not None:
            segments = self._snake.segments
            for segment in segments[1:]:
                if self._geometry.contains(segment):
                    column, row = self._geometry.to_grid(segment)
                    board[row, column] = BODY
            if self._geometry.contains(segments[0]):
                column, row = self._geometry.to_grid(segments[0])
                board[row, column] = HEAD
        return board

    def get_info(self) -> Dict[str, Any]:
        """Get additional info dict for Gymnasium."""
        return {
            "score": self._score,
            "high_score": self._high_score,
            "length": len(self._snake) if self._snake is not None else 0,
            "steps": self._steps,
            "difficulty": self._engine.difficulty_level,
            "placement_strategy": self._engine.placement_strategy.value,
            "visual_intensity": self._engine.visual_intensity,
            "move_interval_ms": self._engine.move_interval_ms,
            "danger_level": self.danger_level(),
            "terminated_reason": self._termination_reason,
        }

    def get_render_data(self) -> Dict[str, Any]:
        """
        Get data needed for rendering.

        Returns:
            Dict with board info, entity positions and adaptation outputs.
        """
        return {
            "board_width": self._geometry.width * self._geometry.cell_size,
            "board_height": self._geometry.height * self._geometry.cell_size,
            "cell_size": self._geometry.cell_size,
            "snake": self._snake.segments if self._snake is not None else [],
            "food": self._food,
            "score": self._score,
            "high_score": self._high_score,
            "difficulty": self._engine.difficulty_level,
            "max_difficulty": self._config.difficulty.max_level,
            "visual_intensity": self._engine.visual_intensity,
            "max_intensity": self._config.intensity.max_level,
            "danger_level": self.danger_level(),
            "heatmap": self._engine.normalized_heatmap(),
            "is_over": self.is_over,
        }
