"""
Configuration Loader
====================

Loads and validates adaptive_config.yaml, providing typed access to all parameters.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

import yaml


@dataclass(frozen=True)
class BoardConfig:
    """Canvas geometry and grid cell size."""
    width: int       # Canvas width in pixels
    height: int      # Canvas height in pixels
    cell_size: int   # Pixels per grid cell

    @property
    def grid_width(self) -> int:
        """Number of grid columns."""
        return self.width // self.cell_size

    @property
    def grid_height(self) -> int:
        """Number of grid rows."""
        return self.height // self.cell_size


@dataclass(frozen=True)
class HistoryConfig:
    """Movement log and outcome history bounds."""
    max_movements: int
    max_recent_outcomes: int
    min_pattern_events: int
    cold_start_movements: int


@dataclass(frozen=True)
class PlacementConfig:
    """Food placement strategy parameters."""
    sparse_threshold: float
    sparse_fraction: float
    moderate_min: float
    moderate_max: float
    random_attempts: int
    low_diversity: float
    high_diversity: float
    sparse_difficulty: int
    moderate_difficulty: int
    soften_difficulty: int


@dataclass(frozen=True)
class DifficultyConfig:
    """Difficulty controller thresholds."""
    initial: int
    min_level: int
    max_level: int
    min_outcomes: int
    score_floor: float
    average_weight: float
    high_multiplier: float
    low_multiplier: float
    streak_length: int


@dataclass(frozen=True)
class IntensityConfig:
    """Visual intensity derivation parameters."""
    window: int
    min_events: int
    diversity_weight: float
    change_weight: float
    difficulty_divisor: float
    min_level: int
    max_level: int


@dataclass(frozen=True)
class SpeedConfig:
    """Snake move interval range (milliseconds per grid step)."""
    min_interval_ms: int
    max_interval_ms: int


@dataclass(frozen=True)
class ScoringConfig:
    """Points per food."""
    base_points: int
    difficulty_bonus: int


@dataclass(frozen=True)
class SnakeGameConfig:
    """Headless game parameters."""
    initial_length: int
    max_steps: int


@dataclass(frozen=True)
class ObservationConfig:
    """Observation image parameters."""
    image_enabled: bool
    image_width: int
    image_height: int


@dataclass(frozen=True)
class GameConfig:
    """
    Complete configuration loaded from YAML.

    All values are immutable to prevent accidental modification during runtime.
    """
    board: BoardConfig
    history: HistoryConfig
    placement: PlacementConfig
    difficulty: DifficultyConfig
    intensity: IntensityConfig
    speed: SpeedConfig
    scoring: ScoringConfig
    game: SnakeGameConfig
    observation: ObservationConfig

    @property
    def grid_shape(self):
        """(rows, columns) of the frequency grid."""
        return (self.board.grid_height, self.board.grid_width)

    def with_board(self, width: int, height: int, cell_size: Optional[int] = None) -> "GameConfig":
        """
        Derive a config for another canvas size.

        Args:
            width: Canvas width in pixels.
            height: Canvas height in pixels.
            cell_size: Pixels per cell. Keeps current if None.

        Returns:
            Validated GameConfig with the new board.
        """
        board = BoardConfig(
            width=int(width),
            height=int(height),
            cell_size=int(cell_size if cell_size is not None else self.board.cell_size)
        )
        config = replace(self, board=board)
        _validate_config(config)
        return config


def _check_fraction(name: str, value: float) -> None:
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{name} must be in [0, 1], got {value}")


def _validate_config(config: GameConfig) -> None:
    """Validate configuration consistency."""
    board = config.board
    if board.cell_size <= 0:
        raise ValueError(f"cell_size must be positive, got {board.cell_size}")
    if board.grid_width < 1 or board.grid_height < 1:
        raise ValueError(
            f"Canvas {board.width}x{board.height} is smaller than one "
            f"{board.cell_size}px cell"
        )

    history = config.history
    if history.max_movements < 1:
        raise ValueError(f"max_movements must be >= 1, got {history.max_movements}")
    if history.max_recent_outcomes < 1:
        raise ValueError(f"max_recent_outcomes must be >= 1, got {history.max_recent_outcomes}")

    placement = config.placement
    _check_fraction("sparse_threshold", placement.sparse_threshold)
    _check_fraction("sparse_fraction", placement.sparse_fraction)
    _check_fraction("moderate_min", placement.moderate_min)
    _check_fraction("moderate_max", placement.moderate_max)
    if placement.moderate_min > placement.moderate_max:
        raise ValueError(
            f"moderate_min ({placement.moderate_min}) exceeds "
            f"moderate_max ({placement.moderate_max})"
        )
    if placement.random_attempts < 1:
        raise ValueError(f"random_attempts must be >= 1, got {placement.random_attempts}")

    difficulty = config.difficulty
    if not 1 <= difficulty.min_level <= difficulty.max_level:
        raise ValueError(
            f"Invalid difficulty range [{difficulty.min_level}, {difficulty.max_level}]"
        )
    if not difficulty.min_level <= difficulty.initial <= difficulty.max_level:
        raise ValueError(
            f"Initial difficulty {difficulty.initial} outside "
            f"[{difficulty.min_level}, {difficulty.max_level}]"
        )
    if difficulty.streak_length < 1:
        raise ValueError(f"streak_length must be >= 1, got {difficulty.streak_length}")

    intensity = config.intensity
    if not 1 <= intensity.min_level <= intensity.max_level:
        raise ValueError(
            f"Invalid intensity range [{intensity.min_level}, {intensity.max_level}]"
        )
    if intensity.min_events < 2:
        raise ValueError(f"intensity.min_events must be >= 2, got {intensity.min_events}")
    if intensity.difficulty_divisor <= 0:
        raise ValueError(f"difficulty_divisor must be positive, got {intensity.difficulty_divisor}")

    speed = config.speed
    if not 0 < speed.min_interval_ms <= speed.max_interval_ms:
        raise ValueError(
            f"Invalid move interval range [{speed.min_interval_ms}, {speed.max_interval_ms}]"
        )

    if config.game.initial_length < 1:
        raise ValueError(f"initial_length must be >= 1, got {config.game.initial_length}")
    if config.game.initial_length > board.grid_width // 2 + 1:
        raise ValueError(
            f"initial_length ({config.game.initial_length}) does not fit a "
            f"{board.grid_width}-column grid"
        )


def load_config(config_path: Optional[str] = None) -> GameConfig:
    """
    Load and validate configuration from YAML.

    Args:
        config_path: Path to adaptive_config.yaml. If None, uses default location.

    Returns:
        Validated GameConfig instance.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValueError: If config validation fails.
    """
    if config_path is None:
        config_path = os.path.join(
            os.path.dirname(os.path.dirname(__file__)),
            "adaptive_config.yaml"
        )

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r") as f:
        raw = yaml.safe_load(f)

    board_data = raw["board"]
    board = BoardConfig(
        width=int(board_data["width"]),
        height=int(board_data["height"]),
        cell_size=int(board_data.get("cell_size", 20))
    )

    history_data = raw.get("history", {})
    history = HistoryConfig(
        max_movements=int(history_data.get("max_movements", 1000)),
        max_recent_outcomes=int(history_data.get("max_recent_outcomes", 5)),
        min_pattern_events=int(history_data.get("min_pattern_events", 10)),
        cold_start_movements=int(history_data.get("cold_start_movements", 20))
    )

    placement_data = raw.get("placement", {})
    placement = PlacementConfig(
        sparse_threshold=float(placement_data.get("sparse_threshold", 0.3)),
        sparse_fraction=float(placement_data.get("sparse_fraction", 0.3)),
        moderate_min=float(placement_data.get("moderate_min", 0.2)),
        moderate_max=float(placement_data.get("moderate_max", 0.6)),
        random_attempts=int(placement_data.get("random_attempts", 100)),
        low_diversity=float(placement_data.get("low_diversity", 0.6)),
        high_diversity=float(placement_data.get("high_diversity", 0.8)),
        sparse_difficulty=int(placement_data.get("sparse_difficulty", 7)),
        moderate_difficulty=int(placement_data.get("moderate_difficulty", 3)),
        soften_difficulty=int(placement_data.get("soften_difficulty", 2))
    )

    difficulty_data = raw.get("difficulty", {})
    difficulty = DifficultyConfig(
        initial=int(difficulty_data.get("initial", 1)),
        min_level=int(difficulty_data.get("min_level", 1)),
        max_level=int(difficulty_data.get("max_level", 10)),
        min_outcomes=int(difficulty_data.get("min_outcomes", 3)),
        score_floor=float(difficulty_data.get("score_floor", 50)),
        average_weight=float(difficulty_data.get("average_weight", 0.8)),
        high_multiplier=float(difficulty_data.get("high_multiplier", 1.5)),
        low_multiplier=float(difficulty_data.get("low_multiplier", 0.5)),
        streak_length=int(difficulty_data.get("streak_length", 3))
    )

    intensity_data = raw.get("intensity", {})
    intensity = IntensityConfig(
        window=int(intensity_data.get("window", 20)),
        min_events=int(intensity_data.get("min_events", 5)),
        diversity_weight=float(intensity_data.get("diversity_weight", 2.0)),
        change_weight=float(intensity_data.get("change_weight", 3.0)),
        difficulty_divisor=float(intensity_data.get("difficulty_divisor", 3.33)),
        min_level=int(intensity_data.get("min_level", 1)),
        max_level=int(intensity_data.get("max_level", 5))
    )

    speed_data = raw.get("speed", {})
    speed = SpeedConfig(
        min_interval_ms=int(speed_data.get("min_interval_ms", 80)),
        max_interval_ms=int(speed_data.get("max_interval_ms", 200))
    )

    scoring_data = raw.get("scoring", {})
    scoring = ScoringConfig(
        base_points=int(scoring_data.get("base_points", 10)),
        difficulty_bonus=int(scoring_data.get("difficulty_bonus", 5))
    )

    game_data = raw.get("game", {})
    game = SnakeGameConfig(
        initial_length=int(game_data.get("initial_length", 3)),
        max_steps=int(game_data.get("max_steps", 5000))
    )

    obs_data = raw.get("observation", {})
    observation = ObservationConfig(
        image_enabled=bool(obs_data.get("image_enabled", False)),
        image_width=int(obs_data.get("image_width", 300)),
        image_height=int(obs_data.get("image_height", 330))
    )

    config = GameConfig(
        board=board,
        history=history,
        placement=placement,
        difficulty=difficulty,
        intensity=intensity,
        speed=speed,
        scoring=scoring,
        game=game,
        observation=observation
    )

    _validate_config(config)
    return config


# Module-level singleton for convenience
_cached_config: Optional[GameConfig] = None


def get_config() -> GameConfig:
    """Get the cached configuration, loading if necessary."""
    global _cached_config
    if _cached_config is None:
        _cached_config = load_config()
    return _cached_config


def reload_config(config_path: Optional[str] = None) -> GameConfig:
    """Reload the configuration (useful for testing)."""
    global _cached_config
    _cached_config = load_config(config_path)
    return _cached_config
