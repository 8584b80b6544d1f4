"""
Gymnasium Environment Wrapper
=============================

Provides a standard Gymnasium interface to the adaptive snake game.
Reward is always 0.0 - agents must compute their own from info.

The adaptive engine persists across reset() calls, so difficulty and the
heatmap carry over from episode to episode.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple, Union

import gymnasium as gym
import numpy as np
from gymnasium import spaces

from adaptive_snake.snake_core.config_loader import GameConfig, load_config
from adaptive_snake.snake_core.engine import AdaptiveEngine
from adaptive_snake.snake_core.game import FOOD, SnakeGame
from adaptive_snake.snake_core.movement_log import ALL_DIRECTIONS, Direction
from adaptive_snake.snake_core.placement import PlacementStrategy

STRATEGIES = tuple(PlacementStrategy)


class SnakeEnv(gym.Env):
    """
    Adaptive snake game as a Gymnasium environment.

    Action Space:
        Discrete(4): 0=up, 1=down, 2=left, 3=right.
        Reversing into the neck is ignored (the snake keeps its heading).

    Observation Space:
        Dict with the occupancy board, normalized heatmap, head/food cells,
        score, length, adaptation outputs and optional RGB image.

    Reward:
        Always 0.0. Agents must compute their own reward from the info dict.

    Info:
        Contains score, delta_score, length, difficulty, placement_strategy,
        terminated_reason, etc.
    """

    metadata = {
        "render_modes": ["rgb_array"],
        "render_fps": 10,
    }

    def __init__(
        self,
        config_path: Optional[str] = None,
        render_mode: Optional[str] = None,
        image_obs: Optional[bool] = None,
        image_width: Optional[int] = None,
        image_height: Optional[int] = None,
        debug: bool = False,
        engine: Optional[AdaptiveEngine] = None,
        config: Optional[GameConfig] = None,
    ):
        """
        Initialize snake environment.

        Args:
            config_path: Path to adaptive_config.yaml. Uses default if None.
            render_mode: "rgb_array" for numpy, None for headless.
            image_obs: If True, include board_rgb in observations. Config default if None.
            image_width: Override observation image width.
            image_height: Override observation image height.
            debug: If True, enables verbose debug output for agent development.
            engine: Adaptive engine to share (e.g. one restored from disk).
            config: Configuration object; takes precedence over config_path.
        """
        super().__init__()

        if render_mode is not None and render_mode not in self.metadata["render_modes"]:
            raise ValueError(f"Unsupported render_mode: {render_mode!r}")

        if engine is not None:
            self._config = engine.config
        elif config is not None:
            self._config = config
        else:
            self._config = load_config(config_path)

        self.render_mode = render_mode
        self._image_obs = (
            self._config.observation.image_enabled if image_obs is None else image_obs
        )
        self._debug = debug

        self._img_width = image_width or self._config.observation.image_width
        self._img_height = image_height or self._config.observation.image_height

        self._game = SnakeGame(config=self._config, engine=engine)

        # Initialize renderer (lazy)
        self._renderer = None

        self.action_space = spaces.Discrete(len(ALL_DIRECTIONS))
        self.observation_space = self._build_observation_space()

        if self._debug:
            rows, columns = self._config.grid_shape
            print(f"[DEBUG] SnakeEnv initialized")
            print(f"[DEBUG]   Grid: {columns}x{rows} cells of {self._config.board.cell_size}px")
            print(f"[DEBUG]   Difficulty: {self._game.engine.difficulty_level}")

    def _build_observation_space(self) -> spaces.Dict:
        """Build the observation space definition."""
        rows, columns = self._config.grid_shape
        difficulty = self._config.difficulty
        intensity = self._config.intensity
        max_length = rows * columns + 1

        obs_dict = {
            "board": spaces.Box(low=0, high=FOOD, shape=(rows, columns), dtype=np.int8),
            "heatmap": spaces.Box(low=0.0, high=1.0, shape=(rows, columns), dtype=np.float32),
            "head": spaces.Box(low=-1, high=max(rows, columns), shape=(2,), dtype=np.int32),
            "food": spaces.Box(low=-1, high=max(rows, columns), shape=(2,), dtype=np.int32),
            "score": spaces.Box(low=0, high=np.iinfo(np.int64).max, shape=(), dtype=np.int64),
            "length": spaces.Box(low=0, high=max_length, shape=(), dtype=np.int32),
            "difficulty": spaces.Box(
                low=difficulty.min_level, high=difficulty.max_level, shape=(), dtype=np.int32
            ),
            "visual_intensity": spaces.Box(
                low=intensity.min_level, high=intensity.max_level, shape=(), dtype=np.int32
            ),
            "placement_strategy": spaces.Discrete(len(STRATEGIES)),
            "danger_level": spaces.Box(low=0, high=1, shape=(), dtype=np.float32),
        }

        if self._image_obs:
            obs_dict["board_rgb"] = spaces.Box(
                low=0,
                high=255,
                shape=(self._img_height, self._img_width, 3),
                dtype=np.uint8
            )

        return spaces.Dict(obs_dict)

    def reset(
        self,
        *,
        seed: Optional[int] = None,
        options: Optional[Dict[str, Any]] = None
    ) -> Tuple[Dict[str, np.ndarray], Dict[str, Any]]:
        """
        Reset the environment.

        Args:
            seed: Random seed for food placement.
            options: Additional options (unused).

        Returns:
            (observation, info) tuple.
        """
        super().reset(seed=seed)

        self._game.reset(seed=seed)

        obs = self._build_obs()
        info = self._game.get_info()
        info["delta_score"] = 0

        return obs, info

    def step(
        self,
        action: Union[int, np.ndarray]
    ) -> Tuple[Dict[str, np.ndarray], float, bool, bool, Dict[str, Any]]:
        """
        Execute one step.

        Args:
            action: Direction index in [0, 4).

        Returns:
            (observation, reward, terminated, truncated, info) tuple.
            Reward is always 0.0.
        """
        if isinstance(action, np.ndarray):
            action = action.item()
        if not self.action_space.contains(action):
            raise ValueError(f"Invalid action: {action!r}")
        direction = ALL_DIRECTIONS[int(action)]

        result = self._game.step(direction)

        obs = self._build_obs()

        # Reward is always 0.0 - agents compute their own
        reward = 0.0

        info = self._game.get_info()
        info["delta_score"] = result.delta_score
        info["ate_food"] = result.ate_food

        if self._debug:
            print(f"[DEBUG] Step: action={direction.value}, delta_score={result.delta_score}, "
                  f"length={obs['length']}, danger={obs['danger_level']:.2f}, "
                  f"strategy={info['placement_strategy']}")
            if result.terminated or result.truncated:
                print(f"[DEBUG] GAME OVER: {info.get('terminated_reason', 'unknown')}, "
                      f"difficulty now {info['difficulty']}")

        return obs, reward, result.terminated, result.truncated, info

    def _cell(self, position) -> np.ndarray:
        geometry = self._game.engine.geometry
        if position is None or not geometry.contains(position):
            return np.array([-1, -1], dtype=np.int32)
        return np.array(geometry.to_grid(position), dtype=np.int32)

    def _build_obs(self) -> Dict[str, np.ndarray]:
        """Build observation dict from the game state."""
        game = self._game
        engine = game.engine

        obs = {
            "board": game.board_array(),
            "heatmap": engine.normalized_heatmap().astype(np.float32),
            "head": self._cell(game.snake.head),
            "food": self._cell(game.food),
            "score": np.array(game.score, dtype=np.int64),
            "length": np.array(len(game.snake), dtype=np.int32),
            "difficulty": np.array(engine.difficulty_level, dtype=np.int32),
            "visual_intensity": np.array(engine.visual_intensity, dtype=np.int32),
            "placement_strategy": STRATEGIES.index(engine.placement_strategy),
            "danger_level": np.array(game.danger_level(), dtype=np.float32),
        }

        if self._image_obs:
            obs["board_rgb"] = self._render_to_array()

        return obs

    def _render_to_array(self) -> np.ndarray:
        """Render board to RGB array."""
        if self._renderer is None:
            from adaptive_snake.snake_core.render_solid import SolidRenderer
            self._renderer = SolidRenderer(self._config)

        return self._renderer.render(
            self._game.get_render_data(),
            self._img_width,
            self._img_height
        )

    def render(self) -> Optional[np.ndarray]:
        """
        Render the current game state.

        Returns:
            RGB array if render_mode is "rgb_array", None otherwise.
        """
        if self.render_mode == "rgb_array":
            return self._render_to_array()
        return None

    def close(self) -> None:
        """Clean up resources."""
        if self._renderer is not None:
            self._renderer.close()
            self._renderer = None

    @staticmethod
    def action_for(direction: Union[Direction, str]) -> int:
        """Action index for a direction."""
        return ALL_DIRECTIONS.index(Direction(direction))

    @property
    def game(self) -> SnakeGame:
        """Access to underlying game (for debugging/tools)."""
        return self._game

    @property
    def engine(self) -> AdaptiveEngine:
        return self._game.engine

    @property
    def config(self) -> GameConfig:
        """Game configuration."""
        return self._config
