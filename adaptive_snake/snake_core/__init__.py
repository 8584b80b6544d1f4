"""
Snake Core - The adaptive engine and the game built around it.

Main exports:
- AdaptiveEngine: heatmap, movement analysis, placement, difficulty, intensity
- SnakeGame: headless game loop driving the engine
- SnakeEnv: Gymnasium environment for agents
- BehaviorStore: JSON persistence for engine snapshots and high scores
- GameConfig: Configuration loaded from adaptive_config.yaml
"""

from adaptive_snake.snake_core.config_loader import GameConfig, get_config, load_config
from adaptive_snake.snake_core.geometry import Position
from adaptive_snake.snake_core.movement_log import Direction, MovementAnalysis, MovementEvent
from adaptive_snake.snake_core.placement import PlacementStrategy
from adaptive_snake.snake_core.difficulty import PerformanceState
from adaptive_snake.snake_core.state_snapshot import AdaptationState
from adaptive_snake.snake_core.engine import AdaptiveEngine
from adaptive_snake.snake_core.game import Snake, SnakeGame, StepResult
from adaptive_snake.snake_core.env_gym import SnakeEnv
from adaptive_snake.snake_core.storage import BehaviorStore

__all__ = [
    "GameConfig",
    "get_config",
    "load_config",
    "Position",
    "Direction",
    "MovementAnalysis",
    "MovementEvent",
    "PlacementStrategy",
    "PerformanceState",
    "AdaptationState",
    "AdaptiveEngine",
    "Snake",
    "SnakeGame",
    "StepResult",
    "SnakeEnv",
    "BehaviorStore",
]
