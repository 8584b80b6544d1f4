"""
Human Play Mode
================

Play the adaptive snake game interactively. The engine state (heatmap,
performance history, difficulty) is loaded from and saved to a behavior
store, so the game keeps adapting across runs.

Controls:
    - Arrows / WASD: Steer
    - Space: Pause / resume
    - R: Restart game
    - ESC: Quit

Usage:
    python -m tools.play_human [--seed SEED] [--store DIR] [--scale SCALE]
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional

try:
    import pygame
    PYGAME_AVAILABLE = True
except ImportError:
    PYGAME_AVAILABLE = False

import numpy as np

from adaptive_snake.snake_core.config_loader import GameConfig, load_config
from adaptive_snake.snake_core.engine import AdaptiveEngine
from adaptive_snake.snake_core.game import SnakeGame
from adaptive_snake.snake_core.movement_log import Direction
from adaptive_snake.snake_core.render_solid import HUD_HEIGHT, SolidRenderer
from adaptive_snake.snake_core.storage import BehaviorStore


DEFAULT_STORE = "~/.adaptive_snake"


def _key_directions() -> dict:
    return {
        pygame.K_UP: Direction.UP,
        pygame.K_w: Direction.UP,
        pygame.K_DOWN: Direction.DOWN,
        pygame.K_s: Direction.DOWN,
        pygame.K_LEFT: Direction.LEFT,
        pygame.K_a: Direction.LEFT,
        pygame.K_RIGHT: Direction.RIGHT,
        pygame.K_d: Direction.RIGHT,
    }


class HumanPlayer:
    """Interactive game session with keyboard control."""

    def __init__(
        self,
        config: GameConfig,
        seed: Optional[int] = None,
        store: Optional[BehaviorStore] = None,
        scale: float = 1.0,
        target_fps: int = 60
    ):
        if not PYGAME_AVAILABLE:
            raise ImportError("pygame is required for human play: pip install pygame")

        self._config = config
        self._seed = seed
        self._store = store
        self._target_fps = target_fps

        self._engine = AdaptiveEngine(config, seed=seed)
        if store is not None:
            snapshot = store.load_behavior_data()
            if snapshot is not None and self._engine.import_state(snapshot):
                print(f"Restored behavior data (difficulty {self._engine.difficulty_level})")

        self._game = SnakeGame(engine=self._engine)
        if store is not None:
            self._game.high_score = store.load_high_score()
        self._game.reset(seed=seed)

        board = config.board
        self._width = int(board.grid_width * board.cell_size * scale)
        self._height = int(board.grid_height * board.cell_size * scale) + HUD_HEIGHT

        pygame.init()
        self._screen = pygame.display.set_mode((self._width, self._height))
        pygame.display.set_caption("Adaptive Snake")
        self._clock = pygame.time.Clock()
        pygame.font.init()
        self._font = pygame.font.Font(None, 22)
        self._font_large = pygame.font.Font(None, 48)

        self._renderer = SolidRenderer(config, show_score=False)
        self._keys = _key_directions()

        self._running = True
        self._paused = False
        self._pending: Optional[Direction] = None
        self._since_move_ms = 0

    def run(self) -> int:
        """Run the game loop. Returns the high score."""
        print("=== Adaptive Snake ===")
        print("Arrows/WASD to steer, Space to pause, R to restart, ESC to quit")
        print()

        while self._running:
            elapsed = self._clock.tick(self._target_fps)
            self._handle_events()

            if not self._paused and not self._game.is_over:
                self._since_move_ms += elapsed
                if self._since_move_ms >= self._engine.move_interval_ms:
                    self._since_move_ms = 0
                    self._advance()

            self._render()

        self._save()
        pygame.quit()
        return self._game.high_score

    def _handle_events(self) -> None:
        """Process pygame events."""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self._running = False

            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    self._running = False
                elif event.key == pygame.K_r:
                    self._restart()
                elif event.key == pygame.K_SPACE and not self._game.is_over:
                    self._paused = not self._paused
                elif event.key in self._keys and not self._paused:
                    self._pending = self._keys[event.key]

    def _advance(self) -> None:
        result = self._game.step(self._pending)
        self._pending = None

        if result.ate_food:
            print(f"  +{result.delta_score} (Total: {self._game.score})")

        if result.terminated or result.truncated:
            engine = self._engine
            print(f"\nGAME OVER ({result.termination_reason}) - Score: {self._game.score}")
            print(f"  Difficulty: {engine.difficulty_level}, "
                  f"strategy: {engine.placement_strategy.value}, "
                  f"intensity: {engine.visual_intensity}")
            self._save()

    def _save(self) -> None:
        if self._store is None:
            return
        self._store.save_behavior_data(self._engine.export_state())
        self._store.save_high_score(self._game.high_score)

    def _restart(self) -> None:
        """Restart the game."""
        self._game.reset()
        self._paused = False
        self._pending = None
        self._since_move_ms = 0
        print("\n=== Game Restarted ===\n")

    def _render(self) -> None:
        """Render the game."""
        render_data = self._game.get_render_data()
        img = self._renderer.render(render_data, self._width, self._height)
        surface = pygame.surfarray.make_surface(np.ascontiguousarray(img.swapaxes(0, 1)))
        self._screen.blit(surface, (0, 0))

        engine = self._engine
        status = (
            f"Score {self._game.score}  Best {self._game.high_score}  "
            f"Lv {engine.difficulty_level}  {engine.placement_strategy.value}"
        )
        text = self._font.render(status, True, (255, 255, 255))
        self._screen.blit(text, ((self._width - text.get_width()) // 2, 8))

        if self._game.is_over or self._paused:
            label = "GAME OVER - R to restart" if self._game.is_over else "PAUSED"
            overlay = self._font_large.render(label, True, (255, 255, 255))
            self._screen.blit(overlay, (
                (self._width - overlay.get_width()) // 2,
                (self._height - overlay.get_height()) // 2
            ))

        pygame.display.flip()


def main():
    parser = argparse.ArgumentParser(description="Play adaptive snake interactively")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--store", type=str, default=DEFAULT_STORE,
                        help=f"Behavior store directory (default: {DEFAULT_STORE})")
    parser.add_argument("--no-store", action="store_true", help="Do not load or save state")
    parser.add_argument("--scale", type=float, default=1.0, help="Window scale")
    parser.add_argument("--fps", type=int, default=60, help="Target FPS")
    parser.add_argument("--verbose", action="store_true", help="Log engine decisions")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s"
    )

    try:
        player = HumanPlayer(
            config=load_config(),
            seed=args.seed,
            store=None if args.no_store else BehaviorStore(args.store),
            scale=args.scale,
            target_fps=args.fps
        )
        high_score = player.run()
        print(f"\nHigh Score: {high_score}")
        return 0
    except ImportError as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
