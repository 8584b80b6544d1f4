"""
Baseline Greedy Agent - Heads straight for the food.

A simple heuristic agent that reads the occupancy board and moves to
whichever neighbouring cell is safe and closest to the food.

This serves as:
1. A working example of how to read observations and return actions
2. A steady source of sessions for exercising the adaptive engine
3. A verification that the environment API works correctly

Strategy:
- Look at the four cells around the head
- Drop cells that are off the board or occupied by the body
- Pick the one with the smallest Manhattan distance to the food
- Break ties randomly
"""

import numpy as np
from typing import Any, Dict, List, Optional

# Action order of SnakeEnv: up, down, left, right
MOVES = [(0, -1), (0, 1), (-1, 0), (1, 0)]
MOVE_NAMES = ["up", "down", "left", "right"]
BODY = 1


class SnakeAgent:
    """
    Greedy food-seeking agent.

    Never chooses a move into a wall or its own body when a safe move
    exists.
    """

    def __init__(self, debug: bool = False, seed: Optional[int] = None):
        """
        Initialize the agent.

        Args:
            debug: If True, print decisions to stdout.
            seed: Seed for tie-breaking.
        """
        self.debug = debug
        self._rng = np.random.default_rng(seed)

    def reset(self, seed: Optional[int] = None) -> None:
        """
        Reset agent state for a new episode.

        Args:
            seed: Optional random seed for reproducibility.
        """
        if seed is not None:
            self._rng = np.random.default_rng(seed)

    def safe_actions(self, observation: Dict[str, Any]) -> List[int]:
        """Actions whose target cell is on the board and not body."""
        board = observation["board"]
        rows, columns = board.shape
        head_x, head_y = (int(v) for v in observation["head"])

        safe = []
        for action, (dx, dy) in enumerate(MOVES):
            x, y = head_x + dx, head_y + dy
            if 0 <= x < columns and 0 <= y < rows and board[y, x] != BODY:
                safe.append(action)
        return safe

    def act(self, observation: Dict[str, Any], debug: bool = False) -> int:
        """
        Choose a direction.

        Args:
            observation: Dict of numpy arrays from the environment.
            debug: If True, print debug info for this step.

        Returns:
            Action index in [0, 4).
        """
        safe = self.safe_actions(observation)
        if not safe:
            # Boxed in; any move ends the game
            return int(self._rng.integers(len(MOVES)))

        head_x, head_y = (int(v) for v in observation["head"])
        food_x, food_y = (int(v) for v in observation["food"])

        if food_x < 0:
            action = int(self._rng.choice(safe))
        else:
            distances = [
                abs(head_x + MOVES[a][0] - food_x) + abs(head_y + MOVES[a][1] - food_y)
                for a in safe
            ]
            best = min(distances)
            candidates = [a for a, d in zip(safe, distances) if d == best]
            action = int(self._rng.choice(candidates))

        if debug or self.debug:
            print(f"[Greedy Agent] Head=({head_x},{head_y}) Food=({food_x},{food_y}) "
                  f"Danger={float(observation['danger_level']):.2f} "
                  f"Safe={[MOVE_NAMES[a] for a in safe]} -> {MOVE_NAMES[action]}")

        return action


# Convenience function to create agent (used by evaluation harness)
def create_agent(**kwargs) -> SnakeAgent:
    """Factory function to create an agent instance."""
    return SnakeAgent(**kwargs)
