"""
Visual Intensity
================

Derives the 1-5 visual intensity scalar read by the renderer from two
signals: how varied recent movement is, and the current difficulty.
"""

from __future__ import annotations

import math
from typing import Sequence

from adaptive_snake.snake_core.config_loader import IntensityConfig
from adaptive_snake.snake_core.movement_log import ALL_DIRECTIONS, Direction


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    """Round with halves going up (2.5 -> 3), unlike round()."""
    return math.floor(value + 0.5)


def movement_intensity(directions: Sequence[Direction], config: IntensityConfig) -> int:
    """
    Intensity from the most recent directions (oldest first).

    score = diversity * 2 + change_ratio * 3, where diversity is the share of
    the four directions present and change_ratio the share of consecutive
    pairs that differ. Fewer than `min_events` directions give the minimum.
    """
    window = list(directions)[-config.window:]
    if len(window) < config.min_events:
        return config.min_level

    diversity = len(set(window)) / len(ALL_DIRECTIONS)
    changes = sum(1 for prev, cur in zip(window, window[1:]) if prev != cur)
    change_ratio = changes / (len(window) - 1)

    score = diversity * config.diversity_weight + change_ratio * config.change_weight
    return _clamp(math.ceil(score), config.min_level, config.max_level)


def difficulty_modifier(difficulty: int, config: IntensityConfig) -> int:
    """Map difficulty 1-10 onto a 1-3 modifier."""
    return math.ceil(difficulty / config.difficulty_divisor)


def combine_intensity(movement: int, difficulty: int, config: IntensityConfig) -> int:
    """Average of movement intensity and difficulty modifier, clamped."""
    modifier = difficulty_modifier(difficulty, config)
    return _clamp(
        round_half_up((movement + modifier) / 2),
        config.min_level,
        config.max_level
    )
