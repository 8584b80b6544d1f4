"""
Tests for movement/difficulty visual intensity.
"""

import itertools

import pytest

from adaptive_snake.snake_core.config_loader import load_config
from adaptive_snake.snake_core.engine import AdaptiveEngine
from adaptive_snake.snake_core.movement_log import ALL_DIRECTIONS, Direction
from adaptive_snake.snake_core.visual_intensity import (
    combine_intensity,
    difficulty_modifier,
    movement_intensity,
    round_half_up,
)


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def engine(config):
    return AdaptiveEngine(config, seed=0, clock=lambda: 0.0)


def _alternating(count):
    return list(itertools.islice(itertools.cycle([Direction.UP, Direction.DOWN]), count))


class TestRounding:
    """Test half-up rounding."""

    @pytest.mark.parametrize("value,expected", [(2.5, 3), (3.5, 4), (2.4, 2), (1.0, 1), (4.5, 5)])
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected


class TestMovementIntensity:
    """Test the movement term."""

    def test_too_few_events(self, config):
        assert movement_intensity([Direction.UP, Direction.DOWN] * 2, config.intensity) == 1

    def test_straight_line_is_calm(self, config):
        assert movement_intensity([Direction.RIGHT] * 20, config.intensity) == 1

    def test_alternating_is_high(self, config):
        """Two directions (1.0) plus a change every step (3.0)."""
        assert movement_intensity(_alternating(20), config.intensity) == 4

    def test_all_directions_every_step(self, config):
        directions = list(itertools.islice(itertools.cycle(ALL_DIRECTIONS), 20))
        assert movement_intensity(directions, config.intensity) == 5

    def test_only_window_counts(self, config):
        directions = _alternating(30) + [Direction.LEFT] * 20
        assert movement_intensity(directions, config.intensity) == 1

    def test_in_range(self, config):
        for length in range(0, 30):
            value = movement_intensity(_alternating(length), config.intensity)
            assert 1 <= value <= 5


class TestCombination:
    """Test the difficulty modifier and the combined value."""

    @pytest.mark.parametrize("difficulty,expected", [(1, 1), (3, 1), (4, 2), (7, 3), (10, 4)])
    def test_difficulty_modifier(self, config, difficulty, expected):
        assert difficulty_modifier(difficulty, config.intensity) == expected

    def test_combine_rounds_half_up(self, config):
        assert combine_intensity(4, 1, config.intensity) == 3

    def test_combine_clamps(self, config):
        assert combine_intensity(5, 10, config.intensity) == 5
        assert combine_intensity(1, 1, config.intensity) == 1


class TestEngineIntensity:
    """Test intensity tracking inside the engine."""

    def test_starts_at_minimum(self, engine):
        assert engine.visual_intensity == 1
        assert engine.movement_intensity == 1

    def test_follows_movement(self, engine):
        for direction in _alternating(20):
            engine.record_movement((100, 100), direction)
        assert engine.movement_intensity == 4
        assert engine.visual_intensity == 3

    def test_follows_difficulty(self, engine):
        for direction in _alternating(20):
            engine.record_movement((100, 100), direction)
        engine.set_difficulty(10)
        assert engine.visual_intensity == 4
        engine.set_difficulty(1)
        assert engine.visual_intensity == 3
