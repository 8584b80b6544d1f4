"""
Tests for the movement log and pattern analysis.
"""

import pytest

from adaptive_snake.snake_core.geometry import Position
from adaptive_snake.snake_core.movement_log import (
    ALL_DIRECTIONS,
    Direction,
    MovementContext,
    MovementEvent,
    MovementLog,
)


def _event(direction, t=0.0, x=0, y=0):
    return MovementEvent(timestamp_ms=t, position=Position(x, y), direction=direction)


def _log_with(*runs, capacity=1000):
    log = MovementLog(capacity=capacity)
    t = 0
    for direction, count in runs:
        for _ in range(count):
            log.append(_event(direction, t))
            t += 1
    return log


class TestDirection:
    """Test direction parsing and geometry."""

    def test_parse(self):
        assert Direction.parse("up") is Direction.UP
        assert Direction.parse(Direction.LEFT) is Direction.LEFT
        assert Direction.parse("diagonal") is None
        assert Direction.parse(None) is None
        assert Direction.parse(3) is None

    def test_opposites(self):
        for direction in ALL_DIRECTIONS:
            assert direction.opposite.opposite is direction
            dx, dy = direction.delta
            odx, ody = direction.opposite.delta
            assert (dx + odx, dy + ody) == (0, 0)

    def test_canonical_order(self):
        assert ALL_DIRECTIONS == (Direction.UP, Direction.DOWN, Direction.LEFT, Direction.RIGHT)


class TestMovementContext:
    """Test context defaults."""

    def test_defaults(self):
        context = MovementContext.from_mapping(None)
        assert context == MovementContext(score=0, length=1, distance_to_target=0)

    def test_from_mapping_with_aliases(self):
        context = MovementContext.from_mapping({"score": 30, "snake_length": 5, "food_distance": 60})
        assert context.score == 30
        assert context.length == 5
        assert context.distance_to_target == 60

    def test_missing_fields_take_defaults(self):
        context = MovementContext.from_mapping({"score": 10})
        assert context.length == 1
        assert context.distance_to_target == 0


class TestMovementLog:
    """Test bounded FIFO behaviour."""

    def test_append_and_order(self):
        log = _log_with((Direction.UP, 1), (Direction.LEFT, 1))
        assert [e.direction for e in log.events()] == [Direction.UP, Direction.LEFT]

    def test_fifo_eviction(self):
        log = MovementLog(capacity=1000)
        for t in range(1001):
            log.append(_event(Direction.RIGHT, t))

        events = log.events()
        assert len(log) == 1000
        assert events[0].timestamp_ms == 1
        assert events[-1].timestamp_ms == 1000

    def test_recent(self):
        log = _log_with((Direction.UP, 5), (Direction.DOWN, 3))
        recent = log.recent(4)
        assert [e.direction for e in recent] == [Direction.UP] + [Direction.DOWN] * 3
        assert log.recent(0) == []
        assert len(log.recent(100)) == 8

    def test_events_is_a_snapshot(self):
        log = _log_with((Direction.UP, 2))
        events = log.events()
        events.clear()
        assert len(log) == 2

    def test_clear(self):
        log = _log_with((Direction.UP, 2))
        log.clear()
        assert len(log) == 0


class TestAnalysis:
    """Test direction statistics."""

    def test_below_threshold_is_neutral(self):
        log = _log_with((Direction.RIGHT, 9))
        analysis = log.analyze()
        assert analysis.dominant_directions == []
        assert analysis.movement_diversity == 0.0
        assert analysis.total_movements == 9
        assert all(count == 0 for count in analysis.direction_counts.values())

    def test_right_then_down(self):
        """25 right + 5 down: right dominates, half the directions used."""
        log = _log_with((Direction.RIGHT, 25), (Direction.DOWN, 5))
        analysis = log.analyze()

        assert analysis.dominant_directions == [Direction.RIGHT]
        assert analysis.direction_counts == {
            Direction.UP: 0,
            Direction.DOWN: 5,
            Direction.LEFT: 0,
            Direction.RIGHT: 25,
        }
        assert analysis.movement_diversity == pytest.approx(0.5)
        assert analysis.total_movements == 30

    def test_dominant_sorted_by_count(self):
        log = _log_with((Direction.UP, 10), (Direction.LEFT, 14), (Direction.DOWN, 1))
        analysis = log.analyze()
        assert analysis.dominant_directions == [Direction.LEFT, Direction.UP]
        assert analysis.movement_diversity == pytest.approx(0.75)

    def test_equal_use_has_no_dominant(self):
        log = _log_with(*[(d, 5) for d in ALL_DIRECTIONS])
        analysis = log.analyze()
        assert analysis.dominant_directions == []
        assert analysis.movement_diversity == pytest.approx(1.0)

    def test_dominant_ties_in_canonical_order(self):
        log = _log_with((Direction.RIGHT, 6), (Direction.UP, 6))
        assert log.analyze().dominant_directions == [Direction.UP, Direction.RIGHT]

    def test_diversity_is_a_quarter_step(self):
        for runs in ([(Direction.UP, 12)],
                     [(Direction.UP, 6), (Direction.DOWN, 6)],
                     [(Direction.UP, 4), (Direction.DOWN, 4), (Direction.LEFT, 4)]):
            diversity = _log_with(*runs).analyze().movement_diversity
            assert diversity in (0.25, 0.5, 0.75, 1.0)
