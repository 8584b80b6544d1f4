"""
Tests for difficulty adaptation and session tracking.
"""

import pytest

from adaptive_snake.snake_core.config_loader import load_config
from adaptive_snake.snake_core.difficulty import (
    DifficultyController,
    PerformanceState,
    is_valid_level,
    move_interval_ms,
)
from adaptive_snake.snake_core.engine import AdaptiveEngine


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def controller(config):
    return DifficultyController(config.difficulty, max_recent_outcomes=5)


def _play(controller, *scores):
    for score in scores:
        controller.end_session(score, now_ms=0)


class TestSessions:
    """Test outcome bookkeeping."""

    def test_initial_state(self, controller):
        state = controller.state
        assert controller.level == 1
        assert state.recent_outcomes == []
        assert state.total_sessions == 0
        assert state.difficulty_progression == [1]
        assert not controller.in_session

    def test_outcomes_are_capped(self, controller):
        _play(controller, 1, 2, 3, 4, 5, 6, 7)
        state = controller.state
        assert state.recent_outcomes == [3, 4, 5, 6, 7]
        assert state.total_sessions == 7
        assert state.average_score == pytest.approx(5.0)

    def test_duration_running_average(self, controller):
        controller.start_session(1000)
        assert controller.in_session
        controller.end_session(10, 4000)
        assert controller.state.average_session_duration_ms == pytest.approx(3000)

        controller.start_session(5000)
        controller.end_session(10, 6000)
        assert controller.state.average_session_duration_ms == pytest.approx(2000)
        assert not controller.in_session

    def test_end_without_start_keeps_duration(self, controller):
        controller.start_session(0)
        controller.end_session(10, 500)
        controller.end_session(10, 9000)
        state = controller.state
        assert state.total_sessions == 2
        assert state.average_session_duration_ms == pytest.approx(500)

    def test_state_is_a_copy(self, controller):
        state = controller.state
        state.recent_outcomes.append(999)
        state.difficulty_progression.append(7)
        assert controller.state.recent_outcomes == []
        assert controller.state.difficulty_progression == [1]


class TestEvaluation:
    """Test streak-based level changes."""

    def test_needs_three_outcomes(self, controller):
        _play(controller, 0, 0)
        assert controller.state.consecutive_low_streak == 0
        assert controller.calculate_difficulty() == 1

    def test_low_scores_start_low_streak(self, controller):
        """Outcomes 5, 6, 4 sit below the 25 point low threshold."""
        _play(controller, 5, 6, 4)
        state = controller.state
        assert state.consecutive_low_streak == 1
        assert state.consecutive_high_streak == 0
        assert controller.level == 1

    def test_thresholds_use_floor(self, controller):
        _play(controller, 5, 6, 4)
        assert controller.thresholds() == pytest.approx((50, 75, 25))

    def test_thresholds_follow_average(self, controller):
        _play(controller, 100, 100, 100)
        assert controller.thresholds() == pytest.approx((80, 120, 40))

    def test_low_streak_lowers_level(self, controller):
        controller.set_difficulty(4)
        _play(controller, 0, 0, 0)
        assert controller.state.consecutive_low_streak == 1

        controller.calculate_difficulty()
        assert controller.level == 4
        assert controller.calculate_difficulty() == 3

        state = controller.state
        assert state.consecutive_low_streak == 0
        assert state.difficulty_progression == [1, 4, 3]

    def test_low_streak_clamps_at_minimum(self, controller):
        _play(controller, 0, 0, 0)
        controller.calculate_difficulty()
        controller.calculate_difficulty()
        assert controller.level == 1
        assert controller.state.consecutive_low_streak == 0
        assert controller.state.difficulty_progression == [1]

    def test_high_streak_raises_level(self, controller):
        """A stored average below the recent mean leaves room for a high streak."""
        controller.restore(1, PerformanceState(recent_outcomes=[200, 200, 200], average_score=0))
        assert controller.calculate_difficulty() == 1
        assert controller.calculate_difficulty() == 1
        assert controller.calculate_difficulty() == 2
        assert controller.state.consecutive_high_streak == 0

    def test_high_streak_clamps_at_maximum(self, controller):
        controller.restore(10, PerformanceState(recent_outcomes=[200, 200, 200], average_score=0))
        for _ in range(3):
            controller.calculate_difficulty()
        assert controller.level == 10
        assert controller.state.consecutive_high_streak == 0

    def test_consistent_scores_are_neutral(self, controller):
        """Sessions alone keep average == recent mean, which never reaches the high bar."""
        _play(controller, 200, 200, 200, 200, 200)
        state = controller.state
        assert state.consecutive_high_streak == 0
        assert state.consecutive_low_streak == 0
        assert controller.level == 1

    def test_middle_band_resets_streaks(self, controller):
        _play(controller, 0, 0, 0)
        assert controller.state.consecutive_low_streak == 1
        # Mean 48 with floor 50: between 25 and 75
        _play(controller, 120, 120)
        assert controller.state.consecutive_low_streak == 0


class TestEngineSessions:
    """Test difficulty changes driven through engine sessions."""

    def test_low_sessions_lower_level(self, config):
        engine = AdaptiveEngine(config, seed=0)
        assert engine.import_state({
            "performance_state": {"recent_outcomes": [5, 6, 4], "average_score": 5},
            "adaptation_state": {"difficulty_level": 4},
        })
        # No movements: movement intensity 1, modifier ceil(4 / 3.33) = 2
        assert engine.visual_intensity == 2

        for cycle in range(3):
            engine.start_session()
            level = engine.end_session(5)
            if cycle < 2:
                assert level == 4
                assert engine.performance_state().consecutive_low_streak == cycle + 1

        assert engine.difficulty_level == 3
        state = engine.performance_state()
        assert state.consecutive_low_streak == 0
        assert state.difficulty_progression[-1] == 3
        # Modifier drops to 1
        assert engine.visual_intensity == 1


class TestSetDifficulty:
    """Test direct level changes."""

    def test_accepts_valid(self, controller):
        assert controller.set_difficulty(7)
        assert controller.level == 7
        assert controller.state.difficulty_progression == [1, 7]

    @pytest.mark.parametrize("level", [0, 11, -3, 5.5, True, "5", None])
    def test_rejects_invalid(self, controller, level):
        assert not controller.set_difficulty(level)
        assert controller.level == 1
        assert controller.state.difficulty_progression == [1]

    def test_on_change_callback(self, config):
        seen = []
        controller = DifficultyController(config.difficulty, on_change=seen.append)
        controller.set_difficulty(3)
        controller.set_difficulty(9)
        assert seen == [3, 9]

    def test_restore_skips_progression(self, controller):
        controller.restore(6, PerformanceState(difficulty_progression=[1, 2, 6]))
        assert controller.level == 6
        assert controller.state.difficulty_progression == [1, 2, 6]

    def test_is_valid_level(self, config):
        assert is_valid_level(1, config.difficulty)
        assert is_valid_level(10, config.difficulty)
        assert not is_valid_level(False, config.difficulty)


class TestMoveInterval:
    """Test the difficulty to speed mapping."""

    @pytest.mark.parametrize("level,expected", [(1, 200), (10, 80), (5, 147)])
    def test_linear_interval(self, config, level, expected):
        assert move_interval_ms(level, config.difficulty, config.speed) == expected

    def test_monotonic(self, config):
        intervals = [move_interval_ms(d, config.difficulty, config.speed) for d in range(1, 11)]
        assert intervals == sorted(intervals, reverse=True)
