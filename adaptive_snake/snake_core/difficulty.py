"""
Difficulty Controller
=====================

Tracks session outcomes and moves the difficulty level one step at a time
after a streak of consistently high or low performance.

Thresholds (with average = mean of retained outcomes):
- score_threshold = max(50, average * 0.8)
- high = score_threshold * 1.5
- low  = score_threshold * 0.5
"""

from __future__ import annotations

import copy
import logging
import numbers
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from adaptive_snake.snake_core.config_loader import DifficultyConfig, SpeedConfig

logger = logging.getLogger(__name__)


@dataclass
class PerformanceState:
    """Session outcome history. Mutated only by session start/end and evaluation."""
    recent_outcomes: List[float] = field(default_factory=list)
    average_score: float = 0.0
    average_session_duration_ms: float = 0.0
    total_sessions: int = 0
    consecutive_high_streak: int = 0
    consecutive_low_streak: int = 0
    session_start_ms: Optional[float] = None
    difficulty_progression: List[int] = field(default_factory=lambda: [1])


def is_valid_level(level, config: DifficultyConfig) -> bool:
    """True for integers (not bools) inside the configured range."""
    if isinstance(level, bool) or not isinstance(level, numbers.Integral):
        return False
    return config.min_level <= level <= config.max_level


class DifficultyController:
    """
    Performance tracking and difficulty level.

    The level can only change through streak evaluation or set_difficulty(),
    and never leaves [min_level, max_level].
    """

    def __init__(
        self,
        config: DifficultyConfig,
        max_recent_outcomes: int = 5,
        on_change: Optional[Callable[[int], None]] = None
    ):
        """
        Args:
            config: Difficulty thresholds.
            max_recent_outcomes: How many final scores to retain.
            on_change: Called with the new level whenever it changes.
        """
        self._config = config
        self._max_recent = max_recent_outcomes
        self._on_change = on_change
        self._level: int = config.initial
        self._state = PerformanceState(difficulty_progression=[config.initial])

    @property
    def level(self) -> int:
        """Current difficulty level."""
        return self._level

    @property
    def state(self) -> PerformanceState:
        """Deep copy of the performance state."""
        return copy.deepcopy(self._state)

    @property
    def in_session(self) -> bool:
        return self._state.session_start_ms is not None

    def start_session(self, now_ms: float) -> None:
        """Mark the start of a play-through."""
        self._state.session_start_ms = now_ms

    def end_session(self, final_score: float, now_ms: float) -> int:
        """
        Record a finished play-through and re-evaluate difficulty.

        A session that was never started contributes zero duration, which
        leaves the duration average untouched.

        Returns:
            Difficulty level after evaluation.
        """
        state = self._state
        start = state.session_start_ms
        duration = now_ms - start if start is not None else 0

        state.total_sessions += 1

        state.recent_outcomes.append(final_score)
        if len(state.recent_outcomes) > self._max_recent:
            del state.recent_outcomes[:-self._max_recent]

        state.average_score = sum(state.recent_outcomes) / len(state.recent_outcomes)

        if duration > 0:
            n = state.total_sessions
            state.average_session_duration_ms = (
                (state.average_session_duration_ms * (n - 1) + duration) / n
            )

        state.session_start_ms = None
        return self.calculate_difficulty()

    def thresholds(self):
        """(score_threshold, high_threshold, low_threshold) for the current average."""
        config = self._config
        score_threshold = max(config.score_floor, self._state.average_score * config.average_weight)
        return (
            score_threshold,
            score_threshold * config.high_multiplier,
            score_threshold * config.low_multiplier,
        )

    def calculate_difficulty(self) -> int:
        """
        Evaluate the retained outcomes and update streaks and level.

        With fewer than `min_outcomes` outcomes the level is returned as is.
        """
        state = self._state
        config = self._config
        if len(state.recent_outcomes) < config.min_outcomes:
            return self._level

        mean_recent = sum(state.recent_outcomes) / len(state.recent_outcomes)
        _, high_threshold, low_threshold = self.thresholds()
        new_level = self._level

        if mean_recent >= high_threshold:
            state.consecutive_high_streak += 1
            state.consecutive_low_streak = 0
            if state.consecutive_high_streak >= config.streak_length:
                new_level = min(config.max_level, self._level + 1)
                state.consecutive_high_streak = 0
        elif mean_recent <= low_threshold:
            state.consecutive_low_streak += 1
            state.consecutive_high_streak = 0
            if state.consecutive_low_streak >= config.streak_length:
                new_level = max(config.min_level, self._level - 1)
                state.consecutive_low_streak = 0
        else:
            state.consecutive_high_streak = 0
            state.consecutive_low_streak = 0

        if new_level != self._level:
            logger.info("Difficulty %d -> %d (recent mean %.1f)",
                        self._level, new_level, mean_recent)
            self._apply_level(new_level)

        return self._level

    def set_difficulty(self, level) -> bool:
        """
        Set the level directly.

        Out-of-range or non-integer values are ignored.

        Returns:
            True if the level was accepted.
        """
        if not is_valid_level(level, self._config):
            logger.debug("Ignoring invalid difficulty %r", level)
            return False
        self._apply_level(int(level))
        return True

    def _apply_level(self, level: int) -> None:
        self._level = level
        self._state.difficulty_progression.append(level)
        if self._on_change is not None:
            self._on_change(level)

    def restore(self, level: int, state: PerformanceState) -> None:
        """Replace level and state wholesale (snapshot import). No progression entry."""
        self._level = level
        self._state = copy.deepcopy(state)
        if self._on_change is not None:
            self._on_change(level)


def move_interval_ms(difficulty: int, difficulty_config: DifficultyConfig, speed: SpeedConfig) -> int:
    """
    Milliseconds per snake step for a difficulty level.

    Linear from max_interval_ms at the lowest level to min_interval_ms at the
    highest.
    """
    span = difficulty_config.max_level - difficulty_config.min_level
    if span <= 0:
        return speed.max_interval_ms
    factor = (difficulty - difficulty_config.min_level) / span
    interval = speed.max_interval_ms - factor * (speed.max_interval_ms - speed.min_interval_ms)
    return int(interval + 0.5)
