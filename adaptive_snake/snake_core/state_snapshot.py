"""
State Snapshot
==============

Serialization of the engine's persistent state to a plain, JSON-safe dict
and validation of such dicts on the way back in.

Snapshot layout:
    {
        "frequency_grid": [[int, ...], ...],     # (rows, columns)
        "performance_state": {...},
        "adaptation_state": {...}
    }

Parsing is staged: parse_snapshot() returns a SnapshotUpdate holding only
validated values, or None when the snapshot is structurally unusable. The
engine commits a SnapshotUpdate as a whole.
"""

from __future__ import annotations

import math
import numbers
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional, Tuple

import numpy as np

from adaptive_snake.snake_core.config_loader import DifficultyConfig, IntensityConfig
from adaptive_snake.snake_core.difficulty import PerformanceState, is_valid_level
from adaptive_snake.snake_core.placement import PlacementStrategy

GRID_KEY = "frequency_grid"
PERFORMANCE_KEY = "performance_state"
ADAPTATION_KEY = "adaptation_state"

INT64_MAX = int(np.iinfo(np.int64).max)


@dataclass
class AdaptationState:
    """Current adaptation outputs."""
    difficulty_level: int = 1
    placement_strategy: PlacementStrategy = PlacementStrategy.RANDOM
    visual_intensity: int = 1
    movement_intensity: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "difficulty_level": self.difficulty_level,
            "placement_strategy": self.placement_strategy.value,
            "visual_intensity": self.visual_intensity,
            "movement_intensity": self.movement_intensity,
        }


@dataclass
class SnapshotUpdate:
    """Validated values from a snapshot; absent keys mean "keep current"."""
    counts: Optional[np.ndarray] = None
    performance: Dict[str, Any] = field(default_factory=dict)
    adaptation: Dict[str, Any] = field(default_factory=dict)


def build_snapshot(
    counts: np.ndarray,
    performance: PerformanceState,
    adaptation: AdaptationState
) -> Dict[str, Any]:
    """Build a JSON-serializable snapshot. All containers are fresh copies."""
    return {
        GRID_KEY: np.asarray(counts).astype(int).tolist(),
        PERFORMANCE_KEY: asdict(performance),
        ADAPTATION_KEY: adaptation.to_dict(),
    }


# ---------------------------------------------------------------------------
# Field validators: return the cleaned value, or None when invalid
# ---------------------------------------------------------------------------

def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # Integers too large for a float
        return False


def _non_negative_number(value: Any) -> Optional[float]:
    if _is_number(value) and value >= 0:
        return float(value)
    return None


def _count(value: Any) -> Optional[int]:
    if _is_number(value) and 0 <= value <= INT64_MAX and float(value).is_integer():
        return int(value)
    return None


def _is_list(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _parse_grid(data: Any, shape: Tuple[int, int]) -> Optional[np.ndarray]:
    rows, columns = shape
    if not _is_list(data) or len(data) != rows:
        return None
    counts = np.zeros(shape, dtype=np.int64)
    for r, row in enumerate(data):
        if not _is_list(row) or len(row) != columns:
            return None
        for c, cell in enumerate(row):
            value = _count(cell)
            if value is None:
                return None
            counts[r, c] = value
    return counts


def _parse_performance(
    data: Mapping,
    difficulty: DifficultyConfig,
    max_recent_outcomes: int
) -> Dict[str, Any]:
    fields: Dict[str, Any] = {}

    outcomes = data.get("recent_outcomes")
    if _is_list(outcomes) and all(_is_number(v) for v in outcomes):
        fields["recent_outcomes"] = [float(v) for v in outcomes][-max_recent_outcomes:]

    average = data.get("average_score")
    if _is_number(average):
        fields["average_score"] = float(average)

    duration = _non_negative_number(data.get("average_session_duration_ms"))
    if duration is not None:
        fields["average_session_duration_ms"] = duration

    for key in ("total_sessions", "consecutive_high_streak", "consecutive_low_streak"):
        value = _count(data.get(key))
        if value is not None:
            fields[key] = value

    if "session_start_ms" in data:
        start = data["session_start_ms"]
        if start is None or _is_number(start):
            fields["session_start_ms"] = None if start is None else float(start)

    progression = data.get("difficulty_progression")
    if (
        _is_list(progression)
        and progression
        and all(is_valid_level(v, difficulty) for v in progression)
    ):
        fields["difficulty_progression"] = [int(v) for v in progression]

    return fields


def _parse_adaptation(
    data: Mapping,
    difficulty: DifficultyConfig,
    intensity: IntensityConfig
) -> Dict[str, Any]:
    fields: Dict[str, Any] = {}

    level = data.get("difficulty_level")
    if is_valid_level(level, difficulty):
        fields["difficulty_level"] = int(level)

    strategy = PlacementStrategy.parse(data.get("placement_strategy"))
    if strategy is not None:
        fields["placement_strategy"] = strategy

    for key in ("visual_intensity", "movement_intensity"):
        value = data.get(key)
        if (
            isinstance(value, numbers.Integral)
            and not isinstance(value, bool)
            and intensity.min_level <= value <= intensity.max_level
        ):
            fields[key] = int(value)

    return fields


def parse_snapshot(
    data: Any,
    shape: Tuple[int, int],
    difficulty: DifficultyConfig,
    intensity: IntensityConfig,
    max_recent_outcomes: int = 5
) -> Optional[SnapshotUpdate]:
    """
    Validate a snapshot against the current grid shape.

    Args:
        data: Candidate snapshot (usually decoded JSON).
        shape: (rows, columns) of the receiving grid.
        difficulty: Difficulty range for level fields.
        intensity: Intensity range for intensity fields.
        max_recent_outcomes: Outcome history length to keep.

    Returns:
        SnapshotUpdate, or None if the snapshot is structurally invalid:
        not a mapping, none of the three sections present, a section of the
        wrong container type, or a grid of the wrong dimensions or with
        non-count cells. Individually invalid fields inside a section are
        left out of the update instead.
    """
    if not isinstance(data, Mapping):
        return None

    sections = (GRID_KEY, PERFORMANCE_KEY, ADAPTATION_KEY)
    if not any(data.get(key) is not None for key in sections):
        return None

    update = SnapshotUpdate()

    grid = data.get(GRID_KEY)
    if grid is not None:
        update.counts = _parse_grid(grid, shape)
        if update.counts is None:
            return None

    performance = data.get(PERFORMANCE_KEY)
    if performance is not None:
        if not isinstance(performance, Mapping):
            return None
        update.performance = _parse_performance(performance, difficulty, max_recent_outcomes)

    adaptation = data.get(ADAPTATION_KEY)
    if adaptation is not None:
        if not isinstance(adaptation, Mapping):
            return None
        update.adaptation = _parse_adaptation(adaptation, difficulty, intensity)

    return update
