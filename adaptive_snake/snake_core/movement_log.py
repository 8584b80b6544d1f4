"""
Movement Log
============

Bounded, order-preserving record of recent player moves and the direction
statistics derived from it.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Deque, Dict, List, Optional

from adaptive_snake.snake_core.geometry import Position


class Direction(str, Enum):
    """Cardinal movement directions, in their canonical order."""
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"

    @property
    def opposite(self) -> "Direction":
        return _OPPOSITES[self]

    @property
    def delta(self):
        """(dx, dy) in grid cells; y grows downward."""
        return _DELTAS[self]

    @classmethod
    def parse(cls, value) -> Optional["Direction"]:
        """Direction from an enum member or its string value, else None."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


_OPPOSITES = {
    Direction.UP: Direction.DOWN,
    Direction.DOWN: Direction.UP,
    Direction.LEFT: Direction.RIGHT,
    Direction.RIGHT: Direction.LEFT,
}

_DELTAS = {
    Direction.UP: (0, -1),
    Direction.DOWN: (0, 1),
    Direction.LEFT: (-1, 0),
    Direction.RIGHT: (1, 0),
}

ALL_DIRECTIONS = tuple(Direction)


@dataclass(frozen=True)
class MovementContext:
    """Game state around a move."""
    score: int = 0
    length: int = 1
    distance_to_target: float = 0

    @staticmethod
    def from_mapping(data: Optional[dict]) -> "MovementContext":
        """Build from a loose dict; missing or falsy values take defaults."""
        if not data:
            return MovementContext()
        return MovementContext(
            score=data.get("score") or 0,
            length=data.get("length") or data.get("snake_length") or 1,
            distance_to_target=(
                data.get("distance_to_target") or data.get("food_distance") or 0
            )
        )


@dataclass(frozen=True)
class MovementEvent:
    """One recorded grid step. Immutable once recorded."""
    timestamp_ms: float
    position: Position
    direction: Direction
    context: MovementContext = field(default_factory=MovementContext)


@dataclass
class MovementAnalysis:
    """Direction preference and diversity over the retained log."""
    dominant_directions: List[Direction]
    direction_counts: Dict[Direction, int]
    movement_diversity: float
    total_movements: int

    @staticmethod
    def neutral(total_movements: int) -> "MovementAnalysis":
        """Cold-start result: no dominant direction, zero diversity."""
        return MovementAnalysis(
            dominant_directions=[],
            direction_counts={d: 0 for d in ALL_DIRECTIONS},
            movement_diversity=0.0,
            total_movements=total_movements
        )


class MovementLog:
    """
    FIFO of the most recent movement events.

    When full, appending evicts the oldest event.
    """

    def __init__(self, capacity: int = 1000, min_pattern_events: int = 10):
        self._events: Deque[MovementEvent] = deque(maxlen=capacity)
        self._min_pattern_events = min_pattern_events

    def __len__(self) -> int:
        return len(self._events)

    @property
    def capacity(self) -> int:
        return self._events.maxlen

    def append(self, event: MovementEvent) -> None:
        self._events.append(event)

    def events(self) -> List[MovementEvent]:
        """Snapshot of all retained events, oldest first."""
        return list(self._events)

    def recent(self, count: int) -> List[MovementEvent]:
        """The last `count` events, oldest first."""
        if count <= 0:
            return []
        start = max(0, len(self._events) - count)
        return [self._events[i] for i in range(start, len(self._events))]

    def clear(self) -> None:
        self._events.clear()

    def analyze(self) -> MovementAnalysis:
        """
        Count directions across the whole log.

        Diversity is the fraction of the four directions used at least once.
        Dominant directions are those used more than the per-direction
        average (total / 4), most used first.
        """
        total = len(self._events)
        if total < self._min_pattern_events:
            return MovementAnalysis.neutral(total)

        counts = {d: 0 for d in ALL_DIRECTIONS}
        for event in self._events:
            counts[event.direction] += 1

        average_usage = total / len(ALL_DIRECTIONS)
        dominant = sorted(
            (d for d in ALL_DIRECTIONS if counts[d] > average_usage),
            key=lambda d: counts[d],
            reverse=True
        )
        used = sum(1 for count in counts.values() if count > 0)

        return MovementAnalysis(
            dominant_directions=dominant,
            direction_counts=counts,
            movement_diversity=used / len(ALL_DIRECTIONS),
            total_movements=total
        )
