"""
Behavior Store
==============

JSON persistence for engine snapshots and the high score.

Files (inside the store directory):
    behavior.json   - {"version", "timestamp", "data": <snapshot>}, heatmap sparse
    high_score.json - {"version", "timestamp", "score"}

The heatmap is stored sparsely as
    {"sparse": [{"x": column, "y": row, "value": count}, ...],
     "dimensions": {"width": columns, "height": rows}}

Usage:
    store = BehaviorStore("~/.adaptive_snake")
    engine.import_state(store.load_behavior_data() or {})
    ...
    store.save_behavior_data(engine.export_state())
"""

from __future__ import annotations

import copy
import json
import logging
import math
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from adaptive_snake.snake_core.state_snapshot import GRID_KEY

logger = logging.getLogger(__name__)

DATA_VERSION = "1.0"
BEHAVIOR_FILE = "behavior.json"
HIGH_SCORE_FILE = "high_score.json"


def compress_heatmap(grid: List[List[int]]) -> Dict[str, Any]:
    """Dense [row][column] counts to the sparse form (zero cells dropped)."""
    sparse = []
    for y, row in enumerate(grid):
        for x, value in enumerate(row):
            if value > 0:
                sparse.append({"x": x, "y": y, "value": value})
    return {
        "sparse": sparse,
        "dimensions": {
            "width": len(grid[0]) if grid else 0,
            "height": len(grid),
        },
    }


def decompress_heatmap(data: Dict[str, Any]) -> List[List[int]]:
    """Sparse form back to dense counts. Entries outside the dimensions are dropped."""
    width = int(data["dimensions"]["width"])
    height = int(data["dimensions"]["height"])
    grid = [[0] * width for _ in range(height)]
    for entry in data["sparse"]:
        x, y = int(entry["x"]), int(entry["y"])
        if 0 <= y < height and 0 <= x < width:
            grid[y][x] = entry["value"]
    return grid


class BehaviorStore:
    """
    Directory-backed store for behavior snapshots and the high score.

    Load failures never raise: missing data gives None (or 0 for the high
    score) and a corrupt behavior file is removed.
    """

    def __init__(self, directory: Union[str, Path]):
        self._directory = Path(directory).expanduser()

    @property
    def directory(self) -> Path:
        return self._directory

    @property
    def behavior_path(self) -> Path:
        return self._directory / BEHAVIOR_FILE

    @property
    def high_score_path(self) -> Path:
        return self._directory / HIGH_SCORE_FILE

    def _write(self, path: Path, payload: Dict[str, Any]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(payload, f)
        tmp_path.replace(path)

    def save_behavior_data(self, snapshot: Dict[str, Any]) -> bool:
        """
        Save an engine snapshot.

        Args:
            snapshot: Output of AdaptiveEngine.export_state().

        Returns:
            True if written.
        """
        if not isinstance(snapshot, dict):
            logger.warning("Refusing to save behavior data of type %s", type(snapshot).__name__)
            return False

        data = copy.deepcopy(snapshot)
        if isinstance(data.get(GRID_KEY), list):
            data[GRID_KEY] = compress_heatmap(data[GRID_KEY])

        payload = {
            "version": DATA_VERSION,
            "timestamp": int(time.time() * 1000),
            "data": data,
        }
        try:
            self._write(self.behavior_path, payload)
        except (OSError, TypeError, ValueError) as exc:
            logger.error("Failed to save behavior data: %s", exc)
            return False

        logger.info("Saved behavior data to %s", self.behavior_path)
        return True

    def load_behavior_data(self) -> Optional[Dict[str, Any]]:
        """
        Load the last saved snapshot.

        Returns:
            Snapshot dict with a dense heatmap, or None if missing or unreadable.
        """
        path = self.behavior_path
        if not path.exists():
            return None

        try:
            with open(path, encoding="utf-8") as f:
                payload = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.warning("Corrupted behavior data in %s, removing it", path)
            path.unlink()
            return None
        except OSError as exc:
            logger.error("Failed to read behavior data: %s", exc)
            return None

        if not isinstance(payload, dict):
            logger.warning("Unexpected behavior data layout in %s", path)
            return None

        if "version" not in payload:
            # Unversioned files hold the snapshot directly
            logger.warning("Loading behavior data without version info")
            data = payload
        else:
            if payload["version"] != DATA_VERSION:
                logger.warning("Behavior data version mismatch: %s vs %s",
                               payload["version"], DATA_VERSION)
            data = payload.get("data")
            if not isinstance(data, dict):
                logger.warning("Behavior data in %s has no data section", path)
                return None

        grid = data.get(GRID_KEY)
        if isinstance(grid, dict) and "sparse" in grid:
            try:
                data[GRID_KEY] = decompress_heatmap(grid)
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Invalid sparse heatmap in %s: %s", path, exc)
                return None

        return data

    def save_high_score(self, score: int) -> bool:
        """
        Save a high score if it beats the stored one.

        Returns:
            False for invalid scores or write errors, True otherwise
            (including when the score was not a new high).
        """
        if isinstance(score, bool) or not isinstance(score, int) or score < 0:
            logger.warning("Invalid score format: %r", score)
            return False

        if score <= self.load_high_score():
            return True

        payload = {
            "version": DATA_VERSION,
            "timestamp": int(time.time() * 1000),
            "score": score,
        }
        try:
            self._write(self.high_score_path, payload)
        except OSError as exc:
            logger.error("Failed to save high score: %s", exc)
            return False

        logger.info("New high score %d", score)
        return True

    def load_high_score(self) -> int:
        """Stored high score, 0 when missing or unreadable."""
        path = self.high_score_path
        if not path.exists():
            return 0

        try:
            text = path.read_text(encoding="utf-8")
        except UnicodeDecodeError:
            logger.warning("Unreadable high score file %s", path)
            return 0
        except OSError as exc:
            logger.error("Failed to read high score: %s", exc)
            return 0

        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            return 0

        # Older files held a bare number
        if isinstance(data, dict):
            data = data.get("score", 0)
        if isinstance(data, bool) or not isinstance(data, (int, float)):
            return 0
        if isinstance(data, float) and not math.isfinite(data):
            return 0
        return max(0, int(data))

    def clear(self) -> bool:
        """Remove all stored files."""
        try:
            for path in (self.behavior_path, self.high_score_path):
                if path.exists():
                    path.unlink()
        except OSError as exc:
            logger.error("Failed to clear store: %s", exc)
            return False
        return True

    def storage_info(self) -> Dict[str, int]:
        """Byte sizes of the stored files."""
        behavior = self.behavior_path.stat().st_size if self.behavior_path.exists() else 0
        high_score = self.high_score_path.stat().st_size if self.high_score_path.exists() else 0
        return {
            "behavior_data_size": behavior,
            "high_score_size": high_score,
            "total_size": behavior + high_score,
        }
