"""
Tests for configuration loading and validation.
"""

import pytest
import yaml

from adaptive_snake.snake_core.config_loader import get_config, load_config, reload_config


@pytest.fixture
def config():
    return load_config()


def _write_config(tmp_path, **overrides):
    raw = {"board": {"width": 600, "height": 600, "cell_size": 20}}
    for section, values in overrides.items():
        raw.setdefault(section, {}).update(values)
    path = tmp_path / "adaptive_config.yaml"
    path.write_text(yaml.safe_dump(raw))
    return str(path)


class TestLoadConfig:
    """Test the packaged defaults."""

    def test_board_defaults(self, config):
        """Default canvas is 600x600 with 20px cells."""
        assert config.board.width == 600
        assert config.board.height == 600
        assert config.board.cell_size == 20
        assert config.board.grid_width == 30
        assert config.board.grid_height == 30
        assert config.grid_shape == (30, 30)

    def test_adaptation_defaults(self, config):
        """Thresholds match the documented adaptation rules."""
        assert config.history.max_movements == 1000
        assert config.history.max_recent_outcomes == 5
        assert config.placement.random_attempts == 100
        assert config.placement.sparse_threshold == pytest.approx(0.3)
        assert config.difficulty.min_level == 1
        assert config.difficulty.max_level == 10
        assert config.difficulty.score_floor == pytest.approx(50)
        assert config.intensity.window == 20
        assert config.intensity.max_level == 5

    def test_missing_sections_use_defaults(self, tmp_path):
        """Only the board section is required."""
        config = load_config(_write_config(tmp_path))
        assert config.difficulty.streak_length == 3
        assert config.speed.max_interval_ms == 200

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / "nope.yaml"))

    def test_get_config_is_cached(self):
        assert get_config() is get_config()

    def test_reload_replaces_cache(self):
        first = get_config()
        second = reload_config()
        assert second is not first
        assert get_config() is second


class TestValidation:
    """Test that inconsistent configs are rejected."""

    def test_zero_cell_size(self, tmp_path):
        with pytest.raises(ValueError):
            load_config(_write_config(tmp_path, board={"cell_size": 0}))

    def test_canvas_smaller_than_cell(self, tmp_path):
        with pytest.raises(ValueError):
            load_config(_write_config(tmp_path, board={"width": 10, "height": 10}))

    def test_fraction_out_of_range(self, tmp_path):
        with pytest.raises(ValueError):
            load_config(_write_config(tmp_path, placement={"sparse_fraction": 1.5}))

    def test_moderate_band_inverted(self, tmp_path):
        with pytest.raises(ValueError):
            load_config(_write_config(tmp_path, placement={"moderate_min": 0.7, "moderate_max": 0.2}))

    def test_initial_difficulty_outside_range(self, tmp_path):
        with pytest.raises(ValueError):
            load_config(_write_config(tmp_path, difficulty={"initial": 11}))

    def test_intensity_min_events_too_small(self, tmp_path):
        with pytest.raises(ValueError):
            load_config(_write_config(tmp_path, intensity={"min_events": 1}))


class TestWithBoard:
    """Test deriving configs for other canvas sizes."""

    def test_grid_dimensions_floor(self, config):
        """Partial cells at the edge are dropped."""
        small = config.with_board(110, 65, 20)
        assert small.grid_shape == (3, 5)
        assert small.difficulty == config.difficulty

    def test_keeps_cell_size(self, config):
        assert config.with_board(100, 100).board.cell_size == 20

    def test_too_narrow_for_snake(self, config):
        with pytest.raises(ValueError):
            config.with_board(40, 100, 20)
