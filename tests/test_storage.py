"""
Tests for the JSON behavior store.
"""

import json
import logging

import pytest

from adaptive_snake.snake_core.config_loader import load_config
from adaptive_snake.snake_core.engine import AdaptiveEngine
from adaptive_snake.snake_core.storage import (
    DATA_VERSION,
    BehaviorStore,
    compress_heatmap,
    decompress_heatmap,
)


@pytest.fixture
def config():
    return load_config().with_board(100, 80, 20)


@pytest.fixture
def store(tmp_path):
    return BehaviorStore(tmp_path / "store")


@pytest.fixture
def engine(config):
    engine = AdaptiveEngine(config, seed=3)
    for direction in ["right", "right", "down", "left"]:
        engine.record_movement((40, 20), direction)
    engine.set_difficulty(3)
    engine.end_session(40)
    return engine


class TestCompression:
    """Test the sparse heatmap form."""

    def test_compress(self):
        compressed = compress_heatmap([[0, 2], [5, 0], [0, 0]])
        assert compressed == {
            "sparse": [{"x": 1, "y": 0, "value": 2}, {"x": 0, "y": 1, "value": 5}],
            "dimensions": {"width": 2, "height": 3},
        }

    def test_decompress(self):
        grid = decompress_heatmap({
            "sparse": [{"x": 1, "y": 0, "value": 2}, {"x": 9, "y": 9, "value": 1}],
            "dimensions": {"width": 2, "height": 2},
        })
        assert grid == [[0, 2], [0, 0]]


class TestBehaviorData:
    """Test snapshot persistence."""

    def test_missing_file(self, store):
        assert store.load_behavior_data() is None

    def test_round_trip_through_engine(self, config, store, engine):
        assert store.save_behavior_data(engine.export_state())

        restored = AdaptiveEngine(config)
        assert restored.import_state(store.load_behavior_data())
        assert restored.export_state() == engine.export_state()
        assert restored.difficulty_level == 3

    def test_file_layout(self, store, engine):
        store.save_behavior_data(engine.export_state())
        payload = json.loads(store.behavior_path.read_text())

        assert payload["version"] == DATA_VERSION
        assert isinstance(payload["timestamp"], int)
        assert payload["data"]["frequency_grid"]["sparse"] == [{"x": 2, "y": 1, "value": 4}]
        assert payload["data"]["frequency_grid"]["dimensions"] == {"width": 5, "height": 4}

    def test_save_does_not_touch_snapshot(self, store, engine):
        snapshot = engine.export_state()
        store.save_behavior_data(snapshot)
        assert isinstance(snapshot["frequency_grid"], list)

    def test_rejects_non_dict(self, store):
        assert not store.save_behavior_data(["not", "a", "snapshot"])
        assert not store.behavior_path.exists()

    def test_corrupt_file_is_removed(self, store, caplog):
        store.directory.mkdir(parents=True)
        store.behavior_path.write_text("{not json")

        with caplog.at_level(logging.WARNING):
            assert store.load_behavior_data() is None
        assert not store.behavior_path.exists()
        assert "Corrupted" in caplog.text

    def test_undecodable_file_is_removed(self, store, caplog):
        store.directory.mkdir(parents=True)
        store.behavior_path.write_bytes(b"\xff\xfe{garbage")

        with caplog.at_level(logging.WARNING):
            assert store.load_behavior_data() is None
        assert not store.behavior_path.exists()
        assert "Corrupted" in caplog.text

    def test_unversioned_file(self, store):
        store.directory.mkdir(parents=True)
        legacy = {"adaptation_state": {"difficulty_level": 5}}
        store.behavior_path.write_text(json.dumps(legacy))
        assert store.load_behavior_data() == legacy

    def test_version_mismatch_still_loads(self, store, caplog):
        store.directory.mkdir(parents=True)
        payload = {"version": "0.9", "data": {"adaptation_state": {"difficulty_level": 2}}}
        store.behavior_path.write_text(json.dumps(payload))

        with caplog.at_level(logging.WARNING):
            data = store.load_behavior_data()
        assert data == {"adaptation_state": {"difficulty_level": 2}}
        assert "version mismatch" in caplog.text


class TestHighScore:
    """Test high score persistence."""

    def test_default_zero(self, store):
        assert store.load_high_score() == 0

    def test_only_higher_is_written(self, store):
        assert store.save_high_score(120)
        assert store.save_high_score(80)
        assert store.load_high_score() == 120
        assert store.save_high_score(200)
        assert store.load_high_score() == 200

    @pytest.mark.parametrize("score", [-1, 1.5, "100", None, True])
    def test_invalid_scores(self, store, score):
        assert not store.save_high_score(score)
        assert store.load_high_score() == 0

    def test_bare_number_file(self, store):
        store.directory.mkdir(parents=True)
        store.high_score_path.write_text("350")
        assert store.load_high_score() == 350

    def test_garbage_file(self, store):
        store.directory.mkdir(parents=True)
        store.high_score_path.write_text("high")
        assert store.load_high_score() == 0

    def test_undecodable_file(self, store):
        store.directory.mkdir(parents=True)
        store.high_score_path.write_bytes(b"\xff\xfe")
        assert store.load_high_score() == 0
        assert store.save_high_score(30)
        assert store.load_high_score() == 30

    def test_infinite_score_file(self, store):
        store.directory.mkdir(parents=True)
        store.high_score_path.write_text('{"score": Infinity}')
        assert store.load_high_score() == 0


class TestMaintenance:
    """Test clearing and size reporting."""

    def test_clear(self, store, engine):
        store.save_behavior_data(engine.export_state())
        store.save_high_score(10)
        assert store.clear()
        assert store.load_behavior_data() is None
        assert store.load_high_score() == 0

    def test_clear_empty_store(self, store):
        assert store.clear()

    def test_storage_info(self, store, engine):
        assert store.storage_info()["total_size"] == 0
        store.save_behavior_data(engine.export_state())
        info = store.storage_info()
        assert info["behavior_data_size"] > 0
        assert info["high_score_size"] == 0
        assert info["total_size"] == info["behavior_data_size"]
