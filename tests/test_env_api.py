"""
Tests for Gymnasium environment API.
"""

import pytest
import numpy as np

from adaptive_snake.snake_core.config_loader import load_config
from adaptive_snake.snake_core.engine import AdaptiveEngine
from adaptive_snake.snake_core.env_gym import STRATEGIES, SnakeEnv
from adaptive_snake.snake_core.movement_log import Direction


@pytest.fixture
def config():
    # 10 x 10 cells keeps episodes short
    return load_config().with_board(200, 200, 20)


@pytest.fixture
def env(config):
    env = SnakeEnv(config=config)
    yield env
    env.close()


class TestSnakeEnv:
    """Test single environment API."""

    def test_reset_returns_obs_and_info(self, env):
        """Reset should return (observation, info) tuple."""
        result = env.reset(seed=42)

        assert isinstance(result, tuple)
        assert len(result) == 2

        obs, info = result
        assert isinstance(obs, dict)
        assert isinstance(info, dict)

    def test_observation_structure(self, env):
        """Observation should have expected keys and shapes."""
        obs, _ = env.reset(seed=42)

        for key in ("board", "heatmap", "head", "food", "score", "length",
                    "difficulty", "visual_intensity", "placement_strategy", "danger_level"):
            assert key in obs
        assert "board_rgb" not in obs

        assert obs["board"].shape == (10, 10)
        assert obs["heatmap"].shape == (10, 10)
        assert obs["head"].tolist() == [5, 5]
        assert int(obs["length"]) == 3
        assert 0 <= obs["placement_strategy"] < len(STRATEGIES)

    def test_observation_in_space(self, env):
        obs, _ = env.reset(seed=42)
        assert env.observation_space.contains(obs)

        for _ in range(3):
            obs, _, terminated, truncated, _ = env.step(env.action_for(Direction.UP))
            assert env.observation_space.contains(obs)
            if terminated or truncated:
                break

    def test_step_returns_five_values(self, env):
        """Step should return (obs, reward, terminated, truncated, info)."""
        env.reset(seed=42)

        result = env.step(0)

        assert isinstance(result, tuple)
        assert len(result) == 5

        obs, reward, terminated, truncated, info = result
        assert isinstance(obs, dict)
        assert isinstance(reward, (int, float))
        assert isinstance(terminated, bool)
        assert isinstance(truncated, bool)
        assert isinstance(info, dict)

    def test_reward_is_always_zero(self, env):
        """Environment reward should always be 0.0."""
        env.reset(seed=42)
        rng = np.random.default_rng(0)

        for _ in range(50):
            _, reward, terminated, truncated, _ = env.step(int(rng.integers(4)))
            assert reward == 0.0

            if terminated or truncated:
                env.reset()

    def test_info_contains_score(self, env):
        """Info dict should contain score and delta_score."""
        env.reset(seed=42)

        _, _, _, _, info = env.step(0)

        assert "score" in info
        assert "delta_score" in info
        assert "ate_food" in info
        assert "difficulty" in info
        assert "placement_strategy" in info

    def test_numpy_action(self, env):
        env.reset(seed=42)
        obs, _, _, _, _ = env.step(np.array(3))
        assert obs["head"].tolist() == [6, 5]

    @pytest.mark.parametrize("action", [-1, 4, 1.5, "up", np.array(-1)])
    def test_invalid_action(self, env, action):
        env.reset(seed=42)
        with pytest.raises(ValueError):
            env.step(action)
        assert env.engine.movement_history() == []

    def test_action_mapping(self):
        assert SnakeEnv.action_for(Direction.UP) == 0
        assert SnakeEnv.action_for("right") == 3

    def test_deterministic_with_seed(self, config):
        """Same seed should produce the same food placements."""
        env1 = SnakeEnv(config=config)
        env2 = SnakeEnv(config=config)

        obs1, _ = env1.reset(seed=123)
        obs2, _ = env2.reset(seed=123)
        assert obs1["food"].tolist() == obs2["food"].tolist()

        for action in [0, 2, 2, 1, 1, 3, 3, 3]:
            obs1, _, t1, tr1, _ = env1.step(action)
            obs2, _, _, _, _ = env2.step(action)
            assert obs1["food"].tolist() == obs2["food"].tolist()
            assert obs1["head"].tolist() == obs2["head"].tolist()
            if t1 or tr1:
                break

        env1.close()
        env2.close()

    def test_episode_terminates(self, env):
        """Running straight into a wall ends the episode."""
        env.reset(seed=42)
        terminated = False
        for _ in range(10):
            _, _, terminated, truncated, info = env.step(env.action_for("right"))
            if terminated or truncated:
                break

        assert terminated
        assert info["terminated_reason"] == "wall"

    def test_engine_persists_across_resets(self, env):
        env.reset(seed=1)
        for _ in range(6):
            _, _, terminated, _, _ = env.step(3)
            if terminated:
                break
        env.reset()

        assert env.engine.performance_state().total_sessions == 1
        assert len(env.engine.movement_history()) > 0

    def test_shared_engine(self, config):
        engine = AdaptiveEngine(config)
        engine.set_difficulty(5)
        env = SnakeEnv(engine=engine)
        obs, _ = env.reset(seed=0)
        assert int(obs["difficulty"]) == 5
        assert env.config is config

    def test_invalid_render_mode(self, config):
        with pytest.raises(ValueError):
            SnakeEnv(config=config, render_mode="human")


class TestImageObs:
    """Test rendered observations."""

    def test_board_rgb(self, config):
        env = SnakeEnv(config=config, image_obs=True)
        obs, _ = env.reset(seed=42)
        assert obs["board_rgb"].shape == (330, 300, 3)
        assert obs["board_rgb"].dtype == np.uint8
        assert env.observation_space.contains(obs)
        env.close()

    def test_render_rgb_array(self, config):
        env = SnakeEnv(config=config, render_mode="rgb_array", image_width=120, image_height=150)
        env.reset(seed=42)
        frame = env.render()
        assert frame.shape == (150, 120, 3)
        env.close()

    def test_render_headless(self, env):
        env.reset(seed=42)
        assert env.render() is None
